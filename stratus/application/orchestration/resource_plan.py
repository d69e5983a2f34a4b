"""
Resource Plan

Architectural Intent:
- Turns a StratusConfig into the fixed, ordered list of resources a static
  website needs
- Order is creation order: group -> network -> subnet -> security group ->
  rules -> public IP -> network interface -> virtual machine
- Names referenced in params are the names of earlier descriptors, so
  plan validation catches any wiring mistake before provider calls
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from stratus.domain.entities.resource_descriptor import ResourceDescriptor
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.resource_kind import ResourceKind

if TYPE_CHECKING:
    from stratus.infrastructure.config import StratusConfig


def build_infrastructure_plan(config: StratusConfig) -> list[ResourceDescriptor]:
    """Everything up to and including the network interface."""
    azure, net = config.azure, config.network
    rg = azure.resource_group
    scope = {"resource_group": rg}
    common = {"location": azure.location, "tags": azure.tags}

    plan = [
        ResourceDescriptor(ResourceKind.GROUP, rg, params=common),
        ResourceDescriptor(
            ResourceKind.NETWORK,
            net.vnet_name,
            depends_on=(rg,),
            scope=scope,
            params={**common, "address_prefix": net.vnet_prefix},
        ),
        ResourceDescriptor(
            ResourceKind.SUBNET,
            net.subnet_name,
            depends_on=(net.vnet_name,),
            scope={**scope, "vnet_name": net.vnet_name},
            params={"address_prefix": net.subnet_prefix},
        ),
        ResourceDescriptor(
            ResourceKind.SECURITY_GROUP,
            net.nsg_name,
            depends_on=(rg,),
            scope=scope,
            params=common,
        ),
    ]

    for rule in config.security_rules:
        if rule.name == "AllowSSH" and net.ssh_source != "*":
            rule = rule.restricted_to(net.ssh_source)
        plan.append(
            ResourceDescriptor(
                ResourceKind.SECURITY_RULE,
                rule.name,
                depends_on=(net.nsg_name,),
                scope={**scope, "nsg_name": net.nsg_name},
                params={"rule": rule},
            )
        )

    plan += [
        ResourceDescriptor(
            ResourceKind.PUBLIC_ADDRESS,
            net.public_ip_name,
            depends_on=(rg,),
            scope=scope,
            params={**common, "dns_name": net.dns_name},
        ),
        ResourceDescriptor(
            ResourceKind.NETWORK_INTERFACE,
            net.nic_name,
            depends_on=(net.subnet_name, net.nsg_name, net.public_ip_name),
            scope=scope,
            params={
                **common,
                "vnet_name": net.vnet_name,
                "subnet_name": net.subnet_name,
                "nsg_name": net.nsg_name,
                "public_ip_name": net.public_ip_name,
            },
        ),
    ]
    return plan


def build_instance_plan(
    config: StratusConfig, identity: Identity
) -> list[ResourceDescriptor]:
    """The virtual machine, attached to the network interface."""
    vm = config.vm
    return [
        ResourceDescriptor(
            ResourceKind.COMPUTE_INSTANCE,
            vm.name,
            depends_on=(config.network.nic_name,),
            scope={"resource_group": config.azure.resource_group},
            params={
                "location": config.azure.location,
                "tags": {
                    "Environment": config.azure.tag_environment,
                    "Role": "WebServer",
                },
                "nic_name": config.network.nic_name,
                "size": vm.size,
                "image": vm.image,
                "admin_username": vm.admin_username,
                "public_key": identity.public_key,
            },
        )
    ]


def build_resource_plan(
    config: StratusConfig, identity: Identity
) -> list[ResourceDescriptor]:
    return build_infrastructure_plan(config) + build_instance_plan(config, identity)
