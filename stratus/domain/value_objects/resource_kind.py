from enum import Enum


class ResourceKind(str, Enum):
    """Kinds of Azure resources a deployment is made of, in creation order."""

    GROUP = "group"
    NETWORK = "network"
    SUBNET = "subnet"
    SECURITY_GROUP = "security_group"
    SECURITY_RULE = "security_rule"
    PUBLIC_ADDRESS = "public_address"
    NETWORK_INTERFACE = "network_interface"
    COMPUTE_INSTANCE = "compute_instance"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ResourceKind.GROUP: "Resource Group",
    ResourceKind.NETWORK: "Virtual Network",
    ResourceKind.SUBNET: "Subnet",
    ResourceKind.SECURITY_GROUP: "Network Security Group",
    ResourceKind.SECURITY_RULE: "Security Rule",
    ResourceKind.PUBLIC_ADDRESS: "Public IP",
    ResourceKind.NETWORK_INTERFACE: "Network Interface",
    ResourceKind.COMPUTE_INSTANCE: "Virtual Machine",
}
