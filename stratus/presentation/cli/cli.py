"""
CLI Module

Architectural Intent:
- Command-line interface for Stratus
- Entry point for all user interactions
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control
- Prints a phase trace from domain events and a final success/failure banner
"""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from stratus.composition_root import create_container
from stratus.domain.errors import ConfigurationError, StratusError
from stratus.domain.events.event_base import (
    DeploymentAbortedEvent,
    DomainEvent,
    ResourceEnsuredEvent,
    StageReachedEvent,
)
from stratus.infrastructure.config import StratusConfig, load_config, validate_config
from stratus.infrastructure.logging import configure_logging
from stratus.application.dtos.provisioning_dtos import (
    DeployContentRequest,
    ProvisionRequest,
    ProvisionResponse,
    TeardownRequest,
)

RULE = "-" * 63


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stratus",
        description="Stratus: idempotent static website provisioning on Azure",
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to config file (stratus.json)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON lines"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    provision_parser = subparsers.add_parser(
        "provision", help="Create (or complete) the website environment"
    )
    provision_parser.add_argument(
        "--dry-run", action="store_true", help="Report what would be created"
    )
    provision_parser.add_argument(
        "--require-ready",
        action="store_true",
        help="Fail if the VM does not accept SSH in time",
    )
    provision_parser.add_argument(
        "--no-configure",
        action="store_true",
        help="Create infrastructure only; skip NGINX configuration",
    )

    teardown_parser = subparsers.add_parser(
        "teardown", help="Delete the resource group and everything in it"
    )
    teardown_parser.add_argument(
        "--yes-token",
        default=None,
        help="Confirmation token (must be DELETE) for non-interactive use",
    )
    teardown_parser.add_argument(
        "--wait", action="store_true", help="Wait until the group is gone"
    )

    content_parser = subparsers.add_parser(
        "deploy-content", help="Upload a static website to the VM"
    )
    content_parser.add_argument(
        "local_dir", nargs="?", default=None, help="Local website directory"
    )

    subparsers.add_parser("status", help="Show the deployed environment")

    config_parser = subparsers.add_parser("config", help="Show the configuration")
    config_parser.add_argument(
        "--validate", action="store_true", help="Validate and report problems"
    )
    return parser


async def print_event(event: DomainEvent) -> None:
    if isinstance(event, ResourceEnsuredEvent):
        if event.planned:
            print(f"[*] Would create {event.kind}: {event.name}")
        elif event.created:
            print(f"[+] Created {event.kind}: {event.name}")
        else:
            print(f"[*] {event.kind} '{event.name}' already exists, skipping")
    elif isinstance(event, StageReachedEvent):
        print(f"[+] Stage reached: {event.stage}")
    elif isinstance(event, DeploymentAbortedEvent):
        print(f"[-] Aborted during {event.stage}: {event.error_message}")


def check_config(config: StratusConfig) -> None:
    errors, warnings = validate_config(config)
    for warning in warnings:
        print(f"[!] Warning: {warning}")
    if errors:
        raise ConfigurationError(errors)


def print_provision_summary(config: StratusConfig, response: ProvisionResponse) -> None:
    context = response.context
    print()
    if response.success:
        print("DEPLOYMENT SUCCESSFUL!" if response.deployment.succeeded else response.message)
    else:
        print("DEPLOYMENT FAILED")
    print(RULE)
    print(f"  Resource Group:    {config.azure.resource_group}")
    print(f"  Location:          {config.azure.location}")
    print(f"  Virtual Machine:   {config.vm.name} ({config.vm.size})")
    print(f"  Public IP:         {response.public_ip or 'n/a'}")
    if response.fqdn:
        print(f"  DNS Name:          {response.fqdn}")
    print(f"  Admin User:        {config.vm.admin_username}")
    print(f"  Stage:             {response.deployment.stage.name}")
    print(f"  Created:           {', '.join(context.created) or 'none'}")
    print(f"  Skipped:           {', '.join(context.skipped) or 'none'}")
    if context.planned:
        print(f"  Would create:      {', '.join(context.planned)}")
    if response.url:
        print(RULE)
        print(f"  Website URL:       {response.url}")
        print(
            f"  SSH Access:        ssh -i {config.ssh.key_path} "
            f"{config.vm.admin_username}@{response.public_ip}"
        )
    print(RULE)
    for warning in response.warnings:
        print(f"[!] {warning}")
    if not response.success:
        print(f"[-] {response.message}")
        print("[*] Re-run 'stratus provision' to resume; existing resources are skipped.")


def confirm_from_terminal(resources: list[dict]) -> str:
    print("[!] The following resources will be deleted:")
    for resource in resources:
        print(f"    {resource.get('name', '?'):<30} {resource.get('type', '')}")
    try:
        return input("Type DELETE to confirm: ").strip()
    except EOFError:
        return ""


async def async_main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (ValueError, TypeError) as e:
        print(f"[-] Invalid configuration: {e}")
        sys.exit(1)

    # Configure logging based on flags
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.getLevelName(config.log_level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    configure_logging(level=level, json_format=args.json_logs)

    verbose = args.verbose or args.debug

    if args.command is None:
        parser.print_help()
        return

    if args.command == "config":
        print(json.dumps(config.to_dict(), indent=2))
        if args.validate:
            errors, warnings = validate_config(config)
            for warning in warnings:
                print(f"[!] Warning: {warning}")
            for error in errors:
                print(f"[-] Error: {error}")
            if errors:
                sys.exit(1)
            print("[+] Configuration is valid.")
        return

    try:
        container = create_container(config)
    except ValueError as e:
        print(f"[-] Invalid telemetry settings: {e}")
        sys.exit(1)
    container.event_bus.subscribe(DomainEvent, print_event)

    try:
        if args.command == "provision":
            check_config(config)
            mode = " (dry run)" if args.dry_run else ""
            print(f"[*] Provisioning '{config.azure.resource_group}' in {config.azure.location}{mode}...")
            response = await container.provision.execute(
                ProvisionRequest(
                    dry_run=args.dry_run,
                    require_ready=args.require_ready,
                    configure=not args.no_configure,
                )
            )
            print_provision_summary(config, response)
            if not response.success:
                sys.exit(1)
            return

        if args.command == "teardown":
            group = config.azure.resource_group
            print(f"[*] Tearing down resource group '{group}'...")

            async def confirm(resources: list[dict]) -> str:
                if args.yes_token is not None:
                    return args.yes_token
                return await asyncio.get_event_loop().run_in_executor(
                    None, confirm_from_terminal, resources
                )

            response = await container.teardown.execute(
                TeardownRequest(resource_group=group, wait=args.wait), confirm
            )
            if response.success:
                print(f"[+] {response.message}")
            else:
                print(f"[-] Teardown Failed: {response.message}")
                sys.exit(1)
            return

        if args.command == "deploy-content":
            check_config(config)
            local_dir = args.local_dir or config.web.website_dir
            print(f"[*] Deploying website from {local_dir}...")
            response = await container.deploy_content.execute(
                DeployContentRequest(local_dir=local_dir)
            )
            if response.success:
                print(f"[+] {response.message}")
                print(f"[*] Visit your website: {response.url}")
            else:
                print(f"[-] Deployment Failed: {response.message}")
                sys.exit(1)
            return

        if args.command == "status":
            status = await container.show_status.execute()
            if not status.exists:
                print(f"[-] Resource group '{status.resource_group}' does not exist.")
                return
            print(f"[+] Resource group '{status.resource_group}' exists")
            for resource in status.resources:
                print(f"    {resource.get('name', '?'):<30} {resource.get('type', '')}")
            if status.power_state:
                print(f"[*] VM state: {status.power_state}")
            if status.url:
                print(f"[*] Website URL: {status.url}")
            if status.fqdn:
                print(f"[*] DNS name: {status.fqdn}")
            return
    except ConfigurationError as e:
        for error in e.errors:
            print(f"[-] Configuration error: {error}")
        sys.exit(1)
    except StratusError as e:
        print(f"[-] {e}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[*] Interrupted.")
        sys.exit(1)
    except Exception as e:
        print(f"[-] {args.command} failed: {e}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)
    finally:
        container.tracer.shutdown()


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
