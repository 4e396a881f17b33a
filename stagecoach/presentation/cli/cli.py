"""
CLI Module

Architectural Intent:
- Command-line interface for stagecoach
- Entry point for all user interactions
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control

Exit codes:
- 0 when the deployment succeeded (or describe printed a plan)
- 1 when it failed, was cancelled, or the configuration is invalid
"""

import argparse
import asyncio
import logging
import sys
import traceback

from stagecoach.composition_root import create_container
from stagecoach.domain.entities.deployment import DeploymentStatus
from stagecoach.domain.exceptions import ConfigurationError
from stagecoach.infrastructure.config import load_config
from stagecoach.infrastructure.logging import NOTICE, configure_logging


def _add_deployment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c", default="stagecoach.json", help="Path to deployment config"
    )
    parser.add_argument(
        "--release", "-r", help="Release identifier (defaults to a UTC timestamp)"
    )
    parser.add_argument(
        "--no-rollback", action="store_true", help="Do not roll back on failure"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="stagecoach: staged multi-node deployments with rollback"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON logs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    deploy_parser = subparsers.add_parser("deploy", help="Deploy all applications")
    _add_deployment_arguments(deploy_parser)

    simulate_parser = subparsers.add_parser(
        "simulate", help="Dry run: log every command without executing it"
    )
    _add_deployment_arguments(simulate_parser)

    describe_parser = subparsers.add_parser(
        "describe", help="Print the stages, nodes and tasks of a deployment"
    )
    _add_deployment_arguments(describe_parser)

    return parser


async def async_main():
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    try:
        config = load_config(args.config)
    except (ConfigurationError, ValueError) as e:
        print(f"[-] Invalid configuration: {e}")
        sys.exit(1)

    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.getLevelName(config.log_level.upper())
        if not isinstance(level, int):
            level = NOTICE
    configure_logging(level=level, json_format=args.json_logs or config.log_json)

    verbose = args.verbose or args.debug

    try:
        container = create_container(
            config,
            release_identifier=args.release,
            dry_run=args.command == "simulate",
            enable_rollback=False if args.no_rollback else None,
        )
    except (ConfigurationError, ValueError) as e:
        print(f"[-] Invalid configuration: {e}")
        sys.exit(1)

    deployment = container.deployment

    if args.command == "describe":
        for line in container.describe_deployment.execute(deployment, container.workflow):
            print(line)
        return

    mode = "Simulating" if deployment.dry_run else "Deploying"
    print(
        f"[*] {mode} {deployment.name} release {deployment.release_identifier} "
        f"to {len(deployment.nodes)} node(s)..."
    )
    try:
        await container.telemetry.initialize()
        status = await container.run_deployment.execute(deployment)
        await container.telemetry.export()
    except ConfigurationError as e:
        print(f"[-] Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"[-] Deployment Failed: {e}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)

    if status is DeploymentStatus.SUCCESS:
        print(f"[+] Deployment {deployment.name} successful.")
        return
    if status is DeploymentStatus.CANCELLED:
        print(f"[-] Deployment {deployment.name} cancelled: another deployment holds the lock.")
    else:
        print(f"[-] Deployment {deployment.name} failed.")
    sys.exit(1)


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
