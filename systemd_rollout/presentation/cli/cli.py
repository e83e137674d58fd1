"""
CLI Module

Architectural Intent:
- Command-line interface for the rolling systemd update
- Entry point for CI pipelines (settings also come from ROLLOUT_* / INPUT_* variables)
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control

Exit codes: 0 success, 1 rollout/rollback failure, 2 configuration error.
"""

import argparse
import logging
import sys
import traceback
from typing import Optional, Sequence

from systemd_rollout.composition_root import create_container
from systemd_rollout.domain.errors import ConfigurationError
from systemd_rollout.infrastructure.config import (
    build_host_targets,
    load_config,
    load_run_context,
)
from systemd_rollout.infrastructure.logging import configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", help="Path to JSON config file")
    common.add_argument("--service", dest="service_name", help="systemd service name")
    common.add_argument("--hosts", help="Comma-separated list of hosts")
    common.add_argument(
        "--fingerprints",
        help="Comma-separated hex host key fingerprints, one per host",
    )
    common.add_argument("--username", "-u", help="SSH username")
    common.add_argument("--port", "-p", type=int, help="SSH port")
    common.add_argument(
        "--key", dest="private_key", help="Private key material or path to key file"
    )
    common.add_argument("--source", dest="source_directory", help="Local build directory")
    common.add_argument(
        "--no-health-check",
        dest="health_check",
        action="store_false",
        default=None,
        help="Skip the HTTP health check",
    )
    common.add_argument("--health-check-path", help="Health check path (default /api/health)")
    common.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    common.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Debug output; keep remote archives and list staged files",
    )
    common.add_argument(
        "--json-logs", action="store_true", default=None, help="Emit JSON log lines"
    )

    parser = argparse.ArgumentParser(
        description="Rolling, rollback-capable update of a systemd service across hosts"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser(
        "deploy", parents=[common], help="Update every host in order, rolling back on failure"
    )
    subparsers.add_parser(
        "rollback",
        parents=[common],
        help="Restore the previous generation (<WorkingDirectory>.last) on every host",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    keys = (
        "service_name",
        "hosts",
        "fingerprints",
        "username",
        "port",
        "private_key",
        "source_directory",
        "health_check",
        "health_check_path",
        "debug",
        "json_logs",
    )
    return {key: getattr(args, key) for key in keys}


def _configure_logging(args: argparse.Namespace, config) -> None:
    if config.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = getattr(logging, str(config.log_level).upper(), logging.WARNING)
    configure_logging(level=level, json_format=config.json_logs)


def run(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    debug = bool(args.debug)
    try:
        config = load_config(args.config, overrides=_overrides(args))
        debug = config.debug
        _configure_logging(args, config)
        targets = build_host_targets(config)
        container = create_container(targets, load_run_context())
    except ConfigurationError as e:
        print(f"[-] Configuration error: {e}")
        if debug:
            traceback.print_exc()
        return EXIT_CONFIG

    hosts = ", ".join(t.host for t in targets)

    if args.command == "rollback":
        print(f"[*] Rolling back {config.service_name} on {hosts}...")
        report = container.rolling_update.rollback(container.updaters)
        for outcome in report.rollbacks:
            print(f"    {outcome}")
        if report.succeeded:
            print("[+] Rollback finished.")
            return EXIT_OK
        print("[-] Rollback failed on at least one host.")
        return EXIT_FAILED

    print(
        f"[*] Updating {config.service_name} on {hosts} "
        f"(run {container.run_context})..."
    )
    report = container.rolling_update.execute(container.updaters)
    if report.succeeded:
        print(f"[+] {report.summary()}")
        return EXIT_OK

    print(f"[-] {report.summary()}")
    for outcome in report.rollbacks:
        print(f"    {outcome}")
    return EXIT_FAILED


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
