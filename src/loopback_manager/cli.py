"""
Command-line entrypoint for loopback-manager.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .config import load_config
from .errors import LoopbackError
from .ledger import AssignmentLedger, RepositoryKey
from .manager import LoopbackManager
from .reconcile import render_report

log = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _resolve_key(args: argparse.Namespace) -> RepositoryKey:
    if args.name:
        return RepositoryKey(args.org, args.name)
    return RepositoryKey.parse(args.org)


def command_list(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    repos = mgr.list_repositories()
    if args.json:
        _print_json([repo.to_dict() for repo in repos])
        return 0
    if not repos:
        print("No repositories found.")
        return 0

    print(f"{'Repository':<30} {'IP Address':<15} Status")
    print("-" * 60)
    for repo in repos:
        status = "✓ Assigned" if repo.assigned else "✗ Not assigned"
        print(f"{str(repo.key):<30} {repo.ip or '-':<15} {status}")
    return 0


def command_scan(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    unassigned = mgr.scan()
    if args.json:
        _print_json([repo.to_dict() for repo in unassigned])
        return 0
    if not unassigned:
        print("All repositories have IP assignments.")
        return 0

    print(f"Found {len(unassigned)} unassigned repositories:\n")
    for repo in unassigned:
        print(f"  - {repo.key}")
    print("\nRun 'loopback-manager auto-assign' to assign IPs automatically.")
    return 0


def command_assign(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    key = _resolve_key(args)
    result = mgr.assign(key.org, key.name, args.ip)
    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Assigned {result.ip} to {result.key}")
    return 0


def command_remove(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    key = _resolve_key(args)
    mgr.remove(key.org, key.name)
    print(f"Removed IP assignment for {key}")
    return 0


def command_auto_assign(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    if not mgr.scan():
        print("All repositories already have IP assignments.")
        return 0

    if not args.execute:
        print("DRY RUN MODE - No changes will be made")
        print("To execute, run with --execute flag\n")

    result = mgr.auto_assign(execute=args.execute)
    if result.executed:
        for committed in result.committed:
            print(f"  Assigned {committed.ip} to {committed.key}")
            for warning in committed.warnings:
                print(f"  Warning: {warning}")
    else:
        for planned in result.planned:
            print(f"  Would assign {planned.ip} to {planned.key}")

    if result.error is not None:
        raise result.error

    if result.executed:
        print("\nAll repositories have been assigned IPs.")
    else:
        print(f"\nDRY RUN COMPLETE - Would assign {len(result.planned)} IPs")
        print("To execute these assignments, run: loopback-manager auto-assign --execute")
    return 0


def command_check(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    duplicates = mgr.check_duplicates()
    if not duplicates:
        print("No duplicate IPs found.")
        return 0
    for ip, owners in duplicates.items():
        print(f"Duplicate IP {ip} assigned to:")
        for owner in owners:
            print(f"  - {owner}")
    return 0


def command_host_list(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    addresses = mgr.host_addresses()
    if args.json:
        _print_json([addr.to_dict() for addr in addresses])
        return 0
    if not addresses:
        print("No additional loopback addresses configured on host.")
        print("(127.0.0.1 is excluded as it's the default loopback)")
        return 0

    print("Host Loopback Addresses:")
    print(f"{'Interface':<20} IP Address")
    print("-" * 40)
    for addr in addresses:
        print(f"{addr.interface:<20} {addr.ip}")
    return 0


def command_sync_check(mgr: LoopbackManager, args: argparse.Namespace) -> int:
    print(render_report(mgr.sync_check()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loopback-manager",
        description="Manage loopback IP addresses for Docker Compose projects.",
    )
    parser.add_argument("--config", help="Config file (default: ~/.config/loopback-manager/config.yaml)")
    parser.add_argument("--base-dir", help="Directory holding <org>/<repo> checkouts (or set GITHUB_BASE_DIR)")
    parser.add_argument("--ledger", help="Assignments file (default: ~/.config/loopback-manager/assignments.txt)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", aliases=["ls"], help="List all IP assignments.")
    list_cmd.add_argument("--json", action="store_true", help="Print JSON instead of a table.")
    list_cmd.set_defaults(func=command_list)

    scan = subparsers.add_parser("scan", help="Scan for unassigned repositories.")
    scan.add_argument("--json", action="store_true", help="Print JSON instead of a table.")
    scan.set_defaults(func=command_scan)

    assign = subparsers.add_parser("assign", help="Assign an IP to a repository.")
    assign.add_argument("org", help="Organization, or org/repo")
    assign.add_argument("name", nargs="?", help="Repository name")
    assign.add_argument("--ip", "-i", help="Specific IP address to assign")
    assign.set_defaults(func=command_assign)

    remove = subparsers.add_parser("remove", aliases=["rm", "del"], help="Remove an IP assignment.")
    remove.add_argument("org", help="Organization, or org/repo")
    remove.add_argument("name", nargs="?", help="Repository name")
    remove.set_defaults(func=command_remove)

    auto = subparsers.add_parser(
        "auto-assign",
        aliases=["auto"],
        help="Auto-assign IPs to all unassigned repositories (dry-run by default).",
    )
    auto.add_argument("--execute", "-e", action="store_true", help="Apply the assignments instead of previewing.")
    auto.set_defaults(func=command_auto_assign)

    check = subparsers.add_parser("check", aliases=["validate"], help="Check for duplicate IPs.")
    check.set_defaults(func=command_check)

    host_list = subparsers.add_parser("host-list", help="List loopback addresses configured on the host.")
    host_list.add_argument("--json", action="store_true", help="Print JSON instead of a table.")
    host_list.set_defaults(func=command_host_list)

    sync = subparsers.add_parser("sync-check", help="Compare assignments with host loopback addresses.")
    sync.set_defaults(func=command_sync_check)

    version = subparsers.add_parser("version", help="Show version information.")
    version.set_defaults(func=None)

    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {"base_dir": args.base_dir, "ledger_path": args.ledger}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.func is None:
        print(f"loopback-manager version {__version__}")
        return 0

    try:
        config = load_config(args.config, _overrides(args))
    except Exception as exc:  # broad catch to surface config issues to users
        logging.error("Failed to load config: %s", exc)
        return 1

    try:
        ledger = AssignmentLedger.load(config.ledger_path)
        mgr = LoopbackManager(config, ledger)
        return args.func(mgr, args)
    except (LoopbackError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
