"""CLI for asset-audit: provision the store and manage stored data."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys


def _print_json(model) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2))


async def cmd_init_db(args):
    """Create the assessment and profile tables."""
    from asset_audit.db.engine import init_db

    await init_db()
    print("Database initialised")


async def cmd_add_user(args):
    from asset_audit.container import build_container
    from asset_audit.schemas import UserProfileUpsert

    container = build_container()
    profile = await container.records.upsert_user_profile(
        UserProfileUpsert(
            id=args.id,
            email=args.email,
            display_name=args.display_name,
            role=args.role,
        )
    )
    print(f"User saved: {profile.email} (id={profile.id}, role={profile.role})")


async def cmd_storage(args):
    """Print storage metrics for one owner, or the system report."""
    from asset_audit.container import build_container

    container = build_container()
    if args.owner:
        _print_json(await container.usage.estimate_formatted(args.owner))
    else:
        _print_json(await container.usage.system_report())


async def cmd_sweep_orphans(args):
    from asset_audit.container import build_container

    container = build_container()
    report = await container.sweeper.sweep(args.owner, dry_run=args.dry_run)
    _print_json(report)


async def cmd_clear_data(args):
    """Delete records and their attachments for one owner or the whole system."""
    from asset_audit.container import build_container

    container = build_container()
    if args.all:
        report = await container.deleter.delete_all()
    else:
        report = await container.deleter.delete_all_for_owner(args.owner)
    _print_json(report)
    if report.failures:
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description="asset-audit CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Create tables and indexes")

    # add-user
    au = subparsers.add_parser("add-user", help="Create or update a user profile")
    au.add_argument("--id", required=True, help="User id (as sent in X-User-Id)")
    au.add_argument("--email", required=True, help="User email")
    au.add_argument("--display-name", default="", help="Display name")
    au.add_argument("--role", choices=["staff", "admin"], default="staff", help="User role")

    # storage
    st = subparsers.add_parser("storage", help="Show storage usage")
    st.add_argument("--owner", default=None, help="Owner id (defaults to the system report)")

    # sweep-orphans
    sw = subparsers.add_parser("sweep-orphans", help="Delete attachments no record points at")
    sw.add_argument("--owner", default=None, help="Restrict the sweep to one owner")
    sw.add_argument("--dry-run", action="store_true", help="Report orphans without deleting")

    # clear-data
    cd = subparsers.add_parser("clear-data", help="Delete records and attachments")
    target = cd.add_mutually_exclusive_group(required=True)
    target.add_argument("--owner", help="Delete every record of this owner")
    target.add_argument("--all", action="store_true", help="Delete every record in the system")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "add-user":
        asyncio.run(cmd_add_user(args))
    elif args.command == "storage":
        asyncio.run(cmd_storage(args))
    elif args.command == "sweep-orphans":
        asyncio.run(cmd_sweep_orphans(args))
    elif args.command == "clear-data":
        asyncio.run(cmd_clear_data(args))


if __name__ == "__main__":
    main()
