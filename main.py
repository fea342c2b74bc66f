#!/usr/bin/env python3
"""
GymDesk -- Member, package, check-in and payment management for a single gym.

The HTTP API is served by api/main.py. This command-line entry point handles
the operator tasks that must happen before anyone can log in.

Usage:
  python main.py init-db
  python main.py create-admin --username admin --password 's3cret!!' --full-name "Gym Admin"

Environment variables:
  SECRET_KEY     Required. At least 32 characters; signs access tokens.
  DATABASE_URL   Optional SQLAlchemy URL (default: sqlite:///gymdesk.db beside this file).
"""

import argparse
import sys

from auth.models import Role
from auth.store import UserStore
from core.config import get_settings
from core.database import create_db_engine
from core.errors import GymDeskError
from gym.validation import validate_user_create


def _init_db(args: argparse.Namespace) -> int:
    """Create any missing tables and report the database in use."""
    settings = get_settings()
    engine = create_db_engine(settings.database_url)
    try:
        has_users = UserStore(engine).has_users()
    finally:
        engine.dispose()
    print(f"  Database ready: {engine.url.render_as_string(hide_password=True)}")
    if not has_users:
        print("  No user accounts yet. Run `python main.py create-admin` to create the first admin.")
    return 0


def _create_admin(args: argparse.Namespace) -> int:
    """Create an admin account with the same rules the API applies."""
    settings = get_settings()
    engine = create_db_engine(settings.database_url)
    store = UserStore(engine)
    payload = {
        "username": args.username,
        "password": args.password,
        "full_name": args.full_name,
        "role": Role.admin.value,
    }
    try:
        user = validate_user_create(payload, store)
        user_id = store.create_user(user)
    except GymDeskError as e:
        print(f"  [!] Could not create admin: {e.message}")
        return 1
    finally:
        engine.dispose()
    print(f"  Admin '{user.username}' created (id={user_id}).")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gymdesk",
        description="Operator commands for the GymDesk API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  python main.py create-admin --username admin --password 's3cret!!' --full-name "Gym Admin"
  uvicorn api.main:app --reload
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_db = subparsers.add_parser("init-db", help="Create the database tables if they do not exist")
    init_db.set_defaults(handler=_init_db)

    create_admin = subparsers.add_parser("create-admin", help="Create an admin account")
    create_admin.add_argument("--username", required=True, help="Login name (letters, digits, . _ -)")
    create_admin.add_argument("--password", required=True, help="At least 6 characters")
    create_admin.add_argument("--full-name", required=True, help="English letters separated by single spaces")
    create_admin.set_defaults(handler=_create_admin)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    try:
        get_settings()
    except ValueError as e:
        print(f"  [!] Configuration error: {e}")
        return 2

    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
