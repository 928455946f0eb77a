#!/usr/bin/env python3
"""
Portfolio admin bootstrap CLI.

The admin account is never created over HTTP. Run one of these on the server
before the first login, with the same DATABASE_URL the web process uses.

Usage:
  python main.py create-admin
  python main.py create-admin --username alice
  python main.py set-password
  python main.py set-password --username alice
  python main.py --db-url sqlite:///portfolio.db create-admin

Environment variables:
  DATABASE_URL    SQLAlchemy URL of the site database.
  ADMIN_PASSWORD  Password for create-admin. Prompted for when unset.
  JWT_SECRET      Required unless DEBUG=true (the settings check applies here too).
"""

import argparse
import getpass
import sys
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.models import AdminCredential
from auth.passwords import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH, hash_password
from auth.store import AdminStore
from core.config import get_settings


def _prompt_password(confirm: bool) -> Optional[str]:
    """Read a password from the terminal. Returns None when the two entries differ."""
    password = getpass.getpass("  Password: ")
    if confirm and getpass.getpass("  Confirm password: ") != password:
        print("  [!] Passwords do not match.")
        return None
    return password


def _check_length(password: str) -> bool:
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return False
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return False
    return True


def create_admin(store: AdminStore, username: str, password: Optional[str]) -> int:
    """Create the first admin account. Returns a process exit code.

    Running it again once an admin exists is a no-op that exits 0, so it is
    safe to call from a deploy script.
    """
    existing = store.first_admin()
    if existing is not None:
        print(f"  Admin account already exists: {existing.username}")
        return 0

    if not password:
        password = _prompt_password(confirm=True)
        if password is None:
            return 1
    if not _check_length(password):
        return 1

    try:
        admin_id = store.create_admin(AdminCredential(username=username, hashed_password=hash_password(password)))
    except IntegrityError:
        print(f"  [!] Username '{username}' is already taken.")
        return 1
    print(f"  Created admin '{username}' (id {admin_id}).")
    return 0


def set_password(store: AdminStore, username: str, password: Optional[str] = None) -> int:
    """Replace an admin's password, creating the account if it does not exist."""
    if password is None:
        password = _prompt_password(confirm=True)
        if password is None:
            return 1
    if not _check_length(password):
        return 1

    hashed = hash_password(password)
    if store.update_password(username, hashed):
        print(f"  Password updated for '{username}'.")
    else:
        admin_id = store.create_admin(AdminCredential(username=username, hashed_password=hashed))
        print(f"  Created admin '{username}' (id {admin_id}).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="portfolio",
        description="Manage the portfolio admin account.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin
  ADMIN_PASSWORD=... python main.py create-admin --username alice
  python main.py set-password --username alice
        """,
    )
    parser.add_argument(
        "--db-url",
        metavar="URL",
        default=None,
        help="Database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-admin", help="Create the admin account if none exists")
    create.add_argument("--username", default="admin", help="Admin username (default: admin)")

    reset = sub.add_parser("set-password", help="Set or reset an admin password")
    reset.add_argument("--username", default="admin", help="Admin username (default: admin)")

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"  [!] Invalid configuration: {e}")
        return 1

    store = AdminStore(args.db_url or settings.database_url)
    try:
        if args.command == "create-admin":
            return create_admin(store, args.username, settings.admin_password or None)
        return set_password(store, args.username)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
