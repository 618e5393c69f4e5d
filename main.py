#!/usr/bin/env python3
"""
Shopping mall backend -- command line entry point.

Usage:
  python main.py init-db
  python main.py create-admin --email ops@example.com --nickname ops --full-name "Ops Team"
  python main.py serve --host 0.0.0.0 --port 8000

Environment variables (read through core.config, see .env):
  DATABASE_URL  SQLAlchemy URL. Defaults to a SQLite file next to the mall package.
  SECRET_KEY    JWT signing key, at least 32 characters. Required unless DEBUG=true.
"""

import argparse
import getpass
import sys

from sqlalchemy.exc import IntegrityError

from auth.models import ADMIN, AdminUser
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from mall.store import MallStore

_MIN_PASSWORD = 8


def init_db() -> None:
    """Create every table. Safe to run repeatedly -- existing tables are left alone."""
    url = get_settings().database_url
    MallStore(url).close()
    UserStore(url).close()
    print(f"  Schema ready at {url}")


def create_admin(email: str, nickname: str, full_name: str, password: str | None = None) -> int:
    """Create an active administrator. Returns a process exit code."""
    if password is None:
        password = getpass.getpass("  Password: ")
        if password != getpass.getpass("  Repeat password: "):
            print("  [!] Passwords do not match.")
            return 1
    if len(password) < _MIN_PASSWORD:
        print(f"  [!] Password must be at least {_MIN_PASSWORD} characters.")
        return 1

    store = UserStore()
    try:
        if store.get_by_email(ADMIN, email) is not None:
            print(f"  [!] An administrator with email {email} already exists.")
            return 1
        admin = store.create(
            AdminUser(email=email, password_hash=hash_password(password), nickname=nickname, full_name=full_name)
        )
    except IntegrityError:
        print(f"  [!] An administrator with email {email} already exists.")
        return 1
    finally:
        store.close()
    print(f"  Administrator {admin.email} created (id {admin.id}).")
    return 0


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("asgi:app", host=host, port=port, reload=reload)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="shopping-mall",
        description="Shopping mall REST backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  python main.py create-admin --email ops@example.com --nickname ops --full-name "Ops Team"
  DEBUG=true python main.py serve --reload
        """,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    commands.add_parser("init-db", help="Create the database schema")

    admin = commands.add_parser("create-admin", help="Create an active administrator account")
    admin.add_argument("--email", required=True)
    admin.add_argument("--nickname", required=True)
    admin.add_argument("--full-name", required=True, dest="full_name")
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted; avoid passing it on shared machines)",
    )

    run = commands.add_parser("serve", help="Run the API with uvicorn")
    run.add_argument("--host", default="127.0.0.1")
    run.add_argument("--port", type=int, default=8000)
    run.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    args = parser.parse_args()

    if args.command == "init-db":
        init_db()
    elif args.command == "create-admin":
        sys.exit(create_admin(args.email, args.nickname, args.full_name, args.password))
    elif args.command == "serve":
        serve(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
