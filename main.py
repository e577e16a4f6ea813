#!/usr/bin/env python3
"""
LUCT Reporting -- database administration CLI.

Usage:
  python main.py init-db
  python main.py check-db
  python main.py create-user --email pl@luct.ac.ls --first-name Thabo --last-name Mokoena \
      --role program_leader --faculty ICT

Environment variables (or .env):
  DATABASE_URL  SQLAlchemy URL. Defaults to a SQLite file beside the package.
  SECRET_KEY    Required unless DEBUG=true.
"""

import argparse
import getpass
import sys
from typing import Optional

from academics.store import AcademicStore
from auth.models import ROLES, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.database import Database
from core.errors import ReportingError
from reports.store import ReportStore


def _open_stores(db_url: Optional[str]) -> tuple[Database, UserStore]:
    """Create every table (idempotent) and return the database and user store."""
    db = Database(db_url)
    users = UserStore(db)
    AcademicStore(db)
    ReportStore(db)
    return db, users


def cmd_init_db(args: argparse.Namespace) -> int:
    db, _ = _open_stores(args.database_url)
    print(f"Tables ready at {db.url}")
    db.close()
    return 0


def cmd_check_db(args: argparse.Namespace) -> int:
    db = Database(args.database_url)
    if not db.ping():
        print(f"  [!] Could not connect to {db.url}")
        db.close()
        return 1
    users = UserStore(db)
    print(f"Connected to {db.url}")
    print(f"  {users.count_users()} user(s)")
    db.close()
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 1
    db, users = _open_stores(args.database_url)
    user = User(
        email=args.email,
        first_name=args.first_name,
        last_name=args.last_name,
        role=args.role,
        faculty=args.faculty,
        hashed_password=hash_password(password),
    )
    try:
        user_id = users.create_user(user)
    except ReportingError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        db.close()
    print(f"Created {args.role} {args.email} (id {user_id})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="luct-reporting",
        description="Administer the LUCT reporting database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  python main.py check-db --database-url sqlite:///./luct.db
  python main.py create-user --email pl@luct.ac.ls --first-name Thabo \\
      --last-name Mokoena --role program_leader
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL from the environment)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Create all tables if they do not exist")
    init.set_defaults(func=cmd_init_db)

    check = sub.add_parser("check-db", help="Connect and print the number of users")
    check.set_defaults(func=cmd_check_db)

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("--email", required=True)
    create.add_argument("--first-name", required=True)
    create.add_argument("--last-name", required=True)
    create.add_argument("--role", choices=ROLES, default="program_leader")
    create.add_argument("--faculty", default="ICT")
    create.add_argument(
        "--password",
        default=None,
        help="Password (omit to be prompted; passing it here leaves it in shell history)",
    )
    create.set_defaults(func=cmd_create_user)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
