#!/usr/bin/env python3
"""Manage administrator accounts.

Administrators cannot sign up through the API; this script is the only way
to grant or revoke the admin flag.

Usage:
    python scripts/manage_admin.py create --email admin@example.com --name Admin
    python scripts/manage_admin.py check --email admin@example.com
    python scripts/manage_admin.py remove

    # The password for ``create`` is read from ADMIN_PASSWORD when --password
    # is not given.
"""

import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from notes_api.database import SessionLocal, init_db
from notes_api.models import User
from notes_api.services.auth import get_password_hash, is_strong_password, normalize_email
from notes_api.services.identity_service import WEAK_PASSWORD_MESSAGE


def create_admin(session: Session, email: str, name: str, password: str) -> tuple[User, bool]:
    """Create a verified admin unless one already exists.

    Returns the admin and whether it was created. An existing non-admin
    account with the same email is promoted instead.
    """
    existing_admin = session.query(User).filter(User.is_admin.is_(True)).first()
    if existing_admin:
        return existing_admin, False

    email = normalize_email(email)
    user = session.query(User).filter(User.email == email).first()
    if user is None:
        user = User(name=name, email=email)
        session.add(user)
    user.password_hash = get_password_hash(password)
    user.is_verified = True
    user.is_admin = True
    session.commit()
    session.refresh(user)
    return user, True


def find_admin(session: Session, email: str) -> User | None:
    return (
        session.query(User)
        .filter(User.email == normalize_email(email), User.is_admin.is_(True))
        .first()
    )


def remove_admins(session: Session, email: str | None = None) -> int:
    """Delete admin accounts (all of them, or just ``email``) and return how many."""
    query = session.query(User).filter(User.is_admin.is_(True))
    if email:
        query = query.filter(User.email == normalize_email(email))
    admins = query.all()
    for admin in admins:
        session.delete(admin)
    session.commit()
    return len(admins)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Notes API administrators")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create the admin account")
    create.add_argument("--email", required=True)
    create.add_argument("--name", default="Admin")
    create.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))

    check = subparsers.add_parser("check", help="Show an admin account")
    check.add_argument("--email", required=True)

    remove = subparsers.add_parser("remove", help="Delete admin accounts")
    remove.add_argument("--email", help="Only remove this admin")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_db()
    session = SessionLocal()

    try:
        if args.command == "create":
            if not args.password:
                print("A password is required (--password or ADMIN_PASSWORD)")
                return 1
            if not is_strong_password(args.password):
                print(WEAK_PASSWORD_MESSAGE)
                return 1
            admin, created = create_admin(session, args.email, args.name, args.password)
            if created:
                print(f"New admin created: {admin.email}")
            else:
                print(f"Admin already exists: {admin.email}")
        elif args.command == "check":
            admin = find_admin(session, args.email)
            if admin is None:
                print(f"No admin found with email {args.email}")
                return 1
            print(f"Found admin: id={admin.id} name={admin.name} email={admin.email}")
        elif args.command == "remove":
            count = remove_admins(session, args.email)
            if count:
                print(f"Deleted {count} admin account(s)")
            else:
                print("No admin found to delete")
    except Exception as e:
        session.rollback()
        print(f"Error: {e}")
        return 1
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
