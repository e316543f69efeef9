from __future__ import annotations

import argparse

from rocal.core.security import hash_password, is_password_too_long
from rocal.db.session import SessionLocal
from rocal.models import User
from rocal.repositories import users as users_repo


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an admin user for the Rocal dashboard.")
    parser.add_argument("--username", required=True, help="Admin username")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--email", default=None, help="Optional email used to sign in")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if is_password_too_long(args.password):
        print("Password too long for bcrypt (max 72 bytes).")
        return 1
    db = SessionLocal()
    try:
        existing = users_repo.get_user_by_username(db, args.username)
        if existing:
            print(f"User '{args.username}' already exists.")
            return 1
        if args.email and users_repo.get_user_by_email(db, args.email):
            print(f"Email '{args.email}' is already in use.")
            return 1
        user = User(
            username=args.username,
            email=args.email,
            password_hash=hash_password(args.password),
            is_active=True,
        )
        users_repo.create_user(db, user)
        print(f"Created admin user '{args.username}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
