"""
Create a user without going through the HTTP API. Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD
Example:
  python -m app.scripts.create_user bob bob@example.com your-secure-password
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.security import hash_password
from app.repositories.user import UserRepository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an Inkpost user.")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (1-128 chars)")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > 255:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not args.email.strip():
        print("Email must not be empty.", file=sys.stderr)
        return 1
    if not args.password or len(args.password) > 128:
        print("Password must be 1-128 characters.", file=sys.stderr)
        return 1

    load_dotenv()
    db = build_session_factory(build_engine(get_settings()))()
    try:
        users = UserRepository(db)
        if users.username_exists(username):
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        user = users.create(username, args.email.strip(), hash_password(args.password))
        users.save()
        print(f"Created user '{username}' with id {user.id}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
