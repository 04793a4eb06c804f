"""
Create a user (e.g. the first admin). Run from project root:
  python -m helpdesk_auth.scripts.create_user USERNAME PASSWORD EMAIL FULL_NAME [role]
Example:
  python -m helpdesk_auth.scripts.create_user admin 'your-secure-password' admin@example.com "System Administrator" admin
"""
import argparse
import sys

from pydantic import ValidationError

from helpdesk_auth.core.database import SessionLocal
from helpdesk_auth.core.errors import ConflictError, ServiceUnavailableError
from helpdesk_auth.models.user import ROLES
from helpdesk_auth.schemas.users import CreateUserRequest
from helpdesk_auth.services.users import create_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a helpdesk user (no registration UI).")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("full_name", help="Display name")
    parser.add_argument("role", nargs="?", default="reporter", choices=list(ROLES))
    args = parser.parse_args()

    try:
        body = CreateUserRequest(
            username=args.username.strip(),
            password=args.password,
            email=args.email.strip(),
            full_name=args.full_name.strip(),
            role=args.role,
        )
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(db, body)
        print(f"Created user '{user.username}' with role '{user.role}'.")
        return 0
    except ConflictError:
        print(f"User '{body.username}' or email '{body.email}' already exists.", file=sys.stderr)
        return 1
    except ServiceUnavailableError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
