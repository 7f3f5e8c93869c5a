"""
Create a user account, e.g. the first admin (self-registration only creates role 'user').
Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Site Admin" admin@example.com your-secure-password admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.security import hash_password
from app.models.user import USER_ROLES, User
from app.schemas.auth import UserCreate


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an Excel Analytics user account.")
    parser.add_argument("name", help="Display name (1-100 chars)")
    parser.add_argument("email", help="E-mail address used to log in")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=USER_ROLES)
    args = parser.parse_args(argv)

    try:
        body = UserCreate(name=args.name, email=args.email, password=args.password, role=args.role)
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"Invalid {field}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == body.email).first():
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            name=body.name,
            email=body.email,
            password_hash=hash_password(body.password),
            role=body.role,
            status="active",
        )
        db.add(user)
        db.commit()
        print(f"Created user '{body.email}' with role '{body.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
