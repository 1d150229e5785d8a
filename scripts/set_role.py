"""Promote or demote an account: python scripts/set_role.py <email> <normal|admin>"""
from __future__ import annotations

import sys

from sqlalchemy import select

from haanein.db.session import session_scope
from haanein.models.enums import UserRole
from haanein.models.users import User


def set_role(email: str, role: UserRole) -> bool:
    with session_scope() as db:
        user = db.scalar(select(User).where(User.email == email.strip().lower()))
        if user is None:
            return False
        user.role = role.value
    return True


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(__doc__)
        return 2

    email, raw_role = argv
    try:
        role = UserRole(raw_role.strip().lower())
    except ValueError:
        print(f"Unknown role {raw_role!r}; expected one of: {', '.join(r.value for r in UserRole)}")
        return 2

    if not set_role(email, role):
        print(f"No user with email {email!r}")
        return 1
    print(f"{email} is now {role.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
