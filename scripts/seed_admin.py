"""Seed the administrator allowed to apply manual subscription updates.

Uses ``ADMIN_EMAIL`` from the app config and ``ADMIN_PASSWORD`` from the
environment.
"""

import os
import sys

from app import create_app
from models import db
from models.user import User

DEFAULT_ADMIN_EMAIL = "admin@example.com"


def main() -> int:
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        print("ADMIN_PASSWORD must be set", file=sys.stderr)
        return 1

    app = create_app()
    with app.app_context():
        email = (app.config.get("ADMIN_EMAIL") or DEFAULT_ADMIN_EMAIL).strip().lower()
        admin = User.query.filter_by(email=email).first()
        if admin is None:
            admin = User(email=email, role="admin")
            db.session.add(admin)
            action = "created"
        else:
            admin.role = "admin"
            admin.is_active = True
            action = "updated"
        admin.set_password(password)
        db.session.commit()
        print(f"Admin user {action}: {email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
