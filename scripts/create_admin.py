#!/usr/bin/env python3
"""
Create (or promote) the first super admin account.

Usage:
    python scripts/create_admin.py EMAIL NAME PASSWORD
"""

import sys

# Add parent directory to path for imports
sys.path.insert(0, ".")

from booktracker import create_app, db
from booktracker.models import User, UserRole
from booktracker.utils import is_valid_email


def create_admin(email: str, name: str, password: str):
    app = create_app()

    with app.app_context():
        email = email.strip().lower()
        if not is_valid_email(email):
            print(f"Error: invalid email address {email}")
            return 1

        user = User.query.filter_by(email=email).first()
        if user:
            print(f"Promoting existing user {email} to super admin...")
        else:
            print(f"Creating super admin {email}...")
            user = User(email=email, name=name)
            db.session.add(user)

        user.name = name
        user.role = UserRole.SUPER_ADMIN
        user.is_approved = True
        user.set_password(password)
        db.session.commit()
        print("Done!")

    return 0


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("Usage: python scripts/create_admin.py EMAIL NAME PASSWORD")
        sys.exit(1)

    sys.exit(create_admin(sys.argv[1], sys.argv[2], sys.argv[3]))
