#!/usr/bin/env python3
"""
Database management script for deployment and admin provisioning.

Usage:
    python manage_db.py init
    python manage_db.py create-admin <email> <name> [superadmin]
    python manage_db.py set-password <email>

The password is read from ADMIN_PASSWORD, or prompted for.
"""
import getpass
import os
import sys

from dotenv import load_dotenv

# Add current directory to path so we can import portal
sys.path.append(os.getcwd())

USAGE = "Usage: python manage_db.py [init | create-admin <email> <name> [superadmin] | set-password <email>]"


def read_password() -> str:
    password = os.getenv('ADMIN_PASSWORD')
    if password:
        return password
    password = getpass.getpass('Password: ')
    if password != getpass.getpass('Repeat password: '):
        print("Passwords do not match")
        sys.exit(1)
    return password


def init_db(app):
    from portal.models import db
    with app.app_context():
        db.create_all()
    print("✓ Database tables created.")


def create_admin(app, email: str, name: str, role: str = 'admin'):
    with app.app_context():
        if app.credentials.find_by_email(email) is not None:
            print(f"Admin {email} already exists, leaving it untouched.")
            return
        try:
            account = app.credentials.create_account(email, read_password(), name, role)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(f"✓ Created {account.role} {account.email} (id {account.id}).")


def set_password(app, email: str):
    from portal.models import db
    with app.app_context():
        account = app.credentials.find_by_email(email)
        if account is None:
            print(f"No admin with email {email}")
            sys.exit(1)
        try:
            app.credentials.set_password(account, read_password())
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)
        db.session.commit()
        print(f"✓ Password updated for {account.email}.")


def main(argv):
    if not argv:
        print(USAGE)
        sys.exit(1)

    load_dotenv()
    from portal.app import create_app
    app = create_app()

    command, args = argv[0], argv[1:]
    if command == 'init':
        init_db(app)
    elif command == 'create-admin' and len(args) in (2, 3):
        create_admin(app, *args)
    elif command == 'set-password' and len(args) == 1:
        set_password(app, args[0])
    else:
        print(USAGE)
        sys.exit(1)


if __name__ == '__main__':
    main(sys.argv[1:])
