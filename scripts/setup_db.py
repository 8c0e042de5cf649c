#!/usr/bin/env python
"""
Database setup script.

Waits for PostgreSQL, runs migrations, creates an administrator for the
tax management endpoints and optionally seeds the tax database.

Usage:
    cd /path/to/bizops
    python scripts/setup_db.py [--collect] [--wait SECONDS]
"""

import argparse
import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))


def wait_for_database(timeout: float) -> None:
    """
    Block until DATABASE_URL accepts connections.

    Runs BEFORE Django is initialized so a cold database does not make
    django.setup() fail.
    """
    import psycopg

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        print("DATABASE_URL not set, using individual DB_* settings")
        return

    deadline = time.monotonic() + timeout
    while True:
        try:
            with psycopg.connect(database_url, connect_timeout=5):
                print("Database is reachable.")
                return
        except psycopg.OperationalError as e:
            if time.monotonic() >= deadline:
                print(f"ERROR: database not reachable: {e}")
                sys.exit(1)
            print("Waiting for database...")
            time.sleep(2)


def setup_django() -> None:
    """Setup Django."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.development")

    import django

    django.setup()


def run_migrations() -> None:
    """Run Django migrations."""
    from django.core.management import call_command

    print("\nRunning migrations...")
    call_command("migrate", verbosity=1)
    print("Migrations completed.")


def create_admin() -> None:
    """Create the administrator named by ADMIN_USERNAME / ADMIN_PASSWORD."""
    from django.contrib.auth import get_user_model

    username = os.environ.get("ADMIN_USERNAME")
    password = os.environ.get("ADMIN_PASSWORD")
    if not username or not password:
        print("\nADMIN_USERNAME/ADMIN_PASSWORD not set, skipping administrator.")
        return

    user_model = get_user_model()
    if user_model.objects.filter(username=username).exists():
        print(f"\nAdministrator '{username}' already exists.")
        return

    user_model.objects.create_superuser(username=username, email="", password=password)
    print(f"\nAdministrator '{username}' created successfully.")


def seed_tax_data() -> None:
    """Run a collection if the tax database is due for refresh."""
    from django.core.management import CommandError, call_command

    print("\nCollecting tax data...")
    try:
        call_command("collect_tax_data")
    except CommandError as e:
        print(f"Tax data collection skipped: {e}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Setup database")
    parser.add_argument(
        "--collect",
        action="store_true",
        help="Collect tax data after migrating when the stored data is due",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=30.0,
        help="Seconds to wait for the database to accept connections",
    )
    args = parser.parse_args()

    load_dotenv(project_root / ".env")

    wait_for_database(timeout=args.wait)
    setup_django()
    run_migrations()
    create_admin()
    if args.collect:
        seed_tax_data()

    print("\nDatabase setup complete!")
