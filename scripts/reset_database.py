#!/usr/bin/env python3
"""
Database reset script for the dental booking backend.

This script drops all tables and recreates them empty.
Use this to get a clean local database state for development.
"""

import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from sqlalchemy import inspect

from core.config import DATABASE_URL
from core.database import RecordStore

EXPECTED_TABLES = ['patients', 'appointments', 'patient_uploads', 'admin_sessions']


def reset_database(force: bool = False):
    """Reset the database by dropping all tables and recreating them."""

    print("🔄 Resetting dental booking database...")
    print(f"Database URL: {DATABASE_URL}")

    # Confirm action (in case someone runs this accidentally)
    if not DATABASE_URL.startswith("sqlite") and not force:
        print("❌ ERROR: Refusing to reset a non-SQLite database without --force!")
        return

    store = RecordStore(DATABASE_URL).init()
    try:
        print("🗑️  Dropping existing tables...")
        store.drop_tables()

        print("🏗️  Creating fresh tables...")
        store.create_tables()

        assert store.engine is not None
        table_names = inspect(store.engine).get_table_names()

        print("📋 Created tables:")
        for table in EXPECTED_TABLES:
            if table in table_names:
                print(f"   ✅ {table}")
            else:
                print(f"   ❌ {table} (missing)")

        if all(table in table_names for table in EXPECTED_TABLES):
            print("🎉 Database reset complete! All tables created successfully.")
        else:
            print("⚠️  Warning: Some tables may be missing")
    finally:
        store.dispose()


def show_usage():
    """Show usage information."""
    print("Dental Booking Database Reset Script")
    print("=" * 40)
    print()
    print("This script will:")
    print("1. Drop all existing tables")
    print("2. Recreate all tables with empty data")
    print()
    print("Usage:")
    print("  python scripts/reset_database.py [--force]")
    print()
    print("Note: Non-SQLite databases require --force")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] in ['--help', '-h']:
        show_usage()
    else:
        reset_database(force='--force' in sys.argv)
