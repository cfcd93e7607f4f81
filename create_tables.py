#!/usr/bin/env python3
"""
Create the entity feedback tables from the SQLAlchemy models.
This replaces the need for migrations during development.
"""

import os

from sqlalchemy import create_engine, inspect

from entity_feedback.config import get_app_database_url
from entity_feedback.lib.feedback import models  # noqa: F401  (registers the tables)
from entity_feedback.models.sql.database import Base


def create_tables(database_url=None, drop_existing=True):
    """Create all feedback tables, optionally dropping them first.

    Returns:
        Sorted list of table names present after creation
    """
    database_url = database_url or os.getenv("DATABASE_URL") or get_app_database_url()

    print(f"Connecting to database: {database_url.split('@')[-1]}")
    engine = create_engine(database_url)

    try:
        if drop_existing:
            print("Dropping existing tables...")
            Base.metadata.drop_all(engine)
            print("✓ Tables dropped")

        print("Creating tables from models...")
        Base.metadata.create_all(engine)
        print("✓ Tables created")

        tables = sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    print(f"\nCreated {len(tables)} tables:")
    for table in tables:
        print(f"  - {table}")

    print("\n✓ Database schema created successfully!")
    return tables


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create database tables from models")
    parser.add_argument(
        "--no-drop",
        action="store_true",
        help="Don't drop existing tables (default: drop and recreate)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL or POSTGRES_* settings)",
    )

    args = parser.parse_args()

    create_tables(database_url=args.database_url, drop_existing=not args.no_drop)
