#!/usr/bin/env python3
"""
Initialize the topic-harvest database.

This script creates the continuation token table used by the sqlite
continuation backend.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from topic_harvest.storage.database import DatabaseManager


def main() -> None:
    """Initialize the database."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize topic-harvest database")
    parser.add_argument("--path", help="Database path (default from config)")
    parser.add_argument(
        "--drop", action="store_true", help="Drop existing tables before creating new ones"
    )
    args = parser.parse_args()

    print("Initializing database...")
    with DatabaseManager(args.path) as db_manager:
        db_manager.init_db(drop_all=args.drop)
    print("Database initialized successfully!")


if __name__ == "__main__":
    main()
