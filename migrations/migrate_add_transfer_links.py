#!/usr/bin/env python3
"""Migration script for databases created before transfer links and currencies.

Adds, when missing:
- transactions.linked_tx_id (INTEGER, nullable)
- transactions.currency (TEXT, nullable)
- accounts.currency (TEXT, nullable)
- rules.logic (TEXT, default 'and')
- rules.conditions / rules.actions (JSON arrays, default '[]')

Existing transfer rows keep a NULL link; the ledger pairs them by notes the
first time one side is updated and writes the link back.

Running the script twice is harmless.

Usage:
    python migrations/migrate_add_transfer_links.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import ledgerkit modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import inspect, text
from ledgerkit.database.factories import create_sqlite_database

COLUMNS = [
    ("transactions", "linked_tx_id", "INTEGER"),
    ("transactions", "currency", "TEXT"),
    ("accounts", "currency", "TEXT"),
    ("rules", "logic", "TEXT NOT NULL DEFAULT 'and'"),
    ("rules", "conditions", "JSON NOT NULL DEFAULT '[]'"),
    ("rules", "actions", "JSON NOT NULL DEFAULT '[]'"),
]


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def migrate_database(database_path: str | None = None) -> list[str]:
    """Add any missing columns.

    Args:
        database_path: Path to database file. If None, uses default location.

    Returns:
        The ``table.column`` names that were added
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise RuntimeError("Could not get database engine from session")
        finally:
            session.close()

        added = []
        with engine.begin() as conn:
            for table, column, ddl in COLUMNS:
                if column_exists(conn, table, column):
                    continue
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
                added.append(f"{table}.{column}")
                print(f"  Added column: {table}.{column}")

        if added:
            print("Migration completed successfully!")
        else:
            print("Migration already applied: all columns exist")
        return added
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to add transfer links and currency columns"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
