#!/usr/bin/env python3
"""
Show a tubuyaki migration and check whether it has been applied.

The Supabase Python client cannot execute DDL through the REST API, so the
SQL has to be run in the Supabase SQL editor (or psql). This script prints
the statements and then probes the table to confirm the result.

Usage:
    python scripts/apply_migration.py
    python scripts/apply_migration.py --file migrations/001_create_tubuyaki.sql
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.database import DatabaseService
from utils.errors import StoreError
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_MIGRATION = os.path.join(
    os.path.dirname(__file__), '..', 'migrations', '001_create_tubuyaki.sql'
)


def read_statements(sql_file_path: str) -> list:
    """Split a migration file into statements, dropping comment-only chunks"""
    with open(sql_file_path, 'r', encoding='utf-8') as f:
        sql = f.read()

    statements = []
    for statement in sql.split(';'):
        lines = [line for line in statement.strip().splitlines() if not line.strip().startswith('--')]
        statement = "\n".join(lines).strip()
        if statement:
            statements.append(statement)
    return statements


def table_exists(db: DatabaseService) -> bool:
    """Probe the tubuyaki table with a one-row select"""
    try:
        db.list_tubuyaki(limit=1)
        return True
    except StoreError:
        return False


def apply_migration(sql_file_path: str):
    """Print migration statements and verify the table afterwards"""
    print("\n" + "="*80)
    print(f"MIGRATION: {os.path.basename(sql_file_path)}")
    print("="*80 + "\n")

    try:
        statements = read_statements(sql_file_path)
    except FileNotFoundError:
        print(f"❌ Error: Migration file not found: {sql_file_path}")
        sys.exit(1)

    for i, statement in enumerate(statements, 1):
        print(f"-- Statement {i}")
        print(statement + ";\n")

    print("⚠️  The Supabase Python client doesn't support direct SQL execution.")
    print("  1. Go to your Supabase dashboard")
    print("  2. Navigate to SQL Editor")
    print(f"  3. Paste the statements above (or the contents of {sql_file_path})")
    print("  4. Execute the SQL")
    print()

    response = input("Check the table now? (yes/no): ")
    if response.lower() not in ['yes', 'y']:
        sys.exit(0)

    db = DatabaseService()
    if table_exists(db):
        print(f"✅ Table '{db.table}' is reachable")
    else:
        print(f"❌ Table '{db.table}' is not reachable - migration not applied yet?")
        sys.exit(1)


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Show and verify a tubuyaki migration")
    parser.add_argument('--file', default=DEFAULT_MIGRATION, help="Path to the SQL migration")
    args = parser.parse_args()

    apply_migration(args.file)
