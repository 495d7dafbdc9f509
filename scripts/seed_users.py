#!/usr/bin/env python3
"""
Seed the users table from a CSV file.

Reports can only be filed by existing users, and accounts live outside this
service, so a fresh database needs its users loaded before the API is useful.

CSV columns: id, full_name, email
"""

import asyncio
import csv
import os
import sys
from pathlib import Path

import asyncpg
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "").replace("+asyncpg", "")

BATCH_SIZE = 1000


def log(msg):
    """Print with flush for immediate output."""
    print(msg, flush=True)


def transform_row(row: dict) -> tuple | None:
    """Turn a CSV row into an insert tuple, or None if it has no id."""
    user_id = (row.get("id") or "").strip()
    if not user_id:
        return None
    full_name = (row.get("full_name") or "").strip() or None
    email = (row.get("email") or "").strip().lower() or None
    return user_id, full_name, email


async def seed_users(csv_path: str) -> None:
    """Upsert users from CSV. Existing counters are left alone."""
    if not DATABASE_URL:
        log("Error: DATABASE_URL is not set")
        sys.exit(1)

    conn = await asyncpg.connect(DATABASE_URL)

    upsert_sql = """
        INSERT INTO users (id, full_name, email)
        VALUES ($1, $2, $3)
        ON CONFLICT (id) DO UPDATE SET
            full_name = EXCLUDED.full_name,
            email = EXCLUDED.email,
            updated_at = now()
    """

    initial_count = await conn.fetchval("SELECT COUNT(*) FROM users")
    log(f"Users before import: {initial_count:,}")

    imported = 0
    skipped = 0
    batch = []

    with open(csv_path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            transformed = transform_row(row)
            if transformed is None:
                skipped += 1
                continue

            batch.append(transformed)
            if len(batch) >= BATCH_SIZE:
                await conn.executemany(upsert_sql, batch)
                imported += len(batch)
                batch = []

        # Final batch
        if batch:
            await conn.executemany(upsert_sql, batch)
            imported += len(batch)

    log("\nImport complete!")
    log(f"  Processed: {imported:,}")
    log(f"  Skipped (no ID): {skipped:,}")

    final_count = await conn.fetchval("SELECT COUNT(*) FROM users")
    log(f"  Total in DB: {final_count:,}")
    log(f"  Net new users: {final_count - initial_count:,}")

    await conn.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        log("Usage: seed_users.py <users.csv>")
        sys.exit(1)

    csv_path = sys.argv[1]
    if not Path(csv_path).exists():
        log(f"Error: CSV file not found: {csv_path}")
        sys.exit(1)

    asyncio.run(seed_users(csv_path))
