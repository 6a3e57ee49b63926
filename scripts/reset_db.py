#!/usr/bin/env python3
"""Delete every document from the documents table.

Usage:
    python scripts/reset_db.py          # Ask for typed confirmation first
    python scripts/reset_db.py --yes    # Skip the confirmation prompt

Uses the same environment as the API (CASSANDRA_MODE, IPS_CLUSTER, ASTRA_*).
The table and its indexes are kept; only rows are removed.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from trace_docs.config import settings
from trace_docs.database import StoreClient
from trace_docs.logger import configure_logging, get_logger

CONFIRM_WORDS = ("SIM", "YES")

logger = get_logger("reset_db")


def _confirmed(answer: str) -> bool:
    return answer.strip() in CONFIRM_WORDS


async def reset(store: StoreClient) -> int:
    """Truncate the documents table and return the number of rows left."""
    await store.connect()
    try:
        print(f"Truncating {store.table}...")
        await store.truncate()
        remaining = await store.count()
        print(f"Rows remaining: {remaining}")
        return remaining
    finally:
        await store.shutdown()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete ALL documents from Cassandra.")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args(argv)

    configure_logging()

    print("\nWARNING: this deletes ALL documents.\n")
    print(f"Mode: {settings.cassandra_mode}")
    print(f"Keyspace: {settings.keyspace}\n")

    if not args.yes:
        answer = input('Type "SIM" or "YES" to continue: ')
        if not _confirmed(answer):
            print("Cancelled.")
            return 0

    try:
        asyncio.run(reset(StoreClient(settings)))
    except Exception as e:
        logger.error("Database reset failed", error=str(e), error_type=type(e).__name__)
        print(f"Reset failed: {e}", file=sys.stderr)
        return 1

    print("\nDatabase reset complete.\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
