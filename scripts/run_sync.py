#!/usr/bin/env python3
"""Run one sync for a store from the command line."""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.database import dispose_engine, get_session_context
from src.models import Store, SyncType
from src.sync.dispatcher import SyncDispatcher
from src.sync.results import SyncResult


async def run_sync(store_id: str, sync_type: str | None) -> SyncResult:
    """Load the store and run the requested sync (all types when None)."""
    async with get_session_context() as session:
        store = await session.get(Store, store_id)
    if store is None:
        raise SystemExit(f"Store {store_id} not found")

    dispatcher = SyncDispatcher()
    try:
        if sync_type is None:
            return await dispatcher.sync_all(store)
        return await dispatcher.sync(store, SyncType(sync_type))
    finally:
        await dispose_engine()


def main():
    parser = argparse.ArgumentParser(description="Sync a store's catalog or orders")
    parser.add_argument("store_id", help="Store UUID")
    parser.add_argument(
        "--type",
        dest="sync_type",
        choices=[t.value for t in SyncType],
        help="Sync type (default: all)",
    )

    args = parser.parse_args()
    result = asyncio.run(run_sync(args.store_id, args.sync_type))

    icon = "✅" if result.success else "❌"
    print(f"\n{icon} {result.message}")
    print(f"Outcome:  {result.outcome}")
    print(f"Synced:   {result.synced_items}\n")
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
