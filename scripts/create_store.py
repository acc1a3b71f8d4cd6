#!/usr/bin/env python3
"""Register a store in pending state with its platform credentials."""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.database import dispose_engine, get_session_context
from src.models.store import Platform, Store, StoreStatus


def build_credentials(args: argparse.Namespace) -> dict:
    """Pick the credential fields the platform uses."""
    if args.platform == Platform.SHOPIFY:
        return {"access_token": args.access_token}
    if args.api_key:
        return {"api_key": args.api_key}
    return {
        "client_id": args.client_id,
        "client_secret": args.client_secret,
        "audience": args.audience,
    }


async def create_store(
    user_id: str,
    name: str,
    domain: str,
    platform: str,
    credentials: dict,
) -> str:
    """Create the store and return its id."""
    async with get_session_context() as session:
        store = Store(
            user_id=user_id,
            name=name,
            domain=domain,
            platform=platform,
            status=StoreStatus.PENDING,  # Activated by /connect
            credentials=credentials,
        )
        session.add(store)
        await session.flush()
        store_id = store.id

    await dispose_engine()
    return store_id


def main():
    parser = argparse.ArgumentParser(description="Register a sales channel store")
    parser.add_argument("--user-id", required=True, help="Owning user UUID")
    parser.add_argument("--name", required=True, help="Store name")
    parser.add_argument("--domain", required=True, help="Shop domain or marketplace host")
    parser.add_argument("--platform", required=True, choices=[p.value for p in Platform])
    parser.add_argument("--access-token", help="Shopify Admin API access token")
    parser.add_argument("--api-key", help="Mirakl shop API key")
    parser.add_argument("--client-id", help="Mirakl OAuth client id")
    parser.add_argument("--client-secret", help="Mirakl OAuth client secret")
    parser.add_argument("--audience", help="Mirakl OAuth audience")

    args = parser.parse_args()

    if args.platform == Platform.SHOPIFY and not args.access_token:
        parser.error("--access-token is required for shopify stores")
    if args.platform == Platform.MIRAKL and not (
        args.api_key or (args.client_id and args.client_secret and args.audience)
    ):
        parser.error("mirakl stores need --api-key or --client-id/--client-secret/--audience")

    store_id = asyncio.run(create_store(
        user_id=args.user_id,
        name=args.name,
        domain=args.domain,
        platform=args.platform,
        credentials=build_credentials(args),
    ))

    print(f"\n✅ Store created (pending)\n")
    print(f"Store ID:   {store_id}")
    print(f"\nRun POST /api/v1/stores/{store_id}/connect to activate it.\n")


if __name__ == "__main__":
    main()
