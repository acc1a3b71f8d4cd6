"""Catalog and order synchronization pipeline.

Flow per store and sync type: count, then page through the marketplace in
900-record chunks, parse, dedup and upsert each chunk in its own transaction.
"""
