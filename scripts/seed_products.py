#!/usr/bin/env python3
"""
Seed the Supabase products table from the bundled catalog JSON.

Rows are validated through the Product model first, then upserted by id in
small chunks so a single bad row does not abort the whole load.

Usage:
    PYTHONPATH=src python scripts/seed_products.py
    PYTHONPATH=src python scripts/seed_products.py --file my_products.json --chunk-size 25
    PYTHONPATH=src python scripts/seed_products.py --dry-run
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv
load_dotenv()

from catalog.store import CatalogError, CatalogStore
from config.database import PRODUCTS_TABLE, SupabaseClientError, get_supabase_client
from config.settings import get_settings


def chunked(rows, size):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def seed(client, rows, chunk_size=10):
    """Upsert ``rows`` in chunks. Returns (inserted, failed) counts."""
    inserted = failed = 0
    for i, chunk in enumerate(chunked(rows, chunk_size), start=1):
        try:
            client.table(PRODUCTS_TABLE).upsert(chunk, on_conflict="id").execute()
            inserted += len(chunk)
            print(f"  chunk {i}: {len(chunk)} products")
        except Exception as e:
            failed += len(chunk)
            print(f"  chunk {i}: FAILED ({e})")
    return inserted, failed


def main():
    parser = argparse.ArgumentParser(description="Seed the Supabase products table")
    parser.add_argument("--file", type=Path, default=None, help="Catalog JSON (default: bundled products.json)")
    parser.add_argument("--chunk-size", type=int, default=10, help="Rows per upsert")
    parser.add_argument("--dry-run", action="store_true", help="Validate the file without writing")
    args = parser.parse_args()

    path = args.file or get_settings().catalog_file
    try:
        store = CatalogStore.from_file(path)
    except CatalogError as e:
        print(f"Could not read catalog: {e}")
        sys.exit(1)

    rows = [product.model_dump(mode="json") for product in store]
    print(f"Loaded {len(rows)} products from {path}")

    if args.dry_run:
        print("Dry run - nothing written.")
        return

    try:
        client = get_supabase_client()
    except SupabaseClientError as e:
        print(str(e))
        sys.exit(1)

    inserted, failed = seed(client, rows, chunk_size=max(1, args.chunk_size))
    print(f"\nDone: {inserted} upserted, {failed} failed.")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
