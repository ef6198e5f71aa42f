"""
Load products from a YAML (or JSON) file into the catalog.

Products whose slug already exists are skipped, so the script can be re-run
after adding items to the file.

Usage:
    python scripts/seed_catalog.py scripts/catalog.example.yaml
    python scripts/seed_catalog.py products.json --dry-run

File format: a list of product objects (or {"products": [...]}) using the
same fields as POST /api/products.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import yaml

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from pydantic import ValidationError

from app.core.database import async_session_maker, init_db
from app.repositories.product import ProductRepository, slugify
from app.schemas.product import ProductCreate


def load_items(path: Path) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of products")
    return data


async def seed_catalog(path: Path, dry_run: bool = False) -> None:
    items = load_items(path)

    try:
        products = [ProductCreate(**item) for item in items]
    except ValidationError as e:
        print(f"Invalid catalog file: {e}")
        raise SystemExit(1)

    await init_db()

    async with async_session_maker() as session:
        repo = ProductRepository(session)
        created, skipped = 0, 0

        for product in products:
            slug = slugify(product.slug or product.name)
            if await repo.slug_exists(slug):
                print(f"  - {slug} exists, skipping")
                skipped += 1
                continue
            if not dry_run:
                await repo.create_product(product.model_dump())
            print(f"  + {slug}")
            created += 1

        if dry_run:
            await session.rollback()
        else:
            await session.commit()

    print(f"\n{created} created, {skipped} skipped{' (dry run)' if dry_run else ''}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the product catalog")
    parser.add_argument("file", type=Path, help="YAML or JSON catalog file")
    parser.add_argument("--dry-run", action="store_true", help="Validate and report without writing")
    args = parser.parse_args()

    print(f"Seeding catalog from {args.file}...")
    asyncio.run(seed_catalog(args.file, args.dry_run))
