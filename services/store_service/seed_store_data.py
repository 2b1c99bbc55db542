"""Import the product catalog from a JSON-lines export.

Each line is one product document as exported from the old document store:

    {"_id": {"$oid": "5f0..."}, "name": "...", "category": "...",
     "cost": 129, "rating": 5, "image": "https://..."}

Existing products are replaced. Product ids from the export are kept so cart
lines written against them stay valid.

Usage:
    python -m services.store_service.seed_store_data products.json
"""

import argparse
import asyncio
import json
from decimal import Decimal
from pathlib import Path

from sqlalchemy import delete

from libs.db.config import AsyncSessionLocal
from services.store_service.models import CartItem, Product


def parse_product(raw: dict) -> Product:
    """Build a Product from one exported document."""
    raw_id = raw.get("_id")
    if isinstance(raw_id, dict):
        raw_id = raw_id.get("$oid")
    if not raw_id:
        raise ValueError(f"Product without an id: {raw!r}")

    return Product(
        id=str(raw_id),
        name=raw["name"],
        category=raw["category"],
        cost=Decimal(str(raw["cost"])),
        rating=int(raw.get("rating", 0)),
        image=raw.get("image", ""),
    )


def read_products(path: Path) -> list[Product]:
    products = []
    with path.open(encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                products.append(parse_product(json.loads(line)))
            except (KeyError, ValueError) as exc:
                raise ValueError(f"{path}:{line_no}: {exc}") from exc
    return products


async def seed_store_data(path: Path) -> int:
    products = read_products(path)

    async with AsyncSessionLocal() as db:
        print(f"Importing {len(products)} products from {path}...")

        # Cart lines reference products, so they go first
        await db.execute(delete(CartItem))
        await db.execute(delete(Product))
        db.add_all(products)
        await db.commit()

    print("=" * 60)
    print("Store catalog imported successfully!")
    print(f"  Products: {len(products)}")
    print("=" * 60)
    return len(products)


def main() -> None:
    parser = argparse.ArgumentParser(description="Import the product catalog.")
    parser.add_argument("path", type=Path, help="JSON-lines product export")
    args = parser.parse_args()
    asyncio.run(seed_store_data(args.path))


if __name__ == "__main__":
    main()
