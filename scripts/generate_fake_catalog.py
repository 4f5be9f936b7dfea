"""Generate a fake product catalog for testing and development.

Writes products, collections and collection memberships as CSV files in the
layout ``load_catalog_csv`` reads.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_catalog.py

    Or import and use programmatically:
        from scripts.generate_fake_catalog import generate_fake_products
        df = generate_fake_products(num_products=200)
"""

import json
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd

# Default configuration constants
DEFAULT_NUM_PRODUCTS = 200
DEFAULT_NUM_MANUAL_COLLECTIONS = 5
DEFAULT_DAYS_BACK = 365
DEFAULT_RANDOM_SEED = 42

VENDORS = ["Acme", "Northwind", "Globex", "Initech", "Umbrella"]
PRODUCT_TYPES = ["Shirt", "Shoes", "Bag", "Hat", "Jacket"]
TAG_POOL = ["red", "blue", "green", "cotton", "leather", "summer", "winter", "sale", "organic"]

SMART_RULES = [
    ("On Sale", {"type": "has_compare_price"}),
    ("Acme", {"type": "vendor", "value": "Acme"}),
    ("Under 50", {"type": "price_range", "max_price": 50}),
    (
        "Summer Shirts",
        {
            "type": "multiple",
            "logic": "AND",
            "conditions": [
                {"type": "product_type", "value": "Shirt"},
                {"type": "tag_contains", "value": "summer"},
            ],
        },
    ),
]


def generate_fake_products(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    end_date: Optional[datetime] = None,
) -> pd.DataFrame:
    """Generate synthetic products.

    Args:
        num_products: Number of products to generate. Must be positive.
        end_date: Latest creation date. Defaults to now.

    Returns:
        A DataFrame with one row per product and the columns of the product
        store (tags as a comma-delimited string).

    Raises:
        ValueError: If num_products is not positive.
    """
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    end_date = end_date or datetime.now()
    products = []

    for product_id in range(1, num_products + 1):
        price = round(random.uniform(5, 250), 2)
        on_sale = random.random() < 0.2
        has_reviews = random.random() < 0.8

        products.append({
            "id": product_id,
            "title": f"Product {product_id}",
            "handle": f"product-{product_id}",
            "tags": ", ".join(random.sample(TAG_POOL, random.randint(0, 3))),
            "vendor": random.choice(VENDORS),
            "product_type": random.choice(PRODUCT_TYPES),
            "price": price,
            "compare_at_price": round(price * 1.25, 2) if on_sale else None,
            "in_stock": int(random.random() < 0.85),
            "rating": round(random.uniform(2.5, 5.0), 1) if has_reviews else None,
            "review_count": random.randint(0, 300) if has_reviews else None,
            "created_at": end_date - timedelta(
                days=random.randrange(DEFAULT_DAYS_BACK),
                seconds=random.randrange(86400),
            ),
            "bestseller_score": round(random.uniform(0, 100), 2),
        })

    return pd.DataFrame(products)


def generate_fake_collections(
    product_ids: list,
    num_manual: int = DEFAULT_NUM_MANUAL_COLLECTIONS,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Generate smart and manual collections.

    Smart collections get a rule and no members (a sync fills them); manual
    collections get a random sample of products.

    Returns:
        ``(collections, memberships)`` DataFrames.
    """
    collections = []
    memberships = []

    for title, rule in SMART_RULES:
        collections.append({
            "id": len(collections) + 1,
            "title": title,
            "handle": title.lower().replace(" ", "-"),
            "is_smart": 1,
            "rules": json.dumps(rule),
        })

    for index in range(num_manual):
        collection_id = len(collections) + 1
        collections.append({
            "id": collection_id,
            "title": f"Editor Picks {index + 1}",
            "handle": f"editor-picks-{index + 1}",
            "is_smart": 0,
            "rules": None,
        })
        members = random.sample(product_ids, min(len(product_ids), random.randint(3, 12)))
        for position, product_id in enumerate(members):
            memberships.append({
                "collection_id": collection_id,
                "product_id": product_id,
                "position": position,
            })

    return pd.DataFrame(collections), pd.DataFrame(memberships)


def main() -> None:
    """Generate a catalog with default parameters into data/."""
    random.seed(DEFAULT_RANDOM_SEED)

    print(f"Generating {DEFAULT_NUM_PRODUCTS} fake products...")
    products = generate_fake_products()
    collections, memberships = generate_fake_collections(products["id"].tolist())

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    products.to_csv(data_dir / "products.csv", index=False)
    collections.to_csv(data_dir / "collections.csv", index=False)
    memberships.to_csv(data_dir / "product_collections.csv", index=False)

    print(f"\nCatalog generated successfully!")
    print(f"Saved to: {data_dir}")
    print(f"\nData summary:")
    print(f"  Products: {len(products)} ({int(products['in_stock'].sum())} in stock)")
    print(f"  Collections: {len(collections)} ({int(collections['is_smart'].sum())} smart)")
    print(f"  Manual memberships: {len(memberships)}")


if __name__ == "__main__":
    main()
