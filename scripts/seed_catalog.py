#!/usr/bin/env python3
"""Seed demo HoReCa catalog script.

Builds a small demo catalog (taxonomies, business types and products)
through the catalog services, so slugs, tags and reference checks apply
exactly as they do for admin writes, then persists it to the database.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --no-clear
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete

from horeca.catalog.repository import get_product_repository
from horeca.catalog.service import (
    get_brand_store,
    get_business_type_store,
    get_catalog_service,
    get_category_store,
)
from horeca.infrastructure.database import Base, engine, get_session
from horeca.infrastructure.models import (
    BrandModel,
    BusinessTypeModel,
    CategoryModel,
    ProductModel,
)

BUSINESS_TYPES = [
    ("Restaurants", 1),
    ("Hotels", 2),
    ("Cafes", 3),
    ("Bars", 4),
]

# department -> category -> [subcategories]
CATEGORY_TREE = {
    "Kitchen Equipment": {
        "Cooking": ["Ranges", "Fryers"],
        "Refrigeration": ["Reach-in Fridges"],
    },
    "Tableware": {
        "Dinnerware": ["Plates", "Bowls"],
    },
}

# department -> category -> [subcategories]
BRAND_TREE = {
    "Chefline": {"Chefline Pro": ["Chefline Pro Ranges"]},
    "Porcelino": {"Porcelino Hotel": ["Porcelino Classic"]},
}

PRODUCTS = [
    {
        "title": "Six Burner Gas Range",
        "brand": "Chefline",
        "sku": "CL-R6",
        "price": 2450,
        "category": "Ranges",
        "brand_category": "Chefline Pro Ranges",
        "business_types": ["restaurants", "hotels"],
        "filters": {"Material": ["Stainless Steel"], "Size": ["900mm"]},
        "featured": True,
    },
    {
        "title": "Twin Tank Electric Fryer",
        "brand": "Chefline",
        "sku": "CL-F2",
        "price": 890,
        "category": "Fryers",
        "brand_category": "Chefline Pro",
        "business_types": ["restaurants", "bars"],
        "filters": {"Material": ["Stainless Steel"], "Size": ["2 x 8L"]},
        "featured": False,
    },
    {
        "title": "Coupe Dinner Plate 27cm",
        "brand": "Porcelino",
        "sku": "PO-CP27",
        "price": None,
        "category": "Plates",
        "brand_category": "Porcelino Classic",
        "business_types": ["restaurants", "hotels", "cafes"],
        "filters": {"Material": ["Porcelain"], "Size": ["27cm"]},
        "featured": True,
    },
    {
        "title": "Deep Pasta Bowl",
        "brand": "Porcelino",
        "sku": "PO-PB",
        "price": 18,
        "category": "Bowls",
        "brand_category": "Porcelino Classic",
        "business_types": ["restaurants", "cafes"],
        "filters": {"Material": ["Porcelain"], "Size": ["24cm"]},
        "featured": False,
    },
]


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _build_taxonomy(store, tree: dict) -> dict[str, str]:
    """Create nodes for a department tree; returns name -> node id."""
    ids: dict[str, str] = {}
    for department, categories in tree.items():
        dept = store.create(department, "department")
        ids[department] = dept.id
        for category, subcategories in categories.items():
            cat = store.create(category, "category", parent_id=dept.id)
            ids[category] = cat.id
            for subcategory in subcategories:
                sub = store.create(subcategory, "subcategory", parent_id=cat.id)
                ids[subcategory] = sub.id
    return ids


async def build_catalog() -> dict:
    """Build the demo catalog in the in-process stores.

    Returns:
        Counts of created records.
    """
    business_types = get_business_type_store()
    for name, order in BUSINESS_TYPES:
        business_types.create(name, display_order=order)

    category_ids = _build_taxonomy(get_category_store(), CATEGORY_TREE)
    brand_ids = _build_taxonomy(get_brand_store(), BRAND_TREE)

    service = get_catalog_service()
    for spec in PRODUCTS:
        await service.create_product(
            {
                "title": spec["title"],
                "brand": spec["brand"],
                "sku": spec["sku"],
                "price": spec["price"],
                "hero_image": f"/uploads/products/{spec['sku'].lower()}.jpg",
                "category_id": category_ids[spec["category"]],
                "brand_category_id": brand_ids[spec["brand_category"]],
                "business_type_slugs": spec["business_types"],
                "filters": spec["filters"],
                "featured": spec["featured"],
            }
        )

    return {
        "business_types": len(BUSINESS_TYPES),
        "categories": len(category_ids),
        "brands": len(brand_ids),
        "products": len(PRODUCTS),
    }


async def persist_catalog(clear: bool) -> None:
    """Write the in-process catalog to the database."""
    async for session in get_session():
        if clear:
            for model in (ProductModel, BusinessTypeModel, BrandModel, CategoryModel):
                await session.execute(delete(model))

        for node in get_category_store().list_all():
            session.add(CategoryModel.from_entity(node))
        for node in get_brand_store().list_all():
            session.add(BrandModel.from_entity(node))
        for item in get_business_type_store().list_all():
            session.add(
                BusinessTypeModel(
                    id=item.id,
                    slug=item.slug,
                    name=item.name,
                    description=item.description,
                    image=item.image,
                    display_order=item.display_order,
                )
            )
        for product in get_product_repository().list_all():
            session.add(ProductModel.from_entity(product))


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed a demo HoReCa catalog",
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Don't clear existing catalog rows before seeding",
    )

    args = parser.parse_args()

    print("=" * 60)
    print("HoReCa Catalog Seeder")
    print("=" * 60)
    print(f"Clear existing: {not args.no_clear}")
    print()

    # Create tables
    print("Creating database tables...")
    await create_tables()
    print("Tables ready.")
    print()

    print("Building demo catalog...")
    result = await build_catalog()
    await persist_catalog(clear=not args.no_clear)

    print(f"  ✓ Business types: {result['business_types']}")
    print(f"  ✓ Categories: {result['categories']}")
    print(f"  ✓ Brands: {result['brands']}")
    print(f"  ✓ Products: {result['products']}")
    print()

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
