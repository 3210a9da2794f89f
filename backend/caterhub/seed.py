"""
CaterHub Backend — Lookup Seeding
===================================

What:  Inserts the reference data the caterer forms pick from: cuisines,
       categories with their subcategories, free forms, package types and
       occasions.
When:  On startup when SEED_ON_STARTUP is true, or by hand:

           python -m caterhub.seed

How:   Idempotent. A row is inserted only when no row with the same name
       (and, for subcategories, the same parent) exists, so re-running the
       seed never duplicates or overwrites anything an admin edited.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.config import Settings, settings as default_settings
from caterhub.database import Database
from caterhub.models.lookup import (
    Category,
    CuisineType,
    FreeForm,
    Occasion,
    PackageType,
    SubCategory,
)

logger = logging.getLogger(__name__)

# (name, description)
CUISINE_TYPES = [
    ("British", "Traditional British fare"),
    ("Chinese", "Traditional Chinese cuisine"),
    ("Italian", "Classic Italian dishes and pasta"),
    ("Asian Fusion", "Modern dishes mixing Asian traditions"),
    ("Indian", "Authentic Indian cuisine with rich spices and flavors"),
    ("Mediterranean", "Fresh Mediterranean flavors and ingredients"),
    ("Arabic", "Traditional Middle Eastern and Arabic dishes"),
    ("Seafood", "Fish and shellfish dishes"),
    ("Western", "European and American style cuisine"),
]

# category name → (description, [(subcategory name, description), ...])
CATEGORIES: Dict[str, Tuple[str, list]] = {
    "Appetizers": ("Starters and small plates", [
        ("Dips & Spreads", "Hummus, baba ganoush, and other dips"),
        ("Finger Food", "Small bite-sized appetizers"),
    ]),
    "Main Course": ("Main dishes and entrees", [
        ("Grilled", "Grilled meats and vegetables"),
        ("Curry", "Curry dishes"),
        ("Pasta", "Pasta dishes"),
        ("Rice Dishes", "Biryani, fried rice, and rice-based dishes"),
    ]),
    "Desserts": ("Sweet treats and desserts", [
        ("Cakes", "Various cake varieties"),
        ("Ice Cream", "Ice cream and frozen desserts"),
        ("Pastries", "Sweet pastries and baked goods"),
    ]),
    "Salads": ("Fresh salads and sides", [
        ("Green Salads", "Fresh green salads"),
        ("Fruit Salads", "Fresh fruit salads"),
    ]),
    "Breads": ("Breads, sandwiches and savoury bakes", [
        ("Finger Sandwiches", "Afternoon tea sandwiches"),
        ("Scones & Quiches", "Scones, quiches and savoury tarts"),
    ]),
    "Beverages": ("Drinks and refreshments", []),
    "Soups": ("Hot and cold soups", []),
}

FREE_FORMS = [
    ("Dairy-Free", "No dairy products"),
    ("Gluten-Free", "No gluten-containing ingredients"),
    ("Nut-Free", "No nuts or nut products"),
    ("Halal", "Prepared according to Islamic dietary laws"),
    ("Vegan", "No animal products"),
    ("Sugar-Free", "No added sugar"),
]

PACKAGE_TYPES = [
    ("Fixed Menu", "A set menu; the guest cannot change the dishes"),
    ("Customizable", "The guest picks dishes within each category"),
    ("Buffet Style", "Self-service spread priced per person"),
]

OCCASIONS = [
    ("Wedding", None),
    ("Corporate Event", None),
    ("Birthday Party", None),
    ("Afternoon Tea", None),
    ("Graduation", None),
    ("Anniversary", None),
    ("Engagement", None),
]


async def _ensure_named(
    db: AsyncSession, model: Type, rows: Iterable[Tuple[str, Optional[str]]]
) -> Dict[str, object]:
    """Insert missing rows by name; return name → row for all of them."""
    result = await db.execute(select(model))
    existing = {row.name: row for row in result.scalars().all()}

    for name, description in rows:
        if name not in existing:
            row = model(name=name, description=description)
            db.add(row)
            existing[name] = row
    await db.flush()
    return existing


async def seed_lookups(db: AsyncSession) -> None:
    """Insert every missing lookup row. Safe to run repeatedly."""
    await _ensure_named(db, CuisineType, CUISINE_TYPES)
    await _ensure_named(db, FreeForm, FREE_FORMS)
    await _ensure_named(db, PackageType, PACKAGE_TYPES)
    await _ensure_named(db, Occasion, OCCASIONS)

    categories = await _ensure_named(
        db, Category, [(name, desc) for name, (desc, _) in CATEGORIES.items()]
    )

    result = await db.execute(select(SubCategory.category_id, SubCategory.name))
    existing_subs = {(category_id, name) for category_id, name in result.all()}

    added = 0
    for category_name, (_, subs) in CATEGORIES.items():
        category = categories[category_name]
        for name, description in subs:
            if (category.id, name) not in existing_subs:
                db.add(SubCategory(category_id=category.id, name=name, description=description))
                added += 1
    await db.flush()

    logger.info("Lookup seed complete (%d new subcategories)", added)


async def run_seed(app_settings: Optional[Settings] = None) -> None:
    """Seed the database named by `app_settings` in its own transaction."""
    database = Database(app_settings or default_settings)
    try:
        async with database.session_factory() as session:
            async with session.begin():
                await seed_lookups(session)
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(run_seed())
