from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coursemart.core.settings import get_settings
from coursemart.db import registry  # noqa: F401
from coursemart.db.models.category import Category
from coursemart.db.models.language import Language

DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "Development": ["Web Development", "Mobile Development", "Programming Languages", "Game Development"],
    "Business": ["Entrepreneurship", "Management", "Sales"],
    "IT & Software": ["IT Certifications", "Network & Security", "Hardware"],
    "Design": ["Web Design", "Graphic Design", "3D & Animation"],
    "Music": ["Instruments", "Music Production", "Vocal"],
}

DEFAULT_LANGUAGES = ["English", "Bulgarian", "German", "French", "Spanish"]


async def seed(session: AsyncSession) -> tuple[int, int]:
    """Insert missing default categories and languages. Returns (categories_added, languages_added)."""
    added_categories = 0
    for main_name, sub_names in DEFAULT_CATEGORIES.items():
        res = await session.execute(
            select(Category).where(Category.name == main_name, Category.parent_id.is_(None))
        )
        main = res.scalar_one_or_none()
        if main is None:
            main = Category(name=main_name)
            session.add(main)
            await session.flush()
            added_categories += 1

        res = await session.execute(select(Category.name).where(Category.parent_id == main.id))
        existing = set(res.scalars().all())
        for sub_name in sub_names:
            if sub_name not in existing:
                session.add(Category(name=sub_name, parent_id=main.id))
                added_categories += 1

    res = await session.execute(select(Language.name))
    existing_languages = set(res.scalars().all())
    missing = [name for name in DEFAULT_LANGUAGES if name not in existing_languages]
    session.add_all(Language(name=name) for name in missing)

    await session.commit()
    return added_categories, len(missing)


async def main() -> None:
    argparse.ArgumentParser(description="Seed default course categories and languages.").parse_args()

    settings = get_settings()
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with SessionLocal() as session:
            categories, languages = await seed(session)
            print(f"Seeded {categories} categories and {languages} languages")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
