from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.db.models.category import Category
from coursemart.db.models.language import Language
from coursemart.services import lookups
from scripts.seed_lookups import DEFAULT_CATEGORIES, DEFAULT_LANGUAGES, seed


@pytest.mark.asyncio
async def test_seed_is_idempotent(db: AsyncSession) -> None:
    expected_categories = len(DEFAULT_CATEGORIES) + sum(len(subs) for subs in DEFAULT_CATEGORIES.values())

    assert await seed(db) == (expected_categories, len(DEFAULT_LANGUAGES))
    assert await seed(db) == (0, 0)

    assert (await db.execute(select(func.count()).select_from(Category))).scalar_one() == expected_categories
    assert (await db.execute(select(func.count()).select_from(Language))).scalar_one() == len(DEFAULT_LANGUAGES)

    tree = await lookups.get_main_categories(db)
    music = next(c for c in tree if c.name == "Music")
    assert [s.name for s in music.subcategories] == sorted(DEFAULT_CATEGORIES["Music"])
