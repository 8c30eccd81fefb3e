from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursemart.db.models.category import Category
from coursemart.db.models.language import Language
from coursemart.schemas.lookup import CategoryPublic, LanguagePublic, SubcategoryPublic


async def get_main_categories(db: AsyncSession) -> list[CategoryPublic]:
    res = await db.execute(
        select(Category)
        .where(Category.parent_id.is_(None))
        .options(selectinload(Category.subcategories))
        .order_by(Category.name)
    )
    return [
        CategoryPublic(
            id=c.id,
            name=c.name,
            parent_id=None,
            subcategories=[SubcategoryPublic(id=s.id, name=s.name) for s in c.subcategories],
        )
        for c in res.scalars().all()
    ]


async def get_all_categories(db: AsyncSession) -> list[CategoryPublic]:
    res = await db.execute(select(Category).order_by(Category.parent_id.is_not(None), Category.name))
    return [CategoryPublic(id=c.id, name=c.name, parent_id=c.parent_id) for c in res.scalars().all()]


async def get_languages(db: AsyncSession) -> list[LanguagePublic]:
    res = await db.execute(select(Language).order_by(Language.name))
    return [LanguagePublic.model_validate(lang) for lang in res.scalars().all()]
