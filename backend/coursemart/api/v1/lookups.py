from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.db.session import get_db
from coursemart.schemas.lookup import CategoryPublic, LanguagePublic
from coursemart.services import lookups

router = APIRouter(tags=["lookups"])


@router.get("/categories", response_model=list[CategoryPublic])
async def list_categories(
    flat: bool = False,
    db: AsyncSession = Depends(get_db),
) -> list[CategoryPublic]:
    """Main categories with their subcategories, or every category with `parent_id` when `flat=true`."""
    if flat:
        return await lookups.get_all_categories(db)
    return await lookups.get_main_categories(db)


@router.get("/languages", response_model=list[LanguagePublic])
async def list_languages(db: AsyncSession = Depends(get_db)) -> list[LanguagePublic]:
    return await lookups.get_languages(db)
