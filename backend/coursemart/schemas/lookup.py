from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SubcategoryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CategoryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: int | None = None
    subcategories: list[SubcategoryPublic] = []


class LanguagePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
