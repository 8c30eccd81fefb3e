from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class ShoppingCartCourse(BaseModel):
    id: int
    name: str
    creator_full_name: str
    image_url: str | None
    price: Decimal


class CheckoutResponse(BaseModel):
    ok: bool = True
    enrolled_course_ids: list[int]
