from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.api.deps import get_current_user
from coursemart.db.models.user import User
from coursemart.db.session import get_db
from coursemart.schemas.cart import CheckoutResponse, ShoppingCartCourse
from coursemart.services import shopping_cart

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=list[ShoppingCartCourse])
async def list_cart_courses(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ShoppingCartCourse]:
    return await shopping_cart.list_courses(db, user_id=current_user.id)


@router.post("/courses/{course_id}")
async def add_course_to_cart(
    course_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    await shopping_cart.add_course(db, user_id=current_user.id, course_id=course_id)
    return {"ok": True}


@router.delete("/courses/{course_id}")
async def remove_course_from_cart(
    course_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    await shopping_cart.remove_course(db, user_id=current_user.id, course_id=course_id)
    return {"ok": True}


@router.delete("")
async def clear_cart(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    await shopping_cart.clear(db, user_id=current_user.id)
    return {"ok": True}


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CheckoutResponse:
    enrolled = await shopping_cart.checkout(db, user_id=current_user.id)
    return CheckoutResponse(ok=True, enrolled_course_ids=enrolled)
