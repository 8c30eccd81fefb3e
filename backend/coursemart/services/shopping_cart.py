from __future__ import annotations

import logging

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursemart.core.errors import NotFoundError
from coursemart.db.models.course import Course, course_students
from coursemart.db.models.shopping_cart import ShoppingCart
from coursemart.db.models.user import User
from coursemart.schemas.cart import ShoppingCartCourse
from coursemart.schemas.common import is_row_id
from coursemart.services.courses import image_path

logger = logging.getLogger(__name__)


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id) if is_row_id(user_id) else None
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _get_course(db: AsyncSession, course_id: int, *, include_deleted: bool = False) -> Course:
    if not is_row_id(course_id):
        raise NotFoundError("Course not found")
    stmt = select(Course).where(Course.id == course_id)
    if not include_deleted:
        stmt = stmt.where(Course.is_deleted.is_(False))
    course = (await db.execute(stmt)).scalar_one_or_none()
    if course is None:
        raise NotFoundError("Course not found")
    return course


async def _get_cart(db: AsyncSession, user_id: int) -> ShoppingCart | None:
    res = await db.execute(
        select(ShoppingCart)
        .where(ShoppingCart.user_id == user_id)
        .options(selectinload(ShoppingCart.courses).selectinload(Course.creator))
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


def _contains(cart: ShoppingCart, course_id: int) -> bool:
    return any(c.id == course_id for c in cart.courses)


async def add_course(db: AsyncSession, *, user_id: int, course_id: int) -> ShoppingCart:
    """
    Put a course in the user's cart, creating the cart on first use.

    The cart is a set: adding a course that is already there changes nothing.
    Raises NotFoundError when the user or the course does not exist.
    """
    await _get_user(db, user_id)
    course = await _get_course(db, course_id)

    cart = await _get_cart(db, user_id)
    if cart is None:
        cart = ShoppingCart(user_id=user_id, courses=[course])
        db.add(cart)
        try:
            await db.commit()
            return cart
        except IntegrityError:
            # Another request created the cart first; fall through and add to theirs.
            await db.rollback()
            logger.info("Cart for user %s created concurrently; retrying add", user_id)
            cart = await _get_cart(db, user_id)
            if cart is None:
                raise
            course = await _get_course(db, course_id)

    if not _contains(cart, course.id):
        cart.courses.append(course)
        await db.commit()
    return cart


async def remove_course(db: AsyncSession, *, user_id: int, course_id: int) -> None:
    await _get_user(db, user_id)
    # Archived courses can still be taken out of a cart.
    await _get_course(db, course_id, include_deleted=True)

    cart = await _get_cart(db, user_id)
    if cart is None or not _contains(cart, course_id):
        return

    cart.courses = [c for c in cart.courses if c.id != course_id]
    await db.commit()


async def clear(db: AsyncSession, *, user_id: int) -> None:
    """Empty the cart. The cart row itself is kept."""
    await _get_user(db, user_id)

    cart = await _get_cart(db, user_id)
    if cart is None or not cart.courses:
        return

    cart.courses.clear()
    await db.commit()


async def list_courses(db: AsyncSession, *, user_id: int) -> list[ShoppingCartCourse]:
    await _get_user(db, user_id)

    cart = await _get_cart(db, user_id)
    if cart is None:
        return []

    return [
        ShoppingCartCourse(
            id=c.id,
            name=c.title,
            creator_full_name=c.creator.full_name,
            image_url=image_path(c),
            price=c.price,
        )
        for c in cart.courses
        if not c.is_deleted
    ]


async def checkout(db: AsyncSession, *, user_id: int) -> list[int]:
    """Enroll the user in every course in the cart, then empty the cart."""
    await _get_user(db, user_id)

    cart = await _get_cart(db, user_id)
    if cart is None or not cart.courses:
        return []

    course_ids = sorted(c.id for c in cart.courses if not c.is_deleted)
    if course_ids:
        res = await db.execute(
            select(course_students.c.course_id).where(
                course_students.c.user_id == user_id,
                course_students.c.course_id.in_(course_ids),
            )
        )
        already = set(res.scalars().all())
        rows = [{"course_id": cid, "user_id": user_id} for cid in course_ids if cid not in already]
        if rows:
            await db.execute(insert(course_students), rows)

    cart.courses.clear()
    await db.commit()
    logger.info("User %s enrolled in courses %s", user_id, course_ids)
    return course_ids
