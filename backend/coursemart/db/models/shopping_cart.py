from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursemart.db.base import Base

# Composite primary key gives the cart set semantics: a course is in it at most once.
shopping_cart_courses = Table(
    "shopping_cart_courses",
    Base.metadata,
    Column("cart_id", ForeignKey("shopping_carts.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
)


class ShoppingCart(Base):
    __tablename__ = "shopping_carts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    user = relationship("User", back_populates="shopping_cart")
    courses = relationship("Course", secondary=shopping_cart_courses, order_by="Course.id")
