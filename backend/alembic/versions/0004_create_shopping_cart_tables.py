"""Create shopping cart tables

Revision ID: 0004_create_shopping_carts
Revises: 0003_create_courses
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0004_create_shopping_carts"
down_revision = "0003_create_courses"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "shopping_carts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    # One cart per user.
    op.create_index("ix_shopping_carts_user_id", "shopping_carts", ["user_id"], unique=True)

    op.create_table(
        "shopping_cart_courses",
        sa.Column("cart_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["cart_id"], ["shopping_carts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("cart_id", "course_id"),
    )


def downgrade() -> None:
    op.drop_table("shopping_cart_courses")
    op.drop_index("ix_shopping_carts_user_id", table_name="shopping_carts")
    op.drop_table("shopping_carts")
