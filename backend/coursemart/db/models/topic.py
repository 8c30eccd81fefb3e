from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursemart.db.base import Base


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 0-based order within the course curriculum.
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    course = relationship("Course", back_populates="curriculum")
    videos = relationship("Video", back_populates="topic", cascade="all, delete-orphan", order_by="Video.id")
    files = relationship("CourseFile", back_populates="topic", cascade="all, delete-orphan", order_by="CourseFile.id")
