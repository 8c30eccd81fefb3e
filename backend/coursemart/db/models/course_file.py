from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursemart.db.base import Base


class CourseFile(Base):
    __tablename__ = "course_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    topic_id: Mapped[int] = mapped_column(
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # GridFS ObjectId as a 24-char hex string.
    source_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_length: Mapped[int] = mapped_column(BigInteger, nullable=False)

    topic = relationship("Topic", back_populates="files")
