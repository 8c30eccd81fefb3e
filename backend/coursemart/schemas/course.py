from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coursemart.schemas.common import MAX_ROW_ID, RowId


class CourseSorting(str, Enum):
    newest = "newest"
    price_asc = "price_asc"
    price_desc = "price_desc"
    rating = "rating"
    title = "title"


class CourseQuery(BaseModel):
    category: RowId | None = None
    subcategory: RowId | None = None
    search_term: str | None = Field(default=None, max_length=200)
    language: RowId | None = None
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)
    current_page: int = Field(default=1, ge=1, le=MAX_ROW_ID)
    sorting: CourseSorting = CourseSorting.newest

    @field_validator("search_term")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        v = (v or "").strip()
        return v or None

    @model_validator(mode="after")
    def _check_price_range(self) -> "CourseQuery":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must be <= max_price")
        return self


class VideoDraft(BaseModel):
    title: str = Field(min_length=3, max_length=50)
    video_url: str = Field(min_length=1, max_length=2048)

    @field_validator("video_url")
    @classmethod
    def _require_http_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("Video URL must be an http(s) URL")
        return v


class TopicDraft(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    videos: list[VideoDraft] = Field(default_factory=list)


class CourseDraft(BaseModel):
    """Course authoring payload (the `course` JSON part of the multipart form)."""

    title: str = Field(min_length=1, max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str = Field(min_length=1, max_length=20000)
    goals: str | None = Field(default=None, max_length=5000)
    requirements: str | None = Field(default=None, max_length=5000)
    level: str | None = Field(default=None, max_length=32)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    category_id: RowId
    subcategory_id: RowId | None = None
    language_id: RowId
    curriculum: list[TopicDraft] = Field(default_factory=list)

    @field_validator("title", "description")
    @classmethod
    def _strip_required_strings(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Value is required")
        return v


class CourseListing(BaseModel):
    id: int
    title: str
    image_url: str | None
    price: Decimal
    rating: float


class CoursePage(BaseModel):
    items: list[CourseListing]
    total: int
    current_page: int
    per_page: int


class FilePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    source_id: str
    content_type: str
    file_length: int
    download_url: str | None = None


class VideoPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    video_url: str


class TopicPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    title: str
    description: str | None
    videos: list[VideoPublic]
    files: list[FilePublic]


class CourseDetails(BaseModel):
    id: int
    title: str
    subtitle: str | None
    description: str
    goals: str | None
    requirements: str | None
    level: str | None
    price: Decimal
    rating: float
    image_url: str | None
    creator_id: int
    creator_full_name: str
    category: str
    subcategory: str | None
    language: str
    students_count: int
    created_at: datetime
    curriculum: list[TopicPublic]


class MyLearning(BaseModel):
    enrolled: list[CourseListing]
    created: list[CourseListing]
    archived: list[CourseListing]
