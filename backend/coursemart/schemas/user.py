from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    created_at: datetime


class UserProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str | None = Field(default=None, min_length=1, max_length=60, validation_alias="firstName")
    last_name: str | None = Field(default=None, min_length=1, max_length=60, validation_alias="lastName")

    @field_validator("first_name", "last_name")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Value is required")
        return v
