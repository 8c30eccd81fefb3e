from __future__ import annotations

import io
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx
from bson import ObjectId
from fastapi import UploadFile
from gridfs.errors import NoFile
from pymongo.errors import AutoReconnect
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import Headers

from coursemart.core.security import hash_password
from coursemart.core.settings import get_settings
from coursemart.db.models.category import Category
from coursemart.db.models.course import Course
from coursemart.db.models.language import Language
from coursemart.db.models.user import User

TEST_PASSWORD = "password123"


@dataclass
class _StoredBlob:
    filename: str
    metadata: dict | None
    chunks: list[bytes]

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


class FakeGridIn:
    def __init__(self, bucket: "FakeBucket", filename: str, metadata: dict | None, fail: bool) -> None:
        self._bucket = bucket
        self._id = ObjectId()
        self._filename = filename
        self._metadata = metadata
        self._chunks: list[bytes] = []
        self._fail = fail

    async def write(self, data: bytes) -> None:
        if self._fail:
            raise AutoReconnect("connection reset")
        self._chunks.append(bytes(data))

    async def close(self) -> None:
        self._bucket.files[self._id] = _StoredBlob(self._filename, self._metadata, self._chunks)

    async def abort(self) -> None:
        self._bucket.aborted.append(self._id)


class FakeGridOut:
    def __init__(self, blob: _StoredBlob) -> None:
        self.filename = blob.filename
        self.metadata = blob.metadata
        self.length = len(blob.data)
        self._chunks = list(blob.chunks)

    async def readchunk(self) -> bytes:
        if not self._chunks:
            return b""
        return self._chunks.pop(0)


@dataclass
class FakeBucket:
    """In-memory stand-in for the subset of AsyncIOMotorGridFSBucket that FileStorage uses."""

    files: dict[ObjectId, _StoredBlob] = field(default_factory=dict)
    aborted: list[ObjectId] = field(default_factory=list)
    deleted: list[ObjectId] = field(default_factory=list)
    # 1-based index of the upload whose first write fails; None means never.
    fail_on_upload: int | None = None
    uploads_started: int = 0

    def open_upload_stream(self, filename: str, metadata: dict | None = None) -> FakeGridIn:
        self.uploads_started += 1
        return FakeGridIn(self, filename, metadata, fail=self.uploads_started == self.fail_on_upload)

    async def open_download_stream(self, file_id: ObjectId) -> FakeGridOut:
        blob = self.files.get(file_id)
        if blob is None:
            raise NoFile(f"no file with id {file_id}")
        return FakeGridOut(blob)

    async def delete(self, file_id: ObjectId) -> None:
        if file_id not in self.files:
            raise NoFile(f"no file with id {file_id}")
        del self.files[file_id]
        self.deleted.append(file_id)


def make_upload(data: bytes, filename: str, content_type: str = "application/octet-stream") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@dataclass
class Lookups:
    development: Category
    web_development: Category
    music: Category
    instruments: Category
    english: Language
    german: Language


async def seed_lookups(session: AsyncSession) -> Lookups:
    development = Category(name="Development")
    music = Category(name="Music")
    session.add_all([development, music])
    await session.flush()

    web_development = Category(name="Web Development", parent_id=development.id)
    instruments = Category(name="Instruments", parent_id=music.id)
    english = Language(name="English")
    german = Language(name="German")
    session.add_all([web_development, instruments, english, german])
    await session.commit()

    return Lookups(
        development=development,
        web_development=web_development,
        music=music,
        instruments=instruments,
        english=english,
        german=german,
    )


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    first_name: str = "Ada",
    last_name: str = "Lovelace",
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(TEST_PASSWORD),
        first_name=first_name,
        last_name=last_name,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_course(
    session: AsyncSession,
    *,
    creator: User,
    lookups: Lookups,
    title: str,
    price: str = "10.00",
    rating: float = 0.0,
    category: Category | None = None,
    subcategory: Category | None = None,
    language: Language | None = None,
    description: str = "A course",
    **extra: Any,
) -> Course:
    course = Course(
        creator_id=creator.id,
        category_id=(category or lookups.development).id,
        subcategory_id=subcategory.id if subcategory else None,
        language_id=(language or lookups.english).id,
        title=title,
        description=description,
        price=Decimal(price),
        rating=rating,
        image_id=str(ObjectId()),
        image_filename="cover.png",
        image_content_type="image/png",
        image_length=4,
        **extra,
    )
    session.add(course)
    await session.commit()
    await session.refresh(course)
    return course


async def csrf_headers(client: httpx.AsyncClient) -> dict[str, str]:
    r = await client.get("/api/v1/auth/csrf")
    return {get_settings().csrf_header_name: r.json()["csrfToken"]}


async def login(client: httpx.AsyncClient, email: str, password: str = TEST_PASSWORD) -> dict[str, str]:
    headers = await csrf_headers(client)
    r = await client.post("/api/v1/auth/login", json={"email": email, "password": password}, headers=headers)
    assert r.status_code == 200, r.text
    return headers
