from __future__ import annotations

import re
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import FormData, UploadFile

from coursemart.api.deps import get_current_user, get_file_storage
from coursemart.core.errors import NotFoundError
from coursemart.core.settings import Settings, get_settings
from coursemart.db.models.course import Course
from coursemart.db.models.user import User
from coursemart.db.session import get_db
from coursemart.schemas.common import is_row_id
from coursemart.schemas.course import CourseDetails, CourseDraft, CoursePage, CourseQuery, MyLearning
from coursemart.services import courses as course_service
from coursemart.services.file_storage import FileStorage

router = APIRouter(prefix="/courses", tags=["courses"])

# Mirrors the nested form naming used by the authoring UI: curriculum[0].files, curriculum[1].files, ...
_TOPIC_FILES_FIELD_RE = re.compile(r"^curriculum\[(\d+)\]\.files$")


def _parse_draft(form: FormData) -> CourseDraft:
    raw = form.get("course")
    if not isinstance(raw, str) or not raw.strip():
        raise RequestValidationError(
            [{"type": "missing", "loc": ("body", "course"), "msg": "Field required", "input": None}]
        )
    try:
        return CourseDraft.model_validate_json(raw)
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", "course", *err["loc"])} for err in e.errors(include_url=False, include_context=False)]
        )


def _collect_topic_files(form: FormData, topic_count: int) -> list[list[UploadFile]]:
    """
    Group uploaded files by topic index.

    Files addressed to a topic past the end of the curriculum are gathered into one extra trailing
    group so the service reports them alongside the other field errors.
    """
    topic_files: list[list[UploadFile]] = [[] for _ in range(topic_count)]
    stray: list[UploadFile] = []
    for key, value in form.multi_items():
        match = _TOPIC_FILES_FIELD_RE.match(key)
        if match is None or not isinstance(value, UploadFile):
            continue
        index = int(match.group(1))
        if index >= topic_count:
            stray.append(value)
        else:
            topic_files[index].append(value)
    if stray:
        topic_files.append(stray)
    return topic_files


@router.get("", response_model=CoursePage)
async def list_courses(
    query: Annotated[CourseQuery, Query()],
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CoursePage:
    return await course_service.list_courses(db, query, per_page=settings.courses_per_page)


@router.post("", response_model=CourseDetails)
async def create_course(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_file_storage),
) -> CourseDetails:
    """
    Multipart form:
    - `course`: JSON course draft (title, description, price, category_id, language_id, curriculum, ...)
    - `image`: cover image (png/jpg/jpeg/gif/tif)
    - `curriculum[i].files`: zero or more attachments for topic i
    """
    async with request.form() as form:
        draft = _parse_draft(form)
        image = form.get("image")
        course = await course_service.create_course(
            db,
            storage,
            creator_id=current_user.id,
            draft=draft,
            image=image if isinstance(image, UploadFile) else None,
            topic_files=_collect_topic_files(form, len(draft.curriculum)),
        )
    return await course_service.get_course_details(db, course.id)


@router.get("/mine", response_model=MyLearning)
async def my_learning(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MyLearning:
    return await course_service.my_learning(db, user_id=current_user.id)


@router.get("/{course_id}", response_model=CourseDetails)
async def get_course(
    course_id: int,
    db: AsyncSession = Depends(get_db),
) -> CourseDetails:
    return await course_service.get_course_details(db, course_id)


@router.get("/{course_id}/image")
async def get_course_image(
    course_id: int,
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
) -> StreamingResponse:
    image_id = None
    if is_row_id(course_id):
        res = await db.execute(select(Course.image_id).where(Course.id == course_id, Course.is_deleted.is_(False)))
        image_id = res.scalar_one_or_none()
    if not image_id:
        raise NotFoundError("Image not found")

    stream = await storage.open_download(image_id)
    return StreamingResponse(
        stream.iter_chunks(),
        media_type=stream.content_type,
        headers={"Content-Length": str(stream.length), "Cache-Control": "public, max-age=86400"},
    )


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    await course_service.delete_course(db, course_id=course_id, user_id=current_user.id)
    return {"ok": True}
