from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import PurePosixPath

from fastapi import UploadFile
from pymongo.errors import PyMongoError
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursemart.core.errors import CourseValidationError, NotFoundError, StorageError
from coursemart.core.sanitize import sanitize_html
from coursemart.db.models.category import Category
from coursemart.db.models.course import Course, course_students
from coursemart.db.models.course_file import CourseFile
from coursemart.db.models.language import Language
from coursemart.db.models.topic import Topic
from coursemart.db.models.video import Video
from coursemart.schemas.common import is_row_id
from coursemart.schemas.course import (
    CourseDetails,
    CourseDraft,
    CourseListing,
    CoursePage,
    CourseQuery,
    CourseSorting,
    FilePublic,
    MyLearning,
    TopicPublic,
    VideoPublic,
)
from coursemart.services.file_storage import FileStorage, StoredFile, download_path

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".tif"})
UNSUPPORTED_IMAGE_MESSAGE = "Unsupported file! File should be one of the following types: png/jpg/jpeg/gif/tif"

# Column widths of the String columns fed by sanitized text. Escaping (`&` to `&amp;`) can
# push a draft that passed schema validation past them.
TITLE_MAX_LENGTH = 255
SUBTITLE_MAX_LENGTH = 255
VIDEO_TITLE_MAX_LENGTH = 255


def image_path(course: Course) -> str | None:
    """Public URL path of the course cover image, if it has one."""
    if not course.image_id:
        return None
    return f"/api/v1/courses/{course.id}/image"


def _listing(course: Course) -> CourseListing:
    return CourseListing(
        id=course.id,
        title=course.title,
        image_url=image_path(course),
        price=course.price,
        rating=course.rating,
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_ORDERINGS = {
    CourseSorting.newest: (Course.created_at.desc(), Course.id.desc()),
    CourseSorting.price_asc: (Course.price.asc(), Course.id.asc()),
    CourseSorting.price_desc: (Course.price.desc(), Course.id.asc()),
    CourseSorting.rating: (Course.rating.desc(), Course.id.asc()),
    CourseSorting.title: (Course.title.asc(), Course.id.asc()),
}


async def list_courses(db: AsyncSession, query: CourseQuery, *, per_page: int) -> CoursePage:
    filters = [Course.is_deleted.is_(False)]
    if query.category is not None:
        filters.append(or_(Course.category_id == query.category, Course.subcategory_id == query.category))
    if query.subcategory is not None:
        filters.append(Course.subcategory_id == query.subcategory)
    if query.search_term:
        pattern = f"%{_escape_like(query.search_term)}%"
        filters.append(
            or_(
                Course.title.ilike(pattern, escape="\\"),
                Course.subtitle.ilike(pattern, escape="\\"),
                Course.description.ilike(pattern, escape="\\"),
            )
        )
    if query.language is not None:
        filters.append(Course.language_id == query.language)
    if query.min_price is not None:
        filters.append(Course.price >= query.min_price)
    if query.max_price is not None:
        filters.append(Course.price <= query.max_price)

    total = int((await db.execute(select(func.count()).select_from(Course).where(*filters))).scalar_one())

    stmt = (
        select(Course)
        .where(*filters)
        .order_by(*_ORDERINGS[query.sorting])
        .offset((query.current_page - 1) * per_page)
        .limit(per_page)
    )
    courses = (await db.execute(stmt)).scalars().all()

    return CoursePage(
        items=[_listing(c) for c in courses],
        total=total,
        current_page=query.current_page,
        per_page=per_page,
    )


def sanitize_draft(draft: CourseDraft) -> CourseDraft:
    """Return a copy of the draft with every free-text field HTML-sanitized."""
    curriculum = [
        topic.model_copy(
            update={
                "title": sanitize_html(topic.title),
                "description": sanitize_html(topic.description),
                "videos": [
                    video.model_copy(
                        update={
                            "title": sanitize_html(video.title),
                            "video_url": sanitize_html(video.video_url),
                        }
                    )
                    for video in topic.videos
                ],
            }
        )
        for topic in draft.curriculum
    ]
    return draft.model_copy(
        update={
            "title": sanitize_html(draft.title),
            "subtitle": sanitize_html(draft.subtitle),
            "description": sanitize_html(draft.description),
            "goals": sanitize_html(draft.goals),
            "requirements": sanitize_html(draft.requirements),
            "curriculum": curriculum,
        }
    )


def image_extension_allowed(filename: str | None) -> bool:
    if not filename:
        return False
    return PurePosixPath(filename.replace("\\", "/")).suffix.lower() in ALLOWED_IMAGE_EXTENSIONS


async def _validate_draft(
    db: AsyncSession,
    draft: CourseDraft,
    image: UploadFile | None,
    topic_files: Sequence[Sequence[UploadFile]],
) -> dict[str, str]:
    errors: dict[str, str] = {}

    # Sanitizing can leave a required field empty (e.g. "<script>...</script>").
    if not draft.title.strip():
        errors["title"] = "Title is required"
    if not draft.description.strip():
        errors["description"] = "Description is required"
    if len(draft.title) > TITLE_MAX_LENGTH:
        errors["title"] = "Title is too long"
    if draft.subtitle is not None and len(draft.subtitle) > SUBTITLE_MAX_LENGTH:
        errors["subtitle"] = "Subtitle is too long"
    for i, topic in enumerate(draft.curriculum):
        if not topic.title.strip():
            errors[f"curriculum[{i}].title"] = "Title is required"
        elif len(topic.title) > TITLE_MAX_LENGTH:
            errors[f"curriculum[{i}].title"] = "Title is too long"
        for j, video in enumerate(topic.videos):
            if len(video.title) > VIDEO_TITLE_MAX_LENGTH:
                errors[f"curriculum[{i}].videos[{j}].title"] = "Title is too long"

    if image is None or not image_extension_allowed(image.filename):
        errors["image"] = UNSUPPORTED_IMAGE_MESSAGE

    category = await db.get(Category, draft.category_id)
    if category is None or category.parent_id is not None:
        errors["category_id"] = "Category does not exist"
    elif draft.subcategory_id is not None:
        subcategory = await db.get(Category, draft.subcategory_id)
        if subcategory is None or subcategory.parent_id != category.id:
            errors["subcategory_id"] = "Subcategory does not exist"

    if await db.get(Language, draft.language_id) is None:
        errors["language_id"] = "Language does not exist"

    if len(topic_files) > len(draft.curriculum):
        errors["curriculum"] = "Files were submitted for a topic that does not exist"

    return errors


async def _discard(storage: FileStorage, stored: Sequence[StoredFile]) -> None:
    for blob in stored:
        try:
            await storage.delete(blob.source_id)
        except PyMongoError:
            logger.exception("Failed to discard orphaned blob %s", blob.source_id)


async def create_course(
    db: AsyncSession,
    storage: FileStorage,
    *,
    creator_id: int,
    draft: CourseDraft,
    image: UploadFile | None,
    topic_files: Sequence[Sequence[UploadFile]] = (),
) -> Course:
    """
    Sanitize, validate, upload, then persist a new course with its curriculum.

    Validation runs before any upload, so a rejected draft leaves neither blobs
    nor rows behind. If an upload fails midway, the blobs stored so far are
    removed and StorageError is raised.
    """
    draft = sanitize_draft(draft)

    errors = await _validate_draft(db, draft, image, topic_files)
    if errors:
        raise CourseValidationError(errors)

    stored: list[StoredFile] = []
    files_by_topic: list[list[StoredFile]] = [[] for _ in draft.curriculum]
    try:
        image_blob = await storage.upload(image)
        if image_blob is None:
            raise CourseValidationError({"image": "Image file is empty"})
        stored.append(image_blob)

        for i, files in enumerate(topic_files):
            for upload in files:
                blob = await storage.upload(upload)
                if blob is not None:
                    stored.append(blob)
                    files_by_topic[i].append(blob)
    except (PyMongoError, OSError) as e:
        logger.exception("Upload failed while creating course %r", draft.title)
        await _discard(storage, stored)
        raise StorageError() from e
    except Exception:
        await _discard(storage, stored)
        raise

    course = Course(
        creator_id=creator_id,
        category_id=draft.category_id,
        subcategory_id=draft.subcategory_id,
        language_id=draft.language_id,
        title=draft.title,
        subtitle=draft.subtitle,
        description=draft.description,
        goals=draft.goals,
        requirements=draft.requirements,
        level=draft.level,
        price=draft.price,
        rating=0.0,
        image_id=image_blob.source_id,
        image_filename=image_blob.file_name,
        image_content_type=image_blob.content_type,
        image_length=image_blob.length,
        curriculum=[
            Topic(
                position=position,
                title=topic.title,
                description=topic.description,
                videos=[Video(title=v.title, video_url=v.video_url) for v in topic.videos],
                files=[
                    CourseFile(
                        file_name=blob.file_name,
                        source_id=blob.source_id,
                        content_type=blob.content_type,
                        file_length=blob.length,
                    )
                    for blob in files_by_topic[position]
                ],
            )
            for position, topic in enumerate(draft.curriculum)
        ],
    )
    db.add(course)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        await _discard(storage, stored)
        raise

    logger.info("User %s created course %s with %d stored files", creator_id, course.id, len(stored))
    return course


async def get_course_details(db: AsyncSession, course_id: int) -> CourseDetails:
    if not is_row_id(course_id):
        raise NotFoundError("Course not found")
    res = await db.execute(
        select(Course)
        .where(Course.id == course_id, Course.is_deleted.is_(False))
        .options(
            selectinload(Course.creator),
            selectinload(Course.category),
            selectinload(Course.subcategory),
            selectinload(Course.language),
            selectinload(Course.curriculum).selectinload(Topic.videos),
            selectinload(Course.curriculum).selectinload(Topic.files),
        )
        .execution_options(populate_existing=True)
    )
    course = res.scalar_one_or_none()
    if course is None:
        raise NotFoundError("Course not found")

    students_count = int(
        (
            await db.execute(
                select(func.count()).select_from(course_students).where(course_students.c.course_id == course.id)
            )
        ).scalar_one()
    )

    return CourseDetails(
        id=course.id,
        title=course.title,
        subtitle=course.subtitle,
        description=course.description,
        goals=course.goals,
        requirements=course.requirements,
        level=course.level,
        price=course.price,
        rating=course.rating,
        image_url=image_path(course),
        creator_id=course.creator_id,
        creator_full_name=course.creator.full_name,
        category=course.category.name,
        subcategory=course.subcategory.name if course.subcategory else None,
        language=course.language.name,
        students_count=students_count,
        created_at=course.created_at,
        curriculum=[
            TopicPublic(
                id=t.id,
                position=t.position,
                title=t.title,
                description=t.description,
                videos=[VideoPublic.model_validate(v) for v in t.videos],
                files=[
                    FilePublic(
                        id=f.id,
                        file_name=f.file_name,
                        source_id=f.source_id,
                        content_type=f.content_type,
                        file_length=f.file_length,
                        download_url=download_path(f.source_id),
                    )
                    for f in t.files
                ],
            )
            for t in course.curriculum
        ],
    )


async def my_learning(db: AsyncSession, *, user_id: int) -> MyLearning:
    enrolled = await db.execute(
        select(Course)
        .join(course_students, course_students.c.course_id == Course.id)
        .where(course_students.c.user_id == user_id, Course.is_deleted.is_(False))
        .order_by(Course.title)
    )
    created = await db.execute(
        select(Course).where(Course.creator_id == user_id).order_by(Course.created_at.desc(), Course.id.desc())
    )
    created_courses = created.scalars().all()

    return MyLearning(
        enrolled=[_listing(c) for c in enrolled.scalars().all()],
        created=[_listing(c) for c in created_courses if not c.is_deleted],
        archived=[_listing(c) for c in created_courses if c.is_deleted],
    )


async def delete_course(db: AsyncSession, *, course_id: int, user_id: int) -> None:
    """Soft-delete a course owned by the user; enrolled students keep their history."""
    if not is_row_id(course_id):
        raise NotFoundError("Course not found")
    res = await db.execute(
        select(Course).where(
            Course.id == course_id,
            Course.creator_id == user_id,
            Course.is_deleted.is_(False),
        )
    )
    course = res.scalar_one_or_none()
    if course is None:
        raise NotFoundError("Course not found")

    course.is_deleted = True
    await db.commit()
    logger.info("User %s archived course %s", user_id, course_id)
