"""Read-only views over the completion records written by the cascade."""

from typing import List

from sqlalchemy.orm import Session

from codeclub.crud import course_crud, progress_crud
from codeclub.schemas.progress.progress_schema import (
    ChapterProgressRead,
    CourseOverview,
    CourseProgressRead,
    LastActivityRead,
    LessonProgressRead,
)
from codeclub.schemas.user.badge_schema import BadgeRead
from codeclub.services.errors import not_found


def _percentage(done: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(done / total * 100, 2)


def get_chapter_progress(db: Session, user_id: int, chapter_id: int) -> ChapterProgressRead:
    if course_crud.get_chapter(db, chapter_id) is None:
        raise not_found("chapter_not_found")
    return ChapterProgressRead(is_completed=progress_crud.is_chapter_completed(db, user_id, chapter_id))


def get_lesson_progress(db: Session, user_id: int, lesson_id: int) -> LessonProgressRead:
    if course_crud.get_lesson(db, lesson_id) is None:
        raise not_found("lesson_not_found")

    chapter_ids = progress_crud.get_chapter_ids(db, lesson_id)
    completed = progress_crud.get_completed_chapter_ids(db, user_id, chapter_ids)
    return LessonProgressRead(
        total_chapters=len(chapter_ids),
        completed_chapters=len(completed),
        progress_percentage=_percentage(len(completed), len(chapter_ids)),
    )


def get_course_progress(db: Session, user_id: int, course_id: int) -> CourseProgressRead:
    if course_crud.get_course(db, course_id) is None:
        raise not_found("course_not_found")

    lesson_ids = progress_crud.get_lesson_ids(db, course_id)
    completed = progress_crud.get_completed_lesson_ids(db, user_id, lesson_ids)
    return CourseProgressRead(
        total_lessons=len(lesson_ids),
        completed_lessons=len(completed),
        progress_percentage=_percentage(len(completed), len(lesson_ids)),
        is_completed=progress_crud.is_course_completed(db, user_id, course_id),
    )


def get_last_activity(db: Session, user_id: int) -> LastActivityRead:
    """Most recently completed chapter, labelled ``"<course> - <chapter>"``."""
    progress = progress_crud.get_last_completed_chapter(db, user_id)
    if progress is None:
        return LastActivityRead()

    chapter = progress.chapter
    lesson = chapter.lesson
    course = lesson.course if lesson is not None else None
    name = f"{course.title} - {chapter.title}" if course is not None else chapter.title
    return LastActivityRead(date=progress.completed_at, name=name)


def get_courses_overview(db: Session, user_id: int) -> List[CourseOverview]:
    completed_ids = progress_crud.get_completed_course_ids(db, user_id)
    return [
        CourseOverview(
            id=course.id,
            title=course.title,
            description=course.description,
            level=course.level,
            duration=course.duration,
            index=course.index,
            badge=BadgeRead.model_validate(course.badge) if course.badge else None,
            completed=course.id in completed_ids,
        )
        for course in course_crud.list_courses(db)
    ]
