"""Persistence primitives used by the progress cascade and the progress reads.

The ``mark_*`` helpers are create-or-flip upserts: they never reset a record
to incomplete and they flush but never commit, so the caller keeps the whole
cascade in one transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from codeclub.models.course.chapter_model import Chapter
from codeclub.models.course.lesson_model import Lesson
from codeclub.models.progress.user_progress_model import (
    UserChapterProgress,
    UserCourseProgress,
    UserLessonProgress,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# Locking
# ==============================================================================

def lock_course_scope(db: Session, user_id: int, course_id: int) -> None:
    """Serialize cascades of one user inside one course.

    On PostgreSQL this takes a transaction-scoped advisory lock released on
    commit or rollback. SQLite already serializes writers, and the unique
    constraints on the progress tables catch anything else.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(
        text("SELECT pg_advisory_xact_lock(:user_id, :course_id)"),
        {"user_id": user_id, "course_id": course_id},
    )


# ==============================================================================
# Upserts
# ==============================================================================

def mark_chapter_completed(db: Session, user_id: int, chapter_id: int, *, now: Optional[datetime] = None) -> bool:
    """Mark the chapter complete; returns ``True`` when this call completed it."""
    now = now or datetime.now(timezone.utc)
    progress = (
        db.query(UserChapterProgress)
        .filter_by(user_id=user_id, chapter_id=chapter_id)
        .first()
    )

    if progress is None:
        db.add(
            UserChapterProgress(
                user_id=user_id,
                chapter_id=chapter_id,
                completed=True,
                created_at=now,
                completed_at=now,
            )
        )
    elif not progress.completed:
        progress.completed = True
        progress.completed_at = now
    else:
        # Already complete: the first completed_at is kept.
        return False

    db.flush()
    return True


def mark_lesson_completed(db: Session, user_id: int, lesson_id: int) -> bool:
    progress = db.query(UserLessonProgress).filter_by(user_id=user_id, lesson_id=lesson_id).first()
    if progress is None:
        db.add(UserLessonProgress(user_id=user_id, lesson_id=lesson_id, completed=True))
    elif not progress.completed:
        progress.completed = True
    else:
        return False

    db.flush()
    return True


def mark_course_completed(db: Session, user_id: int, course_id: int) -> bool:
    progress = db.query(UserCourseProgress).filter_by(user_id=user_id, course_id=course_id).first()
    if progress is None:
        db.add(UserCourseProgress(user_id=user_id, course_id=course_id, completed=True))
    elif not progress.completed:
        progress.completed = True
    else:
        return False

    db.flush()
    return True


# ==============================================================================
# Set-membership queries
# ==============================================================================

def get_chapter_ids(db: Session, lesson_id: int) -> set[int]:
    rows = db.query(Chapter.id).filter(Chapter.lesson_id == lesson_id).all()
    return {chapter_id for (chapter_id,) in rows}


def get_completed_chapter_ids(db: Session, user_id: int, chapter_ids: set[int]) -> set[int]:
    if not chapter_ids:
        return set()
    rows = (
        db.query(UserChapterProgress.chapter_id)
        .filter(
            UserChapterProgress.user_id == user_id,
            UserChapterProgress.completed.is_(True),
            UserChapterProgress.chapter_id.in_(chapter_ids),
        )
        .all()
    )
    return {chapter_id for (chapter_id,) in rows}


def get_lesson_ids(db: Session, course_id: int) -> set[int]:
    rows = db.query(Lesson.id).filter(Lesson.course_id == course_id).all()
    return {lesson_id for (lesson_id,) in rows}


def get_completed_lesson_ids(db: Session, user_id: int, lesson_ids: set[int]) -> set[int]:
    if not lesson_ids:
        return set()
    rows = (
        db.query(UserLessonProgress.lesson_id)
        .filter(
            UserLessonProgress.user_id == user_id,
            UserLessonProgress.completed.is_(True),
            UserLessonProgress.lesson_id.in_(lesson_ids),
        )
        .all()
    )
    return {lesson_id for (lesson_id,) in rows}


def is_lesson_fully_completed(db: Session, user_id: int, lesson_id: int) -> bool:
    chapter_ids = get_chapter_ids(db, lesson_id)
    return bool(chapter_ids) and get_completed_chapter_ids(db, user_id, chapter_ids) == chapter_ids


def is_course_fully_completed(db: Session, user_id: int, course_id: int) -> bool:
    lesson_ids = get_lesson_ids(db, course_id)
    return bool(lesson_ids) and get_completed_lesson_ids(db, user_id, lesson_ids) == lesson_ids


# ==============================================================================
# Reads
# ==============================================================================

def is_chapter_completed(db: Session, user_id: int, chapter_id: int) -> bool:
    return (
        db.query(UserChapterProgress.id)
        .filter_by(user_id=user_id, chapter_id=chapter_id, completed=True)
        .first()
        is not None
    )


def is_course_completed(db: Session, user_id: int, course_id: int) -> bool:
    return (
        db.query(UserCourseProgress.id)
        .filter_by(user_id=user_id, course_id=course_id, completed=True)
        .first()
        is not None
    )


def get_completed_course_ids(db: Session, user_id: int) -> set[int]:
    rows = (
        db.query(UserCourseProgress.course_id)
        .filter(UserCourseProgress.user_id == user_id, UserCourseProgress.completed.is_(True))
        .all()
    )
    return {course_id for (course_id,) in rows}


def get_last_completed_chapter(db: Session, user_id: int) -> Optional[UserChapterProgress]:
    return (
        db.query(UserChapterProgress)
        .join(Chapter, Chapter.id == UserChapterProgress.chapter_id)
        .filter(
            UserChapterProgress.user_id == user_id,
            UserChapterProgress.completed.is_(True),
            UserChapterProgress.completed_at.is_not(None),
        )
        .order_by(UserChapterProgress.completed_at.desc(), UserChapterProgress.id.desc())
        .first()
    )
