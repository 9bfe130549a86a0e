"""Quiz scoring and the chapter -> lesson -> course completion cascade.

Both the quiz submission and the explicit "mark chapter complete" action go
through :func:`apply_chapter_completion`, wrapped in
:func:`run_completion_unit` which owns the transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from codeclub.core.config import settings
from codeclub.crud import badge_crud, course_crud, progress_crud
from codeclub.models.course.chapter_model import Chapter
from codeclub.services.errors import not_found, validation_failed

logger = logging.getLogger(__name__)

PASSING_PERCENTAGE = 70.0

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class QuizScore:
    score: int
    total: int
    percentage: float
    passed: bool


@dataclass(frozen=True, slots=True)
class CascadeResult:
    """What a single completion changed.

    Each flag is ``True`` only when this call moved the level to complete, so
    replaying a completion on a finished tree yields all ``False``.
    """

    chapter_completed: bool = False
    lesson_completed: bool = False
    course_completed: bool = False
    badge_awarded: bool = False


def score_quiz(correct_indices: Sequence[int], answers: Sequence[int]) -> QuizScore:
    """Grade *answers* position by position against *correct_indices*."""
    total = len(correct_indices)
    if len(answers) != total:
        raise validation_failed("answer_count_mismatch")
    if total == 0:
        raise validation_failed("quiz_has_no_questions")

    score = sum(1 for expected, given in zip(correct_indices, answers) if expected == given)
    percentage = score / total * 100
    return QuizScore(score=score, total=total, percentage=percentage, passed=percentage >= PASSING_PERCENTAGE)


def apply_chapter_completion(db: Session, user_id: int, chapter: Chapter) -> CascadeResult:
    """Record the chapter as complete and promote the lesson and course if due.

    Flushes but does not commit. Orphaned chapters and lessons stop the
    cascade at the last resolvable level.
    """
    lesson = chapter.lesson
    course = lesson.course if lesson is not None else None
    if course is not None:
        progress_crud.lock_course_scope(db, user_id, course.id)

    chapter_completed = progress_crud.mark_chapter_completed(db, user_id, chapter.id)

    if lesson is None:
        logger.info("Chapter %s has no lesson; cascade stops for user %s", chapter.id, user_id)
        return CascadeResult(chapter_completed=chapter_completed)

    if not progress_crud.is_lesson_fully_completed(db, user_id, lesson.id):
        return CascadeResult(chapter_completed=chapter_completed)

    lesson_completed = progress_crud.mark_lesson_completed(db, user_id, lesson.id)
    if lesson_completed:
        logger.info("User %s completed lesson %s", user_id, lesson.id)

    if course is None:
        logger.info("Lesson %s has no course; cascade stops for user %s", lesson.id, user_id)
        return CascadeResult(chapter_completed=chapter_completed, lesson_completed=lesson_completed)

    if not progress_crud.is_course_fully_completed(db, user_id, course.id):
        return CascadeResult(chapter_completed=chapter_completed, lesson_completed=lesson_completed)

    course_completed = progress_crud.mark_course_completed(db, user_id, course.id)
    if course_completed:
        logger.info("User %s completed course %s", user_id, course.id)

    badge_awarded = False
    if course.badge_id is not None:
        badge_awarded = badge_crud.award_badge_if_absent(db, user_id, course.badge_id)
        if badge_awarded:
            logger.info("Badge %s awarded to user %s for course %s", course.badge_id, user_id, course.id)

    return CascadeResult(
        chapter_completed=chapter_completed,
        lesson_completed=lesson_completed,
        course_completed=course_completed,
        badge_awarded=badge_awarded,
    )


def run_completion_unit(db: Session, unit: Callable[[], T]) -> T:
    """Run *unit* and commit, as one all-or-nothing transaction.

    Any exception rolls back. An ``IntegrityError`` means a concurrent
    completion inserted the same progress or badge row first; the unit is
    then replayed against the committed state, up to
    ``settings.CASCADE_MAX_ATTEMPTS`` times. The last failure propagates
    unchanged.
    """
    max_attempts = settings.CASCADE_MAX_ATTEMPTS
    attempt = 1
    while True:
        try:
            result = unit()
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            if attempt >= max_attempts:
                logger.error("Completion failed after %s attempts: %s", attempt, exc.orig)
                raise
            logger.warning("Completion conflict (attempt %s/%s), retrying: %s", attempt, max_attempts, exc.orig)
            attempt += 1
        except Exception:
            db.rollback()
            raise


def complete_chapter_for_user(db: Session, user_id: int, chapter_id: int) -> CascadeResult:
    """Complete *chapter_id* for *user_id* and cascade upward, then commit."""

    def unit() -> CascadeResult:
        chapter = course_crud.get_chapter(db, chapter_id)
        if chapter is None:
            raise not_found("chapter_not_found")
        return apply_chapter_completion(db, user_id, chapter)

    return run_completion_unit(db, unit)
