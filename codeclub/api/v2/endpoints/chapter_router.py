from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user, get_current_admin
from codeclub.crud import course_crud
from codeclub.models.user.user_model import User
from codeclub.schemas.course.course_schema import (
    ChapterByForm,
    ChapterElementRead,
    ChapterHierarchy,
    ChapterRead,
)
from codeclub.schemas.quiz.quiz_schema import GeneratedQuiz
from codeclub.services import quiz_generation_service
from codeclub.services.errors import LearningError

router = APIRouter()


def _get_chapter_or_404(db: Session, chapter_id: int):
    chapter = course_crud.get_chapter(db, chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="chapter_not_found")
    return chapter


@router.get("/lesson/{lesson_id}", response_model=list[ChapterRead])
def list_chapters_by_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return course_crud.get_chapters_by_lesson(db, lesson_id)


@router.get("/by-form/{quiz_id}", response_model=ChapterByForm)
def get_chapter_by_form(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chapter = course_crud.get_chapter_by_form(db, quiz_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="chapter_not_found")
    return ChapterByForm(chapter_id=chapter.id)


@router.get("/{chapter_id}", response_model=ChapterRead)
def get_chapter(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_chapter_or_404(db, chapter_id)


@router.get("/{chapter_id}/elements", response_model=list[ChapterElementRead])
def list_chapter_elements(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_chapter_or_404(db, chapter_id)
    return course_crud.get_chapter_elements(db, chapter_id)


@router.get("/{chapter_id}/hierarchy", response_model=ChapterHierarchy)
def get_chapter_hierarchy(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chapter = _get_chapter_or_404(db, chapter_id)
    lesson = chapter.lesson
    course = lesson.course if lesson else None
    return ChapterHierarchy(
        lesson_id=lesson.id if lesson else None,
        lesson_title=lesson.title if lesson else None,
        course_id=course.id if course else None,
        course_title=course.title if course else None,
    )


@router.post("/{chapter_id}/generate-quiz", response_model=GeneratedQuiz)
def generate_quiz(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Propose quiz questions from the chapter's text; nothing is saved."""
    try:
        return quiz_generation_service.generate_quiz_for_chapter(db, chapter_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
