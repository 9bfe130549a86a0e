import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user
from codeclub.models.user.user_model import User
from codeclub.schemas.progress import progress_schema
from codeclub.services import progress_report_service, progress_service
from codeclub.services.errors import LearningError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[progress_schema.CourseOverview])
def list_course_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Published courses with their badge and the user's completion flag."""
    return progress_report_service.get_courses_overview(db, current_user.id)


@router.post("/chapter/{chapter_id}/complete", response_model=progress_schema.ChapterCompletionResponse)
def complete_chapter(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        result = progress_service.complete_chapter_for_user(db, current_user.id, chapter_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    except SQLAlchemyError as exc:
        logger.exception("Chapter completion failed for chapter %s", chapter_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to update progress", "error": str(exc)},
        )

    return progress_schema.ChapterCompletionResponse(
        message="Progress updated successfully",
        badge_awarded=result.badge_awarded,
    )


@router.get("/chapter/{chapter_id}", response_model=progress_schema.ChapterProgressRead)
def get_chapter_progress(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return progress_report_service.get_chapter_progress(db, current_user.id, chapter_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/lesson/{lesson_id}", response_model=progress_schema.LessonProgressRead)
def get_lesson_progress(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return progress_report_service.get_lesson_progress(db, current_user.id, lesson_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/course/{course_id}", response_model=progress_schema.CourseProgressRead)
def get_course_progress(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return progress_report_service.get_course_progress(db, current_user.id, course_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get(
    "/last-activity",
    response_model=progress_schema.LastActivityRead,
    response_model_exclude_none=True,
)
def get_last_activity(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Empty object when the user has not completed any chapter yet."""
    return progress_report_service.get_last_activity(db, current_user.id)
