import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user, get_current_admin
from codeclub.models.user.user_model import User
from codeclub.schemas.quiz import quiz_schema
from codeclub.services import quiz_generation_service
from codeclub.services.errors import LearningError
from codeclub.services.quiz_service import QuizService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/submit", response_model=quiz_schema.QuizSubmitResponse)
def submit_quiz(
    payload: quiz_schema.QuizSubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = QuizService(db, current_user)
    try:
        return service.submit(payload.quiz_id, payload.answers)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    except SQLAlchemyError as exc:
        logger.exception("Quiz submission failed for quiz %s", payload.quiz_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to submit quiz", "error": str(exc)},
        )


@router.post("/hint", response_model=quiz_schema.HintResponse)
def get_hint(
    payload: quiz_schema.HintRequest,
    current_user: User = Depends(get_current_user),
):
    try:
        hint = quiz_generation_service.generate_hint(payload.question_text, payload.options)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return quiz_schema.HintResponse(hint=hint)


@router.post("/", response_model=quiz_schema.QuizAdminRead, status_code=status.HTTP_201_CREATED)
def create_quiz(
    payload: quiz_schema.QuizCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        return QuizService(db, current_admin).create_quiz(payload)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get(
    "/{quiz_id}",
    response_model=Union[quiz_schema.QuizAdminRead, quiz_schema.QuizRead],
)
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return QuizService(db, current_user).get_quiz(quiz_id)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.put("/{quiz_id}", response_model=quiz_schema.QuizAdminRead)
def update_quiz(
    quiz_id: int,
    payload: quiz_schema.QuizUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        return QuizService(db, current_admin).update_quiz(quiz_id, payload)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
