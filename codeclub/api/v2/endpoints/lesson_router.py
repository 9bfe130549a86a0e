from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user
from codeclub.crud import course_crud
from codeclub.models.user.user_model import User
from codeclub.schemas.course.course_schema import LessonDetail, LessonRead

router = APIRouter()


@router.get("/by-course/{course_id}", response_model=list[LessonRead])
def list_lessons_by_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return course_crud.get_lessons_by_course(db, course_id)


@router.get("/{lesson_id}", response_model=LessonDetail)
def get_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = course_crud.get_lesson(db, lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="lesson_not_found")

    detail = LessonDetail.model_validate(lesson)
    detail.course_title = lesson.course.title if lesson.course else None
    return detail
