from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user
from codeclub.crud import course_crud
from codeclub.models.user.user_model import User
from codeclub.schemas.course.course_schema import CourseDetail, CourseRead

router = APIRouter()


@router.get("/", response_model=list[CourseRead])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Catalogue ordered by ``index``; unpublished courses are visible to admins only."""
    return course_crud.list_courses(db, include_unpublished=current_user.is_admin)


@router.get("/{course_id}", response_model=CourseDetail)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = course_crud.get_course(db, course_id)
    if course is None or (not course.is_published and not current_user.is_admin):
        raise HTTPException(status_code=404, detail="course_not_found")
    return course
