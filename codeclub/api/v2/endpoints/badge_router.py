from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from codeclub.api.v2.dependencies import get_db, get_current_user
from codeclub.crud import badge_crud
from codeclub.schemas.user.badge_schema import BadgeRead, BadgeWithStatus, UserBadgeRead
from codeclub.models.user.user_model import User

router = APIRouter()


@router.get("/", response_model=list[BadgeRead], summary="All badges")
def list_badges(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return badge_crud.list_badges(db)


@router.get("/user", response_model=list[UserBadgeRead], summary="Badges earned by the current user")
def list_user_badges(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return badge_crud.get_user_badges(db, current_user.id)


@router.get("/status", response_model=list[BadgeWithStatus], summary="Every badge with its unlock state")
def list_badge_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return badge_crud.get_badges_with_status(db, current_user.id)
