import logging

from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from codeclub.schemas.user import user_schema
from codeclub.crud import user_crud
from codeclub.core import security
from codeclub.core.config import settings
from codeclub.api.v2.dependencies import get_db, get_current_user
from codeclub.models.user.user_model import User
from codeclub.services.errors import LearningError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def register(user_in: user_schema.UserCreate, db: Session = Depends(get_db)):
    try:
        user = user_crud.register_user(db, user_in)
    except LearningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    logger.info("New user registered: %s", user.id)
    return user


@router.post("/login", response_model=user_schema.Token)
def login_for_access_token(
    response: Response,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    user = user_crud.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    access_token = security.create_access_token(subject=str(user.id))

    # Raw JWT, no "Bearer " prefix.
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        samesite="none",
        secure=settings.ENVIRONMENT == "production",
        path="/",
    )
    return user_schema.Token(access_token=access_token)


@router.post("/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"message": "Logout successful"})
    response.delete_cookie(
        key="access_token",
        path="/",
        samesite="none",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@router.get("/me", response_model=user_schema.User)
def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
