from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .badge_model import UserBadge
    from ..progress.user_progress_model import UserChapterProgress, UserLessonProgress, UserCourseProgress
    from ..course.quiz_model import QuizSubmission


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    user_badges: Mapped[List["UserBadge"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    chapter_progress: Mapped[List["UserChapterProgress"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    lesson_progress: Mapped[List["UserLessonProgress"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    course_progress: Mapped[List["UserCourseProgress"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    quiz_submissions: Mapped[List["QuizSubmission"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def badges(self):
        return [user_badge.badge for user_badge in self.user_badges]

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
