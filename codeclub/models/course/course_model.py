from __future__ import annotations
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..user.badge_model import Badge
    from .lesson_model import Lesson
    from ..progress.user_progress_model import UserCourseProgress


class LearningCourse(Base):
    __tablename__ = "learning_courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    base_name: Mapped[Optional[str]] = mapped_column(String(255))
    level: Mapped[Optional[str]] = mapped_column(String(50))
    duration: Mapped[Optional[str]] = mapped_column(String(50))
    # Position in the public catalogue.
    index: Mapped[int] = mapped_column(Integer, default=0)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    badge_id: Mapped[Optional[int]] = mapped_column(ForeignKey("badges.id", ondelete="SET NULL"), nullable=True)

    badge: Mapped[Optional["Badge"]] = relationship(back_populates="courses")
    lessons: Mapped[List["Lesson"]] = relationship(back_populates="course", order_by="Lesson.index")
    user_progress: Mapped[List["UserCourseProgress"]] = relationship(
        back_populates="course", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<LearningCourse(id={self.id}, title='{self.title}')>"
