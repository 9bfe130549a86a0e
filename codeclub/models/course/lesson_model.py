from __future__ import annotations
from sqlalchemy import Integer, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .course_model import LearningCourse
    from .chapter_model import Chapter
    from ..progress.user_progress_model import UserLessonProgress


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    index: Mapped[int] = mapped_column(Integer, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    duration: Mapped[Optional[str]] = mapped_column(String(50))
    # Lessons may exist outside any course while being authored.
    course_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("learning_courses.id", ondelete="SET NULL"), nullable=True, index=True
    )

    course: Mapped[Optional["LearningCourse"]] = relationship(back_populates="lessons")
    chapters: Mapped[List["Chapter"]] = relationship(back_populates="lesson", order_by="Chapter.index")
    user_progress: Mapped[List["UserLessonProgress"]] = relationship(
        back_populates="lesson", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Lesson(id={self.id}, title='{self.title}')>"
