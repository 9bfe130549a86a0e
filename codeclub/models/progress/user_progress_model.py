"""Per-user completion records for chapters, lessons and courses.

Rows are only ever created or flipped to ``completed=True`` by the progress
cascade; the unique constraints keep at most one row per (user, item).
"""

from sqlalchemy import Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from ..user.user_model import User
    from ..course.chapter_model import Chapter
    from ..course.lesson_model import Lesson
    from ..course.course_model import LearningCourse


class UserChapterProgress(Base):
    __tablename__ = "user_chapters"
    __table_args__ = (UniqueConstraint("user_id", "chapter_id", name="uq_user_chapters_user_chapter"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    chapter_id: Mapped[int] = mapped_column(ForeignKey("chapters.id", ondelete="CASCADE"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship(back_populates="chapter_progress")
    chapter: Mapped["Chapter"] = relationship(back_populates="user_progress")

    def __repr__(self):
        return f"<UserChapterProgress(user_id={self.user_id}, chapter_id={self.chapter_id}, completed={self.completed})>"


class UserLessonProgress(Base):
    __tablename__ = "user_lessons"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_lessons_user_lesson"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    user: Mapped["User"] = relationship(back_populates="lesson_progress")
    lesson: Mapped["Lesson"] = relationship(back_populates="user_progress")

    def __repr__(self):
        return f"<UserLessonProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, completed={self.completed})>"


class UserCourseProgress(Base):
    __tablename__ = "user_learning_courses"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_user_learning_courses_user_course"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("learning_courses.id", ondelete="CASCADE"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    user: Mapped["User"] = relationship(back_populates="course_progress")
    course: Mapped["LearningCourse"] = relationship(back_populates="user_progress")

    def __repr__(self):
        return f"<UserCourseProgress(user_id={self.user_id}, course_id={self.course_id}, completed={self.completed})>"
