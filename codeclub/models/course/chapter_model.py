from __future__ import annotations
from sqlalchemy import Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .lesson_model import Lesson
    from .chapter_element_model import ChapterElement
    from ..progress.user_progress_model import UserChapterProgress


class Chapter(Base):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    index: Mapped[int] = mapped_column(Integer, default=0)
    lesson_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lessons.id", ondelete="SET NULL"), nullable=True, index=True
    )

    lesson: Mapped[Optional["Lesson"]] = relationship(back_populates="chapters")
    elements: Mapped[List["ChapterElement"]] = relationship(
        back_populates="chapter", cascade="all, delete-orphan", order_by="ChapterElement.index"
    )
    user_progress: Mapped[List["UserChapterProgress"]] = relationship(
        back_populates="chapter", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Chapter(id={self.id}, title='{self.title}')>"
