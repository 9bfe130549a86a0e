from __future__ import annotations
from sqlalchemy import Integer, String, Text, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from typing import TYPE_CHECKING, Optional
import enum

if TYPE_CHECKING:
    from .chapter_model import Chapter
    from .quiz_model import QuizForm


class ChapterElementType(str, enum.Enum):
    HEADER = "Header"
    TEXT = "Text"
    CODE_FRAGMENT = "CodeFragment"
    IMAGE = "Image"
    FORM = "Form"


class ChapterElement(Base):
    __tablename__ = "chapter_elements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    index: Mapped[int] = mapped_column(Integer, default=0)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    type: Mapped[ChapterElementType] = mapped_column(
        Enum(
            ChapterElementType,
            name="chapterelementtype",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
    )
    content: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(String)
    # Set only on ``Form`` elements; this is how a quiz is attached to a chapter.
    form_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("quiz_forms.id", ondelete="SET NULL"), nullable=True, index=True
    )
    chapter_id: Mapped[int] = mapped_column(ForeignKey("chapters.id", ondelete="CASCADE"), index=True)

    chapter: Mapped["Chapter"] = relationship(back_populates="elements")
    form: Mapped[Optional["QuizForm"]] = relationship(back_populates="elements")

    def __repr__(self):
        return f"<ChapterElement(id={self.id}, type='{self.type}', chapter_id={self.chapter_id})>"
