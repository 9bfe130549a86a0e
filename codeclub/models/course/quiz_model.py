from __future__ import annotations
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .chapter_element_model import ChapterElement
    from ..user.user_model import User


class QuizForm(Base):
    __tablename__ = "quiz_forms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    questions: Mapped[List["QuizQuestion"]] = relationship(
        back_populates="quiz", cascade="all, delete-orphan", order_by="QuizQuestion.position"
    )
    elements: Mapped[List["ChapterElement"]] = relationship(back_populates="form")
    submissions: Mapped[List["QuizSubmission"]] = relationship(
        back_populates="quiz", cascade="all, delete-orphan"
    )

    @property
    def correct_indices(self) -> list[int]:
        return [question.correct_answer_index for question in self.questions]

    def __repr__(self):
        return f"<QuizForm(id={self.id}, title='{self.title}')>"


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quiz_forms.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    answer1: Mapped[Optional[str]] = mapped_column(String)
    answer2: Mapped[Optional[str]] = mapped_column(String)
    answer3: Mapped[Optional[str]] = mapped_column(String)
    answer4: Mapped[Optional[str]] = mapped_column(String)
    # 0-based index into answer1..answer4
    correct_answer_index: Mapped[int] = mapped_column(Integer, default=0)

    quiz: Mapped["QuizForm"] = relationship(back_populates="questions")

    @property
    def answers(self) -> list[str]:
        return [answer for answer in (self.answer1, self.answer2, self.answer3, self.answer4) if answer is not None]


class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quiz_forms.id", ondelete="CASCADE"), index=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, default=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="quiz_submissions")
    quiz: Mapped["QuizForm"] = relationship(back_populates="submissions")
