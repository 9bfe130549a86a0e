from __future__ import annotations

import logging
from typing import List, Union

from sqlalchemy.orm import Session

from codeclub.crud import course_crud
from codeclub.models.course.quiz_model import QuizForm, QuizSubmission
from codeclub.models.user.user_model import User
from codeclub.schemas.quiz.quiz_schema import (
    QuizAdminRead,
    QuizCreate,
    QuizRead,
    QuizSubmitResponse,
    QuizUpdate,
)
from codeclub.services import progress_service
from codeclub.services.errors import not_found, validation_failed

logger = logging.getLogger(__name__)

PASSED_MESSAGE = "Quiz completed successfully!"
FAILED_MESSAGE = "Quiz completed, but score was too low to progress. Try again!"


class QuizService:
    """Quiz reads, authoring and graded submissions for one user."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_quiz(self, quiz_id: int) -> Union[QuizRead, QuizAdminRead]:
        """Admins see the correct answers, students do not."""
        quiz = self._get_quiz_or_raise(quiz_id)
        if self.user.is_admin:
            return QuizAdminRead.model_validate(quiz)
        return QuizRead.model_validate(quiz)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def submit(self, quiz_id: int, answers: List[int]) -> QuizSubmitResponse:
        """Grade the answers and, on a pass, complete the quiz's chapter.

        Validation happens before anything is written. The submission row and
        the completion cascade share one transaction.
        """
        quiz = self._get_quiz_or_raise(quiz_id)
        score = progress_service.score_quiz(quiz.correct_indices, answers)
        user_id = self.user.id

        def unit() -> bool:
            badge_awarded = False
            if score.passed:
                chapter = course_crud.get_chapter_by_form(self.db, quiz_id)
                if chapter is None:
                    logger.info("Quiz %s is not attached to a chapter; no progress recorded", quiz_id)
                else:
                    result = progress_service.apply_chapter_completion(self.db, user_id, chapter)
                    badge_awarded = result.badge_awarded

            self.db.add(
                QuizSubmission(
                    user_id=user_id,
                    quiz_id=quiz_id,
                    score=score.score,
                    total=score.total,
                    passed=score.passed,
                )
            )
            return badge_awarded

        badge_awarded = progress_service.run_completion_unit(self.db, unit)
        logger.info(
            "User %s scored %s/%s on quiz %s (passed=%s)", user_id, score.score, score.total, quiz_id, score.passed
        )

        return QuizSubmitResponse(
            score=score.score,
            total=score.total,
            percentage=score.percentage,
            passed=score.passed,
            message=PASSED_MESSAGE if score.passed else FAILED_MESSAGE,
            badge_awarded=badge_awarded,
        )

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------
    def create_quiz(self, quiz_in: QuizCreate) -> QuizAdminRead:
        chapter = course_crud.get_chapter(self.db, quiz_in.chapter_id)
        if chapter is None:
            raise not_found("chapter_not_found")
        quiz = course_crud.create_quiz(self.db, chapter, quiz_in)
        return QuizAdminRead.model_validate(quiz)

    def update_quiz(self, quiz_id: int, quiz_in: QuizUpdate) -> QuizAdminRead:
        quiz = self._get_quiz_or_raise(quiz_id)

        by_id = {question.id: question for question in quiz.questions}
        for change in quiz_in.questions:
            question = by_id.get(change.id)
            if question is None:
                continue
            answers = change.answers if change.answers is not None else question.answers
            index = change.correct_answer_index if change.correct_answer_index is not None else question.correct_answer_index
            if index >= len(answers):
                raise validation_failed("correct_answer_index_out_of_range")

        quiz = course_crud.update_quiz(self.db, quiz, quiz_in)
        return QuizAdminRead.model_validate(quiz)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _get_quiz_or_raise(self, quiz_id: int) -> QuizForm:
        quiz = course_crud.get_quiz(self.db, quiz_id)
        if quiz is None:
            raise not_found("quiz_not_found")
        return quiz
