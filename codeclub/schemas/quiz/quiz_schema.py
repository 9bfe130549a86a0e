from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from codeclub.schemas.base_schema import CamelModel

MAX_ANSWERS = 4


class QuizQuestionRead(CamelModel):
    id: int
    position: int
    question_text: str
    answers: List[str]


class QuizQuestionAdminRead(QuizQuestionRead):
    correct_answer_index: int


class QuizRead(CamelModel):
    id: int
    title: str
    questions: List[QuizQuestionRead]


class QuizAdminRead(CamelModel):
    id: int
    title: str
    questions: List[QuizQuestionAdminRead]


class QuizQuestionCreate(CamelModel):
    question_text: str = Field(..., min_length=1)
    answers: List[str] = Field(..., min_length=1, max_length=MAX_ANSWERS)
    correct_answer_index: int = Field(0, ge=0, lt=MAX_ANSWERS)

    @model_validator(mode="after")
    def _correct_index_points_to_an_answer(self) -> "QuizQuestionCreate":
        if self.correct_answer_index >= len(self.answers):
            raise ValueError("correct_answer_index_out_of_range")
        return self


class QuizCreate(CamelModel):
    title: str = Field(..., min_length=1)
    chapter_id: int
    questions: List[QuizQuestionCreate] = Field(..., min_length=1)


class QuizQuestionUpdate(CamelModel):
    id: int
    question_text: Optional[str] = None
    answers: Optional[List[str]] = Field(None, min_length=1, max_length=MAX_ANSWERS)
    correct_answer_index: Optional[int] = Field(None, ge=0, lt=MAX_ANSWERS)


class QuizUpdate(CamelModel):
    title: Optional[str] = None
    questions: List[QuizQuestionUpdate] = []


class QuizSubmitRequest(CamelModel):
    quiz_id: int
    answers: List[int]


class QuizSubmitResponse(CamelModel):
    score: int
    total: int
    percentage: float
    passed: bool
    message: str
    badge_awarded: bool = False


class GeneratedQuestion(CamelModel):
    question: str
    answers: List[str]
    correct_answer_index: int = 0


class GeneratedQuiz(CamelModel):
    chapter_id: int
    questions: List[GeneratedQuestion]


class HintRequest(CamelModel):
    question_text: str
    options: List[str] = []

    @field_validator("question_text")
    @classmethod
    def _strip_question(cls, value: str) -> str:
        return value.strip()


class HintResponse(CamelModel):
    hint: str
