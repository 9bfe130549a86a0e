import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from codeclub.models.course.chapter_element_model import ChapterElement, ChapterElementType
from codeclub.models.course.chapter_model import Chapter
from codeclub.models.course.course_model import LearningCourse
from codeclub.models.course.lesson_model import Lesson
from codeclub.models.course.quiz_model import QuizForm, QuizQuestion
from codeclub.schemas.quiz.quiz_schema import QuizCreate, QuizUpdate

logger = logging.getLogger(__name__)

# --- Courses ---

def list_courses(db: Session, *, include_unpublished: bool = False) -> List[LearningCourse]:
    query = db.query(LearningCourse).options(selectinload(LearningCourse.badge))
    if not include_unpublished:
        query = query.filter(LearningCourse.is_published.is_(True))
    return query.order_by(LearningCourse.index, LearningCourse.id).all()


def get_course(db: Session, course_id: int) -> Optional[LearningCourse]:
    return (
        db.query(LearningCourse)
        .options(selectinload(LearningCourse.badge), selectinload(LearningCourse.lessons))
        .filter(LearningCourse.id == course_id)
        .first()
    )

# --- Lessons ---

def get_lessons_by_course(db: Session, course_id: int) -> List[Lesson]:
    return db.query(Lesson).filter(Lesson.course_id == course_id).order_by(Lesson.index, Lesson.id).all()


def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
    return db.get(Lesson, lesson_id)

# --- Chapters ---

def get_chapters_by_lesson(db: Session, lesson_id: int) -> List[Chapter]:
    return db.query(Chapter).filter(Chapter.lesson_id == lesson_id).order_by(Chapter.index, Chapter.id).all()


def get_chapter(db: Session, chapter_id: int) -> Optional[Chapter]:
    return db.get(Chapter, chapter_id)


def get_chapter_elements(db: Session, chapter_id: int) -> List[ChapterElement]:
    return (
        db.query(ChapterElement)
        .filter(ChapterElement.chapter_id == chapter_id)
        .order_by(ChapterElement.index, ChapterElement.id)
        .all()
    )


def get_chapter_by_form(db: Session, quiz_id: int) -> Optional[Chapter]:
    """Return the chapter holding the ``Form`` element that embeds *quiz_id*."""
    element = (
        db.query(ChapterElement)
        .filter(ChapterElement.form_id == quiz_id)
        .order_by(ChapterElement.id)
        .first()
    )
    return element.chapter if element else None

# --- Quizzes ---

def get_quiz(db: Session, quiz_id: int) -> Optional[QuizForm]:
    return (
        db.query(QuizForm)
        .options(selectinload(QuizForm.questions))
        .filter(QuizForm.id == quiz_id)
        .first()
    )


def _answer_columns(answers: List[str]) -> dict:
    padded = list(answers) + [None] * (4 - len(answers))
    return {f"answer{i + 1}": value for i, value in enumerate(padded[:4])}


def create_quiz(db: Session, chapter: Chapter, quiz_in: QuizCreate) -> QuizForm:
    """Create the quiz and append a ``Form`` element to *chapter* in one commit."""
    quiz = QuizForm(title=quiz_in.title)
    for position, question in enumerate(quiz_in.questions):
        quiz.questions.append(
            QuizQuestion(
                position=position,
                question_text=question.question_text,
                correct_answer_index=question.correct_answer_index,
                **_answer_columns(question.answers),
            )
        )
    db.add(quiz)
    db.flush()

    max_index = (
        db.query(func.max(ChapterElement.index))
        .filter(ChapterElement.chapter_id == chapter.id)
        .scalar()
    )
    db.add(
        ChapterElement(
            chapter_id=chapter.id,
            index=(max_index + 1) if max_index is not None else 0,
            title=quiz_in.title,
            type=ChapterElementType.FORM,
            form_id=quiz.id,
        )
    )
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz %s created in chapter %s", quiz.id, chapter.id)
    return quiz


def update_quiz(db: Session, quiz: QuizForm, quiz_in: QuizUpdate) -> QuizForm:
    """Apply title and per-question changes; unknown question ids are ignored."""
    if quiz_in.title is not None:
        quiz.title = quiz_in.title

    by_id = {question.id: question for question in quiz.questions}
    for change in quiz_in.questions:
        question = by_id.get(change.id)
        if question is None:
            continue
        if change.question_text is not None:
            question.question_text = change.question_text
        if change.answers is not None:
            for column, value in _answer_columns(change.answers).items():
                setattr(question, column, value)
        if change.correct_answer_index is not None:
            question.correct_answer_index = change.correct_answer_index

    db.commit()
    db.refresh(quiz)
    return quiz
