"""AI assistance for quiz authors and students.

Generation never persists anything: the admin reviews the proposed questions
and saves them through the regular quiz authoring endpoint.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List

from openai import OpenAIError
from sqlalchemy.orm import Session

from codeclub.core import openai_service
from codeclub.core.config import settings
from codeclub.crud import course_crud
from codeclub.models.course.chapter_element_model import ChapterElementType
from codeclub.schemas.quiz.quiz_schema import GeneratedQuestion, GeneratedQuiz
from codeclub.services.errors import not_found, upstream_failed, validation_failed
from codeclub.utils.json_utils import extract_json_array

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100
MAX_PROMPT_LENGTH = 4000
MISSING_OPTION_PLACEHOLDER = "Missing option"

QUIZ_SYSTEM_PROMPT = (
    "You are an assistant specialised in creating educational quizzes. "
    "Respond only with JSON structured according to the instructions."
)

QUIZ_PROMPT_PREFIX = """
Create a quiz with multiple choice questions based on the following content.
Generate between 1 and 3 questions with multiple choice answers.
Each question should have 4 answer options, with only one correct answer.

Please respond ONLY with valid JSON content, using the following structure:
[
  {
    "question": "Question text",
    "answers": ["Answer 1", "Answer 2", "Answer 3", "Answer 4"],
    "correctAnswerIndex": 0
  }
]

Content to evaluate:
-------------------------
"""

QUIZ_PROMPT_SUFFIX = """
-------------------------
Make sure to respond ONLY with valid JSON, without any explanations. Your response should start with [ and end with ]."""

HINT_SYSTEM_PROMPT = "You are an educational assistant who helps students reason about quiz questions."

HINT_PROMPT_TEMPLATE = """
As an educational assistant, provide a helpful hint for the following multiple-choice question without revealing the answer directly.
The hint should guide the student toward understanding which option is correct.

QUESTION: {question}

OPTIONS:
{options}

Give a concise, educational hint (max 2 sentences) that helps the student think about the correct answer without giving it away.
Respond ONLY with the hint text, no explanations or additional formatting.
Always respond in English, regardless of the language of the question."""

_QUESTION_PATTERN = re.compile(
    r'\{"question":"(.*?)","answers":\[(.*?)\],"correctAnswerIndex":(\d+)\}'
)

_CONTENT_TYPES = {ChapterElementType.TEXT, ChapterElementType.HEADER, ChapterElementType.CODE_FRAGMENT}


def fallback_questions() -> List[GeneratedQuestion]:
    return [
        GeneratedQuestion(
            question="What does the principle of encapsulation mean in OOP?",
            answers=[
                "Hiding internal details and exposing a public interface",
                "Inheriting behaviour from another class",
                "Polymorphism of objects",
                "Creating abstract classes",
            ],
            correct_answer_index=0,
        )
    ]


def build_quiz_prompt(chapter_content: str) -> str:
    prompt = QUIZ_PROMPT_PREFIX + chapter_content + QUIZ_PROMPT_SUFFIX
    if len(prompt) > MAX_PROMPT_LENGTH:
        logger.warning("Quiz prompt truncated to %s characters", MAX_PROMPT_LENGTH)
        prompt = prompt[: MAX_PROMPT_LENGTH - 5] + "...]"
    return prompt


def normalize_question(question: GeneratedQuestion) -> GeneratedQuestion:
    answers = [answer for answer in question.answers if answer is not None]
    if not answers:
        return GeneratedQuestion(
            question=question.question, answers=[MISSING_OPTION_PLACEHOLDER], correct_answer_index=0
        )

    index = question.correct_answer_index
    if index < 0 or index >= len(answers):
        index = 0
    return GeneratedQuestion(question=question.question, answers=answers, correct_answer_index=index)


def _questions_from_items(items: Iterable[Any]) -> List[GeneratedQuestion]:
    questions: List[GeneratedQuestion] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = str(item.get("question") or "").strip()
        raw_answers = item.get("answers") or item.get("options") or []
        if not text or not isinstance(raw_answers, list) or not raw_answers:
            logger.warning("Skipping malformed generated question: %r", item)
            continue
        try:
            correct_index = int(item.get("correctAnswerIndex", 0))
        except (TypeError, ValueError):
            correct_index = 0
        questions.append(
            GeneratedQuestion(
                question=text,
                answers=[str(answer) for answer in raw_answers],
                correct_answer_index=correct_index,
            )
        )
    return questions


def _questions_from_regex(raw: str) -> List[GeneratedQuestion]:
    questions: List[GeneratedQuestion] = []
    for match in _QUESTION_PATTERN.finditer(raw):
        answers = [answer.strip().strip('"') for answer in match.group(2).split(",")]
        questions.append(
            GeneratedQuestion(question=match.group(1), answers=answers, correct_answer_index=int(match.group(3)))
        )
    return questions


def parse_generated_questions(raw: str) -> List[GeneratedQuestion]:
    """Turn a model reply into questions: JSON first, then regex, then the fallback."""
    if not raw or not raw.strip():
        logger.warning("Empty quiz generation response, using fallback question")
        return fallback_questions()

    items = extract_json_array(raw)
    if items:
        questions = _questions_from_items(items)
        if questions:
            return questions

    # Collapse whitespace so the single-line pattern can match pretty-printed JSON.
    compact = re.sub(r"\s*([{}\[\],:])\s*", r"\1", raw)
    questions = _questions_from_regex(compact)
    if questions:
        logger.info("Extracted %s generated questions with the regex fallback", len(questions))
        return questions

    logger.warning("Could not parse quiz generation response, using fallback question")
    return fallback_questions()


def collect_chapter_content(db: Session, chapter_id: int) -> str:
    elements = course_crud.get_chapter_elements(db, chapter_id)
    parts = [
        element.content
        for element in elements
        if element.type in _CONTENT_TYPES and element.content and element.content.strip()
    ]
    return "\n".join(parts).strip()


def generate_quiz_for_chapter(db: Session, chapter_id: int) -> GeneratedQuiz:
    if course_crud.get_chapter(db, chapter_id) is None:
        raise not_found("chapter_not_found")

    content = collect_chapter_content(db, chapter_id)
    if len(content) < MIN_CONTENT_LENGTH:
        raise validation_failed("insufficient_chapter_content")

    logger.info("Generating quiz for chapter %s (%s characters of content)", chapter_id, len(content))
    if settings.OPENAI_TEST_MODE:
        logger.warning("OPENAI_TEST_MODE enabled, returning the fallback question")
        questions = fallback_questions()
    else:
        try:
            raw = openai_service.chat_completion(QUIZ_SYSTEM_PROMPT, build_quiz_prompt(content))
        except OpenAIError as exc:
            logger.error("Quiz generation failed for chapter %s: %s", chapter_id, exc)
            raw = ""
        questions = parse_generated_questions(raw)

    return GeneratedQuiz(chapter_id=chapter_id, questions=[normalize_question(q) for q in questions])


def generate_hint(question_text: str, options: List[str]) -> str:
    if not question_text or not options:
        raise validation_failed("question_and_options_required")

    options_text = "\n".join(f"{index + 1}. {option}" for index, option in enumerate(options))
    prompt = HINT_PROMPT_TEMPLATE.format(question=question_text, options=options_text)
    try:
        hint = openai_service.chat_completion(HINT_SYSTEM_PROMPT, prompt, max_tokens=200)
    except OpenAIError as exc:
        logger.error("Hint generation failed: %s", exc)
        raise upstream_failed("hint_generation_failed") from exc

    return hint.strip()
