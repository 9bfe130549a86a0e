import pytest
from openai import OpenAIError

from codeclub.core import openai_service
from codeclub.core.config import settings
from codeclub.models.course.chapter_element_model import ChapterElementType
from codeclub.schemas.quiz.quiz_schema import GeneratedQuestion
from codeclub.services import quiz_generation_service as generation
from codeclub.services.errors import ErrorKind, LearningError
from tests.utils import add_element, create_chapter

QUESTION_JSON = '[{"question": "Which keyword defines a function", "answers": ["def", "fun", "lambda", "func"], "correctAnswerIndex": 0}]'

LONG_TEXT = "A Python function is defined with the def keyword followed by its name and parameters. " * 3


@pytest.fixture()
def chapter(db_session):
    chapter = create_chapter(db_session, None, "Functions")
    add_element(db_session, chapter, ChapterElementType.HEADER, "Functions", index=0)
    add_element(db_session, chapter, ChapterElementType.TEXT, LONG_TEXT, index=1)
    add_element(db_session, chapter, ChapterElementType.IMAGE, "https://cdn.example.com/f.png", index=2)
    return chapter


def test_parse_fenced_json():
    questions = generation.parse_generated_questions(f"```json\n{QUESTION_JSON}\n```")

    assert questions == [
        GeneratedQuestion(
            question="Which keyword defines a function",
            answers=["def", "fun", "lambda", "func"],
            correct_answer_index=0,
        )
    ]


def test_parse_json_embedded_in_prose():
    questions = generation.parse_generated_questions(f"Here is your quiz:\n{QUESTION_JSON}\nGood luck!")

    assert len(questions) == 1
    assert questions[0].answers[0] == "def"


def test_parse_wrapped_object():
    questions = generation.parse_generated_questions('{"questions": ' + QUESTION_JSON + "}")

    assert questions[0].question == "Which keyword defines a function"


def test_parse_falls_back_to_regex_on_invalid_json():
    raw = """[
      {"question": "Which type is immutable", "answers": ["list", "tuple"], "correctAnswerIndex": 1},
    ]"""

    questions = generation.parse_generated_questions(raw)

    assert questions == [
        GeneratedQuestion(question="Which type is immutable", answers=["list", "tuple"], correct_answer_index=1)
    ]


@pytest.mark.parametrize("raw", ["", "   ", "I cannot help with that."])
def test_unparseable_reply_uses_fallback_question(raw):
    assert generation.parse_generated_questions(raw) == generation.fallback_questions()


def test_normalize_question_repairs_index_and_empty_answers():
    out_of_range = generation.normalize_question(
        GeneratedQuestion(question="Q", answers=["a", "b"], correct_answer_index=5)
    )
    empty = generation.normalize_question(GeneratedQuestion(question="Q", answers=[], correct_answer_index=2))

    assert out_of_range.correct_answer_index == 0
    assert empty.answers == [generation.MISSING_OPTION_PLACEHOLDER]
    assert empty.correct_answer_index == 0


def test_prompt_is_truncated():
    prompt = generation.build_quiz_prompt("x" * 10_000)

    assert len(prompt) == generation.MAX_PROMPT_LENGTH - 1
    assert prompt.endswith("...]")


def test_collect_chapter_content_ignores_non_text_elements(db_session, chapter):
    content = generation.collect_chapter_content(db_session, chapter.id)

    assert content.startswith("Functions\n")
    assert "cdn.example.com" not in content


def test_generate_for_unknown_chapter(db_session):
    with pytest.raises(LearningError) as exc:
        generation.generate_quiz_for_chapter(db_session, 404)

    assert exc.value.kind is ErrorKind.NOT_FOUND


def test_generate_requires_enough_content(db_session):
    chapter = create_chapter(db_session, None, "Tiny")
    add_element(db_session, chapter, ChapterElementType.TEXT, "Too short.")

    with pytest.raises(LearningError) as exc:
        generation.generate_quiz_for_chapter(db_session, chapter.id)

    assert exc.value.code == "insufficient_chapter_content"
    assert exc.value.status_code == 400


def test_generate_in_test_mode_skips_the_model(db_session, chapter, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_TEST_MODE", True)

    def unexpected(*args, **kwargs):
        raise AssertionError("model must not be called in test mode")

    monkeypatch.setattr(openai_service, "chat_completion", unexpected)

    quiz = generation.generate_quiz_for_chapter(db_session, chapter.id)

    assert quiz.chapter_id == chapter.id
    assert quiz.questions == generation.fallback_questions()


def test_generate_uses_model_reply(db_session, chapter, monkeypatch):
    prompts = []

    def fake_completion(system_prompt, user_prompt, **kwargs):
        prompts.append(user_prompt)
        return QUESTION_JSON

    monkeypatch.setattr(openai_service, "chat_completion", fake_completion)

    quiz = generation.generate_quiz_for_chapter(db_session, chapter.id)

    assert [q.question for q in quiz.questions] == ["Which keyword defines a function"]
    assert "def keyword" in prompts[0]


def test_generate_falls_back_when_the_model_fails(db_session, chapter, monkeypatch):
    def failing(*args, **kwargs):
        raise OpenAIError("rate limited")

    monkeypatch.setattr(openai_service, "chat_completion", failing)

    quiz = generation.generate_quiz_for_chapter(db_session, chapter.id)

    assert quiz.questions == generation.fallback_questions()


def test_hint_lists_numbered_options(monkeypatch):
    prompts = []

    def fake_completion(system_prompt, user_prompt, **kwargs):
        prompts.append(user_prompt)
        return "Consider which structure keeps insertion order.\n"

    monkeypatch.setattr(openai_service, "chat_completion", fake_completion)

    hint = generation.generate_hint("Which is ordered?", ["set", "list"])

    assert hint == "Consider which structure keeps insertion order."
    assert "1. set\n2. list" in prompts[0]


def test_hint_requires_question_and_options():
    with pytest.raises(LearningError) as exc:
        generation.generate_hint("", ["a"])

    assert exc.value.code == "question_and_options_required"


def test_hint_failure_is_reported_as_upstream_error(monkeypatch):
    def failing(*args, **kwargs):
        raise openai_service.OpenAINotConfigured("OpenAI client is not configured")

    monkeypatch.setattr(openai_service, "chat_completion", failing)

    with pytest.raises(LearningError) as exc:
        generation.generate_hint("Which is ordered?", ["set", "list"])

    assert exc.value.kind is ErrorKind.UPSTREAM_FAILED
    assert exc.value.status_code == 502


def test_chat_completion_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    openai_service.get_openai_client.cache_clear()
    try:
        with pytest.raises(openai_service.OpenAINotConfigured):
            openai_service.chat_completion("system", "user")
    finally:
        openai_service.get_openai_client.cache_clear()
