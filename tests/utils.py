"""Utility helpers for test factories."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from codeclub.models.course.chapter_element_model import ChapterElement, ChapterElementType
from codeclub.models.course.chapter_model import Chapter
from codeclub.models.course.course_model import LearningCourse
from codeclub.models.course.lesson_model import Lesson
from codeclub.models.course.quiz_model import QuizForm, QuizQuestion
from codeclub.models.user.badge_model import Badge
from codeclub.models.user.user_model import User


def create_user(db, **kwargs) -> User:
    defaults = {
        "username": "user",
        "email": "user@example.com",
        "hashed_password": "x",
        "is_active": True,
        "is_admin": False,
        "created_at": datetime.now(timezone.utc),
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_badge(db, name: str = "Starter", base_name: str = "starter", level: str = "1") -> Badge:
    badge = Badge(name=name, base_name=base_name, level=level, icon="star")
    db.add(badge)
    db.commit()
    db.refresh(badge)
    return badge


def create_course(db, title: str = "Course", *, badge: Badge | None = None, is_published: bool = True, index: int = 0) -> LearningCourse:
    course = LearningCourse(
        title=title,
        description=f"{title} description",
        base_name=title.lower(),
        level="beginner",
        duration="1h",
        index=index,
        is_published=is_published,
        badge_id=badge.id if badge else None,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def create_lesson(db, course: LearningCourse | None, title: str = "Lesson", index: int = 0) -> Lesson:
    lesson = Lesson(title=title, index=index, course_id=course.id if course else None)
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def create_chapter(db, lesson: Lesson | None, title: str = "Chapter", index: int = 0) -> Chapter:
    chapter = Chapter(title=title, index=index, lesson_id=lesson.id if lesson else None)
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    return chapter


def add_element(db, chapter: Chapter, element_type: ChapterElementType, content: str | None = None, index: int = 0, **kwargs) -> ChapterElement:
    element = ChapterElement(chapter_id=chapter.id, type=element_type, content=content, index=index, **kwargs)
    db.add(element)
    db.commit()
    db.refresh(element)
    return element


def create_quiz(db, chapter: Chapter | None, correct_indices: list[int], title: str = "Quiz") -> QuizForm:
    """Create a quiz and, when *chapter* is given, attach it through a Form element."""
    quiz = QuizForm(title=title)
    for position, correct in enumerate(correct_indices):
        quiz.questions.append(
            QuizQuestion(
                position=position,
                question_text=f"Question {position + 1}",
                answer1="a",
                answer2="b",
                answer3="c",
                answer4="d",
                correct_answer_index=correct,
            )
        )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)

    if chapter is not None:
        add_element(db, chapter, ChapterElementType.FORM, index=99, form_id=quiz.id, title=title)
    return quiz


@dataclass
class CourseTree:
    course: LearningCourse
    badge: Badge | None
    lessons: dict[str, Lesson] = field(default_factory=dict)
    chapters: dict[str, Chapter] = field(default_factory=dict)


def create_course_tree(db, structure: dict[str, list[str]], *, title: str = "Course", badge_name: str | None = "Starter") -> CourseTree:
    """Build a course from ``{"L1": ["A", "B"], "L2": ["C"]}``."""
    badge = create_badge(db, name=badge_name, base_name=badge_name.lower()) if badge_name else None
    course = create_course(db, title, badge=badge)
    tree = CourseTree(course=course, badge=badge)
    for lesson_index, (lesson_title, chapter_titles) in enumerate(structure.items()):
        lesson = create_lesson(db, course, lesson_title, lesson_index)
        tree.lessons[lesson_title] = lesson
        for chapter_index, chapter_title in enumerate(chapter_titles):
            tree.chapters[chapter_title] = create_chapter(db, lesson, chapter_title, chapter_index)
    return tree


def create_intro_course(db) -> CourseTree:
    """Course "Intro": L1 {A, B}, L2 {C}, badge "Starter"."""
    return create_course_tree(db, {"L1": ["A", "B"], "L2": ["C"]}, title="Intro", badge_name="Starter")
