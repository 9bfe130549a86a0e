"""Imports every SQLAlchemy model so ``Base.metadata`` knows all tables."""

from codeclub.db.base_class import Base

# Users & badges
from codeclub.models.user.user_model import User
from codeclub.models.user.badge_model import Badge, UserBadge

# Content hierarchy
from codeclub.models.course.course_model import LearningCourse
from codeclub.models.course.lesson_model import Lesson
from codeclub.models.course.chapter_model import Chapter
from codeclub.models.course.chapter_element_model import ChapterElement, ChapterElementType
from codeclub.models.course.quiz_model import QuizForm, QuizQuestion, QuizSubmission

# Progress
from codeclub.models.progress.user_progress_model import (
    UserChapterProgress,
    UserLessonProgress,
    UserCourseProgress,
)

__all__ = (
    "Base",
    "User",
    "Badge",
    "UserBadge",
    "LearningCourse",
    "Lesson",
    "Chapter",
    "ChapterElement",
    "ChapterElementType",
    "QuizForm",
    "QuizQuestion",
    "QuizSubmission",
    "UserChapterProgress",
    "UserLessonProgress",
    "UserCourseProgress",
)
