"""SQLAdmin back office: the authoring surface for the content hierarchy."""

from __future__ import annotations

from sqladmin import ModelView

from codeclub.models.course.chapter_element_model import ChapterElement
from codeclub.models.course.chapter_model import Chapter
from codeclub.models.course.course_model import LearningCourse
from codeclub.models.course.lesson_model import Lesson
from codeclub.models.course.quiz_model import QuizForm, QuizQuestion, QuizSubmission
from codeclub.models.progress.user_progress_model import (
    UserChapterProgress,
    UserCourseProgress,
    UserLessonProgress,
)
from codeclub.models.user.badge_model import Badge, UserBadge
from codeclub.models.user.user_model import User


def _shorten(value: str | None, width: int = 80) -> str | None:
    if not value:
        return value
    return value if len(value) <= width else value[: width - 1] + "…"


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"
    category = "Users"
    column_list = [
        User.id,
        User.username,
        User.email,
        User.first_name,
        User.last_name,
        User.is_active,
        User.is_admin,
        User.created_at,
    ]
    column_searchable_list = [User.username, User.email]
    column_sortable_list = [User.created_at, User.username]
    column_default_sort = [(User.created_at, True)]
    column_details_exclude_list = [User.hashed_password]
    form_excluded_columns = [
        "hashed_password",
        "user_badges",
        "chapter_progress",
        "lesson_progress",
        "course_progress",
        "quiz_submissions",
        "created_at",
        "updated_at",
    ]
    can_export = True
    page_size = 50


class LearningCourseAdmin(ModelView, model=LearningCourse):
    name = "Course"
    name_plural = "Courses"
    icon = "fa-solid fa-book"
    category = "Content"
    column_list = [
        LearningCourse.id,
        LearningCourse.index,
        LearningCourse.title,
        LearningCourse.level,
        LearningCourse.is_published,
        LearningCourse.badge,
    ]
    column_searchable_list = [LearningCourse.title, LearningCourse.base_name]
    column_sortable_list = [LearningCourse.index, LearningCourse.title]
    column_default_sort = [(LearningCourse.index, False)]
    form_excluded_columns = ["user_progress"]


class LessonAdmin(ModelView, model=Lesson):
    name = "Lesson"
    name_plural = "Lessons"
    icon = "fa-solid fa-layer-group"
    category = "Content"
    column_list = [Lesson.id, Lesson.course, Lesson.index, Lesson.title, Lesson.duration]
    column_searchable_list = [Lesson.title]
    column_sortable_list = [Lesson.index]
    form_excluded_columns = ["user_progress"]


class ChapterAdmin(ModelView, model=Chapter):
    name = "Chapter"
    name_plural = "Chapters"
    icon = "fa-solid fa-file-lines"
    category = "Content"
    column_list = [Chapter.id, Chapter.lesson, Chapter.index, Chapter.title]
    column_searchable_list = [Chapter.title]
    column_sortable_list = [Chapter.index]
    form_excluded_columns = ["user_progress", "elements"]


class ChapterElementAdmin(ModelView, model=ChapterElement):
    name = "Chapter element"
    name_plural = "Chapter elements"
    icon = "fa-solid fa-puzzle-piece"
    category = "Content"
    column_list = [
        ChapterElement.id,
        ChapterElement.chapter,
        ChapterElement.index,
        ChapterElement.type,
        ChapterElement.title,
        ChapterElement.content,
        ChapterElement.form,
    ]
    column_formatters = {ChapterElement.content: lambda m, _: _shorten(m.content)}
    column_sortable_list = [ChapterElement.index]


class QuizFormAdmin(ModelView, model=QuizForm):
    name = "Quiz"
    name_plural = "Quizzes"
    icon = "fa-solid fa-circle-question"
    category = "Quizzes"
    column_list = [QuizForm.id, QuizForm.title]
    column_searchable_list = [QuizForm.title]
    form_excluded_columns = ["elements", "submissions"]


class QuizQuestionAdmin(ModelView, model=QuizQuestion):
    name = "Question"
    name_plural = "Questions"
    icon = "fa-solid fa-list-check"
    category = "Quizzes"
    column_list = [
        QuizQuestion.id,
        QuizQuestion.quiz,
        QuizQuestion.position,
        QuizQuestion.question_text,
        QuizQuestion.correct_answer_index,
    ]
    column_formatters = {QuizQuestion.question_text: lambda m, _: _shorten(m.question_text)}


class QuizSubmissionAdmin(ModelView, model=QuizSubmission):
    name = "Submission"
    name_plural = "Submissions"
    icon = "fa-solid fa-paper-plane"
    category = "Quizzes"
    column_list = [
        QuizSubmission.id,
        QuizSubmission.user,
        QuizSubmission.quiz,
        QuizSubmission.score,
        QuizSubmission.total,
        QuizSubmission.passed,
        QuizSubmission.submitted_at,
    ]
    column_default_sort = [(QuizSubmission.submitted_at, True)]
    can_create = False
    can_edit = False
    can_export = True


class UserChapterProgressAdmin(ModelView, model=UserChapterProgress):
    name = "Chapter progress"
    name_plural = "Chapter progress"
    icon = "fa-solid fa-check"
    category = "Progress"
    column_list = [
        UserChapterProgress.user,
        UserChapterProgress.chapter,
        UserChapterProgress.completed,
        UserChapterProgress.completed_at,
    ]
    column_default_sort = [(UserChapterProgress.completed_at, True)]
    can_create = False
    can_export = True


class UserLessonProgressAdmin(ModelView, model=UserLessonProgress):
    name = "Lesson progress"
    name_plural = "Lesson progress"
    icon = "fa-solid fa-check-double"
    category = "Progress"
    column_list = [UserLessonProgress.user, UserLessonProgress.lesson, UserLessonProgress.completed]
    can_create = False


class UserCourseProgressAdmin(ModelView, model=UserCourseProgress):
    name = "Course progress"
    name_plural = "Course progress"
    icon = "fa-solid fa-flag-checkered"
    category = "Progress"
    column_list = [UserCourseProgress.user, UserCourseProgress.course, UserCourseProgress.completed]
    can_create = False


class BadgeAdmin(ModelView, model=Badge):
    name = "Badge"
    name_plural = "Badges"
    icon = "fa-solid fa-award"
    category = "Gamification"
    column_list = [Badge.id, Badge.name, Badge.base_name, Badge.level, Badge.icon]
    column_searchable_list = [Badge.name, Badge.base_name]
    form_excluded_columns = ["user_badges", "courses"]
    can_export = True


class UserBadgeAdmin(ModelView, model=UserBadge):
    name = "User badge"
    name_plural = "User badges"
    icon = "fa-solid fa-medal"
    category = "Gamification"
    column_list = [UserBadge.user, UserBadge.badge, UserBadge.awarded_at]
    column_default_sort = [(UserBadge.awarded_at, True)]
    can_export = True


ADMIN_VIEWS = (
    UserAdmin,
    LearningCourseAdmin,
    LessonAdmin,
    ChapterAdmin,
    ChapterElementAdmin,
    QuizFormAdmin,
    QuizQuestionAdmin,
    QuizSubmissionAdmin,
    UserChapterProgressAdmin,
    UserLessonProgressAdmin,
    UserCourseProgressAdmin,
    BadgeAdmin,
    UserBadgeAdmin,
)
