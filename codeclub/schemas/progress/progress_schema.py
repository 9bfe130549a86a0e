"""Response models of the progress endpoints."""

from datetime import datetime
from typing import Optional

from codeclub.schemas.base_schema import CamelModel
from codeclub.schemas.user.badge_schema import BadgeRead


class ChapterCompletionResponse(CamelModel):
    message: str
    badge_awarded: bool


class ChapterProgressRead(CamelModel):
    is_completed: bool


class LessonProgressRead(CamelModel):
    total_chapters: int
    completed_chapters: int
    progress_percentage: float


class CourseProgressRead(CamelModel):
    total_lessons: int
    completed_lessons: int
    progress_percentage: float
    is_completed: bool


class LastActivityRead(CamelModel):
    date: Optional[datetime] = None
    name: Optional[str] = None


class CourseOverview(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[str] = None
    index: int
    badge: Optional[BadgeRead] = None
    completed: bool = False
