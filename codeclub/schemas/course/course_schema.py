"""Read models for the course -> lesson -> chapter -> element hierarchy."""

from typing import List, Optional

from codeclub.models.course.chapter_element_model import ChapterElementType
from codeclub.schemas.base_schema import CamelModel
from codeclub.schemas.user.badge_schema import BadgeRead


class LessonRead(CamelModel):
    id: int
    index: int
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    course_id: Optional[int] = None


class LessonDetail(LessonRead):
    course_title: Optional[str] = None


class CourseRead(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    base_name: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[str] = None
    index: int
    is_published: bool
    badge_id: Optional[int] = None
    badge: Optional[BadgeRead] = None


class CourseDetail(CourseRead):
    lessons: List[LessonRead] = []


class ChapterRead(CamelModel):
    id: int
    title: str
    index: int
    lesson_id: Optional[int] = None


class ChapterElementRead(CamelModel):
    id: int
    index: int
    title: Optional[str] = None
    type: ChapterElementType
    content: Optional[str] = None
    image: Optional[str] = None
    form_id: Optional[int] = None
    chapter_id: int


class ChapterHierarchy(CamelModel):
    lesson_id: Optional[int] = None
    lesson_title: Optional[str] = None
    course_id: Optional[int] = None
    course_title: Optional[str] = None


class ChapterByForm(CamelModel):
    chapter_id: int
