from fastapi import APIRouter
from .endpoints import (
    user_router,
    course_router,
    lesson_router,
    chapter_router,
    quiz_router,
    progress_router,
    badge_router,
)

api_router = APIRouter()

api_router.include_router(user_router.router, prefix="/users", tags=["Users"])
api_router.include_router(course_router.router, prefix="/courses", tags=["Courses"])
api_router.include_router(lesson_router.router, prefix="/lessons", tags=["Lessons"])
api_router.include_router(chapter_router.router, prefix="/chapters", tags=["Chapters"])
api_router.include_router(quiz_router.router, prefix="/quizzes", tags=["Quizzes"])
api_router.include_router(progress_router.router, prefix="/progress", tags=["Progress"])
api_router.include_router(badge_router.router, prefix="/badges", tags=["Badges"])
