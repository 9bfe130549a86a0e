from __future__ import annotations
from sqlalchemy import Integer, String, DateTime, func, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from codeclub.db.base_class import Base
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .user_model import User
    from ..course.course_model import LearningCourse


class Badge(Base):
    __tablename__ = "badges"
    __table_args__ = (UniqueConstraint("base_name", "level", name="uq_badges_base_name_level"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    base_name: Mapped[str] = mapped_column(String(255), index=True)
    level: Mapped[str] = mapped_column(String(50))
    icon: Mapped[Optional[str]] = mapped_column(String)

    user_badges: Mapped[List["UserBadge"]] = relationship(back_populates="badge", cascade="all, delete-orphan")
    courses: Mapped[List["LearningCourse"]] = relationship(back_populates="badge")

    def __repr__(self):
        return f"<Badge(id={self.id}, name='{self.name}', level='{self.level}')>"


class UserBadge(Base):
    __tablename__ = "user_badges"
    # A user holds a given badge at most once.
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    badge_id: Mapped[int] = mapped_column(ForeignKey("badges.id", ondelete="CASCADE"), index=True)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="user_badges")
    badge: Mapped["Badge"] = relationship(back_populates="user_badges")
