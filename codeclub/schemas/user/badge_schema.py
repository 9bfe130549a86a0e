from datetime import datetime
from typing import Optional

from codeclub.schemas.base_schema import CamelModel


class BadgeRead(CamelModel):
    id: int
    name: str
    base_name: str
    level: str
    icon: Optional[str] = None


class UserBadgeRead(CamelModel):
    badge: BadgeRead
    awarded_at: Optional[datetime] = None


class BadgeWithStatus(CamelModel):
    badge: BadgeRead
    is_unlocked: bool
    awarded_at: Optional[datetime] = None
