from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from codeclub.models.user.badge_model import Badge, UserBadge
from codeclub.schemas.user.badge_schema import BadgeRead, BadgeWithStatus, UserBadgeRead


def list_badges(db: Session) -> List[Badge]:
    return db.query(Badge).order_by(Badge.base_name, Badge.level, Badge.id).all()


def get_user_badges(db: Session, user_id: int) -> List[UserBadgeRead]:
    user_badges = (
        db.query(UserBadge)
        .filter(UserBadge.user_id == user_id)
        .order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
        .all()
    )
    return [
        UserBadgeRead(badge=BadgeRead.model_validate(ub.badge), awarded_at=ub.awarded_at)
        for ub in user_badges
    ]


def get_badges_with_status(db: Session, user_id: int) -> List[BadgeWithStatus]:
    badges = list_badges(db)
    awarded_map = {
        ub.badge_id: ub.awarded_at
        for ub in db.query(UserBadge).filter(UserBadge.user_id == user_id).all()
    }

    return [
        BadgeWithStatus(
            badge=BadgeRead.model_validate(badge),
            is_unlocked=badge.id in awarded_map,
            awarded_at=awarded_map.get(badge.id),
        )
        for badge in badges
    ]


def get_user_badge_ids(db: Session, user_id: int) -> set[int]:
    rows = db.query(UserBadge.badge_id).filter(UserBadge.user_id == user_id).all()
    return {badge_id for (badge_id,) in rows}


def award_badge_if_absent(db: Session, user_id: int, badge_id: int) -> bool:
    """Add *badge_id* to the user's badge set unless it is already there.

    Returns ``True`` only when a new association was inserted. The caller owns
    the transaction: nothing is committed here. A concurrent insert of the same
    pair surfaces as an ``IntegrityError`` on flush.
    """
    if badge_id in get_user_badge_ids(db, user_id):
        return False

    db.add(UserBadge(user_id=user_id, badge_id=badge_id, awarded_at=datetime.now(timezone.utc)))
    db.flush()
    return True
