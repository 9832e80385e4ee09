"""
Points ledger.

Membership level is a pure function of accumulated points, except for
PREMIUM, which is granted administratively and never derived. The stored
``membership_level`` column is a cache; every code path that changes
``membership_points`` recomputes it inside the same transaction.
"""

import logging
import math
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from moviebooking.core.config import settings
from moviebooking.core.exceptions import NotFoundError, ValidationError
from moviebooking.db.session import commit_or_raise
from moviebooking.models.user import User, MembershipLevel

logger = logging.getLogger(__name__)

# Inclusive lower bounds, highest first
TIER_THRESHOLDS = (
    (1200, MembershipLevel.DIAMOND),
    (600, MembershipLevel.GOLD),
    (200, MembershipLevel.SILVER),
    (0, MembershipLevel.BASIC),
)

NEXT_TIER_POINTS = {
    MembershipLevel.BASIC: 200,
    MembershipLevel.SILVER: 600,
    MembershipLevel.GOLD: 1200,
    MembershipLevel.DIAMOND: None,
    MembershipLevel.PREMIUM: None,
}

DISCOUNT_RATES = {
    MembershipLevel.BASIC: Decimal("0"),
    MembershipLevel.SILVER: Decimal("0.10"),
    MembershipLevel.GOLD: Decimal("0.15"),
    MembershipLevel.DIAMOND: Decimal("0.25"),
    MembershipLevel.PREMIUM: Decimal("1"),
}


def tier_for(points: int) -> MembershipLevel:
    """Map a points balance to its tier. A boundary value belongs to the higher tier."""
    if points < 0:
        raise ValueError(f"points must be non-negative, got {points}")
    for threshold, level in TIER_THRESHOLDS:
        if points >= threshold:
            return level
    return MembershipLevel.BASIC


def points_for_amount(amount) -> int:
    """One point per POINTS_CURRENCY_UNIT spent, rounded down."""
    amount = Decimal(str(amount))
    if amount <= 0:
        return 0
    return math.floor(amount / settings.POINTS_CURRENCY_UNIT)


def discount_rate(level: MembershipLevel) -> Decimal:
    return DISCOUNT_RATES[MembershipLevel(level)]


def _lock_user(db: Session, user_id: UUID) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise NotFoundError("User not found")
    return user


def apply_points(db: Session, user_id: UUID, amount_spent) -> int:
    """
    Add the points earned for ``amount_spent`` and recompute the level,
    without committing. The caller owns the transaction.

    PREMIUM users still have their raw points recorded, but their level is
    never recomputed from points.

    Returns the number of points added.
    """
    user = _lock_user(db, user_id)
    earned = points_for_amount(amount_spent)
    user.membership_points = (user.membership_points or 0) + earned
    if user.membership_level != MembershipLevel.PREMIUM:
        user.membership_level = tier_for(user.membership_points)
    db.flush()
    logger.info(
        "User %s earned %d point(s): balance=%d level=%s",
        user_id, earned, user.membership_points, user.membership_level.value,
    )
    return earned


def add_points(db: Session, user_id: UUID, amount_spent) -> User:
    """Standalone points accrual: points and level are written in one commit."""
    if Decimal(str(amount_spent)) < 0:
        raise ValidationError("amount_spent must be non-negative")
    apply_points(db, user_id, amount_spent)
    commit_or_raise(db)
    user = db.get(User, user_id)
    db.refresh(user)
    return user


def grant_premium(db: Session, user_id: UUID) -> User:
    user = _lock_user(db, user_id)
    user.membership_level = MembershipLevel.PREMIUM
    commit_or_raise(db)
    db.refresh(user)
    logger.info("Granted PREMIUM to user %s", user_id)
    return user


def revoke_premium(db: Session, user_id: UUID) -> User:
    """Drop the administrative override; the level falls back to the points-derived tier."""
    user = _lock_user(db, user_id)
    user.membership_level = tier_for(user.membership_points or 0)
    commit_or_raise(db)
    db.refresh(user)
    logger.info("Revoked PREMIUM from user %s, level now %s", user_id, user.membership_level.value)
    return user


def membership_progress(user: User) -> dict:
    level = MembershipLevel(user.membership_level)
    points = user.membership_points or 0
    next_threshold: Optional[int] = NEXT_TIER_POINTS[level]
    return {
        "points": points,
        "level": level,
        "is_unlimited": level == MembershipLevel.PREMIUM,
        "next_level_points": next_threshold,
        "points_to_next_level": max(0, next_threshold - points) if next_threshold is not None else None,
        "discount_rate": discount_rate(level),
    }
