"""Subscription tiers, limit lookups and monthly usage accounting.

Tier limits are a static table. ``None`` means unlimited.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.profile import Profile
from app.models.resume import Resume
from app.models.usage import UsageTracking

logger = logging.getLogger(__name__)

FREE = "free"
BASIC = "basic"
PRO = "pro"
INTERVIEW_READY = "interview_ready"

TIER_LIMITS: dict[str, dict[str, Any]] = {
    FREE: {
        "resumes": 1,
        "job_analyses": 1,
        "cover_letters": 1,
        "coaching_access": "preview",
        "star_voice_sessions": 0,
        "mock_interview_minutes": 0,
        "exports": True,
        "ai_improvements": False,
        "linkedin_optimizer": False,
    },
    BASIC: {
        "resumes": 5,
        "job_analyses": None,
        "cover_letters": None,
        "coaching_access": "full",
        "star_voice_sessions": 0,
        "mock_interview_minutes": 0,
        "exports": True,
        "ai_improvements": True,
        "linkedin_optimizer": True,
    },
    PRO: {
        "resumes": 5,
        "job_analyses": None,
        "cover_letters": None,
        "coaching_access": "full",
        "star_voice_sessions": 6,
        "mock_interview_minutes": 0,
        "exports": True,
        "ai_improvements": True,
        "linkedin_optimizer": True,
    },
    INTERVIEW_READY: {
        "resumes": 5,
        "job_analyses": None,
        "cover_letters": None,
        "coaching_access": "full",
        "star_voice_sessions": 10,
        "mock_interview_minutes": 150,
        "exports": True,
        "ai_improvements": True,
        "linkedin_optimizer": True,
    },
}

# Metered resources and the profile column holding this month's usage.
# Resumes are counted from the resumes table instead.
USAGE_COUNTERS = {
    "job_analyses": "job_analyses_this_month",
    "cover_letters": "cover_letters_this_month",
    "star_voice_sessions": "star_sessions_this_month",
    "mock_interviews": "mock_interviews_this_month",
    "mock_interview_minutes": "mock_minutes_used_this_month",
}

PURCHASED_CREDITS = {
    "star_voice_sessions": "purchased_star_sessions",
    "mock_interview_minutes": "purchased_mock_minutes",
}

PAID_STATUSES = ("active", "trialing")


class LimitCheck(BaseModel):
    allowed: bool
    tier: str
    used: int = 0
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reason: Optional[str] = None
    upgrade_to: Optional[str] = None


def get_limits_for_tier(tier: Optional[str]) -> dict[str, Any]:
    limits = TIER_LIMITS.get(tier or "")
    if limits is None:
        logger.warning(f"[Subscription] Unknown tier: {tier}, defaulting to free")
        return TIER_LIMITS[FREE]
    return limits


def has_reached_limit(tier: str, resource: str, current_usage: int) -> bool:
    limit = get_limits_for_tier(tier).get(resource)
    # Booleans and access levels are features, not quotas
    if limit is None or isinstance(limit, (bool, str)):
        return False
    return current_usage >= limit


def get_remaining_allowance(tier: str, resource: str, current_usage: int) -> Optional[int]:
    """Remaining quota, never negative. None when unlimited."""
    limit = get_limits_for_tier(tier).get(resource)
    if limit is None:
        return None
    return max(0, limit - current_usage)


def has_feature_access(tier: str, feature: str) -> bool:
    limits = get_limits_for_tier(tier)
    if feature in ("star_voice_sessions", "mock_interview_minutes"):
        return (limits.get(feature) or 0) > 0
    if feature in ("ai_improvements", "exports", "linkedin_optimizer"):
        return bool(limits.get(feature))
    return False


def has_full_coaching_access(tier: str) -> bool:
    return get_limits_for_tier(tier)["coaching_access"] == "full"


def get_upgrade_suggestion(current_tier: str, limit_reached: str) -> Optional[str]:
    """Cheapest tier that lifts the limit the user just hit."""
    if current_tier == INTERVIEW_READY:
        return None

    if limit_reached in ("resumes", "job_analyses", "cover_letters", "ai_improvements", "linkedin_optimizer", "coaching_access"):
        return BASIC if current_tier == FREE else None
    if limit_reached == "star_voice_sessions":
        if current_tier in (FREE, BASIC):
            return PRO
        if current_tier == PRO:
            return INTERVIEW_READY
        return None
    if limit_reached == "mock_interview_minutes":
        return INTERVIEW_READY
    return None


def get_effective_tier(profile: Profile) -> str:
    tier = profile.subscription_tier
    if not tier and profile.subscription_status in PAID_STATUSES:
        return PRO
    return tier or FREE


def reset_usage_if_new_period(db: Session, profile: Profile, now: Optional[datetime] = None) -> bool:
    """Zero the monthly counters when the stored period is an earlier calendar month."""
    now = now or datetime.utcnow()
    start = profile.usage_period_start
    if start is not None and (start.year, start.month) >= (now.year, now.month):
        return False

    for column in USAGE_COUNTERS.values():
        setattr(profile, column, 0)
    profile.usage_period_start = now
    db.commit()
    db.refresh(profile)
    logger.info(f"[Subscription] Reset monthly usage for user {profile.id}")
    return True


def get_current_usage(db: Session, profile: Profile, resource: str) -> int:
    if resource == "resumes":
        return (
            db.query(Resume)
            .filter(Resume.user_id == profile.id, Resume.is_base_version.is_(True))
            .count()
        )
    column = USAGE_COUNTERS.get(resource)
    if column is None:
        return 0
    return getattr(profile, column) or 0


def check_usage_limits(db: Session, profile: Profile, resource: str, amount: int = 1) -> LimitCheck:
    """Can the user consume ``amount`` more of ``resource`` this month?"""
    reset_usage_if_new_period(db, profile)
    tier = get_effective_tier(profile)
    limit = get_limits_for_tier(tier).get(resource)
    used = get_current_usage(db, profile, resource)

    if limit is None:
        return LimitCheck(allowed=True, tier=tier, used=used)

    credits_column = PURCHASED_CREDITS.get(resource)
    allowance = limit + ((getattr(profile, credits_column) or 0) if credits_column else 0)
    remaining = max(0, allowance - used)

    if remaining >= amount:
        return LimitCheck(allowed=True, tier=tier, used=used, limit=allowance, remaining=remaining)

    label = resource.replace("_", " ")
    if allowance == 0:
        reason = f"Your {tier} plan does not include {label}"
    else:
        reason = f"You have reached your {label} limit ({allowance}) for this month"
    return LimitCheck(
        allowed=False,
        tier=tier,
        used=used,
        limit=allowance,
        remaining=remaining,
        reason=reason,
        upgrade_to=get_upgrade_suggestion(tier, resource),
    )


def increment_usage(db: Session, profile: Profile, resource: str, amount: int = 1) -> None:
    column = USAGE_COUNTERS[resource]
    setattr(profile, column, (getattr(profile, column) or 0) + amount)
    db.commit()


def track_usage(
    db: Session,
    user_id: str,
    action_type: str,
    resource_id: Optional[str] = None,
    quantity: int = 1,
    details: Optional[dict] = None,
) -> None:
    """Append a usage_tracking row. Failures are logged, never raised."""
    try:
        db.add(UsageTracking(
            user_id=user_id,
            action_type=action_type,
            resource_id=resource_id,
            quantity=quantity,
            details=details,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[Usage] Failed to track {action_type} for {user_id}: {e}")


def get_usage_summary(db: Session, profile: Profile) -> dict[str, dict[str, Optional[int]]]:
    reset_usage_if_new_period(db, profile)
    tier = get_effective_tier(profile)
    summary = {}
    for resource in ("resumes", "job_analyses", "cover_letters", "star_voice_sessions", "mock_interview_minutes"):
        used = get_current_usage(db, profile, resource)
        summary[resource] = {
            "used": used,
            "limit": get_limits_for_tier(tier)[resource],
            "remaining": get_remaining_allowance(tier, resource, used),
        }
    return summary
