from datetime import datetime

from app.models.profile import Profile
from app.models.usage import UsageTracking
from app.services.resumes import create_resume
from app.services.subscription import (
    check_usage_limits,
    get_effective_tier,
    get_limits_for_tier,
    get_remaining_allowance,
    get_upgrade_suggestion,
    get_usage_summary,
    has_feature_access,
    has_full_coaching_access,
    has_reached_limit,
    increment_usage,
    reset_usage_if_new_period,
    track_usage,
    TIER_LIMITS,
)


def test_unknown_tier_falls_back_to_free():
    assert get_limits_for_tier("enterprise") == TIER_LIMITS["free"]
    assert get_limits_for_tier(None) == TIER_LIMITS["free"]


def test_has_reached_limit():
    assert has_reached_limit("free", "resumes", 1)
    assert not has_reached_limit("free", "resumes", 0)
    assert not has_reached_limit("basic", "job_analyses", 500)
    assert not has_reached_limit("free", "ai_improvements", 10)


def test_remaining_allowance_is_never_negative():
    assert get_remaining_allowance("free", "resumes", 5) == 0
    assert get_remaining_allowance("pro", "star_voice_sessions", 2) == 4
    assert get_remaining_allowance("basic", "cover_letters", 40) is None


def test_feature_access_by_tier():
    assert not has_feature_access("free", "ai_improvements")
    assert has_feature_access("basic", "ai_improvements")
    assert not has_feature_access("basic", "star_voice_sessions")
    assert has_feature_access("pro", "star_voice_sessions")
    assert not has_feature_access("pro", "mock_interview_minutes")
    assert has_feature_access("interview_ready", "mock_interview_minutes")
    assert not has_feature_access("interview_ready", "unknown_feature")
    assert not has_full_coaching_access("free")
    assert has_full_coaching_access("basic")


def test_upgrade_suggestions():
    assert get_upgrade_suggestion("free", "resumes") == "basic"
    assert get_upgrade_suggestion("basic", "resumes") is None
    assert get_upgrade_suggestion("free", "star_voice_sessions") == "pro"
    assert get_upgrade_suggestion("basic", "star_voice_sessions") == "pro"
    assert get_upgrade_suggestion("pro", "star_voice_sessions") == "interview_ready"
    assert get_upgrade_suggestion("pro", "mock_interview_minutes") == "interview_ready"
    assert get_upgrade_suggestion("interview_ready", "mock_interview_minutes") is None


def test_active_subscription_without_tier_counts_as_pro():
    assert get_effective_tier(Profile(id="u1", subscription_tier=None, subscription_status="active")) == "pro"
    assert get_effective_tier(Profile(id="u2", subscription_tier=None, subscription_status="canceled")) == "free"
    assert get_effective_tier(Profile(id="u3", subscription_tier="basic")) == "basic"


def test_free_plan_without_feature(db_session, profile):
    check = check_usage_limits(db_session, profile, "star_voice_sessions")
    assert not check.allowed
    assert check.reason == "Your free plan does not include star voice sessions"
    assert check.upgrade_to == "pro"
    assert check.remaining == 0


def test_purchased_credits_extend_allowance(db_session, profile):
    profile.subscription_tier = "basic"
    profile.purchased_star_sessions = 2
    profile.star_sessions_this_month = 1
    db_session.commit()

    check = check_usage_limits(db_session, profile, "star_voice_sessions")
    assert check.allowed
    assert check.limit == 2
    assert check.remaining == 1

    increment_usage(db_session, profile, "star_voice_sessions")
    check = check_usage_limits(db_session, profile, "star_voice_sessions")
    assert not check.allowed
    assert check.reason == "You have reached your star voice sessions limit (2) for this month"
    assert check.upgrade_to == "pro"


def test_unlimited_resource_is_always_allowed(db_session, profile):
    profile.subscription_tier = "basic"
    profile.job_analyses_this_month = 250
    db_session.commit()

    check = check_usage_limits(db_session, profile, "job_analyses")
    assert check.allowed
    assert check.limit is None
    assert check.remaining is None


def test_mock_minutes_need_the_whole_duration(db_session, profile):
    profile.subscription_tier = "interview_ready"
    profile.mock_minutes_used_this_month = 140
    db_session.commit()

    assert check_usage_limits(db_session, profile, "mock_interview_minutes", amount=10).allowed
    check = check_usage_limits(db_session, profile, "mock_interview_minutes", amount=15)
    assert not check.allowed
    assert check.remaining == 10
    assert check.upgrade_to is None


def test_resume_limit_counts_base_resumes(db_session, profile):
    assert check_usage_limits(db_session, profile, "resumes").allowed
    create_resume(db_session, user_id=profile.id, title="Base")
    check = check_usage_limits(db_session, profile, "resumes")
    assert not check.allowed
    assert check.used == 1
    assert check.upgrade_to == "basic"


def test_counters_reset_in_a_new_month(db_session, profile):
    profile.usage_period_start = datetime(2025, 1, 20)
    profile.job_analyses_this_month = 3
    profile.mock_minutes_used_this_month = 45
    db_session.commit()

    assert not reset_usage_if_new_period(db_session, profile, now=datetime(2025, 1, 31))
    assert profile.job_analyses_this_month == 3

    assert reset_usage_if_new_period(db_session, profile, now=datetime(2025, 2, 1))
    assert profile.job_analyses_this_month == 0
    assert profile.mock_minutes_used_this_month == 0
    assert profile.usage_period_start == datetime(2025, 2, 1)


def test_track_usage_appends_a_row(db_session, profile):
    track_usage(db_session, profile.id, "resume_analysis", "r-1", details={"analysis_type": "ats"})
    row = db_session.query(UsageTracking).one()
    assert row.action_type == "resume_analysis"
    assert row.resource_id == "r-1"
    assert row.quantity == 1
    assert row.details == {"analysis_type": "ats"}


def test_usage_summary(db_session, profile):
    profile.cover_letters_this_month = 1
    db_session.commit()

    summary = get_usage_summary(db_session, profile)
    assert summary["cover_letters"] == {"used": 1, "limit": 1, "remaining": 0}
    assert summary["resumes"] == {"used": 0, "limit": 1, "remaining": 1}
    assert summary["mock_interview_minutes"]["limit"] == 0
