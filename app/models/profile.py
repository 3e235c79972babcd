from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime
from app.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Same UUID as the Supabase auth user
    id = Column(String(36), primary_key=True, index=True)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Subscription
    subscription_tier = Column(String(50), default="free")  # free, basic, pro, interview_ready
    subscription_status = Column(String(50), nullable=True)  # active, trialing, canceled, past_due

    preferences = Column(JSON, default=dict)

    # Monthly usage counters, reset lazily when the period rolls over
    job_analyses_this_month = Column(Integer, default=0)
    cover_letters_this_month = Column(Integer, default=0)
    star_sessions_this_month = Column(Integer, default=0)
    mock_interviews_this_month = Column(Integer, default=0)
    mock_minutes_used_this_month = Column(Integer, default=0)
    usage_period_start = Column(DateTime, default=datetime.utcnow)

    # One-off credits purchased on top of the plan
    purchased_star_sessions = Column(Integer, default=0)
    purchased_mock_minutes = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
