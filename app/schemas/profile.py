from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str]
    full_name: Optional[str]
    avatar_url: Optional[str]
    subscription_tier: Optional[str]
    subscription_status: Optional[str]
    preferences: Optional[dict[str, Any]]
    purchased_star_sessions: Optional[int]
    purchased_mock_minutes: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CoverLetterResponse(BaseModel):
    id: str
    resume_id: Optional[str]
    job_description_id: Optional[str]
    title: str
    tone: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class SwotResponse(BaseModel):
    id: str
    resume_id: Optional[str]
    job_description_id: Optional[str]
    strengths: list[dict[str, Any]]
    weaknesses: list[dict[str, Any]]
    opportunities: list[dict[str, Any]]
    threats: list[dict[str, Any]]
    summary: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class GapDefenseResponse(BaseModel):
    id: str
    resume_id: Optional[str]
    job_description_id: Optional[str]
    gap: str
    script: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
