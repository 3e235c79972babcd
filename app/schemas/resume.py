from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class JobDescriptionResponse(BaseModel):
    id: str
    title: str
    company: Optional[str]
    description: str
    url: Optional[str]
    parsed_requirements: Optional[Any]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ResumeResponse(BaseModel):
    id: str
    title: str
    content: dict[str, Any]
    raw_text: Optional[str]

    is_base_version: bool
    source_resume_id: Optional[str]
    job_description_id: Optional[str]

    ats_score: Optional[int]
    jd_match_score: Optional[int]
    analysis_results: Optional[dict[str, Any]]
    last_analyzed_at: Optional[datetime]

    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ResumeListItem(BaseModel):
    id: str
    title: str
    is_base_version: bool
    source_resume_id: Optional[str]
    ats_score: Optional[int]
    jd_match_score: Optional[int]
    job_description_id: Optional[str]
    job_title: Optional[str] = None
    job_company: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
