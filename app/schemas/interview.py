from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class ExchangeResponse(BaseModel):
    id: str
    exchange_order: int
    question_text: str
    question_type: str
    target_competency: Optional[str]
    follow_up_allowed: bool

    answer_transcript: Optional[str]
    answer_score: Optional[float]
    evaluation: Optional[dict[str, Any]]
    answered_at: Optional[datetime]

    follow_up_question: Optional[str]
    follow_up_transcript: Optional[str]
    follow_up_score: Optional[float]

    class Config:
        from_attributes = True


class MockInterviewResponse(BaseModel):
    id: str
    resume_id: Optional[str]
    job_description_id: Optional[str]
    persona: str
    duration_minutes: int
    focus: str
    difficulty: str

    status: str
    current_phase: str
    current_question_index: int
    planned_questions: int
    interview_plan: Optional[dict[str, Any]]

    overall_score: Optional[float]
    verdict: Optional[str]
    summary: Optional[str]
    report: Optional[dict[str, Any]]

    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class MockInterviewDetail(MockInterviewResponse):
    exchanges: list[ExchangeResponse] = []


class PracticeAnswerResponse(BaseModel):
    id: str
    transcript: str
    duration_seconds: Optional[int]
    overall_score: Optional[float]
    star_analysis: Optional[dict[str, Any]]
    strengths: Optional[list[str]]
    improvements: Optional[list[str]]
    summary: Optional[str]
    clarity_score: Optional[float]
    relevance_score: Optional[float]
    impact_score: Optional[float]
    created_at: datetime

    class Config:
        from_attributes = True


class PracticeQuestionResponse(BaseModel):
    id: str
    question_text: str
    question_type: str
    difficulty: str
    order_index: int
    answers: list[PracticeAnswerResponse] = []

    class Config:
        from_attributes = True


class PracticeSessionResponse(BaseModel):
    id: str
    resume_id: Optional[str]
    job_description_id: Optional[str]
    category: str
    difficulty: str
    status: str
    total_questions: int
    completed_questions: int
    average_score: Optional[float]
    overall_feedback: Optional[dict[str, Any]]
    created_at: datetime
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class PracticeSessionDetail(PracticeSessionResponse):
    questions: list[PracticeQuestionResponse] = []
