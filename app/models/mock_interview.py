from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Float, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base, generate_uuid

INTERVIEW_PHASES = ("welcome", "small_talk", "company_intro", "questions", "wrap_up", "goodbye", "completed")
VERDICTS = ("strong_hire", "hire", "borderline", "not_ready")


class MockInterview(Base):
    __tablename__ = "mock_interviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True)
    job_description_id = Column(String(36), ForeignKey("job_descriptions.id", ondelete="SET NULL"), nullable=True)

    persona = Column(String(50), nullable=False)  # emma-hr, james-manager, sato-tech
    duration_minutes = Column(Integer, nullable=False)  # 15, 20, 30
    focus = Column(String(20), default="mixed")
    difficulty = Column(String(20), default="standard")

    # State
    status = Column(String(20), default="planned")
    current_phase = Column(String(20), default="welcome")
    current_question_index = Column(Integer, default=0)
    interview_plan = Column(JSON, nullable=True)
    planned_questions = Column(Integer, default=0)

    # Report
    overall_score = Column(Float, nullable=True)
    verdict = Column(String(20), nullable=True)
    performance_breakdown = Column(JSON, nullable=True)
    strengths = Column(JSON, nullable=True)
    gaps = Column(JSON, nullable=True)
    improvement_plan = Column(JSON, nullable=True)
    report = Column(JSON, nullable=True)
    summary = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    exchanges = relationship(
        "MockInterviewExchange",
        back_populates="interview",
        cascade="all, delete-orphan",
        order_by="MockInterviewExchange.exchange_order",
    )


class MockInterviewExchange(Base):
    __tablename__ = "mock_interview_exchanges"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    interview_id = Column(String(36), ForeignKey("mock_interviews.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    exchange_order = Column(Integer, nullable=False)  # 1-based
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), default="behavioral")  # intro, behavioral, technical, closing
    target_competency = Column(String(100), nullable=True)
    follow_up_allowed = Column(Boolean, default=True)

    answer_transcript = Column(Text, nullable=True)
    answer_score = Column(Float, nullable=True)
    evaluation = Column(JSON, nullable=True)
    answered_at = Column(DateTime, nullable=True)

    follow_up_question = Column(Text, nullable=True)
    follow_up_transcript = Column(Text, nullable=True)
    follow_up_score = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    interview = relationship("MockInterview", back_populates="exchanges")
