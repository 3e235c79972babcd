from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Float, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base, generate_uuid


class PracticeSession(Base):
    __tablename__ = "practice_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True)
    job_description_id = Column(String(36), ForeignKey("job_descriptions.id", ondelete="SET NULL"), nullable=True)

    category = Column(String(50), nullable=False)  # behavioral, leadership, technical, conflict
    difficulty = Column(String(20), default="medium")  # easy, medium, hard, random
    status = Column(String(20), default="in_progress")
    total_questions = Column(Integer, default=0)
    completed_questions = Column(Integer, default=0)
    average_score = Column(Float, nullable=True)
    overall_feedback = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    questions = relationship(
        "PracticeQuestion",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="PracticeQuestion.order_index",
    )


class PracticeQuestion(Base):
    __tablename__ = "practice_questions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    session_id = Column(String(36), ForeignKey("practice_sessions.id"), nullable=False, index=True)

    question_text = Column(Text, nullable=False)
    question_type = Column(String(50), nullable=False)
    difficulty = Column(String(20), default="medium")
    order_index = Column(Integer, nullable=False)  # 0-based

    created_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("PracticeSession", back_populates="questions")
    answers = relationship("PracticeAnswer", back_populates="question", cascade="all, delete-orphan")


class PracticeAnswer(Base):
    __tablename__ = "practice_answers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    question_id = Column(String(36), ForeignKey("practice_questions.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    transcript = Column(Text, nullable=False)
    audio_url = Column(String(500), nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    overall_score = Column(Float, nullable=True)
    star_analysis = Column(JSON, nullable=True)
    strengths = Column(JSON, nullable=True)
    improvements = Column(JSON, nullable=True)
    summary = Column(Text, nullable=True)
    clarity_score = Column(Float, nullable=True)
    relevance_score = Column(Float, nullable=True)
    impact_score = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    question = relationship("PracticeQuestion", back_populates="answers")
