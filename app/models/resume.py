from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base, generate_uuid


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    content = Column(JSON, nullable=False)  # basics, summary, experience, education, skills, projects
    raw_text = Column(Text, nullable=True)

    # Tailored versions point back at the resume they were built from
    is_base_version = Column(Boolean, default=True)
    source_resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True)
    job_description_id = Column(String(36), ForeignKey("job_descriptions.id", ondelete="SET NULL"), nullable=True)

    # Latest analysis
    ats_score = Column(Integer, nullable=True)
    jd_match_score = Column(Integer, nullable=True)
    analysis_results = Column(JSON, nullable=True)
    last_analyzed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    job_description = relationship("JobDescription")
