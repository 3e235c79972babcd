from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from datetime import datetime
from app.database import Base, generate_uuid


class JobDescription(Base):
    __tablename__ = "job_descriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    url = Column(String(500), nullable=True)
    parsed_requirements = Column(JSON, nullable=True)  # skills, responsibilities, keywords

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
