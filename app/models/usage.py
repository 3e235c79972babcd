from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from datetime import datetime
from app.database import Base, generate_uuid


class UsageTracking(Base):
    __tablename__ = "usage_tracking"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    action_type = Column(String(50), nullable=False)  # resume_create, mock_interview, practice_session, ...
    resource_id = Column(String(36), nullable=True)
    quantity = Column(Integer, default=1)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
