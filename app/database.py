import uuid
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # Needed for SQLite

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all database tables."""
    from app.models import (  # noqa: F401
        profile,
        resume,
        job_description,
        mock_interview,
        practice,
        coaching,
        usage,
    )
    Base.metadata.create_all(bind=engine)


def generate_uuid() -> str:
    """Primary key default for UUID-keyed tables."""
    return str(uuid.uuid4())
