import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.services.llm import LLMError
from app.services.resumes import create_resume, create_job_description
from backend import app as api

USER_ID = "8d1c4f52-6a1e-4b7e-9f0e-2f3b1a5c7d90"

SAMPLE_CONTENT = {
    "basics": {"name": "Alex Rivera", "headline": "Backend Engineer", "email": "alex@example.com",
               "phone": "", "location": "Austin, TX", "url": ""},
    "summary": "Backend engineer with five years of API and data platform work.",
    "experience": [
        {
            "company": "Acme Corp",
            "position": "Software Engineer",
            "start_date": "2021",
            "end_date": "",
            "highlights": [
                "Built a billing service that processed 2M invoices per month",
                "Helped with on-call rotation",
            ],
        }
    ],
    "education": [{"institution": "UT Austin", "degree": "BS", "field": "Computer Science", "end_date": "2019"}],
    "skills": [{"name": "Languages", "keywords": ["Python", "SQL"]}],
    "projects": [],
}


class FakeGemini:
    """Stands in for the Gemini transport. Queued replies are served in order.

    Dicts and lists are sent as JSON text, exceptions are raised, and an empty
    queue behaves like a failing model.
    """

    def __init__(self):
        self.replies = []
        self.prompts = []

    def queue(self, *replies):
        for reply in replies:
            if isinstance(reply, (dict, list)):
                reply = json.dumps(reply)
            self.replies.append(reply)

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def __call__(self, client, model, contents, config=None, **kwargs):
        self.prompts.append(contents)
        if not self.replies:
            raise LLMError("Service temporarily unavailable. Please try again in a few moments.")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def current_user():
    return AuthUser(id=USER_ID, email="alex@example.com", full_name="Alex Rivera")


@pytest.fixture
def profile(db_session, current_user):
    return get_or_create_profile(db_session, current_user.id, current_user.email, current_user.full_name)


@pytest.fixture
def client(db_session, current_user, profile):
    def override_get_db():
        yield db_session

    api.dependency_overrides[get_db] = override_get_db
    api.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(api)
    api.dependency_overrides.clear()


@pytest.fixture
def set_tier(db_session, profile):
    def _set(tier):
        profile.subscription_tier = tier
        db_session.commit()
        return profile
    return _set


@pytest.fixture
def llm():
    fake = FakeGemini()
    with patch("app.services.llm.get_client", return_value=MagicMock()), \
            patch("app.services.llm.call_gemini_with_retry_async", new=fake):
        yield fake


@pytest.fixture
def resume(db_session, profile):
    return create_resume(db_session, user_id=profile.id, title="Backend Resume", content=SAMPLE_CONTENT)


@pytest.fixture
def job_description(db_session, profile):
    return create_job_description(
        db_session,
        user_id=profile.id,
        title="Senior Backend Engineer",
        company="Globex",
        description="We need a backend engineer with Python, PostgreSQL and Kubernetes experience.",
    )
