import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from jose import JWTError, jwt

from app.database import get_db
from app.dependencies import decode_access_token
from app.models.profile import Profile
from backend import app as api

SECRET = "test-jwt-secret"


def _token(**claims):
    payload = {
        "sub": "3f2b8c1e-0d4a-4a51-9e1f-6c7d8e9f0a1b",
        "aud": "authenticated",
        "email": "sam@example.com",
        "exp": int(time.time()) + 3600,
        "user_metadata": {"full_name": "Sam Lee"},
        "app_metadata": {"provider": "google"},
    }
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def hs256_secret():
    with patch("app.dependencies.SUPABASE_JWT_SECRET", SECRET), \
            patch("app.dependencies.SUPABASE_JWT_PUBLIC_KEY", None):
        yield


@pytest.fixture
def anon_client(db_session):
    def override_get_db():
        yield db_session

    api.dependency_overrides[get_db] = override_get_db
    yield TestClient(api)
    api.dependency_overrides.clear()


def test_decode_valid_token():
    claims = decode_access_token(_token())
    assert claims["email"] == "sam@example.com"


def test_decode_rejects_wrong_audience():
    with pytest.raises(JWTError):
        decode_access_token(_token(aud="anon"))


def test_decode_rejects_expired_token():
    with pytest.raises(JWTError):
        decode_access_token(_token(exp=int(time.time()) - 60))


def test_missing_token_is_unauthorized(anon_client):
    response = anon_client.get("/api/profile/")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_bad_token_is_unauthorized(anon_client):
    response = anon_client.get("/api/profile/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


def test_token_without_subject_is_rejected(anon_client):
    token = _token(sub="")
    response = anon_client.get("/api/profile/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_first_request_creates_profile(anon_client, db_session):
    response = anon_client.get("/api/profile/", headers={"Authorization": f"Bearer {_token()}"})
    assert response.status_code == 200
    body = response.json()
    assert body["tier"] == "free"
    assert body["profile"]["email"] == "sam@example.com"
    assert body["profile"]["full_name"] == "Sam Lee"

    assert db_session.query(Profile).count() == 1
