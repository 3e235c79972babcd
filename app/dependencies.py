from typing import Optional
import json
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.config import SUPABASE_JWT_SECRET, SUPABASE_JWT_PUBLIC_KEY as _raw_public_key, SUPABASE_JWT_AUDIENCE
from app.database import get_db
from app.models.profile import Profile

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Public key for ES256 verification, either PEM or JWK JSON
SUPABASE_JWT_PUBLIC_KEY = None
if _raw_public_key:
    if _raw_public_key.startswith("-----BEGIN"):
        SUPABASE_JWT_PUBLIC_KEY = _raw_public_key.replace("\\n", "\n")
    elif _raw_public_key.startswith("{"):
        try:
            SUPABASE_JWT_PUBLIC_KEY = json.loads(_raw_public_key)
        except json.JSONDecodeError:
            logger.warning("[Auth] Could not parse SUPABASE_JWT_PUBLIC_KEY as JWK")


class AuthUser(BaseModel):
    """Represents an authenticated Supabase user."""
    id: str  # UUID as string
    email: str = ""
    full_name: Optional[str] = None
    auth_provider: str = "email"


def decode_access_token(token: str) -> dict:
    """Verify a Supabase access token and return its claims.

    ES256 is used when a public key is configured, otherwise the legacy
    HS256 shared secret.
    """
    if SUPABASE_JWT_PUBLIC_KEY:
        return jwt.decode(
            token,
            SUPABASE_JWT_PUBLIC_KEY,
            algorithms=["ES256"],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    return jwt.decode(
        token,
        SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        audience=SUPABASE_JWT_AUDIENCE,
    )


def get_or_create_profile(db: Session, user_id: str, email: str = "", full_name: Optional[str] = None) -> Profile:
    """Load the caller's profile row, creating it on first access."""
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile:
        return profile

    profile = Profile(
        id=user_id,
        email=email,
        full_name=full_name,
        subscription_tier="free",
        preferences={},
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"[Auth] Created profile for user {user_id}")
    return profile


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AuthUser:
    """Get the current authenticated user from the Supabase JWT."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials

    try:
        payload = decode_access_token(token)
    except JWTError as e:
        logger.warning(f"[Auth] JWT error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_metadata = payload.get("user_metadata") or {}
    app_metadata = payload.get("app_metadata") or {}
    email = payload.get("email", "") or ""

    profile = get_or_create_profile(db, user_id, email, user_metadata.get("full_name"))

    return AuthUser(
        id=user_id,
        email=email,
        full_name=profile.full_name,
        auth_provider=app_metadata.get("provider", "email"),
    )

