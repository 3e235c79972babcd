import logging
from typing import Optional, Any
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.schemas import ProfileResponse, dump
from app.services.subscription import get_effective_tier, get_limits_for_tier, get_usage_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("/")
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Profile with the effective tier, its limits and this month's usage."""
    profile = get_or_create_profile(db, current_user.id, current_user.email, current_user.full_name)
    tier = get_effective_tier(profile)
    return {
        "success": True,
        "profile": dump(ProfileResponse, profile),
        "tier": tier,
        "limits": get_limits_for_tier(tier),
        "usage": get_usage_summary(db, profile),
    }


@router.put("/")
async def update_profile(
    request: ProfileUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    profile = get_or_create_profile(db, current_user.id, current_user.email)
    for field, value in updates.items():
        setattr(profile, field, value.strip() or None)
    db.commit()
    db.refresh(profile)
    logger.info(f"[Profile Update] Updated {', '.join(updates)} for user {current_user.id}")
    return {"success": True, "profile": dump(ProfileResponse, profile)}


@router.get("/preferences")
async def get_preferences(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = get_or_create_profile(db, current_user.id, current_user.email)
    return {"success": True, "preferences": profile.preferences or {}}


@router.put("/preferences")
async def update_preferences(
    preferences: dict[str, Any],
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Shallow merge: top-level keys replace, unnamed keys stay."""
    profile = get_or_create_profile(db, current_user.id, current_user.email)
    # Reassign so the JSON column is flagged dirty
    profile.preferences = {**(profile.preferences or {}), **preferences}
    db.commit()
    db.refresh(profile)
    return {"success": True, "preferences": profile.preferences}
