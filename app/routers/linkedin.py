from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.services import resumes as resume_store
from app.services.coaching_engine import generate_linkedin_profile
from app.services.errors import service_error, feature_locked
from app.services.subscription import get_effective_tier, get_upgrade_suggestion, has_feature_access, track_usage

router = APIRouter(prefix="/api/linkedin", tags=["linkedin"])


class LinkedInRequest(BaseModel):
    resume_id: str
    target_role: Optional[str] = None


@router.post("/generate")
async def generate_linkedin(
    request: LinkedInRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Headline, about section, experience rewrites and skills from a resume."""
    try:
        profile = get_or_create_profile(db, current_user.id, current_user.email)
        tier = get_effective_tier(profile)
        if not has_feature_access(tier, "linkedin_optimizer"):
            raise feature_locked("linkedin_optimizer", get_upgrade_suggestion(tier, "linkedin_optimizer"))

        resume = resume_store.get_resume(db, request.resume_id, current_user.id)
        if not resume:
            raise HTTPException(status_code=404, detail="Resume not found")

        result = await generate_linkedin_profile(resume_store.ensure_raw_text(db, resume), request.target_role)
        track_usage(db, current_user.id, "linkedin_optimization", resume.id)
        return {"success": True, **result}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "LinkedIn")
