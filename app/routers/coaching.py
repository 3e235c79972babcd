import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.models.coaching import SwotAnalysis, GapDefense
from app.schemas import SwotResponse, GapDefenseResponse, dump
from app.services import coaching_engine
from app.services import resumes as resume_store
from app.services.errors import service_error, feature_locked
from app.services.subscription import (
    get_effective_tier,
    get_upgrade_suggestion,
    has_full_coaching_access,
    track_usage,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coaching", tags=["coaching"])


class SwotRequest(BaseModel):
    resume_id: str
    job_description_id: Optional[str] = None


class GapDefenseRequest(BaseModel):
    gap: str = Field(min_length=1)
    resume_id: Optional[str] = None
    job_description_id: Optional[str] = None


def _require_full_coaching(db: Session, user: AuthUser):
    profile = get_or_create_profile(db, user.id, user.email)
    tier = get_effective_tier(profile)
    if not has_full_coaching_access(tier):
        raise feature_locked("coaching_access", get_upgrade_suggestion(tier, "coaching_access"))


def _load_context(db: Session, user_id: str, resume_id: Optional[str], job_description_id: Optional[str]):
    resume = None
    if resume_id:
        resume = resume_store.get_resume(db, resume_id, user_id)
        if not resume:
            raise HTTPException(status_code=404, detail="Resume not found")
    jd = None
    if job_description_id:
        jd = resume_store.get_job_description(db, job_description_id, user_id)
        if not jd:
            raise HTTPException(status_code=404, detail="Job description not found")
    return resume, jd


@router.post("/swot")
async def create_swot(
    request: SwotRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Personal SWOT analysis grounded in the resume and, optionally, a job."""
    try:
        _require_full_coaching(db, current_user)
        resume, jd = _load_context(db, current_user.id, request.resume_id, request.job_description_id)

        result = await coaching_engine.generate_swot(
            resume_store.ensure_raw_text(db, resume),
            job_text=jd.description if jd else None,
            job_title=jd.title if jd else None,
        )
        swot = SwotAnalysis(
            user_id=current_user.id,
            resume_id=resume.id,
            job_description_id=jd.id if jd else None,
            **result,
        )
        db.add(swot)
        db.commit()
        db.refresh(swot)
        track_usage(db, current_user.id, "swot_analysis", swot.id)
        return JSONResponse(status_code=201, content={"success": True, "swot": dump(SwotResponse, swot)})
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "SWOT")


@router.get("/swot")
async def list_swot(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    analyses = (
        db.query(SwotAnalysis)
        .filter(SwotAnalysis.user_id == current_user.id)
        .order_by(SwotAnalysis.created_at.desc())
        .all()
    )
    return {"success": True, "analyses": [dump(SwotResponse, a) for a in analyses]}


@router.post("/gap-defense")
async def create_gap_defense(
    request: GapDefenseRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        if not request.gap.strip():
            raise HTTPException(status_code=400, detail="Gap cannot be empty")
        resume, jd = _load_context(db, current_user.id, request.resume_id, request.job_description_id)

        script = await coaching_engine.generate_gap_defense(
            request.gap.strip(),
            resume_text=resume_store.ensure_raw_text(db, resume) if resume else None,
            job_text=jd.description if jd else None,
        )
        defense = GapDefense(
            user_id=current_user.id,
            resume_id=resume.id if resume else None,
            job_description_id=jd.id if jd else None,
            gap=request.gap.strip(),
            script=script,
        )
        db.add(defense)
        db.commit()
        db.refresh(defense)
        return JSONResponse(status_code=201, content={"success": True, "gap_defense": dump(GapDefenseResponse, defense)})
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Gap Defense")


@router.get("/gap-defense")
async def list_gap_defenses(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    defenses = (
        db.query(GapDefense)
        .filter(GapDefense.user_id == current_user.id)
        .order_by(GapDefense.created_at.desc())
        .all()
    )
    return {"success": True, "gap_defenses": [dump(GapDefenseResponse, d) for d in defenses]}
