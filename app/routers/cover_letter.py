import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.models.coaching import CoverLetter
from app.schemas import CoverLetterResponse, dump
from app.services import coaching_engine
from app.services import resumes as resume_store
from app.services.errors import service_error, limit_reached
from app.services.subscription import check_usage_limits, increment_usage, track_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cover-letter", tags=["cover letters"])


class GenerateCoverLetterRequest(BaseModel):
    resume_id: str
    job_description_id: Optional[str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    job_description: Optional[str] = None
    tone: str = "professional"


class RefineCoverLetterRequest(BaseModel):
    cover_letter_id: str
    instruction: str = Field(min_length=1)


@router.post("/generate")
async def generate_cover_letter(
    request: GenerateCoverLetterRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.tone not in coaching_engine.COVER_LETTER_TONES:
        raise HTTPException(
            status_code=400,
            detail=f"Tone must be one of: {', '.join(coaching_engine.COVER_LETTER_TONES)}",
        )

    try:
        profile = get_or_create_profile(db, current_user.id, current_user.email)
        check = check_usage_limits(db, profile, "cover_letters")
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

        resume = resume_store.get_resume(db, request.resume_id, current_user.id)
        if not resume:
            raise HTTPException(status_code=404, detail="Resume not found")
        jd = None
        if request.job_description_id:
            jd = resume_store.get_job_description(db, request.job_description_id, current_user.id)
            if not jd:
                raise HTTPException(status_code=404, detail="Job description not found")

        job_title = (jd.title if jd else request.job_title) or ""
        if not job_title.strip():
            raise HTTPException(status_code=400, detail="A job title or job description is required")
        company = jd.company if jd else request.company_name

        content = await coaching_engine.generate_cover_letter(
            resume_store.ensure_raw_text(db, resume),
            job_title=job_title.strip(),
            company_name=company,
            job_description=jd.description if jd else request.job_description,
            tone=request.tone,
        )

        letter = CoverLetter(
            user_id=current_user.id,
            resume_id=resume.id,
            job_description_id=jd.id if jd else None,
            title=f"{job_title.strip()}{f' at {company}' if company else ''}",
            tone=request.tone,
            content=content.strip(),
        )
        db.add(letter)
        db.commit()
        db.refresh(letter)

        increment_usage(db, profile, "cover_letters")
        track_usage(db, current_user.id, "cover_letter", letter.id, details={"tone": request.tone})
        logger.info(f"[Cover Letter] Generated {letter.id} for user {current_user.id}")
        return JSONResponse(status_code=201, content={"success": True, "cover_letter": dump(CoverLetterResponse, letter)})
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Cover Letter")


@router.post("/refine")
async def refine_cover_letter(
    request: RefineCoverLetterRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        letter = (
            db.query(CoverLetter)
            .filter(CoverLetter.id == request.cover_letter_id, CoverLetter.user_id == current_user.id)
            .first()
        )
        if not letter:
            raise HTTPException(status_code=404, detail="Cover letter not found")
        if not request.instruction.strip():
            raise HTTPException(status_code=400, detail="Instruction cannot be empty")

        letter.content = (await coaching_engine.refine_cover_letter(letter.content, request.instruction.strip())).strip()
        letter.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(letter)
        return {"success": True, "cover_letter": dump(CoverLetterResponse, letter)}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Cover Letter Refine")


@router.get("/list")
async def list_cover_letters(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    letters = (
        db.query(CoverLetter)
        .filter(CoverLetter.user_id == current_user.id)
        .order_by(CoverLetter.created_at.desc())
        .all()
    )
    return {"success": True, "cover_letters": [dump(CoverLetterResponse, c) for c in letters]}
