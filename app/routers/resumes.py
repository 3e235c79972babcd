import logging
from typing import Optional, Any
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.schemas import ResumeResponse, ResumeListItem, dump
from app.services import resumes as resume_store
from app.services import resume_engine
from app.services.bullet_analyzer import analyze_all_bullets
from app.services.errors import service_error, limit_reached, feature_locked
from app.services.resume_text import extract_text, resume_bullets, SUPPORTED_UPLOAD_TYPES
from app.services.subscription import (
    check_usage_limits,
    get_effective_tier,
    get_upgrade_suggestion,
    has_feature_access,
    increment_usage,
    track_usage,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resume", tags=["resumes"])


class CreateResumeRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[dict[str, Any]] = None
    job_description_id: Optional[str] = None


class UpdateResumeRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[dict[str, Any]] = None
    raw_text: Optional[str] = None


class DuplicateResumeRequest(BaseModel):
    resume_id: str


class AnalyzeResumeRequest(BaseModel):
    resume_id: str
    job_description_id: Optional[str] = None
    job_text: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    create_tailored_version: bool = False


class GenerateSummaryRequest(BaseModel):
    resume_id: str
    job_description_id: Optional[str] = None
    tone: str = "professional"


class OptimizeBulletRequest(BaseModel):
    bullet: str = Field(min_length=1)
    mode: str = "action-verb"
    job_title: Optional[str] = None
    context: Optional[str] = None


class GenerateBulletsRequest(BaseModel):
    position: str = Field(min_length=1)
    company: Optional[str] = None
    description: Optional[str] = None
    count: int = Field(default=4, ge=1, le=8)


class SuggestSkillsRequest(BaseModel):
    resume_id: str
    job_description_id: Optional[str] = None


class AnalyzeBulletsRequest(BaseModel):
    bullets: Optional[list[str]] = None
    resume_id: Optional[str] = None


def _require_resume(db: Session, resume_id: str, user_id: str):
    resume = resume_store.get_resume(db, resume_id, user_id)
    if not resume:
        raise HTTPException(status_code=404, detail="Resume not found")
    return resume


def _require_ai_improvements(db: Session, user: AuthUser):
    profile = get_or_create_profile(db, user.id, user.email)
    tier = get_effective_tier(profile)
    if not has_feature_access(tier, "ai_improvements"):
        raise feature_locked("ai_improvements", get_upgrade_suggestion(tier, "ai_improvements"))


@router.post("/create")
async def create_resume(
    request: CreateResumeRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a resume, blank unless content is supplied."""
    profile = get_or_create_profile(db, current_user.id, current_user.email)
    check = check_usage_limits(db, profile, "resumes")
    if not check.allowed:
        raise limit_reached(check.reason, check.upgrade_to, check.remaining)

    if request.job_description_id and not resume_store.get_job_description(db, request.job_description_id, current_user.id):
        raise HTTPException(status_code=404, detail="Job description not found")

    resume = resume_store.create_resume(
        db,
        user_id=current_user.id,
        title=request.title,
        content=request.content,
        job_description_id=request.job_description_id,
    )
    track_usage(db, current_user.id, "resume_create", resume.id)
    logger.info(f"[Resume Create] {resume.id} for user {current_user.id}")
    return JSONResponse(status_code=201, content={"success": True, "resume": dump(ResumeResponse, resume)})


@router.get("/list")
async def list_resumes(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items = []
    for resume in resume_store.list_resumes(db, current_user.id):
        item = dump(ResumeListItem, resume)
        if resume.job_description:
            item["job_title"] = resume.job_description.title
            item["job_company"] = resume.job_description.company
        items.append(item)
    return {"success": True, "resumes": items}


@router.post("/duplicate")
async def duplicate_resume(
    request: DuplicateResumeRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resume = _require_resume(db, request.resume_id, current_user.id)
    profile = get_or_create_profile(db, current_user.id, current_user.email)
    if resume.is_base_version:
        check = check_usage_limits(db, profile, "resumes")
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

    copy = resume_store.duplicate_resume(db, resume)
    return JSONResponse(status_code=201, content={"success": True, "resume": dump(ResumeResponse, copy)})


@router.post("/parse")
async def parse_resume(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Import an uploaded PDF or TXT resume as structured content."""
    try:
        if file.content_type not in SUPPORTED_UPLOAD_TYPES:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Only PDF and TXT files are supported.",
            )

        profile = get_or_create_profile(db, current_user.id, current_user.email)
        check = check_usage_limits(db, profile, "resumes")
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

        file_content = await file.read()
        text_content = extract_text(file_content, file.content_type)
        if not text_content.strip():
            raise HTTPException(status_code=400, detail="File does not have any content")

        content = await resume_engine.parse_resume(text_content)
        default_title = (file.filename or "Imported resume").rsplit(".", 1)[0]
        resume = resume_store.create_resume(
            db,
            user_id=current_user.id,
            title=title or default_title,
            content=content,
            raw_text=text_content.strip(),
        )
        track_usage(db, current_user.id, "resume_import", resume.id)
        return JSONResponse(status_code=201, content={"success": True, "resume": dump(ResumeResponse, resume)})
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Resume Parse")


@router.post("/analyze")
async def analyze_resume(
    request: AnalyzeResumeRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """ATS analysis, or job match analysis when a job description is given."""
    try:
        resume = _require_resume(db, request.resume_id, current_user.id)

        job_description = None
        inline_job = bool(request.job_text and request.job_text.strip())
        if request.job_description_id:
            job_description = resume_store.get_job_description(db, request.job_description_id, current_user.id)
            if not job_description:
                raise HTTPException(status_code=404, detail="Job description not found")
            inline_job = False

        if request.create_tailored_version and job_description is None and not inline_job:
            raise HTTPException(status_code=400, detail="A job description is required to create a tailored version")

        profile = get_or_create_profile(db, current_user.id, current_user.email)
        check = check_usage_limits(db, profile, "job_analyses")
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

        resume_text = resume_store.ensure_raw_text(db, resume)
        if not resume_text.strip():
            raise HTTPException(status_code=400, detail="Resume has no content to analyze")

        if inline_job:
            job_description = resume_store.create_job_description(
                db,
                user_id=current_user.id,
                title=request.job_title or "Untitled role",
                description=request.job_text,
                company=request.company,
            )

        analysis = await resume_engine.analyze_resume(
            resume_text,
            job_text=job_description.description if job_description else None,
            job_title=job_description.title if job_description else None,
        )

        if request.create_tailored_version:
            target = resume_store.create_tailored_resume(db, resume, job_description, analysis)
        else:
            target = resume_store.save_analysis(
                db, resume, analysis, job_description.id if job_description else None
            )

        increment_usage(db, profile, "job_analyses")
        track_usage(db, current_user.id, "resume_analysis", target.id, details={"analysis_type": analysis["analysis_type"]})

        return JSONResponse(content={
            "success": True,
            "analysis": analysis,
            "resume": dump(ResumeResponse, target),
            "job_description_id": job_description.id if job_description else None,
            "tailored": request.create_tailored_version,
        })
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Resume Analyze")


@router.post("/generate-summary")
async def generate_summary(
    request: GenerateSummaryRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        _require_ai_improvements(db, current_user)
        resume = _require_resume(db, request.resume_id, current_user.id)
        job_description = None
        if request.job_description_id:
            job_description = resume_store.get_job_description(db, request.job_description_id, current_user.id)

        result = await resume_engine.generate_summary(
            resume_store.ensure_raw_text(db, resume),
            job_text=resume_store.job_summary(job_description),
            tone=request.tone,
        )
        return {"success": True, **result}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Generate Summary")


@router.post("/optimize-bullet")
async def optimize_bullet(
    request: OptimizeBulletRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.mode not in resume_engine.OPTIMIZE_MODES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid mode. Supported: {', '.join(resume_engine.OPTIMIZE_MODES)}",
        )
    try:
        _require_ai_improvements(db, current_user)
        result = await resume_engine.optimize_bullet(
            request.bullet, request.mode, job_title=request.job_title, context=request.context
        )
        return {"success": True, **result}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Optimize Bullet")


@router.post("/generate-bullets")
async def generate_bullets(
    request: GenerateBulletsRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        _require_ai_improvements(db, current_user)
        bullets = await resume_engine.generate_bullets(
            request.position, request.company, request.description, request.count
        )
        return {"success": True, "bullets": bullets}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Generate Bullets")


@router.post("/suggest-skills")
async def suggest_skills(
    request: SuggestSkillsRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        _require_ai_improvements(db, current_user)
        resume = _require_resume(db, request.resume_id, current_user.id)
        job_description = None
        if request.job_description_id:
            job_description = resume_store.get_job_description(db, request.job_description_id, current_user.id)

        existing = []
        for skill in (resume.content or {}).get("skills") or []:
            if isinstance(skill, dict):
                existing.extend(skill.get("keywords") or [skill.get("name")])
            elif isinstance(skill, str):
                existing.append(skill)

        result = await resume_engine.suggest_skills(
            resume_store.ensure_raw_text(db, resume),
            job_text=resume_store.job_summary(job_description),
            existing=[s for s in existing if s],
        )
        return {"success": True, **result}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Suggest Skills")


@router.post("/analyze-bullets")
async def analyze_bullets(
    request: AnalyzeBulletsRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Instant bullet scoring, no model call."""
    if request.bullets is not None:
        bullets = request.bullets
    elif request.resume_id:
        bullets = resume_bullets(_require_resume(db, request.resume_id, current_user.id).content or {})
    else:
        raise HTTPException(status_code=400, detail="Provide bullets or a resume_id")
    return {"success": True, **analyze_all_bullets(bullets)}


@router.get("/{resume_id}")
async def get_resume(
    resume_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resume = _require_resume(db, resume_id, current_user.id)
    return {"success": True, "resume": dump(ResumeResponse, resume)}


@router.put("/{resume_id}")
async def update_resume(
    resume_id: str,
    request: UpdateResumeRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resume = _require_resume(db, resume_id, current_user.id)
    if request.title is not None and not request.title.strip():
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    resume = resume_store.update_resume(
        db, resume, title=request.title, content=request.content, raw_text=request.raw_text
    )
    return {"success": True, "resume": dump(ResumeResponse, resume)}


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resume = _require_resume(db, resume_id, current_user.id)
    resume_store.delete_resume(db, resume)
    return {"success": True, "deleted": resume_id}
