"""Resume and job description persistence."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.resume import Resume
from app.models.job_description import JobDescription
from app.services.resume_text import blank_resume_content, resume_to_text


def get_resume(db: Session, resume_id: str, user_id: str) -> Optional[Resume]:
    """Get a resume owned by the user."""
    return (
        db.query(Resume)
        .filter(Resume.id == resume_id, Resume.user_id == user_id)
        .first()
    )


def list_resumes(db: Session, user_id: str) -> list[Resume]:
    return (
        db.query(Resume)
        .filter(Resume.user_id == user_id)
        .order_by(Resume.updated_at.desc())
        .all()
    )


def create_resume(
    db: Session,
    user_id: str,
    title: Optional[str] = None,
    content: Optional[dict] = None,
    raw_text: Optional[str] = None,
    job_description_id: Optional[str] = None,
) -> Resume:
    """Create a new base resume, blank unless content is given."""
    content = content or blank_resume_content()
    resume = Resume(
        user_id=user_id,
        title=title or f"Resume {datetime.utcnow():%Y-%m-%d}",
        content=content,
        raw_text=raw_text if raw_text is not None else resume_to_text(content),
        is_base_version=True,
        job_description_id=job_description_id,
    )
    db.add(resume)
    db.commit()
    db.refresh(resume)
    return resume


def update_resume(
    db: Session,
    resume: Resume,
    title: Optional[str] = None,
    content: Optional[dict] = None,
    raw_text: Optional[str] = None,
) -> Resume:
    if title is not None:
        resume.title = title
    if content is not None:
        resume.content = content
        # Keep the text view in sync unless the caller sent one
        if raw_text is None:
            resume.raw_text = resume_to_text(content)
    if raw_text is not None:
        resume.raw_text = raw_text
    resume.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(resume)
    return resume


def delete_resume(db: Session, resume: Resume) -> None:
    db.delete(resume)
    db.commit()


def duplicate_resume(db: Session, resume: Resume) -> Resume:
    copy = Resume(
        user_id=resume.user_id,
        title=f"{resume.title} (Copy)",
        content=dict(resume.content or {}),
        raw_text=resume.raw_text,
        is_base_version=resume.is_base_version,
        source_resume_id=resume.source_resume_id,
        job_description_id=resume.job_description_id,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


def ensure_raw_text(db: Session, resume: Resume) -> str:
    """Return the resume's text view, rebuilding and saving it when missing."""
    if resume.raw_text and resume.raw_text.strip():
        return resume.raw_text
    resume.raw_text = resume_to_text(resume.content or {})
    db.commit()
    return resume.raw_text


def save_analysis(db: Session, resume: Resume, analysis: dict, job_description_id: Optional[str] = None) -> Resume:
    resume.ats_score = analysis.get("ats_score")
    resume.jd_match_score = analysis.get("jd_match_score") if job_description_id else None
    resume.analysis_results = analysis
    resume.last_analyzed_at = datetime.utcnow()
    if job_description_id:
        resume.job_description_id = job_description_id
    db.commit()
    db.refresh(resume)
    return resume


def create_tailored_resume(
    db: Session,
    source: Resume,
    job_description: JobDescription,
    analysis: dict,
) -> Resume:
    """Copy a resume as a version tailored to one job, carrying the analysis."""
    tailored = Resume(
        user_id=source.user_id,
        title=f"{source.title} - {job_description.title}",
        content=dict(source.content or {}),
        raw_text=source.raw_text,
        is_base_version=False,
        source_resume_id=source.id,
        job_description_id=job_description.id,
        ats_score=analysis.get("ats_score"),
        jd_match_score=analysis.get("jd_match_score"),
        analysis_results=analysis,
        last_analyzed_at=datetime.utcnow(),
    )
    db.add(tailored)
    db.commit()
    db.refresh(tailored)
    return tailored


def get_job_description(db: Session, job_description_id: str, user_id: str) -> Optional[JobDescription]:
    """Get a job description owned by the user."""
    return (
        db.query(JobDescription)
        .filter(JobDescription.id == job_description_id, JobDescription.user_id == user_id)
        .first()
    )


def list_job_descriptions(db: Session, user_id: str) -> list[JobDescription]:
    return (
        db.query(JobDescription)
        .filter(JobDescription.user_id == user_id)
        .order_by(JobDescription.created_at.desc())
        .all()
    )


def create_job_description(
    db: Session,
    user_id: str,
    title: str,
    description: str,
    company: Optional[str] = None,
    url: Optional[str] = None,
) -> JobDescription:
    jd = JobDescription(
        user_id=user_id,
        title=title.strip(),
        description=description.strip(),
        company=company.strip() if company else None,
        url=url.strip() if url else None,
    )
    db.add(jd)
    db.commit()
    db.refresh(jd)
    return jd


def job_summary(jd: Optional[JobDescription], limit: int = 2000) -> Optional[str]:
    if jd is None:
        return None
    header = f"{jd.title} at {jd.company}" if jd.company else jd.title
    return f"{header}\n\n{jd.description}"[:limit]
