from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user
from app.schemas import JobDescriptionResponse, dump
from app.services import resumes as store

router = APIRouter(prefix="/api/job-description", tags=["job descriptions"])


class CreateJobDescriptionRequest(BaseModel):
    title: str
    description: str
    company: Optional[str] = None
    url: Optional[str] = None


class UpdateJobDescriptionRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    company: Optional[str] = None
    url: Optional[str] = None


def _require_job_description(db: Session, job_description_id: str, user_id: str):
    jd = store.get_job_description(db, job_description_id, user_id)
    if not jd:
        raise HTTPException(status_code=404, detail="Job description not found")
    return jd


@router.post("/create")
async def create_job_description(
    request: CreateJobDescriptionRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not request.title.strip() or not request.description.strip():
        raise HTTPException(status_code=400, detail="Title and description are required")

    jd = store.create_job_description(
        db,
        user_id=current_user.id,
        title=request.title,
        description=request.description,
        company=request.company,
        url=request.url,
    )
    return JSONResponse(status_code=201, content={"success": True, "job_description": dump(JobDescriptionResponse, jd)})


@router.get("/list")
async def list_job_descriptions(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "job_descriptions": [dump(JobDescriptionResponse, jd) for jd in store.list_job_descriptions(db, current_user.id)],
    }


@router.get("/{job_description_id}")
async def get_job_description(
    job_description_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    jd = _require_job_description(db, job_description_id, current_user.id)
    return {"success": True, "job_description": dump(JobDescriptionResponse, jd)}


@router.put("/{job_description_id}")
async def update_job_description(
    job_description_id: str,
    request: UpdateJobDescriptionRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    jd = _require_job_description(db, job_description_id, current_user.id)
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field in ("title", "description"):
        if field in updates and not updates[field].strip():
            raise HTTPException(status_code=400, detail=f"{field.title()} cannot be empty")

    for field, value in updates.items():
        setattr(jd, field, value.strip())
    db.commit()
    db.refresh(jd)
    return {"success": True, "job_description": dump(JobDescriptionResponse, jd)}


@router.delete("/{job_description_id}")
async def delete_job_description(
    job_description_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    jd = _require_job_description(db, job_description_id, current_user.id)
    db.delete(jd)
    db.commit()
    return {"success": True, "deleted": job_description_id}
