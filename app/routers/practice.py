import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.schemas import (
    PracticeSessionResponse,
    PracticeSessionDetail,
    PracticeQuestionResponse,
    PracticeAnswerResponse,
    dump,
)
from app.services import practice_engine
from app.services import practice_sessions as store
from app.services.errors import service_error, limit_reached
from app.services.interview_engine import score_answer
from app.services.llm import LLMError
from app.services.resumes import get_resume, get_job_description, ensure_raw_text, job_summary
from app.services.resume_text import resume_summary
from app.services.subscription import check_usage_limits, increment_usage, track_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/practice", tags=["practice"])

MAX_QUESTIONS = 10


class PracticeQuestionsRequest(BaseModel):
    category: str
    difficulty: str = "medium"
    question_count: int = 5
    resume_id: Optional[str] = None
    job_description_id: Optional[str] = None


class PracticeAnswerRequest(BaseModel):
    question_id: str
    transcript: str
    audio_url: Optional[str] = None
    duration_seconds: Optional[float] = None


class RegenerateQuestionRequest(BaseModel):
    question_id: str


def _require_session(db: Session, session_id: str, user_id: str):
    session = store.get_practice_session(db, session_id, user_id)
    if not session:
        raise HTTPException(status_code=404, detail="Practice session not found")
    return session


def _context(db: Session, session, user_id: str) -> tuple[Optional[str], Optional[str]]:
    resume_text = None
    if session.resume_id:
        resume = get_resume(db, session.resume_id, user_id)
        if resume:
            resume_text = resume_summary(ensure_raw_text(db, resume), resume.title)
    jd = get_job_description(db, session.job_description_id, user_id) if session.job_description_id else None
    return resume_text, job_summary(jd)


@router.post("/questions")
async def create_practice_session(
    request: PracticeQuestionsRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Start a practice session with freshly generated questions."""
    if request.category not in practice_engine.CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Category must be one of: {', '.join(practice_engine.CATEGORIES)}")
    if request.difficulty not in practice_engine.DIFFICULTIES:
        raise HTTPException(status_code=400, detail=f"Difficulty must be one of: {', '.join(practice_engine.DIFFICULTIES)}")
    if not 1 <= request.question_count <= MAX_QUESTIONS:
        raise HTTPException(status_code=400, detail=f"question_count must be between 1 and {MAX_QUESTIONS}")

    try:
        profile = get_or_create_profile(db, current_user.id, current_user.email)
        check = check_usage_limits(db, profile, "star_voice_sessions")
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

        resume = None
        if request.resume_id:
            resume = get_resume(db, request.resume_id, current_user.id)
            if not resume:
                raise HTTPException(status_code=404, detail="Resume not found")
        jd = None
        if request.job_description_id:
            jd = get_job_description(db, request.job_description_id, current_user.id)
            if not jd:
                raise HTTPException(status_code=404, detail="Job description not found")

        company = None
        if resume:
            experience = (resume.content or {}).get("experience") or []
            if experience and isinstance(experience[0], dict):
                company = experience[0].get("company")

        questions = await practice_engine.generate_practice_questions(
            category=request.category,
            difficulty=request.difficulty,
            count=request.question_count,
            resume_text=ensure_raw_text(db, resume) if resume else None,
            job_text=jd.description if jd else None,
            job_title=jd.title if jd else None,
            company=jd.company if jd and jd.company else company,
            previous_questions=store.recent_question_texts(db, current_user.id),
        )
        for q in questions:
            q["difficulty"] = practice_engine.question_difficulty(request.difficulty)

        session = store.create_practice_session(
            db,
            user_id=current_user.id,
            category=request.category,
            difficulty=request.difficulty,
            questions=questions,
            resume_id=resume.id if resume else None,
            job_description_id=jd.id if jd else None,
        )

        increment_usage(db, profile, "star_voice_sessions")
        track_usage(
            db, current_user.id, "practice_session", session.id,
            details={"category": request.category, "difficulty": request.difficulty, "question_count": len(questions)},
        )
        logger.info(f"[Practice Questions] Session {session.id} with {len(questions)} questions")

        return JSONResponse(status_code=201, content={
            "success": True,
            "session": dump(PracticeSessionResponse, session),
            "questions": [
                {**dump(PracticeQuestionResponse, pq), "tips": q.get("tips", []), "suggested_duration": q.get("suggested_duration", 120)}
                for pq, q in zip(session.questions, questions)
            ],
        })
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Practice Questions")


@router.get("/sessions")
async def list_practice_sessions(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "sessions": [dump(PracticeSessionResponse, s) for s in store.list_practice_sessions(db, current_user.id)],
    }


@router.get("/session/{session_id}")
async def get_practice_session(
    session_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = _require_session(db, session_id, current_user.id)
    return {"success": True, "session": dump(PracticeSessionDetail, session)}


@router.post("/session/{session_id}/answer")
async def answer_practice_question(
    session_id: str,
    request: PracticeAnswerRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Score one answer and return the next unanswered question."""
    try:
        session = _require_session(db, session_id, current_user.id)
        if session.status == "completed":
            raise HTTPException(status_code=400, detail="Practice session already completed")
        if not request.transcript.strip():
            raise HTTPException(status_code=400, detail="Transcript cannot be empty")

        question = store.get_question(session, request.question_id)
        if not question:
            raise HTTPException(status_code=404, detail="Question not found")

        resume_text, jd_text = _context(db, session, current_user.id)
        evaluation = await score_answer(question.question_text, request.transcript, resume_text, jd_text)

        answer = store.save_answer(
            db,
            session,
            question,
            user_id=current_user.id,
            transcript=request.transcript,
            evaluation=evaluation,
            audio_url=request.audio_url,
            duration_seconds=request.duration_seconds,
        )
        next_question = store.next_unanswered_question(session)

        return {
            "success": True,
            "evaluation": evaluation,
            "answer": dump(PracticeAnswerResponse, answer),
            "next_question": dump(PracticeQuestionResponse, next_question) if next_question else None,
            "is_session_finished": next_question is None,
            "completed_questions": session.completed_questions,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Practice Answer")


@router.post("/session/{session_id}/regenerate")
async def regenerate_practice_question(
    session_id: str,
    request: RegenerateQuestionRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = _require_session(db, session_id, current_user.id)
        question = store.get_question(session, request.question_id)
        if not question:
            raise HTTPException(status_code=404, detail="Question not found")
        if question.answers:
            raise HTTPException(status_code=400, detail="Answered questions cannot be regenerated")

        avoid = [q.question_text for q in session.questions] + store.recent_question_texts(db, current_user.id)
        text = await practice_engine.regenerate_question(session.category, question.difficulty, question.question_text, avoid)
        question = store.replace_question_text(db, question, text)
        return {"success": True, "question": dump(PracticeQuestionResponse, question)}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Practice Regenerate")


@router.post("/session/{session_id}/complete")
async def complete_practice_session(
    session_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Close the session. The coaching summary is best effort."""
    try:
        session = _require_session(db, session_id, current_user.id)
        if session.status == "completed":
            return {"success": True, "already_completed": True, "session": dump(PracticeSessionResponse, session)}

        answers = store.session_answers(session)
        feedback = None
        if answers:
            try:
                feedback = await practice_engine.summarize_practice_session(session.category, answers)
            except LLMError as e:
                logger.warning(f"[Practice Complete] Summary failed for {session_id}: {e}")

        session = store.complete_practice_session(db, session, feedback)
        return {"success": True, "already_completed": False, "session": dump(PracticeSessionResponse, session)}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Practice Complete")
