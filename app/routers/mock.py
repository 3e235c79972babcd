import logging
from typing import Optional, Any
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import AuthUser, get_current_user, get_or_create_profile
from app.schemas import MockInterviewResponse, MockInterviewDetail, ExchangeResponse, dump
from app.services import interview_engine
from app.services import mock_interviews as store
from app.services.errors import service_error, limit_reached
from app.services.resumes import get_resume, get_job_description, ensure_raw_text, job_summary
from app.services.resume_text import resume_summary
from app.services.subscription import check_usage_limits, increment_usage, track_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mock", tags=["mock interviews"])

MIN_MINUTES_TO_START = 15
END_REASONS = ("completed", "candidate_ended", "technical_issue")


class CreateMockInterviewRequest(BaseModel):
    resume_id: str
    duration_minutes: int = 15
    job_description_id: Optional[str] = None
    persona_id: Optional[str] = None
    focus: str = "mixed"
    difficulty: str = "standard"


class SubmitAnswerRequest(BaseModel):
    transcript: str
    exchange_id: Optional[str] = None
    exchange_order: Optional[int] = None
    is_follow_up: bool = False


class ToolResponseRequest(BaseModel):
    tool: str
    arguments: dict[str, Any] = {}


def _require_interview(db: Session, interview_id: str, user_id: str):
    interview = store.get_mock_interview(db, interview_id, user_id)
    if not interview:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview


def _context(db: Session, interview, user_id: str) -> tuple[Optional[str], Optional[str]]:
    """Resume and job summaries for prompts."""
    resume_text = None
    if interview.resume_id:
        resume = get_resume(db, interview.resume_id, user_id)
        if resume:
            resume_text = resume_summary(ensure_raw_text(db, resume), resume.title)
    jd = get_job_description(db, interview.job_description_id, user_id) if interview.job_description_id else None
    return resume_text, job_summary(jd)


def _stored_report(interview) -> dict:
    """The saved report, or what an interview ended by the interviewer recorded."""
    if interview.report:
        return interview.report
    return {
        "verdict": interview.verdict,
        "overall_score": interview.overall_score,
        "performance_breakdown": interview.performance_breakdown or {},
        "key_strengths": interview.strengths or [],
        "key_gaps": interview.gaps or [],
        "improvement_plan": interview.improvement_plan or {},
        "summary": interview.summary or "",
        "questions_answered": len(store.answered_exchanges(interview)),
    }


def _exchange_payload(exchange) -> Optional[dict]:
    return dump(ExchangeResponse, exchange) if exchange is not None else None


@router.get("/check-limits")
async def check_limits(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = get_or_create_profile(db, current_user.id, current_user.email)
    check = check_usage_limits(db, profile, "mock_interview_minutes", amount=MIN_MINUTES_TO_START)
    return {
        "success": True,
        "can_start": check.allowed,
        "tier": check.tier,
        "minutes_used": check.used,
        "minutes_limit": check.limit,
        "minutes_remaining": check.remaining,
        "reason": check.reason,
        "upgrade_to": check.upgrade_to,
    }


@router.post("/create")
async def create_mock_interview(
    request: CreateMockInterviewRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Plan a mock interview and pre-create one exchange per question."""
    if request.duration_minutes not in interview_engine.DURATIONS:
        raise HTTPException(status_code=400, detail="Duration must be 15, 20, or 30 minutes")
    if request.focus not in interview_engine.FOCUS_OPTIONS:
        raise HTTPException(status_code=400, detail=f"Focus must be one of: {', '.join(interview_engine.FOCUS_OPTIONS)}")
    if request.difficulty not in interview_engine.DIFFICULTY_OPTIONS:
        raise HTTPException(status_code=400, detail=f"Difficulty must be one of: {', '.join(interview_engine.DIFFICULTY_OPTIONS)}")

    try:
        resume = get_resume(db, request.resume_id, current_user.id)
        if not resume:
            raise HTTPException(status_code=404, detail="Resume not found")
        jd = None
        if request.job_description_id:
            jd = get_job_description(db, request.job_description_id, current_user.id)
            if not jd:
                raise HTTPException(status_code=404, detail="Job description not found")

        profile = get_or_create_profile(db, current_user.id, current_user.email)
        check = check_usage_limits(db, profile, "mock_interview_minutes", amount=request.duration_minutes)
        if not check.allowed:
            raise limit_reached(check.reason, check.upgrade_to, check.remaining)

        persona = (
            request.persona_id
            or (profile.preferences or {}).get("default_persona")
            or interview_engine.recommend_persona(jd.title if jd else None)
        )
        if persona not in interview_engine.PERSONAS:
            raise HTTPException(status_code=400, detail=f"Unknown persona: {persona}")

        plan = await interview_engine.generate_interview_plan(
            resume_summary=resume_summary(ensure_raw_text(db, resume), resume.title),
            persona_id=persona,
            duration_minutes=request.duration_minutes,
            job_summary=job_summary(jd),
            focus=request.focus,
            difficulty=request.difficulty,
        )

        interview = store.create_mock_interview(
            db,
            user_id=current_user.id,
            plan=plan,
            persona=persona,
            duration_minutes=request.duration_minutes,
            resume_id=resume.id,
            job_description_id=jd.id if jd else None,
            focus=request.focus,
            difficulty=request.difficulty,
        )

        increment_usage(db, profile, "mock_interviews")
        increment_usage(db, profile, "mock_interview_minutes", request.duration_minutes)
        track_usage(
            db, current_user.id, "mock_interview", interview.id,
            quantity=request.duration_minutes,
            details={"persona": persona, "focus": request.focus},
        )
        logger.info(f"[Mock Create] {interview.id}: {interview.planned_questions} questions, persona {persona}")

        return JSONResponse(status_code=201, content={"success": True, "interview": dump(MockInterviewDetail, interview)})
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Mock Create")


@router.get("/list")
async def list_mock_interviews(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "interviews": [dump(MockInterviewResponse, i) for i in store.list_mock_interviews(db, current_user.id)],
    }


@router.get("/{interview_id}")
async def get_mock_interview(
    interview_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _require_interview(db, interview_id, current_user.id)
    return {"success": True, "interview": dump(MockInterviewDetail, interview)}


@router.delete("/{interview_id}")
async def delete_mock_interview(
    interview_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _require_interview(db, interview_id, current_user.id)
    store.delete_mock_interview(db, interview)
    return {"success": True, "deleted": interview_id}


@router.post("/{interview_id}/start")
async def start_mock_interview(
    interview_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Begin the session and hand the client its interviewer instructions."""
    interview = _require_interview(db, interview_id, current_user.id)
    if interview.status in ("completed", "abandoned"):
        raise HTTPException(status_code=400, detail="Interview already completed")

    interview = store.start_interview(db, interview)
    jd = get_job_description(db, interview.job_description_id, current_user.id) if interview.job_description_id else None
    session = interview_engine.build_interviewer_instructions(
        interview.persona,
        interview.interview_plan or {},
        candidate_name=current_user.full_name,
        job_title=jd.title if jd else None,
    )
    return {
        "success": True,
        "interview": dump(MockInterviewResponse, interview),
        "session": session,
        "current_exchange": _exchange_payload(store.next_unanswered(interview)),
    }


@router.post("/{interview_id}/answer")
async def submit_answer(
    interview_id: str,
    request: SubmitAnswerRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Score an answer, decide on a follow-up and move to the next question."""
    try:
        interview = _require_interview(db, interview_id, current_user.id)
        if interview.status in ("completed", "abandoned"):
            raise HTTPException(status_code=400, detail="Interview already completed")
        if not request.transcript.strip():
            raise HTTPException(status_code=400, detail="Transcript cannot be empty")

        if request.exchange_id or request.exchange_order is not None:
            exchange = store.get_exchange(interview, exchange_id=request.exchange_id, order=request.exchange_order)
        else:
            exchange = store.next_unanswered(interview)
        if exchange is None:
            raise HTTPException(status_code=404, detail="Question not found")

        resume_text, jd_text = _context(db, interview, current_user.id)

        if request.is_follow_up:
            if not exchange.follow_up_question:
                raise HTTPException(status_code=400, detail="No follow-up question was asked for this exchange")
            if exchange.follow_up_transcript is not None:
                raise HTTPException(status_code=409, detail="Follow-up already answered")
            evaluation = await interview_engine.score_answer(
                exchange.follow_up_question, request.transcript, resume_text, jd_text
            )
            exchange = store.record_follow_up_answer(db, exchange, request.transcript, evaluation["overall_score"])
            next_exchange = store.next_unanswered(interview)
            return {
                "success": True,
                "evaluation": evaluation,
                "exchange": _exchange_payload(exchange),
                "follow_up_question": None,
                "next_exchange": _exchange_payload(next_exchange),
                "is_last_question": next_exchange is None,
            }

        if exchange.answer_transcript is not None:
            raise HTTPException(status_code=409, detail="Question already answered")

        evaluation = await interview_engine.score_answer(
            exchange.question_text, request.transcript, resume_text, jd_text
        )
        follow_up = None
        if exchange.follow_up_allowed:
            follow_up = await interview_engine.generate_follow_up(
                exchange.question_text,
                request.transcript,
                evaluation,
                follow_ups_asked=1 if exchange.follow_up_question else 0,
            )

        exchange = store.record_answer(db, interview, exchange, request.transcript, evaluation, follow_up)
        next_exchange = store.next_unanswered(interview)
        return {
            "success": True,
            "evaluation": evaluation,
            "exchange": _exchange_payload(exchange),
            "follow_up_question": follow_up,
            "next_exchange": _exchange_payload(next_exchange),
            "is_last_question": next_exchange is None,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Mock Answer")


@router.post("/{interview_id}/tool-response")
async def tool_response(
    interview_id: str,
    request: ToolResponseRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Apply a function call made by the realtime interviewer."""
    interview = _require_interview(db, interview_id, current_user.id)
    if interview.status in ("completed", "abandoned"):
        raise HTTPException(status_code=400, detail="Interview has already ended")
    args = request.arguments

    if request.tool == "save_candidate_answer":
        try:
            question_index = int(args.get("question_index"))
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail="question_index is required")
        quality = args.get("answer_quality") or "average"
        if quality not in store.QUALITY_SCORES:
            raise HTTPException(status_code=400, detail="answer_quality must be strong, average, or weak")

        exchange = store.save_tool_answer(
            db, interview, question_index, str(args.get("answer_summary") or ""), quality
        )
        if exchange is None:
            raise HTTPException(status_code=400, detail="Question not found")
        logger.info(f"[Tool Response] {interview.id}: saved answer {question_index} ({quality})")
        return {
            "success": True,
            "question_index": question_index,
            "next_question_index": question_index + 1,
            "score": exchange.answer_score,
        }

    if request.tool == "advance_phase":
        phase = args.get("next_phase")
        try:
            interview = store.advance_phase(db, interview, phase)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        logger.info(f"[Tool Response] {interview.id}: phase -> {phase} ({args.get('reason')})")
        return {"success": True, "phase": interview.current_phase}

    if request.tool == "end_interview":
        reason = args.get("reason") or "completed"
        if reason not in END_REASONS:
            raise HTTPException(status_code=400, detail=f"reason must be one of: {', '.join(END_REASONS)}")
        impression = args.get("overall_impression")
        if reason == "completed":
            interview = store.complete_interview(db, interview, summary=impression)
        else:
            interview = store.abandon_interview(db, interview, summary=impression)
        logger.info(f"[Tool Response] {interview.id}: ended ({reason})")
        return {"success": True, "status": interview.status, "reason": reason}

    raise HTTPException(status_code=400, detail="Unknown tool type")


@router.post("/{interview_id}/complete")
async def complete_mock_interview(
    interview_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Generate and store the final report."""
    try:
        interview = _require_interview(db, interview_id, current_user.id)
        if interview.status == "completed":
            return {
                "success": True,
                "already_completed": True,
                "report": _stored_report(interview),
                "interview": dump(MockInterviewResponse, interview),
            }

        answered = store.answered_exchanges(interview)
        if not answered:
            raise HTTPException(status_code=400, detail="No answers recorded for this interview")

        resume_text, jd_text = _context(db, interview, current_user.id)
        report = await interview_engine.generate_mock_report(
            exchanges=[
                {"question": e.question_text, "answer": e.answer_transcript, "score": e.answer_score or 0}
                for e in answered
            ],
            persona_id=interview.persona,
            duration_minutes=interview.duration_minutes,
            resume_summary=resume_text,
            job_summary=jd_text,
        )
        report["questions_answered"] = len(answered)

        try:
            interview = store.complete_interview(db, interview, report=report)
            saved = True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[Mock Complete] Failed to save report for {interview_id}: {e}")
            saved = False

        return {"success": True, "already_completed": False, "saved": saved, "report": report}
    except HTTPException:
        raise
    except Exception as e:
        raise service_error(e, "Mock Complete")
