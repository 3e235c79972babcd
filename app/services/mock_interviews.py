"""Mock interview persistence and state transitions."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.mock_interview import MockInterview, MockInterviewExchange, INTERVIEW_PHASES

logger = logging.getLogger(__name__)

QUALITY_SCORES = {"strong": 80, "average": 50, "weak": 30}


def create_mock_interview(
    db: Session,
    user_id: str,
    plan: dict,
    persona: str,
    duration_minutes: int,
    resume_id: Optional[str] = None,
    job_description_id: Optional[str] = None,
    focus: str = "mixed",
    difficulty: str = "standard",
) -> MockInterview:
    """Insert a planned interview with one exchange per planned question."""
    questions = plan.get("questions") or []
    interview = MockInterview(
        user_id=user_id,
        resume_id=resume_id,
        job_description_id=job_description_id,
        persona=persona,
        duration_minutes=duration_minutes,
        focus=focus,
        difficulty=difficulty,
        status="planned",
        current_phase="welcome",
        current_question_index=0,
        interview_plan=plan,
        planned_questions=len(questions),
    )
    for order, q in enumerate(questions, start=1):
        interview.exchanges.append(MockInterviewExchange(
            user_id=user_id,
            exchange_order=order,
            question_text=q["text"],
            question_type=q.get("type") or "behavioral",
            target_competency=q.get("target_competency"),
            follow_up_allowed=q.get("follow_up_allowed", True),
        ))
    db.add(interview)
    db.commit()
    db.refresh(interview)
    return interview


def get_mock_interview(db: Session, interview_id: str, user_id: str) -> Optional[MockInterview]:
    return (
        db.query(MockInterview)
        .filter(MockInterview.id == interview_id, MockInterview.user_id == user_id)
        .first()
    )


def list_mock_interviews(db: Session, user_id: str) -> list[MockInterview]:
    return (
        db.query(MockInterview)
        .filter(MockInterview.user_id == user_id)
        .order_by(MockInterview.created_at.desc())
        .all()
    )


def delete_mock_interview(db: Session, interview: MockInterview) -> None:
    db.delete(interview)
    db.commit()


def get_exchange(interview: MockInterview, exchange_id: Optional[str] = None, order: Optional[int] = None) -> Optional[MockInterviewExchange]:
    for exchange in interview.exchanges:
        if exchange_id and exchange.id == exchange_id:
            return exchange
        if order is not None and exchange.exchange_order == order:
            return exchange
    return None


def next_unanswered(interview: MockInterview) -> Optional[MockInterviewExchange]:
    for exchange in interview.exchanges:
        if exchange.answer_transcript is None:
            return exchange
    return None


def answered_exchanges(interview: MockInterview) -> list[MockInterviewExchange]:
    return [e for e in interview.exchanges if e.answer_transcript is not None]


def start_interview(db: Session, interview: MockInterview) -> MockInterview:
    """planned -> in_progress. Already started interviews are left as they are."""
    if interview.status == "planned":
        interview.status = "in_progress"
        interview.started_at = datetime.utcnow()
        db.commit()
        db.refresh(interview)
    return interview


def record_answer(
    db: Session,
    interview: MockInterview,
    exchange: MockInterviewExchange,
    transcript: str,
    evaluation: dict,
    follow_up_question: Optional[str] = None,
) -> MockInterviewExchange:
    """Save a main answer and move the interview to the next question."""
    if interview.status == "planned":
        interview.status = "in_progress"
        interview.started_at = datetime.utcnow()

    exchange.answer_transcript = transcript
    exchange.answer_score = evaluation.get("overall_score")
    exchange.evaluation = evaluation
    exchange.answered_at = datetime.utcnow()
    if follow_up_question:
        exchange.follow_up_question = follow_up_question

    interview.current_phase = "questions"
    interview.current_question_index = max(interview.current_question_index or 0, exchange.exchange_order)
    db.commit()
    db.refresh(exchange)
    return exchange


def record_follow_up_answer(db: Session, exchange: MockInterviewExchange, transcript: str, score: float) -> MockInterviewExchange:
    exchange.follow_up_transcript = transcript
    exchange.follow_up_score = score
    db.commit()
    db.refresh(exchange)
    return exchange


def save_tool_answer(db: Session, interview: MockInterview, question_index: int, transcript: str, quality: str) -> Optional[MockInterviewExchange]:
    """Answer reported by the realtime interviewer. ``question_index`` is 0-based.

    Returns None when the plan has no question at that index.
    """
    if quality not in QUALITY_SCORES:
        raise ValueError(f"Unknown answer quality: {quality}")

    exchange = get_exchange(interview, order=question_index + 1)
    if exchange is None:
        return None

    if interview.status == "planned":
        interview.status = "in_progress"
        interview.started_at = datetime.utcnow()

    exchange.answer_transcript = transcript
    exchange.answer_score = QUALITY_SCORES[quality]
    exchange.evaluation = {"quality": quality, "source": "realtime"}
    exchange.answered_at = datetime.utcnow()
    interview.current_question_index = max(interview.current_question_index or 0, exchange.exchange_order)
    db.commit()
    db.refresh(exchange)
    return exchange


def advance_phase(db: Session, interview: MockInterview, phase: str) -> MockInterview:
    if phase not in INTERVIEW_PHASES:
        raise ValueError(f"Unknown interview phase: {phase}")
    interview.current_phase = phase
    if interview.status == "planned":
        interview.status = "in_progress"
        interview.started_at = datetime.utcnow()
    db.commit()
    db.refresh(interview)
    return interview


def average_answer_score(interview: MockInterview) -> Optional[float]:
    scores = [e.answer_score for e in interview.exchanges if e.answer_score is not None]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 1)


def complete_interview(db: Session, interview: MockInterview, report: Optional[dict] = None, summary: Optional[str] = None) -> MockInterview:
    interview.status = "completed"
    interview.current_phase = "completed"
    interview.completed_at = datetime.utcnow()
    if report:
        interview.report = report
        interview.overall_score = report.get("overall_score")
        interview.verdict = report.get("verdict")
        interview.performance_breakdown = report.get("performance_breakdown")
        interview.strengths = report.get("key_strengths")
        interview.gaps = report.get("key_gaps")
        interview.improvement_plan = report.get("improvement_plan")
        interview.summary = report.get("summary")
    else:
        interview.overall_score = average_answer_score(interview)
        if summary:
            interview.summary = summary
    db.commit()
    db.refresh(interview)
    return interview


def abandon_interview(db: Session, interview: MockInterview, summary: Optional[str] = None) -> MockInterview:
    interview.status = "abandoned"
    interview.current_phase = "completed"
    interview.completed_at = datetime.utcnow()
    interview.overall_score = average_answer_score(interview)
    if summary:
        interview.summary = summary
    db.commit()
    db.refresh(interview)
    return interview
