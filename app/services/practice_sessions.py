"""Practice session persistence."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.practice import PracticeSession, PracticeQuestion, PracticeAnswer

RECENT_SESSIONS_TO_AVOID = 10


def recent_question_texts(db: Session, user_id: str, limit: int = 50) -> list[str]:
    """Questions from the user's last sessions, newest first."""
    session_ids = [
        row.id
        for row in db.query(PracticeSession.id)
        .filter(PracticeSession.user_id == user_id)
        .order_by(PracticeSession.created_at.desc())
        .limit(RECENT_SESSIONS_TO_AVOID)
        .all()
    ]
    if not session_ids:
        return []
    rows = (
        db.query(PracticeQuestion.question_text)
        .filter(PracticeQuestion.session_id.in_(session_ids))
        .order_by(PracticeQuestion.created_at.desc())
        .limit(limit)
        .all()
    )
    return [row.question_text for row in rows]


def create_practice_session(
    db: Session,
    user_id: str,
    category: str,
    difficulty: str,
    questions: list[dict],
    resume_id: Optional[str] = None,
    job_description_id: Optional[str] = None,
) -> PracticeSession:
    """``questions`` carry text and the per-question difficulty."""
    session = PracticeSession(
        user_id=user_id,
        resume_id=resume_id,
        job_description_id=job_description_id,
        category=category,
        difficulty=difficulty,
        status="in_progress",
        total_questions=len(questions),
        completed_questions=0,
    )
    for index, q in enumerate(questions):
        session.questions.append(PracticeQuestion(
            question_text=q["text"],
            question_type=q.get("type") or category,
            difficulty=q.get("difficulty") or difficulty,
            order_index=index,
        ))
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_practice_session(db: Session, session_id: str, user_id: str) -> Optional[PracticeSession]:
    return (
        db.query(PracticeSession)
        .filter(PracticeSession.id == session_id, PracticeSession.user_id == user_id)
        .first()
    )


def list_practice_sessions(db: Session, user_id: str) -> list[PracticeSession]:
    return (
        db.query(PracticeSession)
        .filter(PracticeSession.user_id == user_id)
        .order_by(PracticeSession.created_at.desc())
        .all()
    )


def get_question(session: PracticeSession, question_id: str) -> Optional[PracticeQuestion]:
    for question in session.questions:
        if question.id == question_id:
            return question
    return None


def latest_answer(question: PracticeQuestion) -> Optional[PracticeAnswer]:
    if not question.answers:
        return None
    return max(question.answers, key=lambda a: a.created_at or datetime.min)


def next_unanswered_question(session: PracticeSession) -> Optional[PracticeQuestion]:
    for question in session.questions:
        if not question.answers:
            return question
    return None


def save_answer(
    db: Session,
    session: PracticeSession,
    question: PracticeQuestion,
    user_id: str,
    transcript: str,
    evaluation: dict,
    audio_url: Optional[str] = None,
    duration_seconds: Optional[float] = None,
) -> PracticeAnswer:
    star = evaluation.get("star") or {}
    answer = PracticeAnswer(
        question_id=question.id,
        user_id=user_id,
        transcript=transcript,
        audio_url=audio_url,
        duration_seconds=round(duration_seconds) if duration_seconds is not None else None,
        overall_score=evaluation.get("overall_score"),
        star_analysis={
            "situation": bool(star.get("has_situation")),
            "task": bool(star.get("has_task")),
            "action": bool(star.get("has_action")),
            "result": bool(star.get("has_result")),
        },
        strengths=evaluation.get("strengths"),
        improvements=evaluation.get("areas_for_improvement"),
        summary=evaluation.get("one_sentence_summary"),
        clarity_score=evaluation.get("clarity_score"),
        relevance_score=evaluation.get("relevance_score"),
        impact_score=evaluation.get("impact_score"),
    )
    question.answers.append(answer)
    db.flush()
    session.completed_questions = sum(1 for q in session.questions if q.answers)
    db.commit()
    db.refresh(answer)
    return answer


def replace_question_text(db: Session, question: PracticeQuestion, text: str) -> PracticeQuestion:
    question.question_text = text
    db.commit()
    db.refresh(question)
    return question


def session_answers(session: PracticeSession) -> list[dict]:
    """Latest answer per question, for scoring and summaries."""
    answers = []
    for question in session.questions:
        answer = latest_answer(question)
        if answer is None:
            continue
        answers.append({
            "question": question.question_text,
            "transcript": answer.transcript,
            "score": answer.overall_score,
        })
    return answers


def complete_practice_session(db: Session, session: PracticeSession, feedback: Optional[dict] = None) -> PracticeSession:
    scores = [a["score"] for a in session_answers(session) if a["score"] is not None]
    session.status = "completed"
    session.completed_at = datetime.utcnow()
    session.average_score = round(sum(scores) / len(scores), 1) if scores else None
    if feedback is not None:
        session.overall_feedback = feedback
    db.commit()
    db.refresh(session)
    return session
