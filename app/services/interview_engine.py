"""Prompts for mock interviews: question plans, answer scoring, follow-ups and reports."""
import logging
from typing import Optional

from app.models.mock_interview import VERDICTS
from app.services.llm import generate_json, LLMError

logger = logging.getLogger(__name__)

PERSONAS = {
    "emma-hr": {
        "name": "Emma",
        "title": "HR Recruiter",
        "focus": "culture fit, soft skills, and career motivations",
        "style": "warm, encouraging and conversational",
    },
    "james-manager": {
        "name": "James",
        "title": "Hiring Manager",
        "focus": "leadership, results, and team dynamics",
        "style": "direct, results-oriented and curious about impact",
    },
    "sato-tech": {
        "name": "Sato",
        "title": "Technical Lead",
        "focus": "problem-solving, technical depth, and system design",
        "style": "precise, calm and probing on technical details",
    },
}
DEFAULT_PERSONA = "emma-hr"
DURATIONS = (15, 20, 30)
FOCUS_OPTIONS = ("behavioral", "technical", "mixed")
DIFFICULTY_OPTIONS = ("easy", "standard", "hard")
QUESTION_TYPES = ("intro", "behavioral", "technical", "closing")

# Clarity and relevance at or above this, with a complete STAR answer, need no follow-up
FOLLOW_UP_THRESHOLD = 75

_TECH_TITLE_WORDS = ("engineer", "developer", "architect", "devops", "scientist", "sre", "programmer", "technical")
_MANAGER_TITLE_WORDS = ("manager", "director", "lead", "head", "vp", "supervisor")


def recommend_persona(job_title: Optional[str]) -> str:
    title = (job_title or "").lower()
    if any(w in title for w in _TECH_TITLE_WORDS):
        return "sato-tech"
    if any(w in title for w in _MANAGER_TITLE_WORDS):
        return "james-manager"
    return DEFAULT_PERSONA


def behavioral_question_range(duration_minutes: int) -> str:
    if duration_minutes <= 15:
        return "2-3"
    if duration_minutes <= 25:
        return "3-4"
    return "4-5"


def fallback_plan(duration_minutes: int, focus: str = "mixed") -> dict:
    """Generic plan used when the model cannot produce one."""
    questions = [
        {"type": "intro", "text": "Tell me about yourself and why you're interested in this role.",
         "target_competency": "communication", "follow_up_allowed": False},
        {"type": "behavioral", "text": "Tell me about a time you had to solve a difficult problem at work. What did you do?",
         "target_competency": "problem_solving", "follow_up_allowed": True},
        {"type": "behavioral", "text": "Describe a situation where you disagreed with a teammate. How did you handle it?",
         "target_competency": "conflict_resolution", "follow_up_allowed": True},
    ]
    if duration_minutes >= 20:
        questions.append({"type": "behavioral", "text": "Tell me about a project you're most proud of and the impact it had.",
                          "target_competency": "impact", "follow_up_allowed": True})
    if focus in ("technical", "mixed"):
        questions.append({"type": "technical", "text": "Walk me through how you would design a system you've worked on if you started over today.",
                          "target_competency": "technical_depth", "follow_up_allowed": True})
    if duration_minutes >= 30:
        questions.append({"type": "behavioral", "text": "Tell me about a time you led others toward a goal without formal authority.",
                          "target_competency": "leadership", "follow_up_allowed": True})
    questions.append({"type": "closing", "text": "What questions do you have for me about the role or the team?",
                      "target_competency": "curiosity", "follow_up_allowed": False})

    for idx, q in enumerate(questions):
        q["id"] = f"q{idx + 1}"
    return {
        "questions": questions,
        "estimated_duration_minutes": duration_minutes,
        "focus_areas": ["communication", "problem_solving", "technical_depth" if focus != "behavioral" else "leadership"],
        "generated": False,
    }


def _normalize_plan(payload, duration_minutes: int) -> dict:
    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        raise LLMError("Model returned an invalid interview plan")

    questions = []
    for q in payload["questions"]:
        if not isinstance(q, dict) or not str(q.get("text") or "").strip():
            continue
        q_type = q.get("type") if q.get("type") in QUESTION_TYPES else "behavioral"
        questions.append({
            "id": str(q.get("id") or f"q{len(questions) + 1}"),
            "type": q_type,
            "text": str(q["text"]).strip(),
            "target_competency": str(q.get("target_competency") or "") or None,
            "follow_up_allowed": bool(q.get("follow_up_allowed", q_type in ("behavioral", "technical"))),
        })
    if not questions:
        raise LLMError("Model returned an empty interview plan")

    focus_areas = payload.get("focus_areas")
    return {
        "questions": questions,
        "estimated_duration_minutes": duration_minutes,
        "focus_areas": [str(f) for f in focus_areas] if isinstance(focus_areas, list) else [],
        "generated": True,
    }


async def generate_interview_plan(
    resume_summary: str,
    persona_id: str,
    duration_minutes: int,
    job_summary: Optional[str] = None,
    focus: str = "mixed",
    difficulty: str = "standard",
) -> dict:
    """Question plan for one mock interview. Falls back to a generic plan on model failure."""
    persona = PERSONAS.get(persona_id, PERSONAS[DEFAULT_PERSONA])
    technical = "1-2 technical questions" if focus in ("technical", "mixed") else "0 technical questions"

    system = f"""You are a professional interviewer creating a mock interview question plan.
Persona: {persona['title']} focused on {persona['focus']}.
Generate a structured set of questions appropriate for a {duration_minutes}-minute interview.
Return strict JSON only."""

    prompt = f"""Generate an interview question plan.

DURATION: {duration_minutes} minutes
FOCUS: {focus}
DIFFICULTY: {difficulty}

RESUME:
\"\"\"
{resume_summary}
\"\"\"
{f'JOB DESCRIPTION:{chr(10)}{job_summary}' if job_summary else ''}

Create a structured interview with:
- 1 opening/intro question (warm-up)
- {behavioral_question_range(duration_minutes)} behavioral questions
- {technical}
- 1 closing question

Each question should be specific to the candidate's experience, test a key competency and allow follow-up probing.

Return JSON:
{{
  "questions": [
    {{"id": "q1", "type": "intro|behavioral|technical|closing", "text": "...", "target_competency": "communication", "follow_up_allowed": false}}
  ],
  "estimated_duration_minutes": {duration_minutes},
  "focus_areas": ["leadership", "problem_solving"]
}}
"""
    try:
        payload = await generate_json(prompt, system=system, temperature=0.4, max_tokens=1500)
        return _normalize_plan(payload, duration_minutes)
    except LLMError as e:
        logger.warning(f"[Interview Plan] Falling back to generic plan: {e}")
        return fallback_plan(duration_minutes, focus)


def build_interviewer_instructions(persona_id: str, plan: dict, candidate_name: Optional[str] = None, job_title: Optional[str] = None) -> dict:
    """System instructions and greeting for the voice interviewer."""
    persona = PERSONAS.get(persona_id, PERSONAS[DEFAULT_PERSONA])
    questions = plan.get("questions") or []
    numbered = "\n".join(f"{i + 1}. [{q.get('type')}] {q.get('text')}" for i, q in enumerate(questions))
    who = candidate_name or "the candidate"
    role = job_title or "the role"

    instructions = f"""You are {persona['name']}, a {persona['title']} interviewing {who} for {role}.
Your style is {persona['style']}. You focus on {persona['focus']}.

Move through the phases in order: welcome, small_talk, company_intro, questions, wrap_up, goodbye.
Call advance_phase whenever you move to the next phase.

Ask these questions one at a time, in order:
{numbered}

After each answer call save_candidate_answer with the question index, a transcript summary and
a quality rating of strong, average or weak. Ask at most one short follow-up per question,
and only when the answer is missing an action or a result.
When all questions are done, wrap up, say goodbye and call end_interview."""

    greeting = f"Hi{' ' + candidate_name if candidate_name else ''}, I'm {persona['name']}, {persona['title'].lower()} here. Thanks for making the time today. How are you doing?"

    return {"persona": persona_id, "instructions": instructions, "greeting": greeting}


def _star(payload: dict) -> dict:
    star = payload.get("star") if isinstance(payload.get("star"), dict) else {}
    return {
        "has_situation": bool(star.get("has_situation")),
        "has_task": bool(star.get("has_task")),
        "has_action": bool(star.get("has_action")),
        "has_result": bool(star.get("has_result")),
    }


def _score(value) -> float:
    try:
        return float(max(0, min(100, round(float(value)))))
    except (TypeError, ValueError):
        return 0.0


async def score_answer(question: str, transcript: str, resume_summary: Optional[str] = None, job_summary: Optional[str] = None) -> dict:
    """STAR-based evaluation of one spoken answer."""
    system = """You are an expert interview coach evaluating answers with the STAR method
(Situation, Task, Action, Result). Be fair, specific and constructive. Return strict JSON only."""

    prompt = f"""Evaluate this interview answer.

QUESTION: "{question}"

ANSWER:
\"\"\"
{transcript[:4000]}
\"\"\"
{f'CANDIDATE RESUME:{chr(10)}{resume_summary}' if resume_summary else ''}
{f'TARGET JOB:{chr(10)}{job_summary}' if job_summary else ''}

Return JSON:
{{
  "overall_score": <0-100>,
  "clarity_score": <0-100>,
  "relevance_score": <0-100>,
  "impact_score": <0-100>,
  "star": {{"has_situation": true, "has_task": true, "has_action": true, "has_result": false}},
  "strengths": ["..."],
  "areas_for_improvement": ["..."],
  "one_sentence_summary": "..."
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.3, max_tokens=1000)
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid evaluation")

    return {
        "overall_score": _score(payload.get("overall_score")),
        "clarity_score": _score(payload.get("clarity_score")),
        "relevance_score": _score(payload.get("relevance_score")),
        "impact_score": _score(payload.get("impact_score")),
        "star": _star(payload),
        "strengths": [str(s) for s in payload.get("strengths") or []][:5],
        "areas_for_improvement": [str(s) for s in payload.get("areas_for_improvement") or []][:5],
        "one_sentence_summary": str(payload.get("one_sentence_summary") or ""),
    }


def needs_follow_up(evaluation: dict, follow_ups_asked: int = 0, max_follow_ups: int = 1) -> bool:
    """Probe unless the answer is both complete (action + result) and strong."""
    if follow_ups_asked >= max_follow_ups:
        return False
    star = evaluation.get("star") or {}
    is_complete = bool(star.get("has_action")) and bool(star.get("has_result"))
    is_strong = (
        (evaluation.get("clarity_score") or 0) >= FOLLOW_UP_THRESHOLD
        and (evaluation.get("relevance_score") or 0) >= FOLLOW_UP_THRESHOLD
    )
    return not (is_complete and is_strong)


async def generate_follow_up(
    question: str,
    transcript: str,
    evaluation: dict,
    follow_ups_asked: int = 0,
    max_follow_ups: int = 1,
) -> Optional[str]:
    """One short probing question, or None. Model failures yield None."""
    if not needs_follow_up(evaluation, follow_ups_asked, max_follow_ups):
        return None

    star = evaluation.get("star") or {}
    system = """You are an interviewer generating follow-up probing questions.
If the answer is strong and specific, return null. Otherwise ask ONE short follow-up
question for clarification or depth. Return strict JSON only."""

    prompt = f"""ORIGINAL QUESTION: "{question}"

CANDIDATE'S ANSWER:
\"\"\"
{transcript[:3000]}
\"\"\"

EVALUATION:
- Missing result: {not star.get('has_result')}
- Missing action details: {not star.get('has_action')}
- Clarity: {evaluation.get('clarity_score', 0)}/100
- Relevance: {evaluation.get('relevance_score', 0)}/100

Ask ONE follow-up under 15 words to get the outcome, clarify vague actions or probe for metrics.
Return JSON: {{"follow_up": "question text" or null}}
"""
    try:
        payload = await generate_json(prompt, system=system, temperature=0.4, max_tokens=150)
    except LLMError as e:
        logger.warning(f"[Follow-up] Generation failed: {e}")
        return None
    follow_up = payload.get("follow_up") if isinstance(payload, dict) else None
    follow_up = str(follow_up).strip() if follow_up else ""
    return follow_up or None


def _verdict_for(score: float) -> str:
    if score >= 85:
        return "strong_hire"
    if score >= 70:
        return "hire"
    if score >= 55:
        return "borderline"
    return "not_ready"


async def generate_mock_report(
    exchanges: list[dict],
    persona_id: str,
    duration_minutes: int,
    resume_summary: Optional[str] = None,
    job_summary: Optional[str] = None,
) -> dict:
    """Full-interview report. ``exchanges`` are dicts of question, answer and score."""
    avg_score = sum(ex["score"] for ex in exchanges) / len(exchanges) if exchanges else 0.0
    transcript = "\n".join(
        f"Q{i + 1}: {ex['question']}\nA{i + 1}: {ex['answer']}\nScore: {ex['score']}/100\n"
        for i, ex in enumerate(exchanges)
    )

    system = """You are a senior interview coach providing comprehensive mock interview feedback.
Be honest but constructive. Focus on growth. Return strict JSON only."""

    prompt = f"""Generate a mock interview report.

INTERVIEW DETAILS:
- Persona: {persona_id}
- Duration: {duration_minutes} minutes
- Questions answered: {len(exchanges)}
- Average score: {avg_score:.1f}/100

{f'RESUME:{chr(10)}{resume_summary}' if resume_summary else ''}
{f'JOB:{chr(10)}{job_summary}' if job_summary else ''}

INTERVIEW EXCHANGES:
{transcript}

Return JSON:
{{
  "verdict": "strong_hire|hire|borderline|not_ready",
  "overall_score": <0-100>,
  "performance_breakdown": {{"communication": 0, "structure": 0, "role_fit": 0, "technical_depth": 0}},
  "key_strengths": ["top 3"],
  "key_gaps": ["top 3"],
  "interview_highlights": ["memorable moments"],
  "improvement_plan": {{"day_1": [""], "day_3": [""], "day_5": [""], "day_7": [""]}},
  "summary": "3-4 sentences",
  "next_mock_recommendations": {{"persona": "emma-hr|james-manager|sato-tech", "focus_areas": [""], "difficulty": "easy|standard|hard"}}
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.4, max_tokens=2000)
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid report")

    try:
        overall = float(max(0, min(100, round(float(payload["overall_score"])))))
    except (KeyError, TypeError, ValueError):
        overall = round(avg_score, 1)
    verdict = payload.get("verdict")
    if verdict not in VERDICTS:
        verdict = _verdict_for(overall)

    breakdown = payload.get("performance_breakdown")
    plan = payload.get("improvement_plan")
    return {
        "verdict": verdict,
        "overall_score": overall,
        "performance_breakdown": {k: _score(v) for k, v in breakdown.items()} if isinstance(breakdown, dict) else {},
        "key_strengths": [str(s) for s in payload.get("key_strengths") or []],
        "key_gaps": [str(s) for s in payload.get("key_gaps") or []],
        "interview_highlights": [str(s) for s in payload.get("interview_highlights") or []],
        "improvement_plan": plan if isinstance(plan, dict) else {},
        "summary": str(payload.get("summary") or ""),
        "next_mock_recommendations": payload.get("next_mock_recommendations") or {},
    }
