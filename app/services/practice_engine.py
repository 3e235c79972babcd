"""Practice question generation and session summaries."""
import logging
import random
from typing import Optional

from app.services.llm import generate_json, LLMError

logger = logging.getLogger(__name__)

CATEGORIES = ("behavioral", "leadership", "technical", "conflict")
DIFFICULTIES = ("easy", "medium", "hard", "random")
QUESTION_DIFFICULTIES = ("easy", "medium", "hard")

STAR_TIPS = [
    "Use the STAR method: Situation, Task, Action, Result",
    "Be specific with examples and metrics",
    "Keep your answer focused and under 2 minutes",
]

FOCUS_THEMES = {
    "behavioral": [
        "problem-solving under pressure", "cross-functional collaboration", "adapting to change",
        "taking initiative", "learning from failure", "exceeding expectations", "building relationships",
        "handling ambiguity", "prioritization decisions", "influencing without authority",
    ],
    "leadership": [
        "building high-performing teams", "managing underperformers", "driving organizational change",
        "strategic decision-making", "developing talent", "stakeholder management", "crisis leadership",
        "vision and direction setting", "resource allocation", "cultural transformation",
    ],
    "technical": [
        "system scalability challenges", "debugging complex issues", "technical debt management",
        "architecture decisions", "performance optimization", "security considerations", "API design",
        "data modeling", "microservices patterns", "cloud infrastructure",
    ],
    "conflict": [
        "disagreements with managers", "team member conflicts", "cross-team disputes",
        "customer escalations", "priority conflicts", "resource contention", "communication breakdowns",
        "ethical disagreements", "deadline pressures", "scope creep negotiations",
    ],
}

FALLBACK_QUESTIONS = {
    "behavioral": [
        "Tell me about a time when you faced a significant challenge at work. How did you handle it?",
        "Describe a situation where you had to work with a difficult team member.",
        "Tell me about a project that didn't go as planned. What did you learn?",
        "Describe a time when you had to adapt quickly to a major change.",
        "Give me an example of when you exceeded expectations on a project.",
        "Describe a situation where you had to make a decision with incomplete information.",
        "Tell me about a time when you received critical feedback. How did you respond?",
        "Give me an example of when you took initiative to solve a problem nobody asked you to solve.",
        "Describe a time when you had to balance multiple competing priorities.",
        "Tell me about a situation where you had to work under a tight deadline.",
    ],
    "leadership": [
        "Describe a time when you had to lead a team through a major change or initiative.",
        "Tell me about a strategic decision you made and how you implemented it.",
        "Give me an example of how you've mentored or developed someone on your team.",
        "Tell me about a time when you had to make an unpopular decision as a leader.",
        "Describe a situation where you had to manage a team through a crisis.",
        "Give me an example of how you built and motivated a high-performing team.",
        "Tell me about a time when you had to deal with an underperforming team member.",
        "Describe how you've influenced organizational strategy or direction.",
        "Tell me about a time when you had to delegate something important. How did you ensure success?",
        "Give me an example of how you've driven innovation within your team or organization.",
        "Describe a time when you had to align multiple stakeholders with different priorities.",
        "Tell me about a situation where you had to manage up effectively.",
    ],
    "technical": [
        "Tell me about a complex technical problem you solved. Walk me through your approach.",
        "Describe a time when you had to make a significant architectural decision. What were the trade-offs?",
        "Give me an example of how you've improved system performance or scalability.",
        "Tell me about a time when you had to debug a particularly challenging issue.",
        "Describe a situation where you had to balance technical debt with feature development.",
        "Give me an example of a technical decision you made that you later had to revisit.",
        "Tell me about a time when you had to learn a new technology quickly to deliver a project.",
        "Describe how you've mentored other engineers on technical best practices.",
        "Tell me about a system you designed from scratch. What were your key considerations?",
        "Give me an example of how you've improved code quality or development processes.",
    ],
    "conflict": [
        "Tell me about a time when you had to resolve a conflict between team members.",
        "Describe a situation where you disagreed with a colleague. How did you handle it?",
        "Give me an example of dealing with a difficult stakeholder or client.",
        "Tell me about a time when you disagreed with your manager's decision.",
        "Describe a situation where you had to deliver difficult news to someone.",
        "Give me an example of how you've navigated office politics professionally.",
        "Tell me about a time when you had to say no to a request from someone important.",
        "Describe a situation where you mediated a dispute between others.",
        "Tell me about a time when your work was criticized unfairly. How did you respond?",
        "Give me an example of turning a difficult relationship into a productive one.",
    ],
}

CATEGORY_GUIDANCE = {
    "behavioral": "BEHAVIORAL questions that probe specific past experiences.",
    "leadership": "LEADERSHIP questions that assess management and strategic abilities.",
    "technical": "TECHNICAL questions that assess problem-solving and system design through past work.",
    "conflict": "CONFLICT RESOLUTION questions that assess interpersonal and negotiation skills.",
}


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _duration(value, default: int = 120) -> int:
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return default
    return seconds if seconds > 0 else default


def fallback_questions(
    category: str,
    count: int,
    previous_questions: Optional[list[str]] = None,
    company: Optional[str] = None,
    job_title: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> list[dict]:
    """Questions from the built-in pool, preferring ones the user has not seen."""
    rng = rng or random.Random()
    pool = FALLBACK_QUESTIONS.get(category, FALLBACK_QUESTIONS["behavioral"])
    seen = {_normalize(q) for q in previous_questions or []}

    fresh = [q for q in pool if _normalize(q) not in seen]
    stale = [q for q in pool if _normalize(q) in seen]
    rng.shuffle(fresh)
    rng.shuffle(stale)
    selected = (fresh + stale)[:count]

    personalized = []
    for i, text in enumerate(selected):
        if i == 0 and company and "at work" in text:
            text = text.replace("at work", f"during your time at {company}")
        elif i == 1 and job_title:
            text = f"{text} How would this experience help you in the {job_title} role?"
        personalized.append({"text": text, "type": category, "suggested_duration": 120, "tips": list(STAR_TIPS)})
    return personalized


async def generate_practice_questions(
    category: str,
    difficulty: str,
    count: int,
    resume_text: Optional[str] = None,
    job_text: Optional[str] = None,
    job_title: Optional[str] = None,
    company: Optional[str] = None,
    previous_questions: Optional[list[str]] = None,
    rng: Optional[random.Random] = None,
) -> list[dict]:
    """Personalized practice questions. Uses the built-in pool when the model fails."""
    rng = rng or random.Random()
    themes = list(FOCUS_THEMES.get(category, FOCUS_THEMES["behavioral"]))
    rng.shuffle(themes)
    selected_themes = themes[:count]
    avoid = (previous_questions or [])[:50]

    system = "You are an expert interview coach writing personalized practice questions. Return strict JSON only."
    prompt = f"""Generate {count} {CATEGORY_GUIDANCE.get(category, CATEGORY_GUIDANCE['behavioral'])}

DIFFICULTY: {difficulty}
{f'TARGET ROLE: {job_title}' + (f' at {company}' if company else '') if job_title else ''}

FOCUS THEMES FOR THIS SESSION:
{chr(10).join(f'{i + 1}. {t}' for i, t in enumerate(selected_themes))}

{f'RESUME:{chr(10)}{resume_text[:3000]}' if resume_text else ''}
{f'JOB DESCRIPTION:{chr(10)}{job_text[:2000]}' if job_text else ''}

DO NOT repeat or closely paraphrase any of these previously asked questions:
{chr(10).join(f'- {q}' for q in avoid) or '- none'}

Return JSON:
{{"questions": [{{"text": "...", "type": "{category}", "suggested_duration": 120, "tips": ["..."]}}]}}
"""
    try:
        payload = await generate_json(prompt, system=system, temperature=0.9, max_tokens=2000)
        raw = payload.get("questions") if isinstance(payload, dict) else payload
        if not isinstance(raw, list):
            raise LLMError("Model returned no questions")

        seen = {_normalize(q) for q in avoid}
        questions = []
        for q in raw:
            text = str((q.get("text") if isinstance(q, dict) else q) or "").strip()
            if not text or _normalize(text) in seen:
                continue
            seen.add(_normalize(text))
            tips = q.get("tips") if isinstance(q, dict) and isinstance(q.get("tips"), list) else STAR_TIPS
            questions.append({
                "text": text,
                "type": category,
                "suggested_duration": _duration(q.get("suggested_duration")) if isinstance(q, dict) else 120,
                "tips": [str(t) for t in tips],
            })
        if not questions:
            raise LLMError("Model returned only repeated questions")

        if len(questions) < count:
            extra = fallback_questions(category, count, avoid + [q["text"] for q in questions], rng=rng)
            questions += extra[: count - len(questions)]
        return questions[:count]
    except LLMError as e:
        logger.warning(f"[Practice Questions] Using fallback pool: {e}")
        return fallback_questions(category, count, avoid, company=company, job_title=job_title, rng=rng)


def question_difficulty(base: str, rng: Optional[random.Random] = None) -> str:
    if base == "random":
        return (rng or random).choice(QUESTION_DIFFICULTIES)
    return base


async def regenerate_question(category: str, difficulty: str, current: str, avoid: list[str]) -> str:
    """A replacement question on the same theme as ``current``."""
    system = "You are an expert interview coach. Return strict JSON only."
    prompt = f"""Write ONE new {category} interview question at {difficulty} difficulty to replace:
"{current}"

It must differ from all of these:
{chr(10).join(f'- {q}' for q in avoid)}

Return JSON: {{"text": "..."}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.9, max_tokens=300)
    text = str(payload.get("text") or "").strip() if isinstance(payload, dict) else ""
    if not text or _normalize(text) in {_normalize(q) for q in avoid}:
        raise LLMError("Model did not return a new question")
    return text


async def summarize_practice_session(category: str, answers: list[dict]) -> dict:
    """Coaching summary for a finished session. ``answers`` hold question, transcript, score."""
    scores = [a["score"] for a in answers if a.get("score") is not None]
    avg_score = round(sum(scores) / len(scores), 1) if scores else 0.0
    transcript = "\n".join(
        f"Q{i + 1}: {a['question']}\nA{i + 1}: {a['transcript']}\nScore: {a.get('score')}/100"
        for i, a in enumerate(answers)
    )

    system = "You are an interview coach summarizing a practice session. Be encouraging and specific. Return strict JSON only."
    prompt = f"""Summarize this {category} practice session.

AVERAGE SCORE: {avg_score}/100

{transcript}

Return JSON:
{{
  "overall_performance": "Excellent|Good|Fair|Needs Work",
  "average_score": {avg_score},
  "trend_analysis": "...",
  "key_strengths": ["..."],
  "key_weaknesses": ["..."],
  "next_steps": ["..."],
  "improvement_plan": {{"focus_area": "...", "specific_actions": ["..."]}}
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.5, max_tokens=1200)
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid summary")
    payload["average_score"] = avg_score
    return payload
