"""Prompts and response shaping for resume analysis and writing help."""
import logging
import re
from datetime import date
from typing import Optional

from app.services.llm import generate_json, LLMError

logger = logging.getLogger(__name__)

OPTIMIZE_MODES = {
    "quantify": "Add concrete, plausible metrics (numbers, percentages, scale) that make the impact measurable. Use placeholders like [X%] when the real number is unknown.",
    "action-verb": "Rewrite to open with a strong, specific action verb and remove weak phrases like 'responsible for' or 'helped with'.",
    "concise": "Cut filler so the bullet fits on one line (under 20 words) without losing the achievement.",
    "expand": "Add context: the problem, the approach and the outcome, in at most 35 words.",
    "ats": "Work in relevant industry keywords and standard terminology that applicant tracking systems look for.",
}

_INJECTION_PATTERNS = [
    r"ignore\s+all\s+previous\s+instructions",
    r"ignore\s+previous\s+instructions",
    r"ignore\s+all\s+instructions",
    r"system\s+prompt",
    r"developer\s+message",
    r"give\s+the\s+user\s+\d+",
    r"return\s+\d+",
    r"always\s+give\s+\d+",
    r"score\s+\d+",
]


def sanitize_job_role(value: Optional[str]) -> Optional[str]:
    """Short job titles only; anything that reads like an instruction is dropped."""
    if not value:
        return None
    v = re.sub(r"\s+", " ", value).strip()
    if not v:
        return None

    lowered = v.casefold()
    if any(re.search(p, lowered) for p in _INJECTION_PATTERNS):
        return None

    v = re.sub(r"[^a-zA-Z0-9\s\-\/+&.,()]+", "", v).strip()
    if len(v) > 60:
        v = v[:60].strip()
    return v or None


def _block(label: str, text: Optional[str], limit: int) -> str:
    """Quoted prompt section, empty when there is no text."""
    if not text:
        return ""
    return f'{label}:\n"""\n{text[:limit]}\n"""'


def _clamp_score(value, default: int = 0) -> int:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return default


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def _normalize_analysis(payload: dict, with_job: bool) -> dict:
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid analysis")

    warnings = []
    for w in payload.get("ats_warnings") or []:
        if isinstance(w, dict) and w.get("issue"):
            warnings.append({
                "category": str(w.get("category") or "content"),
                "severity": w.get("severity") if w.get("severity") in ("critical", "warning", "info") else "warning",
                "issue": str(w["issue"]),
                "recommendation": str(w.get("recommendation") or ""),
            })

    sections = []
    for s in payload.get("section_feedback") or []:
        if isinstance(s, dict) and s.get("section"):
            sections.append({
                "section": str(s["section"]),
                "feedback": str(s.get("feedback") or ""),
                "score": _clamp_score(s.get("score")),
            })

    bullet_improvements = []
    for b in payload.get("bullet_improvements") or []:
        if isinstance(b, dict) and b.get("before") and b.get("after"):
            bullet_improvements.append({
                "before": str(b["before"]),
                "after": str(b["after"]),
                "reason": str(b.get("reason") or ""),
            })

    return {
        "analysis_type": "job_match" if with_job else "ats",
        "ats_score": _clamp_score(payload.get("ats_score")),
        "jd_match_score": _clamp_score(payload.get("jd_match_score")) if with_job else None,
        "skills_fit_score": _clamp_score(payload.get("skills_fit_score")),
        "resume_keywords": _string_list(payload.get("resume_keywords")),
        "jd_keywords": _string_list(payload.get("jd_keywords")) if with_job else [],
        "matched_keywords": _string_list(payload.get("matched_keywords")) if with_job else [],
        "missing_keywords": _string_list(payload.get("missing_keywords")) if with_job else [],
        "ats_warnings": warnings,
        "ats_good_practices": _string_list(payload.get("ats_good_practices")),
        "section_feedback": sections,
        "bullet_improvements": bullet_improvements,
        "strengths": _string_list(payload.get("strengths")),
        "improvements": _string_list(payload.get("improvements")),
        "summary": str(payload.get("summary") or "").strip(),
    }


async def analyze_resume(resume_text: str, job_text: Optional[str] = None, job_title: Optional[str] = None) -> dict:
    """ATS review of a resume, or a match review against one job description."""
    with_job = bool(job_text and job_text.strip())
    role = sanitize_job_role(job_title)

    system = (
        "You are an expert ATS (applicant tracking system) analyst and senior recruiter. "
        "Be specific, honest and constructive. Base every finding on the resume text. "
        "Return strict JSON only."
    )

    job_block = ""
    if with_job:
        job_block = f"""
JOB DESCRIPTION{f' ({role})' if role else ''}:
\"\"\"
{job_text[:6000]}
\"\"\"
"""

    prompt = f"""Today is {date.today()}.
Analyze this resume{' against the job description' if with_job else ' for ATS readiness'}.

RESUME:
\"\"\"
{resume_text[:8000]}
\"\"\"
{job_block}
Return JSON in this exact structure:
{{
  "ats_score": <number 0-100>,
  "jd_match_score": <number 0-100, 0 when there is no job description>,
  "skills_fit_score": <number 0-100>,
  "resume_keywords": ["skills, tools, certifications found in the resume"],
  "jd_keywords": ["key requirements from the job description"],
  "matched_keywords": ["job keywords present in the resume"],
  "missing_keywords": ["job keywords absent from the resume"],
  "ats_warnings": [
    {{"category": "formatting|keywords|structure|content|contact", "severity": "critical|warning|info",
      "issue": "specific problem", "recommendation": "actionable fix"}}
  ],
  "ats_good_practices": ["what the resume does right"],
  "section_feedback": [{{"section": "Experience", "feedback": "specific advice", "score": <0-100>}}],
  "bullet_improvements": [{{"before": "original bullet", "after": "improved bullet", "reason": "why it is stronger"}}],
  "strengths": ["top strengths"],
  "improvements": ["top improvements"],
  "summary": "2-3 sentence overall assessment"
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.3, max_tokens=4096)
    return _normalize_analysis(payload, with_job)


async def parse_resume(resume_text: str) -> dict:
    """Structure free resume text into resume content sections."""
    system = "You convert resume text into structured JSON. Never invent facts. Return strict JSON only."
    prompt = f"""Convert this resume into JSON.

RESUME TEXT:
\"\"\"
{resume_text[:10000]}
\"\"\"

Return JSON:
{{
  "basics": {{"name": "", "headline": "", "email": "", "phone": "", "location": "", "url": ""}},
  "summary": "",
  "experience": [{{"company": "", "position": "", "location": "", "start_date": "", "end_date": "", "highlights": [""]}}],
  "education": [{{"institution": "", "degree": "", "field": "", "start_date": "", "end_date": "", "gpa": ""}}],
  "skills": [{{"name": "category", "keywords": [""]}}],
  "projects": [{{"name": "", "description": "", "url": "", "highlights": [""]}}]
}}
Use empty strings or empty lists for anything missing.
"""
    payload = await generate_json(prompt, system=system, temperature=0.1, max_tokens=4096)
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid resume")

    content = {
        "basics": payload.get("basics") if isinstance(payload.get("basics"), dict) else {},
        "summary": str(payload.get("summary") or ""),
    }
    for section in ("experience", "education", "skills", "projects"):
        value = payload.get(section)
        content[section] = [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []
    return content


async def generate_summary(resume_text: str, job_text: Optional[str] = None, tone: str = "professional") -> dict:
    system = "You write concise, specific professional summaries for resumes. Return strict JSON only."
    prompt = f"""Write a 2-4 sentence professional summary for this resume in a {tone} tone.
Lead with years of experience and specialty, include one concrete achievement, avoid clichés.

RESUME:
\"\"\"
{resume_text[:6000]}
\"\"\"
{_block("TARGET JOB", job_text, 3000)}

Return JSON: {{"summary": "...", "alternatives": ["...", "..."]}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.7, max_tokens=800)
    summary = str((payload or {}).get("summary") or "").strip() if isinstance(payload, dict) else ""
    if not summary:
        raise LLMError("Model returned an empty summary")
    return {"summary": summary, "alternatives": _string_list(payload.get("alternatives"))[:3]}


async def optimize_bullet(bullet: str, mode: str, job_title: Optional[str] = None, context: Optional[str] = None) -> dict:
    if mode not in OPTIMIZE_MODES:
        raise ValueError(f"Unknown optimization mode: {mode}")

    role = sanitize_job_role(job_title)
    system = "You are a resume writing expert. Rewrite bullet points without inventing employers or credentials. Return strict JSON only."
    prompt = f"""Rewrite this resume bullet{f' for a {role} role' if role else ''}.

INSTRUCTION: {OPTIMIZE_MODES[mode]}

BULLET: "{bullet}"
{f'CONTEXT: {context[:1000]}' if context else ''}

Return JSON: {{"optimized": "the rewritten bullet", "alternatives": ["another option"], "explanation": "what changed"}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.6, max_tokens=600)
    optimized = str((payload or {}).get("optimized") or "").strip() if isinstance(payload, dict) else ""
    if not optimized:
        raise LLMError("Model returned an empty bullet")
    return {
        "original": bullet,
        "optimized": optimized,
        "alternatives": _string_list(payload.get("alternatives"))[:3],
        "explanation": str(payload.get("explanation") or ""),
        "mode": mode,
    }


async def generate_bullets(position: str, company: Optional[str] = None, description: Optional[str] = None, count: int = 4) -> list[str]:
    system = "You write achievement-focused resume bullets: action verb first, measurable result last. Return strict JSON only."
    prompt = f"""Write {count} resume bullets for this role.

POSITION: {position}
{f'COMPANY: {company}' if company else ''}
{f'WHAT THEY DID: {description[:1500]}' if description else ''}

Return JSON: {{"bullets": ["...", "..."]}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.7, max_tokens=800)
    bullets = _string_list((payload or {}).get("bullets") if isinstance(payload, dict) else None)
    if not bullets:
        raise LLMError("Model returned no bullets")
    return bullets[:count]


async def suggest_skills(resume_text: str, job_text: Optional[str] = None, existing: Optional[list[str]] = None) -> dict:
    system = "You are a technical recruiter suggesting resume skills. Return strict JSON only."
    prompt = f"""Suggest skills this candidate should list.

RESUME:
\"\"\"
{resume_text[:5000]}
\"\"\"
{_block("TARGET JOB", job_text, 3000)}
ALREADY LISTED: {', '.join(existing or []) or 'none'}

Return JSON: {{"technical": [""], "soft": [""], "tools": [""], "reasoning": "one sentence"}}
Only suggest skills supported by the resume or clearly implied by the target job.
"""
    payload = await generate_json(prompt, system=system, temperature=0.4, max_tokens=800)
    if not isinstance(payload, dict):
        raise LLMError("Model returned invalid skills")
    listed = {s.casefold() for s in existing or []}

    def _fresh(key: str) -> list[str]:
        return [s for s in _string_list(payload.get(key)) if s.casefold() not in listed]

    return {
        "technical": _fresh("technical"),
        "soft": _fresh("soft"),
        "tools": _fresh("tools"),
        "reasoning": str(payload.get("reasoning") or ""),
    }
