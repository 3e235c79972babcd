"""Career coaching prompts: SWOT, gap defense, cover letters and LinkedIn copy."""
import logging
from typing import Optional

from app.services.llm import generate_json, generate_text, LLMError

logger = logging.getLogger(__name__)

COVER_LETTER_TONES = {
    "professional": "Use a formal, professional tone. Be concise and focused on qualifications.",
    "enthusiastic": "Use an enthusiastic, passionate tone while maintaining professionalism. Show genuine excitement about the opportunity.",
    "friendly": "Use a warm, approachable tone that feels personable yet professional.",
}

SWOT_KEYS = ("strengths", "weaknesses", "opportunities", "threats")


def _items(value) -> list[dict]:
    items = []
    for item in value if isinstance(value, list) else []:
        if isinstance(item, dict) and item.get("title"):
            items.append({
                "title": str(item["title"]),
                "insight": str(item.get("insight") or ""),
                "source": str(item.get("source") or ""),
            })
        elif isinstance(item, str) and item.strip():
            items.append({"title": item.strip(), "insight": "", "source": ""})
    return items


async def generate_swot(resume_text: str, job_text: Optional[str] = None, job_title: Optional[str] = None) -> dict:
    system = """You are a career strategist producing a personal SWOT analysis for a job seeker.
Ground every point in the resume or the job description and cite where it comes from.
Return strict JSON only."""
    prompt = f"""Create a SWOT analysis{f' for a {job_title} application' if job_title else ''}.

RESUME:
\"\"\"
{resume_text[:6000]}
\"\"\"
{f'JOB DESCRIPTION:{chr(10)}{job_text[:4000]}' if job_text else ''}

Give 3-5 items per quadrant. Return JSON:
{{
  "strengths": [{{"title": "...", "insight": "...", "source": "Resume: ..."}}],
  "weaknesses": [{{"title": "...", "insight": "...", "source": "..."}}],
  "opportunities": [{{"title": "...", "insight": "...", "source": "..."}}],
  "threats": [{{"title": "...", "insight": "...", "source": "..."}}],
  "summary": "2-3 sentences on how to position yourself"
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.4, max_tokens=2000)
    if not isinstance(payload, dict):
        raise LLMError("Model returned an invalid SWOT analysis")
    result = {key: _items(payload.get(key)) for key in SWOT_KEYS}
    if not any(result.values()):
        raise LLMError("Model returned an empty SWOT analysis")
    result["summary"] = str(payload.get("summary") or "")
    return result


async def generate_gap_defense(gap: str, resume_text: Optional[str] = None, job_text: Optional[str] = None) -> dict:
    """Pivot / Proof / Promise answer for a weakness an interviewer may raise."""
    system = """You are an interview coach. Build a short spoken answer using the
Pivot (acknowledge and redirect), Proof (transferable evidence) and Promise (plan to close the gap)
framework. Honest, confident, under 90 seconds. Return strict JSON only."""
    prompt = f"""GAP TO DEFEND: {gap}

{f'RESUME:{chr(10)}{resume_text[:4000]}' if resume_text else ''}
{f'JOB DESCRIPTION:{chr(10)}{job_text[:3000]}' if job_text else ''}

Return JSON:
{{
  "pivot": "...",
  "proof": "...",
  "promise": "...",
  "full_script": "the three parts as one natural answer",
  "likely_questions": ["how an interviewer might phrase this"]
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.5, max_tokens=1200)
    if not isinstance(payload, dict) or not all(payload.get(k) for k in ("pivot", "proof", "promise")):
        raise LLMError("Model returned an incomplete gap defense")
    script = {k: str(payload[k]).strip() for k in ("pivot", "proof", "promise")}
    script["full_script"] = str(payload.get("full_script") or " ".join(script.values())).strip()
    script["likely_questions"] = [str(q) for q in payload.get("likely_questions") or []]
    return script


async def generate_cover_letter(
    resume_text: str,
    job_title: str,
    company_name: Optional[str] = None,
    job_description: Optional[str] = None,
    tone: str = "professional",
) -> str:
    if tone not in COVER_LETTER_TONES:
        raise ValueError(f"Unknown tone: {tone}")

    system = f"""You are an expert cover letter writer.
Write a compelling cover letter of 300-400 words in 3-4 paragraphs that connects the
candidate's real experience to the role with specific examples.
Tone: {COVER_LETTER_TONES[tone]}
Do NOT use placeholders like [Your Name] and do NOT include addresses or signature blocks.
Start directly with the opening paragraph."""
    prompt = f"""POSITION: {job_title}
{f'COMPANY: {company_name}' if company_name else ''}

RESUME:
\"\"\"
{resume_text[:6000]}
\"\"\"
{f'JOB DESCRIPTION:{chr(10)}{job_description[:4000]}' if job_description else ''}

Write the cover letter now."""
    return await generate_text(prompt, system=system, temperature=0.7, max_tokens=1200)


async def refine_cover_letter(content: str, instruction: str) -> str:
    system = "You edit cover letters. Apply the requested change and keep everything else. Return only the revised letter."
    prompt = f"""REQUESTED CHANGE: {instruction}

COVER LETTER:
\"\"\"
{content[:8000]}
\"\"\""""
    return await generate_text(prompt, system=system, temperature=0.5, max_tokens=1200)


async def generate_linkedin_profile(resume_text: str, target_role: Optional[str] = None) -> dict:
    system = """You are a LinkedIn profile optimization expert. Write in first person,
keyword-rich but human. Return strict JSON only."""
    prompt = f"""Optimize a LinkedIn profile from this resume{f' for {target_role} roles' if target_role else ''}.

RESUME:
\"\"\"
{resume_text[:6000]}
\"\"\"

Return JSON:
{{
  "headline": "under 220 characters",
  "headline_alternatives": ["...", "..."],
  "about": "3-4 short paragraphs, under 2600 characters",
  "experience": [{{"company": "...", "position": "...", "description": "2-4 sentence LinkedIn version"}}],
  "skills": ["top 10-15 skills"],
  "tips": ["profile improvements beyond the text"]
}}
"""
    payload = await generate_json(prompt, system=system, temperature=0.6, max_tokens=2500)
    if not isinstance(payload, dict) or not payload.get("headline"):
        raise LLMError("Model returned an invalid LinkedIn profile")
    return {
        "headline": str(payload["headline"])[:220],
        "headline_alternatives": [str(h)[:220] for h in payload.get("headline_alternatives") or []],
        "about": str(payload.get("about") or "")[:2600],
        "experience": [e for e in payload.get("experience") or [] if isinstance(e, dict)],
        "skills": [str(s) for s in payload.get("skills") or []],
        "tips": [str(t) for t in payload.get("tips") or []],
    }
