"""Plain-text views of resume content and uploaded files."""
import io
from typing import Any

import PyPDF2

SUPPORTED_UPLOAD_TYPES = ("application/pdf", "text/plain")


def extract_text_from_pdf(pdf_file: bytes) -> str:
    """Extract text from PDF file bytes."""
    pdf_reader = PyPDF2.PdfReader(io.BytesIO(pdf_file))
    text = ""
    for page in pdf_reader.pages:
        text += (page.extract_text() or "") + "\n"
    return text


def extract_text(file_content: bytes, content_type: str) -> str:
    """Extract text from uploaded file based on content type."""
    if content_type == "application/pdf":
        return extract_text_from_pdf(file_content)
    return file_content.decode("utf-8", errors="ignore")


def blank_resume_content() -> dict:
    return {
        "basics": {
            "name": "",
            "headline": "",
            "email": "",
            "phone": "",
            "location": "",
            "url": "",
        },
        "summary": "",
        "experience": [],
        "education": [],
        "skills": [],
        "projects": [],
    }


def _join(*parts: Any) -> str:
    return " | ".join(str(p).strip() for p in parts if p and str(p).strip())


def _skill_names(skills: list) -> list[str]:
    names: list[str] = []
    for skill in skills or []:
        if isinstance(skill, str):
            names.append(skill)
        elif isinstance(skill, dict):
            keywords = skill.get("keywords")
            if isinstance(keywords, list) and keywords:
                names.extend(str(k) for k in keywords if k)
            elif skill.get("name"):
                names.append(str(skill["name"]))
    return names


def resume_bullets(content: dict) -> list[str]:
    """All experience and project highlights, in resume order."""
    bullets: list[str] = []
    for section in ("experience", "projects"):
        for entry in (content or {}).get(section) or []:
            if isinstance(entry, dict):
                bullets.extend(str(h) for h in entry.get("highlights") or [] if str(h).strip())
    return bullets


def resume_to_text(content: dict) -> str:
    """Flatten structured resume content into the plain text prompts work from."""
    if not isinstance(content, dict):
        return ""

    lines: list[str] = []
    basics = content.get("basics") or {}
    header = _join(basics.get("name"), basics.get("headline"))
    if header:
        lines.append(header)
    contact = _join(basics.get("email"), basics.get("phone"), basics.get("location"), basics.get("url"))
    if contact:
        lines.append(contact)

    summary = content.get("summary") or basics.get("summary")
    if summary:
        lines += ["", "SUMMARY", str(summary).strip()]

    experience = content.get("experience") or []
    if experience:
        lines += ["", "EXPERIENCE"]
        for exp in experience:
            if not isinstance(exp, dict):
                continue
            dates = " - ".join(d for d in (exp.get("start_date"), exp.get("end_date") or "Present") if d)
            lines.append(_join(exp.get("position"), exp.get("company"), dates))
            lines.extend(f"- {h}" for h in exp.get("highlights") or [])

    education = content.get("education") or []
    if education:
        lines += ["", "EDUCATION"]
        for edu in education:
            if isinstance(edu, dict):
                lines.append(_join(edu.get("degree"), edu.get("field"), edu.get("institution"), edu.get("end_date")))

    projects = content.get("projects") or []
    if projects:
        lines += ["", "PROJECTS"]
        for proj in projects:
            if not isinstance(proj, dict):
                continue
            lines.append(_join(proj.get("name"), proj.get("description")))
            lines.extend(f"- {h}" for h in proj.get("highlights") or [])

    skills = _skill_names(content.get("skills") or [])
    if skills:
        lines += ["", "SKILLS", ", ".join(skills)]

    return "\n".join(lines).strip()


def resume_summary(raw_text: str, title: str = "", limit: int = 2000) -> str:
    """Short context string for prompts."""
    return (raw_text or "")[:limit] or title or "No resume available"
