"""Instant bullet point scoring. No model calls."""
import re

ACTION_VERBS = {
    "achievement": ["achieved", "exceeded", "surpassed", "delivered", "attained", "won"],
    "leadership": ["led", "directed", "managed", "mentored", "coordinated", "spearheaded", "supervised"],
    "technical": ["built", "developed", "engineered", "designed", "implemented", "automated", "architected", "deployed", "migrated"],
    "improvement": ["improved", "increased", "reduced", "optimized", "streamlined", "accelerated", "enhanced", "cut"],
    "creation": ["created", "launched", "established", "founded", "initiated", "introduced", "pioneered"],
    "analysis": ["analyzed", "evaluated", "identified", "researched", "assessed", "forecasted"],
    "communication": ["presented", "negotiated", "authored", "persuaded", "trained", "collaborated"],
}

# Phrase -> stronger alternatives
WEAK_PHRASES = {
    "responsible for": ["led", "owned", "managed"],
    "helped with": ["contributed to", "supported", "enabled"],
    "helped": ["enabled", "facilitated", "supported"],
    "worked on": ["built", "developed", "delivered"],
    "assisted with": ["supported", "co-led", "facilitated"],
    "participated in": ["contributed to", "drove", "joined"],
    "duties included": ["delivered", "executed", "owned"],
    "tasked with": ["led", "delivered", "owned"],
    "in charge of": ["directed", "led", "oversaw"],
    "familiar with": ["proficient in", "experienced with"],
    "various": ["multiple", "diverse"],
    "etc": ["(list specifics)"],
}

_ALL_VERBS = {v for verbs in ACTION_VERBS.values() for v in verbs}
_METRIC_RE = re.compile(
    r"(\d+(\.\d+)?\s*(%|percent|x\b|k\b|m\b|million|billion|hours?|days?|weeks?|users?|customers?|people|members?))"
    r"|([$€£]\s?\d)"
    r"|(\b\d{2,}\b)",
    re.IGNORECASE,
)


def has_metrics(text: str) -> bool:
    return bool(_METRIC_RE.search(text or ""))


def find_weak_phrases(text: str) -> list[str]:
    lowered = (text or "").lower()
    found = []
    for phrase in WEAK_PHRASES:
        if re.search(r"\b" + re.escape(phrase) + r"\b", lowered):
            # "helped with" already covers "helped"
            if any(phrase != f and phrase in f for f in found):
                continue
            found.append(phrase)
    return found


def _strength(score: int) -> str:
    if score >= 80:
        return "strong"
    if score >= 50:
        return "moderate"
    return "weak"


def analyze_bullet(text: str) -> dict:
    if not text or not text.strip():
        return {
            "score": 0,
            "weak_words": [],
            "suggestions": [],
            "has_metrics": False,
            "starts_with_action_verb": False,
            "tips": ["Start writing to see analysis"],
            "strength": "weak",
        }

    words = text.strip().split()
    first_word = re.sub(r"[^a-z\-]", "", words[0].lower())
    starts_with_action_verb = first_word in _ALL_VERBS
    metrics = has_metrics(text)
    weak = find_weak_phrases(text)
    word_count = len(words)

    score = 50
    if starts_with_action_verb:
        score += 15
    if metrics:
        score += 20
    score -= len(weak) * 10
    if 8 <= word_count <= 25:
        score += 10
    elif word_count < 5:
        score -= 10
    score = max(0, min(100, score))

    tips = []
    if not starts_with_action_verb:
        tips.append(f"Start with an action verb (e.g., {', '.join(ACTION_VERBS['achievement'][:3])})")
    if not metrics:
        tips.append("Add a number, percentage, or dollar amount to quantify impact")
    if weak:
        tips.append(f'Replace weak phrases: "{weak[0]}"')
    if word_count < 5:
        tips.append("Add more detail to demonstrate impact")
    if word_count > 30:
        tips.append("Consider splitting into multiple bullets for readability")

    return {
        "score": score,
        "weak_words": weak,
        "suggestions": [{"weak": w, "alternatives": WEAK_PHRASES[w]} for w in weak],
        "has_metrics": metrics,
        "starts_with_action_verb": starts_with_action_verb,
        "tips": tips,
        "strength": _strength(score),
    }


def analyze_all_bullets(bullets: list[str]) -> dict:
    if not bullets:
        return {
            "average_score": 0,
            "total_weak_words": 0,
            "bullets_with_metrics": 0,
            "bullets_with_action_verbs": 0,
            "overall_strength": "weak",
            "top_tips": ["Add bullet points to see analysis"],
            "bullets": [],
        }

    analyses = [analyze_bullet(b) for b in bullets]
    average = round(sum(a["score"] for a in analyses) / len(analyses))

    tips: list[str] = []
    for a in analyses:
        for tip in a["tips"]:
            if tip not in tips:
                tips.append(tip)

    return {
        "average_score": average,
        "total_weak_words": sum(len(a["weak_words"]) for a in analyses),
        "bullets_with_metrics": sum(1 for a in analyses if a["has_metrics"]),
        "bullets_with_action_verbs": sum(1 for a in analyses if a["starts_with_action_verb"]),
        "overall_strength": _strength(average),
        "top_tips": tips[:5],
        "bullets": [{"text": b, **a} for b, a in zip(bullets, analyses)],
    }
