import asyncio

from app.services.interview_engine import (
    _verdict_for,
    build_interviewer_instructions,
    fallback_plan,
    generate_follow_up,
    generate_mock_report,
    needs_follow_up,
    recommend_persona,
    score_answer,
)

COMPLETE = {"has_situation": True, "has_task": True, "has_action": True, "has_result": True}


def test_recommend_persona():
    assert recommend_persona("Senior Software Engineer") == "sato-tech"
    assert recommend_persona("Engineering Manager") == "sato-tech"
    assert recommend_persona("Director of Sales") == "james-manager"
    assert recommend_persona("Marketing Coordinator") == "emma-hr"
    assert recommend_persona(None) == "emma-hr"


def test_fallback_plan_grows_with_duration():
    short = fallback_plan(15, "behavioral")
    long = fallback_plan(30, "mixed")
    assert [q["type"] for q in short["questions"]] == ["intro", "behavioral", "behavioral", "closing"]
    assert len(long["questions"]) == 7
    assert [q["id"] for q in long["questions"]][:2] == ["q1", "q2"]
    assert long["generated"] is False


def test_needs_follow_up():
    strong = {"clarity_score": 80, "relevance_score": 90, "star": COMPLETE}
    assert not needs_follow_up(strong)

    no_result = {"clarity_score": 80, "relevance_score": 90, "star": {**COMPLETE, "has_result": False}}
    assert needs_follow_up(no_result)
    assert not needs_follow_up(no_result, follow_ups_asked=1)

    vague = {"clarity_score": 60, "relevance_score": 90, "star": COMPLETE}
    assert needs_follow_up(vague)


def test_follow_up_model_failure_returns_none(llm):
    vague = {"clarity_score": 40, "relevance_score": 40, "star": {}}
    assert asyncio.run(generate_follow_up("Q?", "Umm", vague)) is None


def test_follow_up_null_reply(llm):
    llm.queue({"follow_up": None})
    vague = {"clarity_score": 40, "relevance_score": 40, "star": {}}
    assert asyncio.run(generate_follow_up("Q?", "Umm", vague)) is None


def test_score_answer_normalizes_reply(llm):
    llm.queue({"overall_score": "87.4", "clarity_score": 140, "relevance_score": None, "star": {"has_action": 1}})
    result = asyncio.run(score_answer("Q?", "I did the thing"))
    assert result["overall_score"] == 87
    assert result["clarity_score"] == 100
    assert result["relevance_score"] == 0
    assert result["star"] == {"has_situation": False, "has_task": False, "has_action": True, "has_result": False}
    assert result["strengths"] == []


def test_verdicts():
    assert _verdict_for(90) == "strong_hire"
    assert _verdict_for(70) == "hire"
    assert _verdict_for(55) == "borderline"
    assert _verdict_for(54.9) == "not_ready"


def test_interviewer_instructions():
    plan = fallback_plan(15)
    session = build_interviewer_instructions("james-manager", plan, candidate_name="Dana", job_title="Product Lead")
    assert session["persona"] == "james-manager"
    assert session["greeting"].startswith("Hi Dana, I'm James")
    assert "interviewing Dana for Product Lead" in session["instructions"]
    assert "1. [intro]" in session["instructions"]


def test_unknown_persona_uses_default():
    session = build_interviewer_instructions("nobody", {"questions": []})
    assert "I'm Emma" in session["greeting"]


def test_report_null_score_uses_answer_average(llm):
    llm.queue({"overall_score": None, "summary": "Solid showing."})
    exchanges = [
        {"question": "Tell me about yourself", "answer": "I build APIs.", "score": 80},
        {"question": "Describe a conflict", "answer": "We disagreed on scope.", "score": 60},
    ]
    report = asyncio.run(generate_mock_report(exchanges, "emma-hr", 15))
    assert report["overall_score"] == 70.0
    assert report["verdict"] == _verdict_for(70.0)
    assert report["summary"] == "Solid showing."


def test_report_unparseable_score_uses_answer_average(llm):
    llm.queue({"overall_score": "strong", "verdict": "hire"})
    exchanges = [{"question": "Why us?", "answer": "Your product.", "score": 55}]
    report = asyncio.run(generate_mock_report(exchanges, "james-manager", 20))
    assert report["overall_score"] == 55.0
    assert report["verdict"] == "hire"
