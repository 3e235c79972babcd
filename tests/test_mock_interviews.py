from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models.mock_interview import MockInterview

PLAN = {
    "questions": [
        {"id": "q1", "type": "behavioral", "text": "Tell me about a migration you led.",
         "target_competency": "leadership", "follow_up_allowed": True},
        {"id": "q2", "type": "closing", "text": "What questions do you have for me?",
         "follow_up_allowed": False},
    ],
    "focus_areas": ["leadership"],
}

PARTIAL_EVAL = {
    "overall_score": 55,
    "clarity_score": 60,
    "relevance_score": 70,
    "impact_score": 40,
    "star": {"has_situation": True, "has_task": True, "has_action": True, "has_result": False},
    "strengths": ["Clear context"],
    "areas_for_improvement": ["State the outcome"],
    "one_sentence_summary": "Good setup, missing the result.",
}

STRONG_EVAL = {
    "overall_score": 90,
    "clarity_score": 85,
    "relevance_score": 90,
    "impact_score": 88,
    "star": {"has_situation": True, "has_task": True, "has_action": True, "has_result": True},
    "strengths": ["Quantified impact"],
    "areas_for_improvement": [],
    "one_sentence_summary": "Complete and specific.",
}


@pytest.fixture
def interview_ready(set_tier):
    return set_tier("interview_ready")


def _create(client, resume, **overrides):
    body = {"resume_id": resume.id, "duration_minutes": 15}
    body.update(overrides)
    return client.post("/api/mock/create", json=body)


def test_check_limits_on_free(client):
    body = client.get("/api/mock/check-limits").json()
    assert body["can_start"] is False
    assert body["reason"] == "Your free plan does not include mock interview minutes"
    assert body["upgrade_to"] == "interview_ready"


def test_check_limits_with_minutes(client, interview_ready):
    body = client.get("/api/mock/check-limits").json()
    assert body["can_start"] is True
    assert body["minutes_remaining"] == 150


def test_create_blocked_on_free(client, resume):
    response = _create(client, resume)
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "LIMIT_REACHED"


def test_create_validates_options(client, interview_ready, resume):
    assert _create(client, resume, duration_minutes=25).status_code == 400
    assert _create(client, resume, focus="trivia").status_code == 400
    assert _create(client, resume, difficulty="brutal").status_code == 400
    assert _create(client, resume, persona_id="pirate-captain").status_code == 400


def test_create_unknown_resume(client, interview_ready):
    response = client.post("/api/mock/create", json={"resume_id": "missing", "duration_minutes": 15})
    assert response.status_code == 404


def test_create_with_generated_plan(client, llm, interview_ready, resume):
    llm.queue(PLAN)
    response = _create(client, resume)
    assert response.status_code == 201
    interview = response.json()["interview"]
    assert interview["status"] == "planned"
    assert interview["current_phase"] == "welcome"
    assert interview["persona"] == "emma-hr"
    assert interview["planned_questions"] == 2
    assert interview["interview_plan"]["generated"] is True
    assert [e["exchange_order"] for e in interview["exchanges"]] == [1, 2]
    assert interview["exchanges"][1]["follow_up_allowed"] is False

    assert interview_ready.mock_minutes_used_this_month == 15
    assert interview_ready.mock_interviews_this_month == 1


def test_create_falls_back_when_model_fails(client, llm, interview_ready, resume):
    interview = _create(client, resume).json()["interview"]
    assert interview["interview_plan"]["generated"] is False
    types = [e["question_type"] for e in interview["exchanges"]]
    assert types == ["intro", "behavioral", "behavioral", "technical", "closing"]


def test_persona_from_preferences(client, db_session, llm, interview_ready, resume):
    interview_ready.preferences = {"default_persona": "james-manager"}
    db_session.commit()
    assert _create(client, resume).json()["interview"]["persona"] == "james-manager"


def test_persona_recommended_from_job_title(client, llm, interview_ready, resume, job_description):
    interview = _create(client, resume, job_description_id=job_description.id).json()["interview"]
    assert interview["persona"] == "sato-tech"


def test_minutes_run_out(client, db_session, llm, interview_ready, resume):
    interview_ready.mock_minutes_used_this_month = 140
    db_session.commit()
    response = _create(client, resume, duration_minutes=15)
    assert response.status_code == 403
    assert response.json()["detail"]["remaining"] == 10


def test_full_interview_flow(client, llm, interview_ready, resume):
    llm.queue(PLAN)
    interview_id = _create(client, resume).json()["interview"]["id"]

    started = client.post(f"/api/mock/{interview_id}/start").json()
    assert started["interview"]["status"] == "in_progress"
    assert started["session"]["persona"] == "emma-hr"
    assert "Alex Rivera" in started["session"]["greeting"]
    assert "Tell me about a migration you led." in started["session"]["instructions"]
    assert started["current_exchange"]["exchange_order"] == 1

    # Partial answer earns one follow-up
    llm.queue(PARTIAL_EVAL, {"follow_up": "What was the result?"})
    answered = client.post(f"/api/mock/{interview_id}/answer", json={"transcript": "I planned the cutover..."}).json()
    assert answered["evaluation"]["overall_score"] == 55
    assert answered["follow_up_question"] == "What was the result?"
    assert answered["exchange"]["answer_score"] == 55
    assert answered["next_exchange"]["exchange_order"] == 2
    assert answered["is_last_question"] is False

    again = client.post(f"/api/mock/{interview_id}/answer", json={"transcript": "Again", "exchange_order": 1})
    assert again.status_code == 409

    llm.queue(STRONG_EVAL)
    follow_up = client.post(f"/api/mock/{interview_id}/answer", json={
        "transcript": "We finished two weeks early with zero downtime.",
        "exchange_order": 1,
        "is_follow_up": True,
    }).json()
    assert follow_up["exchange"]["follow_up_score"] == 90
    assert follow_up["follow_up_question"] is None

    second_follow_up = client.post(f"/api/mock/{interview_id}/answer", json={
        "transcript": "More detail", "exchange_order": 1, "is_follow_up": True,
    })
    assert second_follow_up.status_code == 409

    # Closing question never gets a follow-up
    llm.queue(STRONG_EVAL)
    calls_before = llm.calls
    last = client.post(f"/api/mock/{interview_id}/answer", json={"transcript": "How do you onboard engineers?"}).json()
    assert llm.calls == calls_before + 1
    assert last["follow_up_question"] is None
    assert last["is_last_question"] is True

    detail = client.get(f"/api/mock/{interview_id}").json()["interview"]
    assert detail["current_phase"] == "questions"
    assert detail["current_question_index"] == 2

    llm.queue({
        "overall_score": 72,
        "verdict": "maybe",
        "performance_breakdown": {"communication": 80, "structure": 65},
        "key_strengths": ["Structure"],
        "key_gaps": ["Metrics"],
        "summary": "Promising candidate.",
    })
    completed = client.post(f"/api/mock/{interview_id}/complete").json()
    assert completed["saved"] is True
    assert completed["already_completed"] is False
    assert completed["report"]["verdict"] == "hire"
    assert completed["report"]["questions_answered"] == 2

    detail = client.get(f"/api/mock/{interview_id}").json()["interview"]
    assert detail["status"] == "completed"
    assert detail["overall_score"] == 72
    assert detail["verdict"] == "hire"
    assert detail["summary"] == "Promising candidate."

    calls_before = llm.calls
    repeat = client.post(f"/api/mock/{interview_id}/complete").json()
    assert repeat["already_completed"] is True
    assert repeat["report"]["verdict"] == "hire"
    assert llm.calls == calls_before

    closed = client.post(f"/api/mock/{interview_id}/answer", json={"transcript": "One more thing"})
    assert closed.status_code == 400


def test_empty_transcript(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    response = client.post(f"/api/mock/{interview_id}/answer", json={"transcript": "   "})
    assert response.status_code == 400


def test_follow_up_without_question(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    response = client.post(f"/api/mock/{interview_id}/answer", json={
        "transcript": "Answer", "exchange_order": 1, "is_follow_up": True,
    })
    assert response.status_code == 400


def test_complete_without_answers(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    assert client.post(f"/api/mock/{interview_id}/complete").status_code == 400


def test_realtime_tool_calls(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"

    saved = client.post(url, json={"tool": "save_candidate_answer", "arguments": {
        "question_index": 0, "answer_summary": "Background in payments", "answer_quality": "strong",
    }}).json()
    assert saved == {"success": True, "question_index": 0, "next_question_index": 1, "score": 80}

    defaulted = client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 1}}).json()
    assert defaulted["score"] == 50

    assert client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 9}}).status_code == 400
    assert client.post(url, json={"tool": "save_candidate_answer", "arguments": {"answer_quality": "strong"}}).status_code == 400
    assert client.post(url, json={"tool": "save_candidate_answer", "arguments": {
        "question_index": 2, "answer_quality": "legendary",
    }}).status_code == 400

    phase = client.post(url, json={"tool": "advance_phase", "arguments": {"next_phase": "wrap_up", "reason": "done"}})
    assert phase.json()["phase"] == "wrap_up"
    assert client.post(url, json={"tool": "advance_phase", "arguments": {"next_phase": "lunch"}}).status_code == 400

    assert client.post(url, json={"tool": "play_music", "arguments": {}}).status_code == 400

    ended = client.post(url, json={"tool": "end_interview", "arguments": {
        "reason": "completed", "overall_impression": "Confident and clear.",
    }}).json()
    assert ended["status"] == "completed"

    detail = client.get(f"/api/mock/{interview_id}").json()["interview"]
    assert detail["overall_score"] == 65
    assert detail["summary"] == "Confident and clear."
    assert detail["current_phase"] == "completed"


def test_candidate_ending_early_abandons(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"
    assert client.post(url, json={"tool": "end_interview", "arguments": {"reason": "bored"}}).status_code == 400
    ended = client.post(url, json={"tool": "end_interview", "arguments": {"reason": "candidate_ended"}}).json()
    assert ended["status"] == "abandoned"
    assert client.post(f"/api/mock/{interview_id}/start").status_code == 400


def test_report_falls_back_to_average_score(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"
    client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 0, "answer_quality": "strong"}})
    client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 1, "answer_quality": "weak"}})

    llm.queue({"summary": "Uneven answers."})
    report = client.post(f"/api/mock/{interview_id}/complete").json()["report"]
    assert report["overall_score"] == 55
    assert report["verdict"] == "borderline"


def test_tool_calls_rejected_after_interview_ends(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"
    client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 0, "answer_quality": "strong"}})
    client.post(url, json={"tool": "end_interview", "arguments": {"reason": "completed"}})

    rescored = client.post(url, json={"tool": "save_candidate_answer", "arguments": {
        "question_index": 0, "answer_quality": "weak",
    }})
    assert rescored.status_code == 400
    assert client.post(url, json={"tool": "advance_phase", "arguments": {"next_phase": "goodbye"}}).status_code == 400
    assert client.post(url, json={"tool": "end_interview", "arguments": {"reason": "completed"}}).status_code == 400

    detail = client.get(f"/api/mock/{interview_id}").json()["interview"]
    assert detail["overall_score"] == 80
    assert detail["status"] == "completed"


def test_complete_after_interviewer_ended_returns_stored_result(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"
    client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 0, "answer_quality": "average"}})
    client.post(url, json={"tool": "end_interview", "arguments": {
        "reason": "completed", "overall_impression": "Calm and direct.",
    }})

    calls_before = llm.calls
    response = client.post(f"/api/mock/{interview_id}/complete").json()
    assert response["already_completed"] is True
    assert response["report"]["overall_score"] == 50
    assert response["report"]["summary"] == "Calm and direct."
    assert response["report"]["questions_answered"] == 1
    assert llm.calls == calls_before


def test_report_returned_when_save_fails(client, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    url = f"/api/mock/{interview_id}/tool-response"
    client.post(url, json={"tool": "save_candidate_answer", "arguments": {"question_index": 0, "answer_quality": "strong"}})

    llm.queue({"overall_score": 81, "verdict": "hire", "summary": "Clear communicator."})
    with patch("app.routers.mock.store.complete_interview", side_effect=SQLAlchemyError("connection lost")):
        response = client.post(f"/api/mock/{interview_id}/complete")
    assert response.status_code == 200
    body = response.json()
    assert body["saved"] is False
    assert body["already_completed"] is False
    assert body["report"]["overall_score"] == 81
    assert body["report"]["verdict"] == "hire"
    assert body["report"]["summary"] == "Clear communicator."

    detail = client.get(f"/api/mock/{interview_id}").json()["interview"]
    assert detail["status"] != "completed"


def test_list_and_delete(client, db_session, llm, interview_ready, resume):
    interview_id = _create(client, resume).json()["interview"]["id"]
    listed = client.get("/api/mock/list").json()["interviews"]
    assert [i["id"] for i in listed] == [interview_id]

    assert client.delete(f"/api/mock/{interview_id}").status_code == 200
    assert client.get(f"/api/mock/{interview_id}").status_code == 404
    assert db_session.query(MockInterview).count() == 0
