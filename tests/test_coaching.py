from app.models.coaching import CoverLetter

SWOT = {
    "strengths": [{"title": "Payments depth", "insight": "Five years on billing", "source": "Resume: Acme"}],
    "weaknesses": ["No Kubernetes"],
    "opportunities": [{"title": "Platform team growth", "insight": "Role is new"}],
    "threats": [{"insight": "missing title is dropped"}],
    "summary": "Lead with billing scale.",
}


def test_swot_locked_on_free(client, resume):
    response = client.post("/api/coaching/swot", json={"resume_id": resume.id})
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "FEATURE_LOCKED"
    assert response.json()["detail"]["upgrade_to"] == "basic"


def test_swot_saved(client, llm, set_tier, resume, job_description):
    set_tier("basic")
    llm.queue(SWOT)
    response = client.post("/api/coaching/swot", json={"resume_id": resume.id, "job_description_id": job_description.id})
    assert response.status_code == 201
    swot = response.json()["swot"]
    assert swot["strengths"][0]["source"] == "Resume: Acme"
    assert swot["weaknesses"] == [{"title": "No Kubernetes", "insight": "", "source": ""}]
    assert swot["threats"] == []
    assert swot["job_description_id"] == job_description.id

    listed = client.get("/api/coaching/swot").json()["analyses"]
    assert [a["id"] for a in listed] == [swot["id"]]


def test_swot_unknown_resume(client, set_tier):
    set_tier("basic")
    assert client.post("/api/coaching/swot", json={"resume_id": "missing"}).status_code == 404


def test_gap_defense(client, llm, resume):
    llm.queue({
        "pivot": "I haven't run Kubernetes in production yet.",
        "proof": "I containerized our billing services.",
        "promise": "I'm finishing the CKA this quarter.",
        "likely_questions": ["How much Kubernetes have you used?"],
    })
    response = client.post("/api/coaching/gap-defense", json={"gap": "No Kubernetes", "resume_id": resume.id})
    assert response.status_code == 201
    script = response.json()["gap_defense"]["script"]
    assert script["full_script"].startswith("I haven't run Kubernetes")
    assert script["likely_questions"] == ["How much Kubernetes have you used?"]


def test_gap_defense_incomplete_reply(client, llm):
    llm.queue({"pivot": "Only a pivot"})
    assert client.post("/api/coaching/gap-defense", json={"gap": "Career break"}).status_code == 500


def test_cover_letter_limit_on_free(client, llm, resume, db_session):
    llm.queue("Dear hiring team,\n\nI build billing systems.", "Second letter")
    first = client.post("/api/cover-letter/generate", json={
        "resume_id": resume.id, "job_title": "Backend Engineer", "company_name": "Initech", "tone": "friendly",
    })
    assert first.status_code == 201
    letter = first.json()["cover_letter"]
    assert letter["title"] == "Backend Engineer at Initech"
    assert letter["tone"] == "friendly"

    second = client.post("/api/cover-letter/generate", json={"resume_id": resume.id, "job_title": "Backend Engineer"})
    assert second.status_code == 403
    assert second.json()["detail"]["code"] == "LIMIT_REACHED"
    assert db_session.query(CoverLetter).count() == 1


def test_cover_letter_validation(client, resume):
    assert client.post("/api/cover-letter/generate", json={"resume_id": resume.id, "job_title": "X", "tone": "sarcastic"}).status_code == 400
    assert client.post("/api/cover-letter/generate", json={"resume_id": resume.id}).status_code == 400


def test_cover_letter_from_job_description(client, llm, set_tier, resume, job_description):
    set_tier("basic")
    llm.queue("Letter body", "Shorter letter body")
    letter = client.post("/api/cover-letter/generate", json={
        "resume_id": resume.id, "job_description_id": job_description.id,
    }).json()["cover_letter"]
    assert letter["title"] == "Senior Backend Engineer at Globex"

    refined = client.post("/api/cover-letter/refine", json={"cover_letter_id": letter["id"], "instruction": "Make it shorter"})
    assert refined.status_code == 200
    assert refined.json()["cover_letter"]["content"] == "Shorter letter body"

    assert len(client.get("/api/cover-letter/list").json()["cover_letters"]) == 1


def test_refine_unknown_letter(client):
    assert client.post("/api/cover-letter/refine", json={"cover_letter_id": "nope", "instruction": "Shorter"}).status_code == 404


def test_linkedin_locked_on_free(client, resume):
    response = client.post("/api/linkedin/generate", json={"resume_id": resume.id})
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "FEATURE_LOCKED"


def test_linkedin_profile(client, llm, set_tier, resume):
    set_tier("basic")
    llm.queue({
        "headline": "Backend Engineer | Payments at scale",
        "about": "I build billing systems.",
        "experience": [{"company": "Acme", "position": "Engineer", "description": "Built billing."}, "junk"],
        "skills": ["Python", "SQL"],
    })
    body = client.post("/api/linkedin/generate", json={"resume_id": resume.id, "target_role": "Staff Engineer"}).json()
    assert body["headline"] == "Backend Engineer | Payments at scale"
    assert len(body["experience"]) == 1
    assert body["headline_alternatives"] == []
