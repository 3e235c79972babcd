from app.services.bullet_analyzer import analyze_bullet, analyze_all_bullets, find_weak_phrases, has_metrics

STRONG = "Built a billing service that processed 2M invoices per month"
WEAK = "Helped with on-call rotation"


def test_strong_bullet():
    result = analyze_bullet(STRONG)
    assert result["score"] == 95
    assert result["strength"] == "strong"
    assert result["starts_with_action_verb"]
    assert result["has_metrics"]
    assert result["weak_words"] == []
    assert result["tips"] == []


def test_weak_bullet():
    result = analyze_bullet(WEAK)
    assert result["score"] == 30
    assert result["strength"] == "weak"
    assert result["weak_words"] == ["helped with"]
    assert result["suggestions"] == [{"weak": "helped with", "alternatives": ["contributed to", "supported", "enabled"]}]
    assert 'Replace weak phrases: "helped with"' in result["tips"]
    assert "Add more detail to demonstrate impact" in result["tips"]


def test_empty_bullet():
    result = analyze_bullet("   ")
    assert result["score"] == 0
    assert result["tips"] == ["Start writing to see analysis"]


def test_score_is_clamped():
    result = analyze_bullet(
        "Responsible for tasks, helped with duties, worked on various things, "
        "in charge of misc, familiar with tools etc"
    )
    assert result["score"] == 0


def test_metrics_detection():
    assert has_metrics("Cut costs by 30%")
    assert has_metrics("Saved $40k annually")
    assert has_metrics("Onboarded 120 customers")
    assert not has_metrics("Improved team morale")


def test_longer_phrase_wins():
    assert find_weak_phrases("I helped with the launch") == ["helped with"]
    assert find_weak_phrases("I helped the team") == ["helped"]


def test_analyze_all_bullets():
    result = analyze_all_bullets([STRONG, WEAK])
    assert result["average_score"] == 62
    assert result["overall_strength"] == "moderate"
    assert result["total_weak_words"] == 1
    assert result["bullets_with_metrics"] == 1
    assert result["bullets_with_action_verbs"] == 1
    assert len(result["top_tips"]) <= 5
    assert result["bullets"][0]["text"] == STRONG


def test_analyze_no_bullets():
    result = analyze_all_bullets([])
    assert result["average_score"] == 0
    assert result["top_tips"] == ["Add bullet points to see analysis"]
