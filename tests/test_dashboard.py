"""Tests for the student dashboard projection."""

from tests.conftest import quiz_reply


def test_empty_dashboard(pipeline):
    data = pipeline.dashboard("user-1")

    assert data["stats"] == {
        "total_questions": 0,
        "completed_quizzes": 0,
        "average_score": 0,
        "total_uploads": 0,
    }
    for key in ("recent_questions", "quiz_scores", "weak_topics", "recent_uploads", "recent_activity", "progress"):
        assert data[key] == []


def test_dashboard_summarises_activity(seeded_pipeline, generator):
    for question in ("What is a fraction?", "What is a denominator?", "How do plants make food?"):
        seeded_pipeline.ask("user-1", question)

    generator.queue(*[quiz_reply(5, topic="Plants", subject="Science")] * 3)
    first = seeded_pipeline.generate_quiz("user-1")
    seeded_pipeline.submit_quiz("user-1", first.id, [0, 1, 2, 1, 1])
    second = seeded_pipeline.generate_quiz("user-1")
    seeded_pipeline.submit_quiz("user-1", second.id, [0, 1, 2, 3, 0])
    seeded_pipeline.mastery.update_mastery("user-1", "Fractions", subject="Maths", quiz_score=100)
    seeded_pipeline.generate_quiz("user-1")

    data = seeded_pipeline.dashboard("user-1")

    # (60 + 100) / 2
    assert data["stats"] == {
        "total_questions": 3,
        "completed_quizzes": 2,
        "average_score": 80,
        "total_uploads": 2,
    }
    assert data["recent_questions"][0]["question_text"] == "How do plants make food?"
    assert [q["score"] for q in data["quiz_scores"]] == [100, 60]
    assert data["weak_topics"][0]["mastery_score"] == 50
    assert [p["topic"] for p in data["weak_topics"]] == ["Plants"]
    assert [p["topic"] for p in data["progress"]] == ["Plants", "Fractions"]
    assert [u["file_name"] for u in data["recent_uploads"]] == ["plants.txt", "fractions.txt"]

    activity = data["recent_activity"]
    assert len(activity) == 6
    assert activity[0]["type"] == "quiz"
    assert activity[0]["title"].endswith("(not submitted)")
    timestamps = [item["created_at"] for item in activity]
    assert timestamps == sorted(timestamps, reverse=True)


def test_dashboard_is_per_owner(seeded_pipeline):
    seeded_pipeline.ask("user-1", "What is a fraction?")

    data = seeded_pipeline.dashboard("user-2")

    assert data["stats"]["total_questions"] == 0
    assert data["stats"]["total_uploads"] == 0


def test_recent_lists_are_bounded(pipeline):
    for i in range(7):
        pipeline.ingest("user-1", f"fraction notes {i}", f"notes-{i}.txt", topic="Fractions")
    for i in range(7):
        pipeline.ask("user-1", f"fraction question {i}?")

    data = pipeline.dashboard("user-1")

    assert data["stats"]["total_uploads"] == 7
    assert data["stats"]["total_questions"] == 7
    assert len(data["recent_uploads"]) == 5
    assert len(data["recent_questions"]) == 5
    assert data["recent_questions"][0]["question_text"] == "fraction question 6?"
