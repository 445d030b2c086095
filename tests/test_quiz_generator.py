"""Tests for adaptive quiz generation."""

import pytest

from notes_tutor.errors import InsufficientContent, ServiceUnavailable
from notes_tutor.quiz.schema import QUIZ_QUESTIONS
from notes_tutor.storage.models import Quiz
from tests.conftest import quiz_reply


def _stored_quiz(pipeline, quiz_id) -> Quiz:
    with pipeline.session_factory() as session:
        return session.get(Quiz, quiz_id)


class TestGenerateQuiz:
    def test_returns_open_quiz_without_answers(self, seeded_pipeline, generator):
        generator.queue(quiz_reply(5))

        quiz = seeded_pipeline.generate_quiz("user-1")

        assert quiz.total_questions == 5
        assert len(quiz.questions) == 5
        for position, question in enumerate(quiz.questions):
            assert set(question) == {"index", "question_text", "options", "is_generic"}
            assert question["index"] == position
            assert len(question["options"]) == 4
            assert question["is_generic"] is False

    def test_persists_answers_and_classification(self, seeded_pipeline, generator):
        generator.queue(quiz_reply(5, topic="Fractions", subject="Maths"))

        quiz = seeded_pipeline.generate_quiz("user-1")
        stored = _stored_quiz(seeded_pipeline, quiz.id)

        assert stored.owner_id == "user-1"
        assert stored.completed_at is None
        assert (stored.subject, stored.topic) == ("Maths", "Fractions")
        questions = QUIZ_QUESTIONS.validate_python(stored.quiz_data)
        assert [q.correct_option_index for q in questions] == [0, 1, 2, 3, 0]
        assert questions[0].explanation == "Because of reason 1."

    def test_untagged_questions_take_first_chunk_topic(self, pipeline, generator):
        pipeline.ingest("user-1", "fraction notes", "f.txt", subject="Maths", topic="Fractions")
        generator.queue(quiz_reply(2, topic=None, subject=None))

        quiz = pipeline.generate_quiz("user-1")

        assert (quiz.subject, quiz.topic) == ("Maths", "Fractions")

    def test_unknown_topic_is_replaced(self, pipeline, generator):
        pipeline.ingest("user-1", "plant notes", "p.txt", subject="Science", topic="Plants")
        generator.queue(quiz_reply(2, topic="Invented Topic", subject="Made Up"))

        quiz = pipeline.generate_quiz("user-1")

        assert (quiz.subject, quiz.topic) == ("Science", "Plants")

    def test_asks_for_fixed_question_count(self, seeded_pipeline, generator):
        generator.queue(quiz_reply(5))
        seeded_pipeline.generate_quiz("user-1")
        assert "exactly 5 multiple choice questions" in generator.prompts[-1]

    def test_unparseable_output_uses_fallback(self, seeded_pipeline, generator, caplog):
        generator.queue("Sorry, I cannot help with that.")

        with caplog.at_level("WARNING"):
            quiz = seeded_pipeline.generate_quiz("user-1")

        assert quiz.total_questions == 1
        assert quiz.questions[0]["is_generic"] is True
        assert quiz.topic is None
        assert "fell back" in caplog.text

    def test_no_content_raises(self, pipeline, generator):
        with pytest.raises(InsufficientContent):
            pipeline.generate_quiz("user-1")
        assert generator.prompts == []

    def test_service_errors_propagate(self, seeded_pipeline, generator):
        generator.queue(ServiceUnavailable())
        with pytest.raises(ServiceUnavailable):
            seeded_pipeline.generate_quiz("user-1")


class TestTopicSelection:
    def test_targets_weakest_topics(self, seeded_pipeline):
        seeded_pipeline.mastery.update_mastery("user-1", "Plants", quiz_score=20)
        seeded_pipeline.mastery.update_mastery("user-1", "Fractions", quiz_score=90)

        chunks = seeded_pipeline.quiz_generator.gather_content("user-1")

        assert {c.topic for c in chunks} == {"Plants", "Fractions"}

    def test_only_topics_with_progress(self, pipeline):
        pipeline.ingest("user-1", "plant notes", "p.txt", topic="Plants")
        pipeline.ingest("user-1", "volcano notes", "v.txt", topic="Volcanoes")
        pipeline.mastery.update_mastery("user-1", "Volcanoes", quiz_score=0)

        chunks = pipeline.quiz_generator.gather_content("user-1")

        assert [c.topic for c in chunks] == ["Volcanoes"]

    def test_samples_without_progress(self, seeded_pipeline):
        chunks = seeded_pipeline.quiz_generator.gather_content("user-1")
        assert len(chunks) == 2

    def test_samples_when_weak_topics_have_no_chunks(self, seeded_pipeline):
        seeded_pipeline.mastery.update_mastery("user-1", "Deleted Topic", quiz_score=0)

        chunks = seeded_pipeline.quiz_generator.gather_content("user-1")

        assert len(chunks) == 2
