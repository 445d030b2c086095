"""Tests for the interactive CLI helpers."""

import pytest

from notes_tutor.interfaces import cli
from tests.conftest import quiz_reply


class TestParseCommand:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", ("empty", [])),
            ("   ", ("empty", [])),
            ("What is a fraction?", ("ask", ["What is a fraction?"])),
            ("/quiz", ("quiz", [])),
            ("/INGEST notes.md Maths Fractions", ("ingest", ["notes.md", "Maths", "Fractions"])),
            ("/", ("", [])),
        ],
    )
    def test_parse(self, text, expected):
        assert cli.parse_command(text) == expected


def test_ingest_command_reads_file(seeded_pipeline, tmp_path):
    notes = tmp_path / "volcano.md"
    notes.write_text("A volcano erupts lava.", encoding="utf-8")

    cli.handle_ingest(seeded_pipeline, "user-1", [str(notes), "Geography", "Volcanoes"])

    topics = {c.topic for c in seeded_pipeline.corpus_store.list_by_owner("user-1")}
    assert "Volcanoes" in topics


def test_ingest_command_missing_file(seeded_pipeline, tmp_path):
    cli.handle_ingest(seeded_pipeline, "user-1", [str(tmp_path / "missing.txt")])
    assert seeded_pipeline.corpus_store.count("user-1") == 2


def test_quiz_command_submits_answers(seeded_pipeline, generator, monkeypatch):
    generator.queue(quiz_reply(5))
    answers = iter([0, 1, 2, 3, 0])
    monkeypatch.setattr(cli, "ask_option", lambda number: next(answers))

    cli.handle_quiz(seeded_pipeline, "user-1")

    [progress] = seeded_pipeline.progress("user-1")
    assert (progress["mastery_score"], progress["questions_attempted"]) == (100, 1)
