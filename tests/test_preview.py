from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console

from daily_quiz.discord.formatter import format_quiz_embed
from daily_quiz.preview import render_embed, render_plan, render_quiz
from daily_quiz.rotation import plan_rotation
from fixtures.samples import make_quiz, topic


def _console():
    return Console(record=True, width=120)


def test_render_plan_lists_rotation_choices():
    console = _console()
    plan = plan_rotation([topic()], datetime(2024, 1, 13, 12, tzinfo=timezone.utc))

    render_plan(console, plan)

    text = console.export_text()
    assert "Rotation" in text
    assert "BigQuery partitioning" in text
    assert "hard" in text
    assert "troubleshooting" in text
    assert plan.quiz_id in text


def test_render_quiz_shows_options_and_explanation():
    console = _console()
    quiz = make_quiz()

    render_quiz(console, quiz)

    text = console.export_text()
    for option in quiz.options:
        assert option in text
    assert "Explanation" in text
    assert quiz.id in text


def test_render_embed_shows_fields_and_footer():
    console = _console()
    quiz = make_quiz()

    render_embed(console, format_quiz_embed(quiz))

    text = console.export_text()
    assert "PDE Daily Quiz" in text
    assert "Options" in text
    assert f"Quiz ID: {quiz.id}" in text
