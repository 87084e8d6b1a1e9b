from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest
from rich.console import Console

from daily_quiz import post_quiz
from daily_quiz.config import load_config
from daily_quiz.discord.client import DiscordPublisher, PublisherError
from daily_quiz.quiz.parser import ParseError
from daily_quiz.rotation import EmptyTopicSetError
from daily_quiz.snapshots import (
    POST_FILENAME,
    QUIZ_FILENAME,
    load_post,
    load_quiz,
    save_post,
)
from fixtures import FakeOpenAIClient, FakeResponse, FakeSession
from fixtures.discord import webhook_reply
from fixtures.samples import SAMPLE_CURRICULUM_TOML, answer_json, make_post, make_quiz

WHEN = datetime(2024, 1, 10, 5, 0, tzinfo=timezone.utc)
EXPECTED_ID = "pde-20240110-bigquery-clustering"
LOGGER = logging.getLogger("daily_quiz.tests.post_quiz")


@pytest.fixture
def config(workspace):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)
    return load_config(env=workspace.env).config


def _run(config, **kwargs):
    console = kwargs.pop("console", Console(record=True, width=120))
    kwargs.setdefault("client", FakeOpenAIClient(answer_json()))
    outcome = post_quiz.run_post_quiz(
        config, when=WHEN, logger=LOGGER, console=console, **kwargs
    )
    return outcome, console.export_text()


def _publisher(session, token="bot"):
    return DiscordPublisher("https://discord.test/hook", token, session=session)


def test_dry_run_generates_and_previews_without_posting(config):
    session = FakeSession()

    outcome, output = _run(config, publisher=_publisher(session), dry_run=True)

    assert outcome.plan.quiz_id == EXPECTED_ID
    assert outcome.quiz.topic == "BigQuery clustering"
    assert outcome.post is None
    assert not outcome.skipped
    assert session.requests == []
    assert load_quiz(config.snapshot_dir) == outcome.quiz
    assert not (config.snapshot_dir / POST_FILENAME).exists()
    assert "Dry run" in output
    assert EXPECTED_ID in output


def test_live_run_posts_saves_and_seeds_reactions(config):
    session = FakeSession(webhook_reply("m-9", "c-9"))

    outcome, _ = _run(config, publisher=_publisher(session))

    post = load_post(config.snapshot_dir)
    assert post == outcome.post
    assert post.message_id == "m-9"
    assert post.channel_id == "c-9"
    assert post.quiz.id == EXPECTED_ID
    assert datetime.fromisoformat(post.posted_at).tzinfo is not None

    (webhook,) = session.by_method("POST")
    embed = webhook.kwargs["json"]["embeds"][0]
    assert embed["footer"]["text"] == f"Quiz ID: {EXPECTED_ID}"
    assert len(session.by_method("PUT")) == 4


def test_model_prompt_reflects_the_rotation_plan(config):
    client = FakeOpenAIClient(answer_json())

    _run(config, client=client, dry_run=True)

    prompt = client.last_call["messages"][1]["content"]
    assert "Topic: BigQuery clustering" in prompt
    assert "Difficulty: easy" in prompt
    assert "Question type: best-practice" in prompt


def test_seed_reactions_can_be_disabled(workspace):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)
    workspace.config("[discord]\nseed_reactions = false\n")
    config = load_config(env=workspace.env).config
    session = FakeSession(webhook_reply())

    _run(config, publisher=_publisher(session))

    assert session.by_method("PUT") == []


def test_missing_bot_token_skips_seeding(config):
    session = FakeSession(webhook_reply())

    outcome, _ = _run(config, publisher=_publisher(session, token=None))

    assert outcome.post is not None
    assert [r.method for r in session.requests] == ["POST"]


def test_already_posted_quiz_is_skipped(config):
    save_post(config.snapshot_dir, make_post(make_quiz(id=EXPECTED_ID)))
    client = FakeOpenAIClient(answer_json())
    session = FakeSession()

    outcome, output = _run(config, client=client, publisher=_publisher(session))

    assert outcome.skipped
    assert outcome.quiz is None
    assert client.calls == []
    assert session.requests == []
    assert "already posted" in output


def test_force_reposts_same_slot(config):
    save_post(config.snapshot_dir, make_post(make_quiz(id=EXPECTED_ID)))
    session = FakeSession(webhook_reply("m-2", "c-2"))

    outcome, _ = _run(config, publisher=_publisher(session), force=True)

    assert not outcome.skipped
    assert load_post(config.snapshot_dir).message_id == "m-2"


def test_previous_post_for_other_slot_does_not_block(config):
    save_post(config.snapshot_dir, make_post())
    session = FakeSession(webhook_reply())

    outcome, _ = _run(config, publisher=_publisher(session))

    assert outcome.post.quiz.id == EXPECTED_ID


def test_invalid_model_output_stops_before_any_snapshot(config):
    with pytest.raises(ParseError):
        _run(config, client=FakeOpenAIClient(answer_json(options=["x"])))

    assert not (config.snapshot_dir / QUIZ_FILENAME).exists()


def test_webhook_failure_keeps_quiz_but_not_post(config):
    session = FakeSession(FakeResponse(status_code=500, text="oops"))

    with pytest.raises(PublisherError):
        _run(config, publisher=_publisher(session))

    assert (config.snapshot_dir / QUIZ_FILENAME).exists()
    assert not (config.snapshot_dir / POST_FILENAME).exists()


def test_live_run_requires_publisher(config):
    with pytest.raises(PublisherError):
        _run(config)


def test_curriculum_without_topics_is_rejected(workspace):
    workspace.curriculum('exam_code = "PDE"\nexam_name = "x"\ndomains = []\n')
    config = load_config(env=workspace.env).config

    with pytest.raises(EmptyTopicSetError):
        _run(config, dry_run=True)


def test_main_dry_run(workspace, monkeypatch, capsys):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)
    client = FakeOpenAIClient(answer_json())
    monkeypatch.setattr(post_quiz, "load_client", lambda **_: client)

    code = post_quiz.main(["--dry-run", "--date", "2024-01-10T05:00:00"])

    assert code == 0
    record = json.loads(
        (workspace.snapshot_dir / QUIZ_FILENAME).read_text(encoding="utf-8")
    )
    assert record["id"] == EXPECTED_ID
    assert "Done." in capsys.readouterr().out
    assert (workspace.root / "logs" / "post_quiz.log").exists()


def test_main_no_shuffle_keeps_model_order(workspace, monkeypatch):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)
    client = FakeOpenAIClient(answer_json(correct=3))
    monkeypatch.setattr(post_quiz, "load_client", lambda **_: client)

    code = post_quiz.main(
        ["--dry-run", "--no-shuffle", "--date", "2024-01-10T05:00:00"]
    )

    assert code == 0
    assert load_quiz(workspace.snapshot_dir).correct == 3


def test_main_requires_webhook_for_live_runs(workspace, capsys):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)

    code = post_quiz.main([])

    assert code == 2
    assert "DISCORD_WEBHOOK_URL" in capsys.readouterr().err


def test_main_reports_run_errors(workspace, monkeypatch, capsys):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)
    monkeypatch.setattr(
        post_quiz, "load_client", lambda **_: FakeOpenAIClient("")
    )

    code = post_quiz.main(["--dry-run"])

    assert code == 1
    assert "Error:" in capsys.readouterr().out


def test_main_missing_curriculum_is_an_error(workspace, capsys):
    code = post_quiz.main(["--dry-run", "--exam", "ACE"])

    assert code == 1
    assert "No curriculum found for exam 'ACE'" in capsys.readouterr().out


def test_main_rejects_bad_date(workspace, capsys):
    with pytest.raises(SystemExit) as excinfo:
        post_quiz.main(["--date", "tomorrow"])

    assert excinfo.value.code == 2
    assert "--date must be an ISO-8601 timestamp" in capsys.readouterr().err


def test_topic_main_shows_plan(workspace, capsys):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)

    code = post_quiz.topic_main(["--date", "2024-01-10T05:00:00Z"])

    out = capsys.readouterr().out
    assert code == 0
    assert "BigQuery clustering" in out
    assert EXPECTED_ID in out


def test_topic_main_weighted_with_seed_is_stable(workspace, capsys):
    workspace.curriculum(SAMPLE_CURRICULUM_TOML)

    post_quiz.topic_main(["--weighted", "--seed", "3"])
    first = capsys.readouterr().out
    post_quiz.topic_main(["--weighted", "--seed", "3"])
    second = capsys.readouterr().out

    assert "weighted" in first
    topic_lines = [line for line in first.splitlines() if "Topic" in line]
    assert topic_lines == [line for line in second.splitlines() if "Topic" in line]
