"""``daily-quiz post-quiz`` and ``daily-quiz topic``.

One run: pick the rotation slot for a timestamp, generate the question,
snapshot it, post it, and snapshot the post for the answer run.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

from rich.console import Console

from .config import (
    ConfigError,
    ConfigOverrides,
    DailyQuizConfig,
    LoadResult,
    load_config,
)
from .core.ai import load_client
from .core.logging import configure_logger
from .curriculum import (
    CurriculumError,
    FlattenedTopic,
    find_curriculum,
    flatten_topics,
    load_curriculum,
)
from .discord.client import (
    DiscordPublisher,
    PublisherError,
    ReactionFetchUnavailable,
)
from .discord.formatter import format_quiz_embed
from .preview import render_embed, render_plan, render_quiz
from .quiz.generator import GenerationError, generate_quiz
from .quiz.models import Quiz, QuizPost
from .quiz.parser import ParseError
from .rotation import EmptyTopicSetError, RotationPlan, plan_rotation
from .snapshots import SnapshotError, load_post, save_post, save_quiz

__all__ = [
    "PostQuizOutcome",
    "build_arg_parser",
    "load_topics",
    "main",
    "run_post_quiz",
    "topic_main",
]

LOGGER_NAME = "daily_quiz.post_quiz"

RUN_ERRORS = (
    CurriculumError,
    EmptyTopicSetError,
    ParseError,
    GenerationError,
    PublisherError,
    SnapshotError,
)


@dataclass(frozen=True)
class PostQuizOutcome:
    plan: RotationPlan
    quiz: Optional[Quiz] = None
    post: Optional[QuizPost] = None
    skipped: bool = False


def load_topics(config: DailyQuizConfig) -> List[FlattenedTopic]:
    path = find_curriculum(
        config.exam.code, search_dirs=config.exam.curriculum_dirs
    )
    topics = flatten_topics(load_curriculum(path))
    if not topics:
        raise EmptyTopicSetError(f"Curriculum {path} does not define any topics.")
    return topics


def _already_posted(
    snapshot_dir: Path, quiz_id: str, logger: logging.Logger
) -> bool:
    try:
        previous = load_post(snapshot_dir)
    except SnapshotError as exc:
        logger.debug("No usable previous post: %s", exc)
        return False
    return previous.quiz.id == quiz_id


def run_post_quiz(
    config: DailyQuizConfig,
    *,
    when: datetime,
    logger: logging.Logger,
    console: Console,
    client: Any = None,
    publisher: Optional[DiscordPublisher] = None,
    dry_run: bool = False,
    force: bool = False,
    rng: Any = None,
) -> PostQuizOutcome:
    """Run the question half of the daily cycle.

    ``client`` is created from the environment only when generation actually
    happens. ``publisher`` is required unless ``dry_run`` is set.
    """

    topics = load_topics(config)
    plan = plan_rotation(
        topics,
        when,
        strategy=config.rotation.strategy,
        seed=config.rotation.seed,
    )
    logger.info(
        "Rotation selected",
        extra={
            "quiz_id": plan.quiz_id,
            "topic": plan.topic.path,
            "slot": plan.slot,
            "difficulty": plan.difficulty.value,
            "question_type": plan.question_type.value,
        },
    )
    render_plan(console, plan)

    if not force and _already_posted(config.snapshot_dir, plan.quiz_id, logger):
        logger.info("Quiz already posted; skipping", extra={"quiz_id": plan.quiz_id})
        console.print(
            f"[yellow]Quiz {plan.quiz_id} was already posted. "
            "Use --force to post again.[/]"
        )
        return PostQuizOutcome(plan=plan, skipped=True)

    if client is None:
        client = load_client(
            base_url=config.ai.base_url, timeout=config.ai.timeout_seconds
        )
    console.print(f"Generating quiz with {config.ai.model}...")
    quiz = generate_quiz(plan, client=client, settings=config.ai, rng=rng)
    quiz_path = save_quiz(config.snapshot_dir, quiz)
    logger.info(
        "Quiz generated",
        extra={"quiz_id": quiz.id, "path": quiz_path, "correct": quiz.correct},
    )
    console.print(f"Quiz saved to {quiz_path}")

    embed = format_quiz_embed(quiz)
    if dry_run:
        console.print("[bold]Dry run[/]: not posting to Discord.")
        render_quiz(console, quiz)
        render_embed(console, embed)
        return PostQuizOutcome(plan=plan, quiz=quiz)

    if publisher is None:
        raise PublisherError("No publisher configured for a live run.")
    result = publisher.post_embed(embed)
    post = QuizPost(
        quiz=quiz,
        message_id=result.message_id,
        channel_id=result.channel_id,
        posted_at=datetime.now(timezone.utc).isoformat(),
    )
    post_path = save_post(config.snapshot_dir, post)
    logger.info(
        "Quiz posted",
        extra={
            "quiz_id": quiz.id,
            "message_id": post.message_id,
            "channel_id": post.channel_id,
            "path": post_path,
        },
    )
    console.print(
        f"Posted message {post.message_id} to channel {post.channel_id}"
    )

    if config.discord.seed_reactions:
        try:
            publisher.seed_reactions(post.channel_id, post.message_id)
        except ReactionFetchUnavailable:
            logger.info("No bot token; answer reactions not seeded")
        else:
            logger.info("Answer reactions seeded", extra={"quiz_id": quiz.id})
    return PostQuizOutcome(plan=plan, quiz=quiz, post=post)


def _parse_when(raw: Optional[str]) -> datetime:
    if not raw:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"--date must be an ISO-8601 timestamp, got '{raw}'"
        ) from exc
    return parsed


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--exam", help="Exam code whose curriculum to use.")
    parser.add_argument(
        "--date",
        help=(
            "ISO-8601 timestamp to plan for instead of now (naive values are "
            "treated as UTC)."
        ),
    )
    parser.add_argument(
        "--weighted",
        action="store_true",
        help="Pick the topic by weighted random draw instead of date rotation.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for --weighted so the draw is reproducible.",
    )
    parser.add_argument("--config", type=Path, help="Path to daily_quiz.toml.")
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to DAILY_QUIZ_HOME).",
    )
    parser.add_argument("--log-level", help="Log level for the JSON log file.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-quiz post-quiz",
        description=(
            "Generate today's quiz for the rotation slot and post it to "
            "Discord."
        ),
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate and preview the quiz without posting it.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Post even if this quiz id was already posted.",
    )
    parser.add_argument(
        "--no-shuffle",
        dest="shuffle",
        action="store_false",
        default=None,
        help="Keep the option order returned by the model.",
    )
    return parser


def _build_topic_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-quiz topic",
        description="Show the rotation plan for a timestamp without generating.",
    )
    _add_common_arguments(parser)
    return parser


def _load(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> tuple[LoadResult, datetime]:
    overrides = ConfigOverrides(
        exam_code=args.exam,
        strategy="weighted" if args.weighted else None,
        seed=args.seed,
        shuffle_options=getattr(args, "shuffle", None),
        log_level=args.log_level,
    )
    try:
        when = _parse_when(args.date)
        loaded = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except (ConfigError, argparse.ArgumentTypeError) as exc:
        parser.error(str(exc))
    return loaded, when


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    loaded, when = _load(parser, args)
    config = loaded.config

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose,
    )
    console = Console()
    logger.debug("post-quiz invoked", extra={"dry_run": args.dry_run})

    publisher = None
    if not args.dry_run:
        if not config.discord.webhook_url:
            sys.stderr.write(
                "A Discord webhook URL is required; set DISCORD_WEBHOOK_URL "
                "or use --dry-run.\n"
            )
            return 2
        publisher = DiscordPublisher(
            config.discord.webhook_url,
            config.discord.bot_token,
            timeout=config.discord.timeout_seconds,
        )

    try:
        run_post_quiz(
            config,
            when=when,
            logger=logger,
            console=console,
            publisher=publisher,
            dry_run=args.dry_run,
            force=args.force,
        )
    except (*RUN_ERRORS, RuntimeError) as exc:
        logger.exception("post-quiz failed")
        console.print(f"[red]Error:[/] {exc}")
        console.print(f"See log: {log_path}")
        return 1
    finally:
        if publisher is not None:
            publisher.close()

    console.print("[green]Done.[/]")
    return 0


def topic_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_topic_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    loaded, when = _load(parser, args)
    config = loaded.config
    console = Console()
    try:
        topics = load_topics(config)
        plan = plan_rotation(
            topics,
            when,
            strategy=config.rotation.strategy,
            seed=config.rotation.seed,
        )
    except (CurriculumError, EmptyTopicSetError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1
    render_plan(console, plan)
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
