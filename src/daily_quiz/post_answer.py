"""``daily-quiz post-answer``: reveal the answer for the last posted quiz."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .config import ConfigError, ConfigOverrides, DailyQuizConfig, load_config
from .core.logging import configure_logger
from .discord.client import (
    DiscordPublisher,
    PublisherError,
    ReactionFetchUnavailable,
)
from .discord.formatter import format_answer_embed, format_answer_embed_with_stats
from .preview import render_embed
from .quiz.models import QuizPost, QuizStats, ReactionStats
from .quiz.reactions import EMPTY_STATS, build_stats, has_any_responses, tally
from .snapshots import SnapshotError, load_post, save_stats

__all__ = ["PostAnswerOutcome", "build_arg_parser", "main", "run_post_answer"]

LOGGER_NAME = "daily_quiz.post_answer"


@dataclass(frozen=True)
class PostAnswerOutcome:
    post: QuizPost
    stats: QuizStats
    with_stats: bool
    posted: bool


def _collect_reactions(
    publisher: Optional[DiscordPublisher],
    post: QuizPost,
    logger: logging.Logger,
) -> ReactionStats:
    if publisher is None:
        return EMPTY_STATS
    try:
        raw = publisher.fetch_reaction_counts(post.channel_id, post.message_id)
    except ReactionFetchUnavailable:
        logger.info("No bot token; answering without reaction stats")
        return EMPTY_STATS
    stats = tally(raw)
    logger.info(
        "Reactions tallied",
        extra={"quiz_id": post.quiz.id, "counts": list(stats.counts)},
    )
    return stats


def run_post_answer(
    config: DailyQuizConfig,
    *,
    logger: logging.Logger,
    console: Console,
    publisher: Optional[DiscordPublisher] = None,
    dry_run: bool = False,
) -> PostAnswerOutcome:
    """Tally reactions on the saved post and publish the answer embed.

    The stats variant of the embed is used only when at least one person
    answered. Dry runs still read reactions when a bot token is available.
    """

    post = load_post(config.snapshot_dir)
    quiz = post.quiz
    logger.info(
        "Loaded posted quiz",
        extra={"quiz_id": quiz.id, "message_id": post.message_id},
    )

    reactions = _collect_reactions(publisher, post, logger)
    with_stats = has_any_responses(reactions)
    if with_stats:
        embed = format_answer_embed_with_stats(quiz, reactions)
    else:
        embed = format_answer_embed(quiz)
    stats = build_stats(post, reactions)

    if dry_run:
        console.print("[bold]Dry run[/]: not posting to Discord.")
        render_embed(console, embed)
        return PostAnswerOutcome(
            post=post, stats=stats, with_stats=with_stats, posted=False
        )

    if publisher is None:
        raise PublisherError("No publisher configured for a live run.")
    result = publisher.post_embed(embed)
    stats_path = save_stats(config.snapshot_dir, stats)
    logger.info(
        "Answer posted",
        extra={
            "quiz_id": quiz.id,
            "message_id": result.message_id,
            "total_answers": stats.total_answers,
            "correct_rate": stats.correct_rate,
            "path": stats_path,
        },
    )
    console.print(
        f"Answer posted: {stats.total_answers} answer(s), "
        f"{stats.correct_rate * 100:.1f}% correct"
    )
    return PostAnswerOutcome(
        post=post, stats=stats, with_stats=with_stats, posted=True
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-quiz post-answer",
        description=(
            "Reveal the answer to the most recently posted quiz, with "
            "reaction stats when a bot token is configured."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview the answer embed without posting it.",
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
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        loaded = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(log_level=args.log_level),
            workspace_path=args.workspace,
        )
    except ConfigError as exc:
        parser.error(str(exc))
    config = loaded.config

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose,
    )
    console = Console()

    if not args.dry_run and not config.discord.webhook_url:
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
        run_post_answer(
            config,
            logger=logger,
            console=console,
            publisher=publisher,
            dry_run=args.dry_run,
        )
    except (SnapshotError, PublisherError) as exc:
        logger.exception("post-answer failed")
        console.print(f"[red]Error:[/] {exc}")
        console.print(f"See log: {log_path}")
        return 1
    finally:
        publisher.close()

    console.print("[green]Done.[/]")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
