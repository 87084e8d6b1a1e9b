"""Rich console rendering for rotation plans, quizzes, and embeds."""

from __future__ import annotations

from typing import Any, Mapping

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .quiz.models import REACTION_EMOJIS, Quiz
from .rotation import RotationPlan

__all__ = ["render_embed", "render_plan", "render_quiz"]


def render_plan(console: Console, plan: RotationPlan) -> None:
    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Date", plan.when.isoformat())
    table.add_row("Strategy", plan.strategy)
    table.add_row("Slot", str(plan.slot))
    table.add_row("Domain", plan.topic.domain)
    table.add_row("Section", plan.topic.section)
    table.add_row("Topic", plan.topic.topic)
    table.add_row("Difficulty", plan.difficulty.value)
    table.add_row("Question type", plan.question_type.value)
    table.add_row("Quiz ID", plan.quiz_id)
    console.print(Panel(table, title="Rotation", border_style="blue"))


def render_quiz(console: Console, quiz: Quiz) -> None:
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center")
    table.add_column("Option")
    for i, option in enumerate(quiz.options):
        style = "bold green" if i == quiz.correct else ""
        table.add_row(REACTION_EMOJIS[i], Text(option, style=style))
    console.print(
        Panel(
            table,
            title=Text(quiz.question, style="bold"),
            subtitle=f"{quiz.id} · {quiz.difficulty.value}",
            border_style="cyan",
        )
    )
    console.print(Panel(quiz.explanation, title="Explanation", border_style="dim"))


def render_embed(console: Console, embed: Mapping[str, Any]) -> None:
    """Show an embed payload the way it would read in the channel."""

    body = Text()
    description = str(embed.get("description") or "")
    if description:
        body.append(description + "\n")
    for field in embed.get("fields") or []:
        body.append(f"\n{field.get('name', '')}\n", style="bold")
        body.append(str(field.get("value", "")) + "\n")
    footer = (embed.get("footer") or {}).get("text")
    console.print(
        Panel(
            body,
            title=str(embed.get("title") or ""),
            subtitle=footer,
            border_style="magenta",
        )
    )
