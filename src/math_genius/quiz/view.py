"""Rich rendering for the terminal host.

Everything here is presentation only: functions take controller state or
events and print to a :class:`rich.console.Console`. Nothing in this module
changes a session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .events import EventKind, GameEvent
from .models import Question
from .session import AnswerRecord, QuizResults

__all__ = [
    "OPTION_KEYS",
    "event_message",
    "option_key",
    "render_feedback",
    "render_question",
    "render_question_bank",
    "render_results",
]


OPTION_KEYS = ("A", "B", "C", "D")


def option_key(index: int) -> str:
    return OPTION_KEYS[index] if 0 <= index < len(OPTION_KEYS) else "-"


def render_question(
    console: Console,
    question: Question,
    *,
    number: int,
    total: int,
    time_remaining: int,
    score: int,
    streak: int,
) -> None:
    header = Text.assemble(
        (f"Question {number}", "bold cyan"),
        (f" / {total}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.prompt, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for index, option in enumerate(question.options):
        table.add_row(OPTION_KEYS[index], option)
    console.print(table)

    clock_style = "bold red" if time_remaining <= 5 else "dim"
    status = Text.assemble(
        (f"{time_remaining}s left", clock_style),
        (f" | Score {score} | Streak {streak} | ", "dim"),
        ("Answer A-D, h (hint), q (quit)", "dim"),
    )
    console.print(status)


def render_feedback(
    console: Console, question: Question, record: AnswerRecord
) -> None:
    if record.timed_out:
        title = "Time's up"
        border = "yellow"
    elif record.is_correct:
        title = "Correct"
        border = "green"
    else:
        title = "Incorrect"
        border = "red"

    body = Text()
    if not record.is_correct:
        body.append(
            f"Answer: {option_key(record.correct_index)}) {question.answer}\n",
            style="bold",
        )
    if question.explanation:
        body.append(question.explanation)
    console.print(Panel(body, title=title, border_style=border))


def event_message(event: GameEvent) -> Optional[Text]:
    """Return a one-line announcement for ``event``, if it warrants one."""

    if event.kind is EventKind.TIME_WARNING:
        return Text(f"{event.get('remaining')} seconds left!", style="yellow")
    if event.kind is EventKind.STREAK:
        label = "On fire! " if event.get("on_fire") else ""
        return Text(
            f"{label}{event.get('streak')} in a row", style="bold magenta"
        )
    if event.kind is EventKind.ACHIEVEMENT:
        achievement = event.get("achievement")
        return Text(
            f"Achievement unlocked: {achievement.title}", style="bold green"
        )
    return None


def render_results(
    console: Console,
    results: QuizResults,
    questions: Sequence[Question],
    records: Sequence[AnswerRecord],
) -> None:
    console.print()
    console.rule(Text("Results", style="bold magenta"))

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Questions", str(results.total_questions))
    overview.add_row("Correct", str(results.score))
    overview.add_row("Accuracy", f"{results.accuracy:.1f}%")
    overview.add_row("Best streak", str(results.best_streak))
    overview.add_row("Timeouts", str(results.timeouts))
    if results.average_response_time_ms is not None:
        overview.add_row(
            "Average response",
            f"{results.average_response_time_ms / 1000:.1f}s",
        )
    console.print(overview)

    answers = Table(title="Answers", box=box.SIMPLE, expand=True)
    answers.add_column("#", justify="right")
    answers.add_column("Question", overflow="fold")
    answers.add_column("Your answer")
    answers.add_column("Correct answer")
    answers.add_column("Result", justify="center")
    for record in records:
        question = questions[record.question_index]
        if record.timed_out:
            yours = "(timeout)"
        else:
            yours = question.options[record.selected_index]
        answers.add_row(
            str(record.question_index + 1),
            question.prompt,
            yours,
            question.answer,
            "✅" if record.is_correct else "❌",
        )
    console.print(answers)

    if results.achievements:
        titles = ", ".join(item.title for item in results.achievements)
        console.print(
            Panel(titles, title="Achievements", border_style="green")
        )


def render_question_bank(
    console: Console, questions: Sequence[Question]
) -> None:
    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    for key in OPTION_KEYS:
        table.add_column(key)
    table.add_column("Answer", justify="center", style="bold green")
    for number, question in enumerate(questions, start=1):
        table.add_row(
            str(number),
            question.prompt,
            *question.options,
            option_key(question.correct_option_index),
        )
    console.print(table)
