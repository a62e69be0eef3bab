"""
Answer Checker CLI Application.

Provides a command-line interface for checking answers against an
extracted answer key under exam-style marking rules.
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from answer_checker.answer_key import AnswerKeyError, AnswerKeyLoader, AnswerKeyValidator
from answer_checker.config import get_settings
from answer_checker.models import AnswerKey, Feedback, GradeResult, Question, ScoreSummary
from answer_checker.session import CheckSession, QuestionNotFoundError

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="answer-checker",
    help="Check answers against an answer key with MCQ/MSQ/NAT marking",
    add_completion=False,
)

console = Console()

FEEDBACK_STYLES: dict[Feedback, str] = {
    Feedback.CORRECT: "green",
    Feedback.PARTIAL: "yellow",
    Feedback.INCORRECT: "red",
}

FEEDBACK_ICONS: dict[Feedback, str] = {
    Feedback.CORRECT: "✓",
    Feedback.PARTIAL: "⚠",
    Feedback.INCORRECT: "✗",
}


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Check answers against an extracted answer key."""
    level = logging.DEBUG if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def check(
    key_file: Annotated[Path, typer.Argument(help="Path to the answer key JSON file")],
    question_id: Annotated[str, typer.Argument(help="ID of the question to check")],
    answer: Annotated[str, typer.Argument(help="Your answer (comma-separated for MSQ)")],
    reveal: Annotated[
        bool,
        typer.Option("--reveal", "-r", help="Show the correct answer and explanation"),
    ] = False,
) -> None:
    """
    Check a single answer.

    Incorrect answers are not an error: the exit code is 0 whenever the
    answer could be graded.
    """
    answer_key = _load_key(key_file)
    session = CheckSession(answer_key)

    try:
        attempt = session.check(question_id, answer)
    except QuestionNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    question = session.question(question_id)
    _display_result(attempt.result, question)
    if reveal:
        _display_solution(session.reveal(question_id))


@app.command()
def practice(
    key_file: Annotated[Path, typer.Argument(help="Path to the answer key JSON file")],
    start: Annotated[
        Optional[str],
        typer.Option("--start", "-s", help="Question ID to start from"),
    ] = None,
) -> None:
    """
    Work through an answer key interactively.

    After an incorrect answer you may retry, or mark it and move on with
    the solution revealed. Enter a blank answer to stop.
    """
    answer_key = _load_key(key_file)
    session = CheckSession(answer_key)

    question_id: str | None = start or answer_key.questions[0].question_id
    try:
        session.question(question_id)
    except QuestionNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold]{escape(answer_key.key_name)}[/bold]\n"
            f"Questions: {answer_key.question_count}  Total Marks: {answer_key.total_marks}",
            title="Answer Key",
        )
    )

    while question_id is not None:
        question = session.question(question_id)
        console.print(
            f"\n[bold cyan]Question {question.question_id}[/bold cyan] "
            f"[dim]{_describe(question)}[/dim]"
        )
        answer = Prompt.ask("Your answer", default="", show_default=False, console=console)
        if not answer.strip():
            break

        result = session.check(question_id, answer).result
        _display_result(result, question)

        if not result.is_correct:
            choice = Prompt.ask(
                "Retry (r) or mark & next (n)",
                choices=["r", "n"],
                default="n",
                console=console,
            )
            if choice == "r":
                continue

        _display_solution(session.reveal(question_id))
        question_id = session.next_question_id(question_id)

    _display_summary(session.summary())


@app.command("grade-sheet")
def grade_sheet(
    key_file: Annotated[Path, typer.Argument(help="Path to the answer key JSON file")],
    responses_file: Annotated[
        Path,
        typer.Argument(help="JSON object mapping question IDs to answers"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write a JSON report to this path"),
    ] = None,
    save: Annotated[
        bool,
        typer.Option("--save", help="Write a JSON report to the report directory"),
    ] = False,
) -> None:
    """
    Grade a full response sheet.

    Questions missing from the sheet are graded as unanswered.
    """
    answer_key = _load_key(key_file)
    responses = _load_responses(responses_file)
    session = CheckSession(answer_key)

    unknown = sorted(set(responses) - {q.question_id for q in answer_key.questions})
    for question_id in unknown:
        logger.warning("Response for unknown question '%s' ignored", question_id)
        console.print(f"[yellow]⚠ No question '{escape(question_id)}' in answer key; ignored[/yellow]")

    for question in answer_key.questions:
        session.check(question.question_id, responses.get(question.question_id, ""))

    summary = session.summary()
    _display_summary(summary)

    if output is None and save:
        output = get_settings().report_directory / f"{responses_file.stem}-report.json"

    if output is not None:
        saved_path = _write_report(answer_key, summary, output)
        console.print(f"\n[green]Report saved to:[/green] {saved_path}")


@app.command("validate-key")
def validate_key(
    key_file: Annotated[Path, typer.Argument(help="Path to the answer key JSON file")],
) -> None:
    """
    Validate an answer key file.

    Checks that each question's answers fit its type. Issues are reported
    but do not change the exit code.
    """
    answer_key = _load_key(key_file)
    is_valid, issues = AnswerKeyValidator().validate(answer_key)

    console.print(Panel(f"[bold]{escape(answer_key.key_name)}[/bold]", title="Answer Key"))

    table = Table(title="Questions")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Correct Answer(s)")
    table.add_column("Marks", justify="right")
    table.add_column("Negative", justify="right")

    for question in answer_key.questions:
        table.add_row(
            question.question_id,
            question.type.value,
            escape(question.correct_answers_display),
            str(question.marks),
            str(question.negative_marks),
        )

    console.print(table)
    console.print(f"\n[bold]Total Marks:[/bold] {answer_key.total_marks}")

    if is_valid:
        console.print("\n[green]✓ Answer key is valid[/green]")
    else:
        console.print("\n[yellow]⚠ Validation issues found:[/yellow]")
        for issue in issues:
            console.print(f"  • {issue}")


def _load_key(key_file: Path) -> AnswerKey:
    """Load an answer key, exiting with an error message on failure."""
    if not key_file.exists():
        console.print(f"[red]Error:[/red] Answer key file not found: {key_file}")
        raise typer.Exit(1)

    try:
        return AnswerKeyLoader(get_settings()).load(key_file)
    except AnswerKeyError as e:
        console.print(f"[red]Answer Key Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _load_responses(responses_file: Path) -> dict[str, str]:
    """Load a response sheet; list values are joined as MSQ selections."""
    if not responses_file.exists():
        console.print(f"[red]Error:[/red] Responses file not found: {responses_file}")
        raise typer.Exit(1)

    try:
        data: Any = json.loads(responses_file.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        console.print(f"[red]Responses Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print("[red]Responses Error:[/red] Expected a JSON object of question ID to answer")
        raise typer.Exit(1)

    responses: dict[str, str] = {}
    for question_id, value in data.items():
        if isinstance(value, list):
            value = ",".join(str(v) for v in value)
        responses[str(question_id).strip()] = "" if value is None else str(value)
    return responses


def _write_report(answer_key: AnswerKey, summary: ScoreSummary, output: Path) -> Path:
    """Write the summary as JSON and return the path written."""
    report = {
        "key_name": answer_key.key_name,
        "summary": summary.model_dump(mode="json"),
    }
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return output


def _describe(question: Question) -> str:
    return (
        f"Type: {question.type.value} | Marks: +{question.marks} | "
        f"Negative: -{question.negative_marks}"
    )


def _format_score(score: Decimal) -> str:
    if score == score.to_integral_value():
        return str(int(score))
    return f"{score:.2f}"


def _display_result(result: GradeResult, question: Question) -> None:
    """Display a grading verdict, coloured by feedback."""
    style = FEEDBACK_STYLES[result.feedback]
    icon = FEEDBACK_ICONS[result.feedback]
    console.print(
        Panel(
            f"[{style}]{icon} {escape(result.message)}[/{style}]\n"
            f"[dim]{_describe(question)}[/dim]",
            title=f"Question {question.question_id}",
            border_style=style,
        )
    )


def _display_solution(question: Question) -> None:
    """Display the correct answers and explanation."""
    body = f"[bold]Correct Answer(s):[/bold] {escape(question.correct_answers_display)}"
    if question.explanation:
        body += f"\n[bold]Explanation:[/bold] {escape(question.explanation)}"
    console.print(Panel(body, title="Solution"))


def _display_summary(summary: ScoreSummary) -> None:
    """Display per-question scores and the overall total."""
    if not summary.attempts:
        console.print("[dim]No questions answered.[/dim]")
        return

    table = Table(title="Score Breakdown")
    table.add_column("Question", style="cyan")
    table.add_column("Answer")
    table.add_column("Result")
    table.add_column("Score", justify="right")

    for attempt in summary.attempts:
        style = FEEDBACK_STYLES[attempt.result.feedback]
        table.add_row(
            attempt.question_id,
            escape(attempt.submitted) or "[dim]-[/dim]",
            f"[{style}]{attempt.result.feedback.value}[/{style}]",
            f"{_format_score(attempt.result.score)}/{_format_score(attempt.result.max_score)}",
        )

    console.print(table)

    score_color = "green" if summary.percentage >= 70 else "yellow" if summary.percentage >= 50 else "red"
    console.print(
        Panel(
            f"[{score_color}][bold]{_format_score(summary.total_score)} / "
            f"{_format_score(summary.total_possible)}[/bold] "
            f"({summary.percentage:.1f}%)[/{score_color}]\n"
            f"Correct: {summary.correct_count}  Partial: {summary.partial_count}  "
            f"Incorrect: {summary.incorrect_count}",
            title="Final Score",
        )
    )


if __name__ == "__main__":
    app()
