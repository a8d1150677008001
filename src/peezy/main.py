"""
Peezy - CLI Entry Point.

Usage:
    peezy evaluate '{"AnyPets": ["Yes"]}' answers.yaml
    peezy match answers.yaml [--vendors] [--parent PET_OPTIONS]
    peezy tasks answers.yaml --move-date 2026-12-01
    peezy walk               Walk the assessment interactively
    peezy audit              Check a catalog for data problems
    peezy health             Check configuration and bundled catalogs
    peezy --help             Show help
"""

import json
import logging
import re
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from peezy.eligibility.loader import CatalogLoadError

app = typer.Typer(
    name="peezy",
    help="Peezy - Moving assessment and task eligibility engine.",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Send engine logs to stderr so command output stays clean."""
    from peezy.config import get_settings

    if verbose:
        level = logging.DEBUG
    else:
        try:
            level = getattr(logging, get_settings().log_level)
        except ValidationError:
            # `peezy health` reports the bad setting itself
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs (every condition checked)"),
) -> None:
    """Peezy - Moving assessment and task eligibility engine."""
    setup_logging(verbose)


def _fail(message: str) -> None:
    console.print(f"\n[red]❌ {escape(message)}[/red]")
    raise typer.Exit(1)


def _load_answers(path: Path) -> dict:
    from peezy.eligibility.loader import load_answers

    try:
        return load_answers(path)
    except CatalogLoadError as e:
        _fail(str(e))
    except ValidationError as e:
        _fail(f"Invalid answers in {path}:\n{e}")


def _load_definitions(catalog: Optional[Path], vendors: bool) -> list:
    from peezy.config import settings
    from peezy.eligibility.loader import load_task_catalog, load_vendor_catalog

    try:
        if vendors:
            return load_vendor_catalog(catalog or settings.peezy_vendor_catalog_path)
        return load_task_catalog(catalog or settings.peezy_task_catalog_path)
    except CatalogLoadError as e:
        _fail(str(e))


# =============================================================================
# Eligibility
# =============================================================================

@app.command()
def evaluate(
    conditions: str = typer.Argument(..., help='Condition set as JSON, e.g. \'{"AnyPets": ["Yes"]}\', or a legacy "field: value" string'),
    answers_file: Path = typer.Argument(..., help="Answer Map file (YAML or JSON)"),
) -> None:
    """Evaluate one condition set against an Answer Map."""
    from peezy.eligibility.conditions import evaluate as evaluate_conditions
    from peezy.eligibility.conditions import normalize_conditions

    try:
        raw = json.loads(conditions)
    except json.JSONDecodeError:
        # Not JSON: treat as a legacy condition string
        raw = conditions

    if raw is not None and not isinstance(raw, (dict, str, list)):
        _fail(f"Conditions must be a JSON object or a condition string, got {type(raw).__name__}")

    answers = _load_answers(answers_file)
    condition_set = normalize_conditions(raw)

    if evaluate_conditions(condition_set, answers):
        console.print("[bold green]PASS[/bold green]")
    else:
        console.print("[bold red]FAIL[/bold red]")
        raise typer.Exit(1)


@app.command()
def match(
    answers_file: Path = typer.Argument(..., help="Answer Map file (YAML or JSON)"),
    catalog: Optional[Path] = typer.Option(None, "--catalog", "-c", help="Catalog file (default: bundled sample)"),
    vendors: bool = typer.Option(False, "--vendors", help="Match the vendor catalog instead of tasks"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="Run the sub-task pass for this parent id"),
) -> None:
    """List the catalog definitions that apply to an Answer Map."""
    from peezy.eligibility.catalog import CatalogMatcher

    answers = _load_answers(answers_file)
    matcher = CatalogMatcher(_load_definitions(catalog, vendors))

    if parent:
        matched = matcher.match_sub_tasks(parent, answers)
        heading = f"Sub-tasks of {parent}"
    else:
        matched = matcher.match_core(answers)
        heading = "Matching vendors" if vendors else "Matching tasks"

    console.print(f"\n[bold]{heading}[/bold]\n")
    if not matched:
        console.print("[dim]Nothing matched.[/dim]")
        return

    for definition in matched:
        label = f" - {definition.title}" if definition.title else ""
        console.print(f"  • [cyan]{definition.id}[/cyan]{label}")

    console.print(f"\n[dim]{len(matched)} of {len(matcher.catalog)} definitions[/dim]")


@app.command()
def tasks(
    answers_file: Path = typer.Argument(..., help="Answer Map file (YAML or JSON)"),
    move_date: datetime = typer.Option(..., "--move-date", "-d", formats=["%Y-%m-%d"], help="Move day (YYYY-MM-DD)"),
    catalog: Optional[Path] = typer.Option(None, "--catalog", "-c", help="Task catalog (default: bundled sample)"),
    today: Optional[datetime] = typer.Option(None, "--today", formats=["%Y-%m-%d"], help="Override today's date"),
    distance: Optional[float] = typer.Option(None, "--distance-miles", help="Derive moveDistance from this distance"),
    from_state: Optional[str] = typer.Option(None, "--from-state", help="Current state, for isInterstate"),
    to_state: Optional[str] = typer.Option(None, "--to-state", help="New state, for isInterstate"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="Complete this mini-assessment instead"),
    mini_answers: Optional[Path] = typer.Option(None, "--mini", help="Mini-assessment answers (with --parent)"),
    as_json: bool = typer.Option(False, "--json", help="Print task records as JSON"),
) -> None:
    """Generate dated tasks from an assessment (or a finished mini-assessment)."""
    from peezy.config import settings
    from peezy.eligibility.answers import derive_assessment_answers
    from peezy.eligibility.catalog import CatalogMatcher
    from peezy.eligibility.tasks import TaskGenerator

    answers = _load_answers(answers_file)
    if distance is not None or from_state or to_state:
        answers = derive_assessment_answers(
            answers,
            distance_miles=distance,
            from_state=from_state,
            to_state=to_state,
            threshold_miles=settings.long_distance_threshold_miles,
        )

    generator = TaskGenerator(
        CatalogMatcher(_load_definitions(catalog, vendors=False)),
        default_urgency_percentage=settings.default_urgency_percentage,
    )
    move_day = move_date.date()
    today_date = today.date() if today else date.today()

    if parent:
        if mini_answers is None:
            _fail("--parent needs --mini with the mini-assessment answers")
        _, generated = generator.complete_mini_assessment(
            parent, answers, _load_answers(mini_answers), move_day, today_date
        )
    else:
        generated = generator.generate_initial(answers, move_day, today_date)

    if as_json:
        console.print_json(json.dumps([task.to_dict() for task in generated]))
        return

    console.print(f"\n[bold]Tasks for a move on {move_day.isoformat()}[/bold]\n")
    if not generated:
        console.print("[dim]No tasks generated.[/dim]")
        return

    for task in sorted(generated, key=lambda t: (t.due_date, -t.urgency_percentage)):
        console.print(
            f"  {task.due_date.isoformat()}  [cyan]{task.id}[/cyan]  "
            f"{task.title} [dim]({task.urgency_percentage}%)[/dim]"
        )

    console.print(f"\n[dim]Total: {len(generated)} tasks[/dim]")


@app.command()
def audit(
    catalog: Optional[Path] = typer.Option(None, "--catalog", "-c", help="Catalog file (default: bundled sample)"),
    vendors: bool = typer.Option(False, "--vendors", help="Audit the vendor catalog"),
) -> None:
    """Check a catalog for records that can never (or always) match."""
    from peezy.eligibility.catalog import find_catalog_issues
    from peezy.eligibility.tasks import MINI_ASSESSMENT_IDS

    definitions = _load_definitions(catalog, vendors)
    issues = find_catalog_issues(definitions, external_parents=MINI_ASSESSMENT_IDS)

    console.print(f"\n[bold]Catalog Audit[/bold] [dim]({len(definitions)} definitions)[/dim]\n")
    if not issues:
        console.print("✅ No issues found")
        return

    for issue in issues:
        console.print(f"  ❌ [cyan]{issue.definition_id}[/cyan]: {issue.message}")
    console.print(f"\n[red]{len(issues)} issue(s) found[/red]")
    raise typer.Exit(1)


# =============================================================================
# Assessment
# =============================================================================

def _question_text(step) -> str:
    """'currentRentOrOwn' -> 'Current rent or own'"""
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", step.value).lower()
    return words[:1].upper() + words[1:]


def _interstitial_text(node) -> str:
    if node.after is None:
        return "Let's get your move organized. A few quick questions first."
    return f"Got it - {_question_text(node.after).lower()} noted."


@app.command()
def walk() -> None:
    """Walk through the moving assessment one screen at a time."""
    from peezy.assessment.nodes import InterstitialNode
    from peezy.assessment.sequencer import QuestionnaireSequencer
    from peezy.assessment.steps import MULTI_SELECT_STEPS

    console.print(
        Panel.fit(
            "[bold green]Peezy Moving Assessment[/bold green]\n\n"
            "[dim]Type 'back' to revisit the last question, 'exit' to stop.\n"
            "Separate multiple choices with commas.[/dim]",
            title="Welcome",
            border_style="green",
        )
    )

    answers: dict = {}
    sequencer = QuestionnaireSequencer(answers=answers)
    state = sequencer.state

    while not state.completed:
        node = state.current_node
        if node is None:
            break

        if isinstance(node, InterstitialNode):
            console.print(f"\n[dim]{_interstitial_text(node)}[/dim]")
            state = sequencer.next(answers)
            continue

        step = node.step
        progress = f"[{state.current_input_number}/{state.input_total}]"
        try:
            reply = console.input(f"\n[bold blue]{progress} {_question_text(step)}:[/bold blue] ").strip()
        except (KeyboardInterrupt, EOFError):
            console.print("\n\n[dim]Assessment interrupted.[/dim]")
            raise typer.Exit(1)

        if reply.lower() in ("exit", "quit", "q"):
            console.print("\n[dim]Assessment stopped. Goodbye! 👋[/dim]")
            return

        if reply.lower() == "back":
            state = sequencer.back()
            continue

        if reply:
            if step in MULTI_SELECT_STEPS:
                answers[step.value] = [item.strip() for item in reply.split(",") if item.strip()]
            else:
                answers[step.value] = reply

        state = sequencer.next(answers)

    console.print("\n[bold green]Assessment complete![/bold green]\n")
    for key, value in answers.items():
        console.print(f"  {key}: {value}")


# =============================================================================
# Housekeeping
# =============================================================================

@app.command()
def health() -> None:
    """Check configuration and the configured catalogs."""
    from peezy.config import get_settings
    from peezy.eligibility.catalog import find_catalog_issues
    from peezy.eligibility.loader import load_task_catalog, load_vendor_catalog
    from peezy.eligibility.tasks import MINI_ASSESSMENT_IDS

    console.print("\n[bold]Peezy Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.peezy_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Long distance threshold: {settings.long_distance_threshold_miles:g} miles")
    except ValidationError as e:
        console.print(f"\n[red]❌ Configuration error: {escape(str(e))}[/red]")
        console.print("[dim]Check PEEZY_* variables in your environment or .env file.[/dim]")
        raise typer.Exit(1)

    failed = False
    for label, loader, path in (
        ("Task catalog", load_task_catalog, settings.peezy_task_catalog_path),
        ("Vendor catalog", load_vendor_catalog, settings.peezy_vendor_catalog_path),
    ):
        try:
            definitions = loader(path)
        except CatalogLoadError as e:
            console.print(f"❌ {label}: {escape(str(e))}")
            failed = True
            continue

        issues = find_catalog_issues(definitions, external_parents=MINI_ASSESSMENT_IDS)
        if issues:
            console.print(f"⚠️  {label}: {len(definitions)} definitions, {len(issues)} issue(s) (run `peezy audit`)")
        else:
            console.print(f"✅ {label}: {len(definitions)} definitions")

    if failed:
        console.print("\n[red]Health check failed.[/red]")
        raise typer.Exit(1)

    console.print("\n[green]All checks passed![/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from peezy import __version__

    console.print(f"Peezy Engine version {__version__}")


if __name__ == "__main__":
    app()
