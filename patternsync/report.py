from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .dryrun import DryRunResult
from .redact import NOT_AVAILABLE, preview
from .validator import ValidationResult

if TYPE_CHECKING:
    from .sync import SyncReport

SUMMARY_ROWS = 10
DETAIL_ROWS = 50

_OUTCOME_STYLE = {
    "created": "bold green",
    "updated": "bold green",
    "unchanged": "dim",
    "skipped": "bold yellow",
    "failed": "bold red",
}


def print_validation_report(out: Console, result: ValidationResult, title: str) -> None:
    out.print(f"\n[bold underline]{escape(title)}[/bold underline]")
    if result.is_valid:
        out.print("[green]Pattern file is valid[/green]")
    else:
        out.print("[red]Pattern file has errors[/red]")

    for heading, style, items in (
        ("Errors", "red", result.errors),
        ("Warnings", "yellow", result.warnings),
        ("Suggestions", "blue", result.suggestions),
    ):
        if not items:
            continue
        out.print(f"\n[bold {style}]{heading}:[/bold {style}]")
        for item in items:
            out.print(f"  [{style}]- {escape(item)}[/{style}]")
    out.print()


def validation_summary_table(rows: list[tuple[str, ValidationResult]]) -> Table:
    table = Table(title="Validation Summary")
    table.add_column("Pattern Name")
    table.add_column("Status")
    table.add_column("Errors", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Suggestions", justify="right")

    for name, result in rows:
        status = "[green]Valid[/green]" if result.is_valid else "[red]Invalid[/red]"
        table.add_row(
            escape(name),
            status,
            str(len(result.errors)),
            str(len(result.warnings)),
            str(len(result.suggestions)),
        )
    return table


def _results_table(result: DryRunResult, limit: int, *, numbered: bool) -> Table:
    table = Table(show_lines=False)
    if numbered:
        table.add_column("#", justify="right")
    table.add_column("Repository")
    table.add_column("Match Preview")
    table.add_column("Link", overflow="fold")

    for i, match in enumerate(result.results[:limit], start=1):
        row = [
            escape(match.repository_location or NOT_AVAILABLE),
            escape(preview(match.match)),
            escape(match.link or NOT_AVAILABLE),
        ]
        if numbered:
            row.insert(0, str(i))
        table.add_row(*row)
    return table


def print_dry_run_summary(out: Console, result: DryRunResult) -> None:
    if result.hits == 0:
        out.print("[bold green]No potential secrets found - clean dry run![/bold green]")
        return

    out.print(f"\n[bold yellow]Found {result.hits} potential match(es):[/bold yellow]")
    out.print(_results_table(result, SUMMARY_ROWS, numbered=False))
    if len(result.results) > SUMMARY_ROWS:
        out.print(f"[dim]... and {len(result.results) - SUMMARY_ROWS} more results[/dim]")
    out.print(
        "[blue]Review these results to ensure they represent actual secrets, "
        "not false positives.[/blue]"
    )


def print_dry_run_details(out: Console, result: DryRunResult) -> None:
    out.print(f'\n[bold]Detailed Results for "{escape(result.name)}":[/bold]')
    out.print(_results_table(result, DETAIL_ROWS, numbered=True))
    if len(result.results) > DETAIL_ROWS:
        out.print(f"[dim]... and {len(result.results) - DETAIL_ROWS} more results[/dim]")


def print_run_summary(out: Console, report: SyncReport) -> None:
    if report.results:
        table = Table(title="Run Summary")
        table.add_column("Pattern")
        table.add_column("File")
        table.add_column("Outcome")
        table.add_column("Dry-run hits", justify="right")
        for r in report.results:
            style = _OUTCOME_STYLE.get(r.outcome.value, "")
            table.add_row(
                escape(r.name),
                escape(r.file),
                f"[{style}]{r.outcome.value}[/{style}]" if style else r.outcome.value,
                "" if r.hits is None else str(r.hits),
            )
        out.print(table)

    problems = report.unprocessed()
    if not problems:
        out.print("[bold green]All patterns processed.[/bold green]")
        return

    out.print(f"\n[bold red]{len(problems)} pattern(s) or file(s) not processed:[/bold red]")
    for item in problems:
        out.print(f"  - {escape(item)}")
