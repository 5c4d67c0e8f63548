from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from . import selectors as sel
from .directory import find_existing
from .dryrun import run_dry_run
from .errors import (
    CatalogError,
    DryRunAbort,
    NavigationFailure,
    PatternSyncError,
    PushProtectionFailure,
    TestFailure,
    ValidationFailure,
)
from .form import fill_pattern
from .gate import should_proceed
from .patterns import Pattern, PatternFile, load_pattern_file
from .publish import configure_push_protection, publish_pattern
from .remote import RemotePage
from .report import print_dry_run_summary, print_validation_report, validation_summary_table
from .tester import test_pattern
from .validator import validate_pattern, validate_pattern_file

if TYPE_CHECKING:
    from .session import Session


class Outcome(str, Enum):
    created = "created"
    updated = "updated"
    unchanged = "unchanged"
    skipped = "skipped"
    failed = "failed"


@dataclass
class PatternResult:
    file: str
    name: str
    outcome: Outcome
    reason: str = ""
    hits: int | None = None
    push_protection: bool | None = None


@dataclass
class SyncReport:
    results: list[PatternResult] = field(default_factory=list)
    file_errors: list[tuple[str, str]] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def failed(self) -> list[PatternResult]:
        return [r for r in self.results if r.outcome is Outcome.failed]

    def unprocessed(self) -> list[str]:
        """One line per file or pattern that did not make it, with the reason."""
        lines = [f"{path}: {reason}" for path, reason in self.file_errors]
        lines.extend(
            f"{r.name} ({r.file}): {r.reason or r.outcome.value}"
            for r in self.results
            if r.outcome in (Outcome.failed, Outcome.skipped)
        )
        return lines


def check_catalog(out: Console, pattern_file: PatternFile, label: str) -> None:
    """Validate a catalog and print the report; raises ValidationFailure on errors."""
    result = validate_pattern_file(pattern_file)
    if not result.is_valid:
        print_validation_report(out, result, f"Validation Report for {label}")
        raise ValidationFailure(f"Pattern validation failed for {label}")

    out.print(f"[bold green]All patterns in {escape(label)} passed validation[/bold green]")
    rows = [(p.name, validate_pattern(p)) for p in pattern_file.patterns]
    out.print(validation_summary_table(rows))


async def process_pattern(session: Session, pattern: Pattern, *, file_label: str = "") -> PatternResult:
    """Create or update one pattern end to end.

    Unchanged patterns only get their push protection reconciled; changed or
    new ones go through test, dry run, the confirmation gate and publish.
    """
    index = session.index
    location = index.get(pattern.name) if index is not None else None
    existing = location is not None
    session.out.print(f"\n[bold]Processing pattern: {escape(pattern.name)}[/bold]")

    page = await session.remote.new_page()
    try:
        url = location or session.url(sel.NEW_PATTERN_PATH)
        await session.goto(page, url, pattern=pattern.name)

        needs_submit = await fill_pattern(session, page, pattern, existing=existing)
        if not needs_submit:
            pp = await _push_protection(session, page, pattern)
            return PatternResult(file_label, pattern.name, Outcome.unchanged, push_protection=pp)

        if not await test_pattern(session, page, pattern):
            raise TestFailure(f"Pattern test failed for: {pattern.name}", pattern=pattern.name)

        result = await run_dry_run(session, page, pattern)
        if not result.completed:
            raise DryRunAbort(f"Dry run did not complete for: {pattern.name}", pattern=pattern.name)
        print_dry_run_summary(session.out, result)

        if not should_proceed(session, pattern, result):
            session.warn(f"Skipped pattern: {pattern.name}")
            return PatternResult(
                file_label,
                pattern.name,
                Outcome.skipped,
                reason=f"not published after {result.hits} dry-run match(es)",
                hits=result.hits,
            )

        await publish_pattern(session, page, pattern)
        if index is not None:
            index.add(pattern.name, page.current_url())

        pp = await _push_protection(session, page, pattern)
        session.success(f"Successfully processed pattern: {pattern.name}")
        return PatternResult(
            file_label,
            pattern.name,
            Outcome.updated if existing else Outcome.created,
            hits=result.hits,
            push_protection=pp,
        )
    finally:
        await page.close()


async def _push_protection(session: Session, page: RemotePage, pattern: Pattern) -> bool | None:
    try:
        return await configure_push_protection(session, page, pattern)
    except PushProtectionFailure as exc:
        session.warn(str(exc))
        return None


async def sync_file(session: Session, path: Path, report: SyncReport) -> None:
    label = str(path)
    session.out.print(f"\n[bold blue]Processing pattern file: {escape(label)}[/bold blue]")
    try:
        pattern_file = load_pattern_file(path)
        if session.config.validate:
            check_catalog(session.out, pattern_file, label)
    except (CatalogError, ValidationFailure) as exc:
        session.error(str(exc))
        report.file_errors.append((label, str(exc)))
        return

    for pattern in pattern_file.patterns:
        if not session.config.selects(pattern.name):
            session.debug(f"Pattern '{pattern.name}' filtered out")
            continue
        try:
            result = await process_pattern(session, pattern, file_label=label)
        except PatternSyncError as exc:
            session.error(f"Failed to process pattern '{pattern.name}': {exc}")
            result = PatternResult(label, pattern.name, Outcome.failed, reason=str(exc))
        report.results.append(result)


async def sync_patterns(session: Session, paths: list[Path]) -> SyncReport:
    """Apply every catalog, in order, to the target.

    The remote index is built once up front and updated as patterns are
    published, so later files see patterns created by earlier ones. Failing
    to build the index raises NavigationFailure and SessionLost always
    propagates; everything else is recorded in the report.
    """
    report = SyncReport()
    if session.index is None:
        session.index = await find_existing(session)
        if session.index is None:
            raise NavigationFailure(
                f"Could not list existing patterns for {session.config.target}",
                url=session.url(sel.PATTERN_LIST_PATH),
            )

    session.info(f"Uploading {len(paths)} pattern file(s)...")
    for path in paths:
        await sync_file(session, path, report)
    return report
