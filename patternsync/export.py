from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from . import __version__
from .directory import PatternIndex, find_existing
from .errors import NavigationFailure
from .form import FormState, read_form
from .patterns import RuleKind

if TYPE_CHECKING:
    from .session import Session

DEFAULT_EXPORT_FILE = "existing-patterns.yml"


@dataclass(frozen=True)
class RemotePattern:
    location: str
    form: FormState


def catalog_document(
    patterns: list[RemotePattern],
    *,
    target: str,
    downloaded_at: datetime | None = None,
) -> dict:
    """Build a catalog mapping that load_pattern_file can read back."""
    stamp = (downloaded_at or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    entries: list[dict] = []
    for remote in patterns:
        form = remote.form
        regex: dict = {"version": 1, "pattern": form.pattern}
        if form.start:
            regex["start"] = form.start
        if form.end:
            regex["end"] = form.end
        must = [r.value for r in form.rules if r.kind is RuleKind.must_match]
        must_not = [r.value for r in form.rules if r.kind is RuleKind.must_not_match]
        if must:
            regex["additional_match"] = must
        if must_not:
            regex["additional_not_match"] = must_not

        entries.append(
            {
                "name": form.name,
                "regex": regex,
                "comments": [
                    f"Downloaded from {remote.location} on {stamp} by patternsync {__version__}",
                    f"Published: {'yes' if form.published else 'no'}",
                ],
            }
        )

    return {"name": f"Existing patterns from {target}", "patterns": entries}


async def read_remote_patterns(session: Session, index: PatternIndex) -> list[RemotePattern]:
    """Open each pattern's page in its own tab and read the form back."""
    found: list[RemotePattern] = []
    for name, location in index.items():
        page = await session.remote.new_page()
        try:
            try:
                await session.goto(page, location, pattern=name)
            except NavigationFailure as exc:
                session.warn(f"Failed to load pattern page for '{name}': {exc}")
                continue
            form = await read_form(page)
        finally:
            await page.close()
        if not form.name:
            form.name = name
        session.debug(f"Read pattern: {form.name} ({len(form.rules)} additional rule(s))")
        found.append(RemotePattern(location=location, form=form))
    return found


async def download_existing(session: Session, out_path: Path) -> int:
    """Export the target's custom patterns as a catalog file; return how many were written."""
    index = await find_existing(session)
    if index is None:
        raise NavigationFailure(
            f"Could not list existing patterns for {session.config.target}",
            url=session.config.url(),
        )
    session.index = index

    remote = await read_remote_patterns(session, index)
    document = catalog_document(remote, target=session.config.target)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        yaml.safe_dump(document, sort_keys=False, allow_unicode=True, width=120),
        encoding="utf-8",
    )
    session.success(f"Existing patterns saved to: {out_path}")
    return len(remote)
