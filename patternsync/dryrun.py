from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from . import selectors as sel
from .config import Scope
from .errors import DryRunAbort
from .patterns import Pattern
from .remote import Navigation, RemotePage, first, is_usable, read_text

if TYPE_CHECKING:
    from .session import Session

BUTTON_ENABLE_TRIES = 60
REPO_SEARCH_SETTLE_MS = 500
RESULTS_PAGE_SETTLE_MS = 500

_PATTERN_ID_RE = re.compile(r"/custom_patterns/(\d+)(?:/|$)")
_DIGITS_RE = re.compile(r"\d[\d,]*")
_PENDING_MARKERS = ("in progress", "queued", "running", "pending")


class DryRunState(str, Enum):
    idle = "idle"
    submitting = "submitting"
    repo_selection = "repo_selection"
    polling = "polling"
    completed = "completed"
    failed = "failed"
    aborted = "aborted"


@dataclass(frozen=True)
class DryRunMatch:
    match: str | None = None
    repository_location: str | None = None
    link: str | None = None


@dataclass
class DryRunResult:
    id: str
    name: str
    hits: int = 0
    results: list[DryRunMatch] = field(default_factory=list)
    completed: bool = False

    @classmethod
    def aborted(cls, name: str, id: str = "") -> DryRunResult:
        return cls(id=id, name=name)


def pattern_id_from_url(url: str) -> str | None:
    m = _PATTERN_ID_RE.search(urlparse(url).path)
    return m.group(1) if m else None


def parse_count(text: str | None) -> int:
    m = _DIGITS_RE.search(text or "")
    return int(m.group(0).replace(",", "")) if m else 0


def classify_status(text: str | None) -> DryRunState | None:
    """Terminal state for a status text, or None while the run is still going."""
    value = (text or "").strip()
    if not value:
        return None
    lowered = value.lower()
    if "completed" in lowered:
        return DryRunState.completed
    if any(marker in lowered for marker in _PENDING_MARKERS):
        return None
    return DryRunState.failed


def repo_search_term(repo: str, scope: Scope) -> str:
    """Organization dialogs list bare repository names, so drop an ``org/`` prefix there."""
    repo = repo.strip()
    if scope is Scope.org and "/" in repo:
        return repo.rsplit("/", 1)[-1]
    return repo


class DryRun:
    """One dry run of the pattern currently open in ``page``.

    idle -> submitting -> [repo_selection] -> polling -> completed | failed,
    with aborted reachable from submitting, repo_selection and polling.
    """

    def __init__(self, session: Session, page: RemotePage, pattern: Pattern) -> None:
        self.session = session
        self.page = page
        self.pattern = pattern
        self.state = DryRunState.idle
        self.history: list[DryRunState] = [DryRunState.idle]
        self.pattern_id = ""

    def _enter(self, state: DryRunState) -> None:
        self.state = state
        self.history.append(state)
        self.session.debug(f"Dry run for '{self.pattern.name}': {state.value}")

    def _abort(self) -> DryRunResult:
        self._enter(DryRunState.aborted)
        return DryRunResult.aborted(self.pattern.name, self.pattern_id)

    async def run(self) -> DryRunResult:
        session, page = self.session, self.page
        session.step(f"Starting dry run for pattern: {self.pattern.name}")
        self._enter(DryRunState.submitting)

        if not await self._wait_for_trigger():
            session.error(f"Dry run button never became available for '{self.pattern.name}'")
            return self._abort()

        await session.snapshot(page, "before-dryrun")
        scope = session.config.scope
        if scope is Scope.repo:
            nav = await page.click(sel.DRY_RUN_BUTTON, expect_navigation=True)
            await self._follow(nav)
        elif scope in (Scope.org, Scope.enterprise):
            await page.click(sel.DRY_RUN_BUTTON)
            self._enter(DryRunState.repo_selection)
            if not await self._select_repositories():
                return self._abort()
        else:  # pragma: no cover
            raise ValueError(f"Unknown scope: {scope!r}")
        await session.snapshot(page, "after-dryrun")

        pattern_id = pattern_id_from_url(page.current_url())
        if pattern_id is None:
            raise DryRunAbort(
                f"Could not determine the pattern id from {page.current_url()}",
                pattern=self.pattern.name,
            )
        self.pattern_id = pattern_id
        session.debug(f"Pattern ID: {pattern_id}")

        self._enter(DryRunState.polling)
        final = await self._poll()
        if final is not DryRunState.completed:
            return DryRunResult.aborted(self.pattern.name, pattern_id)

        hits, results = await extract_results(session, page)
        session.info(f"Dry run completed: {hits} potential match(es) found")
        return DryRunResult(
            id=pattern_id, name=self.pattern.name, hits=hits, results=results, completed=True
        )

    async def _wait_for_trigger(self) -> bool:
        await self.page.wait_for(sel.DRY_RUN_BUTTON, state="visible")
        for _ in range(BUTTON_ENABLE_TRIES):
            if await is_usable(self.page, sel.DRY_RUN_BUTTON):
                return True
            self.session.debug("Waiting for dry run button to be enabled...")
            await self.page.wait(1000)
        return False

    async def _follow(self, nav: Navigation | None) -> None:
        if nav is None:
            return
        if nav.is_redirect:
            location = self.session.absolute(nav.location or "")
            self.session.debug(f"Redirecting to: {location}")
            await self.session.goto(self.page, location, pattern=self.pattern.name)
        elif not nav.ok:
            raise DryRunAbort(
                f"Dry run submission was rejected: HTTP {nav.status}", pattern=self.pattern.name
            )
        else:
            self.session.check_session(self.page)

    async def _select_repositories(self) -> bool:
        session, page = self.session, self.page
        cfg = session.config

        if not await page.wait_for(sel.REPO_DIALOG, state="visible"):
            session.error("Repository selection dialog did not open")
            return False

        if cfg.dry_run_all_repos or not cfg.dry_run_repo_list:
            session.step("Dry run against all repositories")
            await page.check(sel.REPO_DIALOG_ALL)
        else:
            await page.check(sel.REPO_DIALOG_SELECTED)
            selected = 0
            for repo in cfg.dry_run_repo_list:
                term = repo_search_term(repo, cfg.scope)
                if await self._select_repository(term):
                    selected += 1
                else:
                    session.warn(f"Repository '{term}' not found in the dry run selection list")
            if selected == 0:
                session.error("No repositories selected for the dry run; not starting it")
                return False
            session.step(f"Dry run against {selected} selected repositor{'y' if selected == 1 else 'ies'}")

        nav = await page.click(sel.REPO_DIALOG_CONFIRM, expect_navigation=True)
        await self._follow(nav)
        return True

    async def _select_repository(self, term: str) -> bool:
        await self.page.fill(sel.REPO_DIALOG_SEARCH, term)
        await self.page.wait(REPO_SEARCH_SETTLE_MS)
        for option in await self.page.locate(sel.REPO_DIALOG_OPTION):
            label = ((await option.text()) or "").strip()
            if label == term:
                await option.click()
                return True
        return False

    async def _poll(self) -> DryRunState:
        session, page = self.session, self.page
        cfg = session.config
        polls = 0
        while True:
            text = await read_text(page, sel.DRY_RUN_STATUS)
            state = classify_status(text)
            if state is DryRunState.completed:
                self._enter(DryRunState.completed)
                return state
            if state is DryRunState.failed:
                session.error(f"Dry run failed for '{self.pattern.name}': {(text or '').strip()}")
                self._enter(DryRunState.failed)
                return state

            polls += 1
            if cfg.dry_run_max_polls is not None and polls >= cfg.dry_run_max_polls:
                session.error(
                    f"Dry run for '{self.pattern.name}' still running after {polls} checks; giving up"
                )
                self._enter(DryRunState.aborted)
                return DryRunState.aborted

            session.debug(f"Dry run status: {(text or 'unknown').strip()}")
            await page.wait(cfg.dry_run_poll_interval * 1000)
            await session.reload(page)


async def extract_results(session: Session, page: RemotePage) -> tuple[int, list[DryRunMatch]]:
    """Read the reported match count, then walk result pages until that many rows are seen."""
    hits = parse_count(await read_text(page, sel.DRY_RUN_COUNT))
    if hits == 0:
        return 0, []

    results: list[DryRunMatch] = []
    while True:
        rows = await page.locate(sel.DRY_RUN_ROW)
        if not rows:
            break
        for row in rows:
            match = await read_text(row, sel.DRY_RUN_ROW_MATCH)
            repository = await read_text(row, sel.DRY_RUN_ROW_REPOSITORY)
            link_el = await first(row, sel.DRY_RUN_ROW_LINK)
            href = await link_el.attribute("href") if link_el is not None else None
            results.append(
                DryRunMatch(
                    match=match.strip() if match else None,
                    repository_location=repository.strip() if repository else None,
                    link=session.absolute(href) if href else None,
                )
            )
        if len(results) >= hits:
            break
        if not await is_usable(page, sel.DRY_RUN_NEXT):
            break
        await page.click(sel.DRY_RUN_NEXT)
        await page.wait(RESULTS_PAGE_SETTLE_MS)

    return hits, results


async def run_dry_run(session: Session, page: RemotePage, pattern: Pattern) -> DryRunResult:
    return await DryRun(session, page, pattern).run()
