from __future__ import annotations

import time
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlparse

from rich.console import Console
from rich.markup import escape

from . import selectors as sel
from .config import RunConfig
from .directory import PatternIndex
from .errors import NavigationAborted, NavigationFailure, SessionLost
from .prompts import Prompter, RichPrompter
from .remote import Navigation, RemoteConsole, RemotePage

# Delay between retries of an aborted navigation.
ABORT_RETRY_MS = 1000


@dataclass
class Session:
    """Everything one run needs, passed explicitly to every step."""

    remote: RemoteConsole
    config: RunConfig
    out: Console = field(default_factory=Console)
    prompter: Prompter = field(default_factory=RichPrompter)
    index: PatternIndex | None = None

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def url(self, *segments: str) -> str:
        return self.config.url(*segments)

    def absolute(self, location: str) -> str:
        return urljoin(self.config.server.rstrip("/") + "/", location)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def goto(self, page: RemotePage, url: str, *, pattern: str | None = None) -> Navigation:
        """Navigate, retrying aborted requests and failing on anything else."""
        while True:
            try:
                nav = await page.navigate(url)
            except NavigationAborted:
                self.debug(f"Navigation to {url} was aborted, retrying")
                await page.wait(ABORT_RETRY_MS)
                continue
            break

        self.check_session(page)
        if not nav.ok:
            raise NavigationFailure(
                f"Failed to load {url}: HTTP {nav.status if nav.status is not None else 'unknown'}",
                url=url,
                status=nav.status,
                pattern=pattern,
            )
        return nav

    async def reload(self, page: RemotePage) -> Navigation:
        while True:
            try:
                nav = await page.reload()
            except NavigationAborted:
                await page.wait(ABORT_RETRY_MS)
                continue
            break

        self.check_session(page)
        if not nav.ok:
            raise NavigationFailure(
                f"Failed to reload {page.current_url()}: HTTP {nav.status}",
                url=page.current_url(),
                status=nav.status,
            )
        return nav

    def check_session(self, page: RemotePage) -> None:
        path = urlparse(page.current_url()).path
        if any(path.startswith(marker) for marker in sel.LOGIN_MARKERS):
            raise SessionLost(f"Redirected to sign-in page ({page.current_url()}); session has expired")

    async def snapshot(self, page: RemotePage, label: str) -> None:
        """Full-page screenshot in debug mode only."""
        if not self.config.debug:
            return
        self.config.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.config.screenshot_dir / f"debug-{label}-{int(time.time() * 1000)}.png"
        await page.screenshot(str(path))
        self.debug(f"Debug screenshot taken: {path}")

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def info(self, message: str) -> None:
        self.out.print(escape(message))

    def step(self, message: str) -> None:
        self.out.print(f"[blue]{escape(message)}[/blue]")

    def success(self, message: str) -> None:
        self.out.print(f"[bold green]{escape(message)}[/bold green]")

    def warn(self, message: str) -> None:
        self.out.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.out.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        if self.config.debug:
            self.out.print(f"[dim]{escape(message)}[/dim]")
