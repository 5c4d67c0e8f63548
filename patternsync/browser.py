"""Playwright (Chromium) implementation of the remote console capability.

Every call into Playwright goes through ``_translated`` so callers only ever
see this package's errors: timeouts and other failures become
``NavigationFailure`` (recoverable per pattern), a closed page or browser
becomes ``SessionLost``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from playwright.async_api import Browser, BrowserContext, Locator, Page, Playwright, Response, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import AuthenticationError, NavigationAborted, NavigationFailure, SessionLost
from .remote import Navigation

NAVIGATION_TIMEOUT_MS = 30000
CLICK_NAVIGATION_TIMEOUT_MS = 15000

_CLOSED_MARKERS = ("has been closed", "Target closed", "Browser closed")


def _translate(exc: PlaywrightError, url: str = "") -> Exception:
    message = str(exc)
    if "net::ERR_ABORTED" in message:
        return NavigationAborted(message, url=url)
    if any(marker in message for marker in _CLOSED_MARKERS):
        return SessionLost(message)
    return NavigationFailure(message, url=url)


@contextmanager
def _translated(action: str, url: str = "") -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise NavigationFailure(f"Timed out {action}", url=url) from exc
    except PlaywrightError as exc:
        raise _translate(exc, url) from exc


def _navigation(response: Response | None, page: Page) -> Navigation:
    if response is None:
        # Same-document navigations have no response.
        return Navigation(ok=True, url=page.url)
    return Navigation(
        ok=response.ok,
        status=response.status,
        url=response.url,
        location=response.headers.get("location"),
    )


class PlaywrightElement:
    def __init__(self, locator: Locator, url: str = "") -> None:
        self._locator = locator
        self._url = url

    async def text(self) -> str | None:
        with _translated("reading element text", self._url):
            return await self._locator.text_content()

    async def attribute(self, name: str) -> str | None:
        with _translated(f"reading attribute {name}", self._url):
            return await self._locator.get_attribute(name)

    async def is_visible(self) -> bool:
        with _translated("checking visibility", self._url):
            return await self._locator.is_visible()

    async def is_enabled(self) -> bool:
        with _translated("checking enabled state", self._url):
            return await self._locator.is_enabled()

    async def is_checked(self) -> bool:
        with _translated("checking checked state", self._url):
            return await self._locator.is_checked()

    async def click(self) -> None:
        with _translated("clicking element", self._url):
            await self._locator.click()

    async def check(self) -> None:
        with _translated("checking element", self._url):
            await self._locator.check()

    async def locate(self, selector: str) -> list[PlaywrightElement]:
        with _translated(f"locating {selector}", self._url):
            found = await self._locator.locator(selector).all()
        return [PlaywrightElement(loc, self._url) for loc in found]


class PlaywrightPage:
    def __init__(self, page: Page) -> None:
        self._page = page

    async def navigate(self, url: str) -> Navigation:
        with _translated(f"loading {url}", url):
            response = await self._page.goto(url, timeout=NAVIGATION_TIMEOUT_MS)
            await self._page.wait_for_load_state("load")
        return _navigation(response, self._page)

    async def reload(self) -> Navigation:
        url = self._page.url
        with _translated(f"reloading {url}", url):
            response = await self._page.reload(timeout=NAVIGATION_TIMEOUT_MS)
            await self._page.wait_for_load_state("load")
        return _navigation(response, self._page)

    def current_url(self) -> str:
        return self._page.url

    async def locate(self, selector: str) -> list[PlaywrightElement]:
        url = self._page.url
        with _translated(f"locating {selector}", url):
            found = await self._page.locator(selector).all()
        return [PlaywrightElement(loc, url) for loc in found]

    async def fill(self, selector: str, text: str) -> None:
        with _translated(f"filling {selector}", self._page.url):
            await self._page.fill(selector, text)

    async def click(self, selector: str, *, expect_navigation: bool = False) -> Navigation | None:
        if not expect_navigation:
            with _translated(f"clicking {selector}", self._page.url):
                await self._page.click(selector)
            return None
        try:
            async with self._page.expect_navigation(timeout=CLICK_NAVIGATION_TIMEOUT_MS) as nav_info:
                await self._page.click(selector)
            response = await nav_info.value
        except PlaywrightTimeoutError:
            # The click updated the page in place.
            return Navigation(ok=True, url=self._page.url)
        except PlaywrightError as exc:
            raise _translate(exc, self._page.url) from exc
        with _translated(f"loading after clicking {selector}", self._page.url):
            await self._page.wait_for_load_state("load")
        return _navigation(response, self._page)

    async def check(self, selector: str) -> None:
        with _translated(f"checking {selector}", self._page.url):
            await self._page.check(selector)

    async def wait_for(self, selector: str, *, state: str = "visible", timeout: float = 5000) -> bool:
        try:
            await self._page.locator(selector).first.wait_for(state=state, timeout=timeout)
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as exc:
            raise _translate(exc, self._page.url) from exc
        return True

    async def wait(self, milliseconds: float) -> None:
        with _translated("waiting", self._page.url):
            await self._page.wait_for_timeout(milliseconds)

    async def screenshot(self, path: str) -> None:
        with _translated(f"saving screenshot {path}", self._page.url):
            await self._page.screenshot(path=path, full_page=True)

    async def close(self) -> None:
        with _translated("closing page", self._page.url):
            await self._page.close()


class PlaywrightConsole:
    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context

    @classmethod
    async def start(cls, *, state_path: Path, headless: bool = True) -> PlaywrightConsole:
        if not state_path.exists():
            raise AuthenticationError(f"No stored session at {state_path}; run 'patternsync login' first")
        try:
            playwright = await async_playwright().start()
        except PlaywrightError as exc:
            raise AuthenticationError(f"Could not start the browser: {exc}") from exc
        try:
            browser = await playwright.chromium.launch(headless=headless)
            context = await browser.new_context(storage_state=str(state_path))
        except PlaywrightError as exc:
            await playwright.stop()
            raise AuthenticationError(f"Could not open a browser with the stored session: {exc}") from exc
        return cls(playwright, browser, context)

    async def new_page(self) -> PlaywrightPage:
        with _translated("opening a page"):
            return PlaywrightPage(await self._context.new_page())

    async def close(self) -> None:
        try:
            await self._context.close()
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def login(server: str, state_path: Path, *, wait_for_operator: Callable[[], object]) -> bool:
    """Store an authenticated browser session in ``state_path``.

    ``wait_for_operator`` blocks until the operator has signed in; it runs in
    a worker thread so the browser connection stays serviced meanwhile.
    Returns False when a stored session was reused, True after a fresh login.
    """
    if state_path.exists():
        return False

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=False)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            await page.goto(f"{server.rstrip('/')}/login")
            await asyncio.to_thread(wait_for_operator)
            if "/login" in page.url or "/session" in page.url:
                raise AuthenticationError(f"Still on the sign-in page ({page.url}); login not completed")
            state_path.parent.mkdir(parents=True, exist_ok=True)
            await context.storage_state(path=str(state_path))
        except PlaywrightError as exc:
            raise AuthenticationError(f"Login failed: {exc}") from exc
        finally:
            await browser.close()
    return True
