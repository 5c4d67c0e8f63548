from __future__ import annotations

import threading
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from patternsync import browser
from patternsync.browser import PlaywrightConsole, PlaywrightElement, PlaywrightPage, login
from patternsync.errors import AuthenticationError, NavigationFailure, PatternSyncError, SessionLost

URL = "https://github.com/acme/widgets/settings/security_analysis"


class _Locator:
    """Every call fails with ``exc``."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    @property
    def first(self) -> _Locator:
        return self

    def locator(self, selector: str) -> _Locator:
        return self

    async def all(self) -> list:
        raise self.exc

    async def text_content(self) -> str | None:
        raise self.exc

    async def get_attribute(self, name: str) -> str | None:
        raise self.exc

    async def is_visible(self) -> bool:
        raise self.exc

    async def click(self) -> None:
        raise self.exc

    async def wait_for(self, *, state: str, timeout: float) -> None:
        raise self.exc


class _Page:
    url = URL

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def locator(self, selector: str) -> _Locator:
        return _Locator(self.exc)

    async def fill(self, selector: str, text: str) -> None:
        raise self.exc

    async def click(self, selector: str) -> None:
        raise self.exc

    async def check(self, selector: str) -> None:
        raise self.exc

    async def wait_for_timeout(self, milliseconds: float) -> None:
        raise self.exc


@pytest.mark.asyncio
async def test_fill_timeout_is_a_recoverable_failure() -> None:
    page = PlaywrightPage(_Page(PlaywrightTimeoutError("Timeout 30000ms exceeded")))

    with pytest.raises(PatternSyncError) as info:
        await page.fill("#display_name", "Alpha")

    assert isinstance(info.value, NavigationFailure)
    assert "Timed out filling #display_name" in str(info.value)
    assert info.value.url == URL


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda p: p.click("#add-rule"),
        lambda p: p.check("#radio"),
        lambda p: p.locate(".row"),
        lambda p: p.wait(200),
    ],
)
async def test_page_errors_are_translated(call) -> None:
    page = PlaywrightPage(_Page(PlaywrightError("Element is not attached to the DOM")))

    with pytest.raises(NavigationFailure, match="not attached"):
        await call(page)


@pytest.mark.asyncio
async def test_closed_target_means_session_lost() -> None:
    page = PlaywrightPage(_Page(PlaywrightError("Target closed")))

    with pytest.raises(SessionLost):
        await page.click("#publish")
    with pytest.raises(SessionLost):
        await page.wait_for("#publish")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda e: e.text(),
        lambda e: e.attribute("value"),
        lambda e: e.is_visible(),
        lambda e: e.click(),
        lambda e: e.locate("a"),
    ],
)
async def test_element_timeouts_are_translated(call) -> None:
    element = PlaywrightElement(_Locator(PlaywrightTimeoutError("Timeout 30000ms exceeded")), URL)

    with pytest.raises(NavigationFailure, match="Timed out"):
        await call(element)


@pytest.mark.asyncio
async def test_wait_for_timeout_is_false() -> None:
    page = PlaywrightPage(_Page(PlaywrightTimeoutError("Timeout 5000ms exceeded")))
    assert await page.wait_for("#rule-0") is False


class _FailingLaunch:
    def __init__(self) -> None:
        self.stopped = False
        self.chromium = self

    async def start(self) -> _FailingLaunch:
        return self

    async def launch(self, *, headless: bool) -> None:
        raise PlaywrightError("Executable doesn't exist")

    async def stop(self) -> None:
        self.stopped = True


@pytest.mark.asyncio
async def test_console_start_failure_is_an_authentication_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    state = tmp_path / "auth.json"
    state.write_text("{}", encoding="utf-8")
    fake = _FailingLaunch()
    monkeypatch.setattr(browser, "async_playwright", lambda: fake)

    with pytest.raises(AuthenticationError, match="Executable doesn't exist"):
        await PlaywrightConsole.start(state_path=state)

    assert fake.stopped


class _LoginPage:
    def __init__(self) -> None:
        self.url = "about:blank"

    async def goto(self, url: str) -> None:
        self.url = url


class _LoginBrowser:
    """Stands in for the playwright, browser and context objects at once."""

    def __init__(self) -> None:
        self.page = _LoginPage()
        self.chromium = self
        self.closed = False

    async def __aenter__(self) -> _LoginBrowser:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def launch(self, *, headless: bool) -> _LoginBrowser:
        return self

    async def new_context(self) -> _LoginBrowser:
        return self

    async def new_page(self) -> _LoginPage:
        return self.page

    async def storage_state(self, *, path: str) -> None:
        Path(path).write_text("{}", encoding="utf-8")

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_login_waits_for_operator_off_the_event_loop(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = _LoginBrowser()
    monkeypatch.setattr(browser, "async_playwright", lambda: fake)
    loop_thread = threading.get_ident()
    seen: list[int] = []

    def operator() -> None:
        seen.append(threading.get_ident())
        fake.page.url = "https://github.com/"

    state = tmp_path / "state" / "auth.json"
    assert await login("https://github.com/", state, wait_for_operator=operator)

    assert seen and seen[0] != loop_thread
    assert state.exists()
    assert fake.closed


@pytest.mark.asyncio
async def test_login_not_completed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _LoginBrowser()
    monkeypatch.setattr(browser, "async_playwright", lambda: fake)

    with pytest.raises(AuthenticationError, match="Still on the sign-in page"):
        await login("https://github.com", tmp_path / "auth.json", wait_for_operator=lambda: None)

    assert not (tmp_path / "auth.json").exists()


@pytest.mark.asyncio
async def test_existing_state_skips_login(tmp_path: Path) -> None:
    state = tmp_path / "auth.json"
    state.write_text("{}", encoding="utf-8")

    assert not await login("https://github.com", state, wait_for_operator=pytest.fail)
