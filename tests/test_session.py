from __future__ import annotations

import pytest
from fakes import FakePage, make_session

from patternsync.errors import NavigationAborted, NavigationFailure, SessionLost
from patternsync.remote import Navigation
from patternsync.session import ABORT_RETRY_MS


@pytest.mark.asyncio
async def test_goto_retries_aborted_navigation() -> None:
    session = make_session()
    page = FakePage()
    url = "https://github.com/acme/widgets/settings/security_analysis"
    page.navigations = [
        NavigationAborted("net::ERR_ABORTED", url=url),
        NavigationAborted("net::ERR_ABORTED", url=url),
        Navigation(ok=True, status=200, url=url),
    ]

    nav = await session.goto(page, url)

    assert nav.ok
    assert [a for a in page.actions if a[0] == "navigate"] == [("navigate", url)] * 3
    assert page.waited == 2 * ABORT_RETRY_MS


@pytest.mark.asyncio
async def test_goto_raises_on_http_error() -> None:
    session = make_session()
    page = FakePage()
    page.navigations = [Navigation(ok=False, status=404, url="https://github.com/x")]

    with pytest.raises(NavigationFailure) as excinfo:
        await session.goto(page, "https://github.com/x", pattern="Acme key")

    assert excinfo.value.status == 404
    assert excinfo.value.pattern == "Acme key"


@pytest.mark.asyncio
async def test_landing_on_login_page_is_session_lost() -> None:
    session = make_session()
    page = FakePage()
    page.navigations = [Navigation(ok=True, status=200, url="https://github.com/login?return_to=%2Facme")]

    with pytest.raises(SessionLost):
        await session.goto(page, "https://github.com/acme/widgets/settings/security_analysis")


def test_absolute_resolves_against_server() -> None:
    session = make_session()
    assert session.absolute("/acme/widgets/x") == "https://github.com/acme/widgets/x"
    assert session.absolute("https://other.example.com/y") == "https://other.example.com/y"


@pytest.mark.asyncio
async def test_snapshot_only_in_debug(tmp_path) -> None:
    page = FakePage()
    await make_session(screenshot_dir=tmp_path).snapshot(page, "step")
    assert page.actions == []

    await make_session(screenshot_dir=tmp_path, debug=True).snapshot(page, "step")
    assert page.actions[0][0] == "screenshot"
    assert page.actions[0][1].startswith(str(tmp_path / "debug-step-"))
