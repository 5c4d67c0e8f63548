from __future__ import annotations

import pytest
from fakes import FakeConsole, FakeElement, FakePage, make_session, output

from patternsync import selectors as sel
from patternsync.directory import PatternIndex, find_existing
from patternsync.remote import Navigation


def _row(name: str, href: str) -> FakeElement:
    return FakeElement(children={sel.PATTERN_ROW_LINK: [FakeElement(name, attrs={"href": href})]})


def test_index_last_write_wins_and_keeps_order() -> None:
    index = PatternIndex()
    assert index.add("a", "/1") is None
    assert index.add("b", "/2") is None
    assert index.add("a", "/3") == "/1"

    assert index.names() == ["a", "b"]
    assert index.get("a") == "/3"
    assert "b" in index
    assert len(index) == 2
    assert index.remove("b") == "/2"
    assert list(index) == ["a"]


@pytest.mark.asyncio
async def test_find_existing_follows_pagination() -> None:
    page = FakePage()
    page.set(sel.PATTERN_LIST, FakeElement())
    page.set(sel.PATTERN_ROW, _row("Alpha", "/acme/widgets/p/1"), _row("Beta", "/acme/widgets/p/2"))
    next_button = FakeElement("Next")
    page.set(sel.PATTERN_LIST_NEXT, next_button)

    def second_page() -> None:
        page.set(sel.PATTERN_ROW, _row(" Gamma ", "/acme/widgets/p/3"))
        next_button.enabled = False

    page.on_click[sel.PATTERN_LIST_NEXT] = second_page
    session = make_session(FakeConsole(page))

    index = await find_existing(session)

    assert index is not None
    assert index.items() == [
        ("Alpha", "https://github.com/acme/widgets/p/1"),
        ("Beta", "https://github.com/acme/widgets/p/2"),
        ("Gamma", "https://github.com/acme/widgets/p/3"),
    ]
    assert page.clicked(sel.PATTERN_LIST_NEXT) == 1
    assert page.closed
    assert "Found 3 existing pattern(s)" in output(session)


@pytest.mark.asyncio
async def test_find_existing_empty_listing() -> None:
    page = FakePage()
    page.set(sel.PATTERN_LIST, FakeElement())
    page.set(sel.PATTERN_LIST_EMPTY, FakeElement("There are no custom patterns"))
    page.set(sel.PATTERN_ROW, _row("ghost", "/never/read"))

    index = await find_existing(make_session(FakeConsole(page)))

    assert index is not None
    assert len(index) == 0


@pytest.mark.asyncio
async def test_find_existing_waits_for_busy_listing() -> None:
    page = FakePage()
    listing = FakeElement(attrs={sel.PATTERN_LIST_BUSY_ATTR: ""})
    page.set(sel.PATTERN_LIST, listing)
    page.set(sel.PATTERN_ROW, _row("Alpha", "/p/1"))

    original_wait = page.wait

    async def wait(ms: float) -> None:
        await original_wait(ms)
        listing.attrs.pop(sel.PATTERN_LIST_BUSY_ATTR, None)

    page.wait = wait
    index = await find_existing(make_session(FakeConsole(page)))

    assert index is not None
    assert index.names() == ["Alpha"]
    assert page.waited > 0


@pytest.mark.asyncio
async def test_duplicate_remote_names_warn_and_keep_last() -> None:
    page = FakePage()
    page.set(sel.PATTERN_LIST, FakeElement())
    page.set(sel.PATTERN_ROW, _row("Dup", "/p/1"), _row("Other", "/p/2"), _row("Dup", "/p/9"))
    session = make_session(FakeConsole(page))

    index = await find_existing(session)

    assert index is not None
    assert index.get("Dup") == "https://github.com/p/9"
    assert index.names() == ["Dup", "Other"]
    assert "Duplicate remote pattern name 'Dup'" in output(session)


@pytest.mark.asyncio
async def test_unreachable_listing_returns_none() -> None:
    page = FakePage()
    page.navigations = [Navigation(ok=False, status=500, url="https://github.com/x")]

    index = await find_existing(make_session(FakeConsole(page)))

    assert index is None
    assert page.closed
