from __future__ import annotations

import pytest
from fakes import FakeElement, FakePage, make_session

from patternsync import selectors as sel
from patternsync import tester
from patternsync.patterns import pattern_from_dict
from patternsync.tester import KEEP_ALIVE_DATA, TestStatus, classify_test_result, poll_test_result


def _pattern(data: str | None = "token=acme_0123"):
    raw = {"name": "Acme key", "regex": {"pattern": "acme_[0-9]+"}}
    if data is not None:
        raw["test"] = {"data": data}
    return pattern_from_dict(raw)


@pytest.mark.parametrize(
    ("text", "status", "matches"),
    [
        ("1 match", TestStatus.matched, 1),
        ("  12 matches found ", TestStatus.matched, 12),
        ("No matches", TestStatus.no_match, 0),
        ("0 matches", TestStatus.no_match, 0),
        ("", TestStatus.pending, 0),
        (None, TestStatus.pending, 0),
        ("Testing...", TestStatus.pending, 0),
    ],
)
def test_classify_test_result(text: str | None, status: TestStatus, matches: int) -> None:
    outcome = classify_test_result(text)
    assert outcome.status is status
    assert outcome.matches == matches


@pytest.mark.asyncio
async def test_field_error_wins_over_result() -> None:
    page = FakePage()
    page.set_text(sel.FIELD_ERROR, "  Invalid regular expression ")
    page.set_text(sel.TEST_RESULT, "1 match")

    outcome = await poll_test_result(page, max_tries=5)

    assert outcome.status is TestStatus.error
    assert outcome.message == "Invalid regular expression"


@pytest.mark.asyncio
async def test_hidden_field_error_is_ignored() -> None:
    page = FakePage()
    page.set_text(sel.FIELD_ERROR, "stale", visible=False)
    page.set_text(sel.TEST_RESULT, "2 matches")

    outcome = await poll_test_result(page, max_tries=5)

    assert outcome.passed
    assert outcome.matches == 2


@pytest.mark.asyncio
async def test_matching_sample_passes() -> None:
    page = FakePage()
    page.set_text(sel.TEST_RESULT, "")
    page.on_fill[sel.TEST_INPUT] = lambda text: page.set_text(sel.TEST_RESULT, "1 match")

    assert await tester.test_pattern(make_session(), page, _pattern())
    assert page.fills(sel.TEST_INPUT) == ["token=acme_0123"]


@pytest.mark.asyncio
async def test_no_match_fails() -> None:
    page = FakePage()
    page.on_fill[sel.TEST_INPUT] = lambda text: page.set_text(sel.TEST_RESULT, "No matches")

    assert not await tester.test_pattern(make_session(), page, _pattern())


@pytest.mark.asyncio
async def test_gives_up_after_max_tries() -> None:
    page = FakePage()
    page.set(sel.TEST_RESULT, FakeElement(""))

    assert not await tester.test_pattern(make_session(max_test_tries=3), page, _pattern())
    assert page.waited == 3 * tester.POLL_INTERVAL_MS


@pytest.mark.asyncio
async def test_without_sample_types_keep_alive_and_passes() -> None:
    page = FakePage()

    assert await tester.test_pattern(make_session(), page, _pattern(data=None))
    assert page.fills(sel.TEST_INPUT) == [KEEP_ALIVE_DATA]
