from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from . import selectors as sel
from .patterns import Pattern
from .remote import RemotePage, is_visible, read_text

if TYPE_CHECKING:
    from .session import Session

# Typed into the test box when the catalog has no sample, so the form still
# allows a dry run.
KEEP_ALIVE_DATA = " "
POLL_INTERVAL_MS = 200

_COUNT_RE = re.compile(r"\b(\d+)\s+match(?:es)?\b", flags=re.IGNORECASE)
_NO_MATCH_RE = re.compile(r"\bno matches\b", flags=re.IGNORECASE)


class TestStatus(str, Enum):
    __test__ = False

    matched = "matched"
    no_match = "no_match"
    error = "error"
    pending = "pending"


@dataclass(frozen=True)
class TestOutcome:
    __test__ = False

    status: TestStatus
    matches: int = 0
    message: str = ""

    @property
    def passed(self) -> bool:
        return self.status is TestStatus.matched


def classify_test_result(text: str | None) -> TestOutcome:
    """Map the test result text to an outcome; anything unrecognised is still pending."""
    value = (text or "").strip()
    if not value:
        return TestOutcome(TestStatus.pending)
    if _NO_MATCH_RE.search(value):
        return TestOutcome(TestStatus.no_match, message=value)
    m = _COUNT_RE.search(value)
    if m:
        count = int(m.group(1))
        if count == 0:
            return TestOutcome(TestStatus.no_match, message=value)
        return TestOutcome(TestStatus.matched, matches=count, message=value)
    return TestOutcome(TestStatus.pending, message=value)


async def poll_test_result(page: RemotePage, *, max_tries: int) -> TestOutcome:
    last = TestOutcome(TestStatus.pending)
    for _ in range(max(1, max_tries)):
        if await is_visible(page, sel.FIELD_ERROR):
            message = ((await read_text(page, sel.FIELD_ERROR)) or "").strip()
            return TestOutcome(TestStatus.error, message=message or "field error reported")
        last = classify_test_result(await read_text(page, sel.TEST_RESULT))
        if last.status is not TestStatus.pending:
            return last
        await page.wait(POLL_INTERVAL_MS)
    return last


async def test_pattern(session: Session, page: RemotePage, pattern: Pattern) -> bool:
    """Run the pattern against its sample text in the remote test box.

    Without sample text the outcome is ignored and True is returned; the
    keep-alive input only exists so the dry run can go ahead.
    """
    sample = pattern.test.data if pattern.test is not None else None
    if not sample:
        session.warn(f"No test data for pattern '{pattern.name}'; skipping the match check")
        await page.fill(sel.TEST_INPUT, KEEP_ALIVE_DATA)
        return True

    session.step(f"Testing pattern: {pattern.name}")
    await page.fill(sel.TEST_INPUT, sample)
    outcome = await poll_test_result(page, max_tries=session.config.max_test_tries)

    if outcome.status is TestStatus.matched:
        session.success(f"Pattern test passed: {pattern.name} ({outcome.message})")
        return True
    if outcome.status is TestStatus.error:
        session.error(f"Pattern '{pattern.name}' was rejected: {outcome.message}")
    elif outcome.status is TestStatus.no_match:
        session.error(f"Pattern test failed for '{pattern.name}': {outcome.message}")
    else:
        session.error(
            f"Pattern test for '{pattern.name}' gave no result after "
            f"{session.config.max_test_tries} tries"
        )
    return False
