from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import NavigationFailure
from .remote import RemotePage, first, is_usable, is_visible, read_attribute

if TYPE_CHECKING:
    from .session import Session

# Polls of the listing's busy attribute before reading rows anyway.
BUSY_MAX_POLLS = 300
BUSY_POLL_MS = 100


class PatternIndex:
    """Pattern name -> remote location, in discovery order.

    Adding a name that is already present replaces its location (last write
    wins) and moves nothing: the name keeps its original position.
    """

    def __init__(self) -> None:
        self._locations: dict[str, str] = {}

    def add(self, name: str, location: str) -> str | None:
        """Record a location; return the one it replaced, if any."""
        previous = self._locations.get(name)
        self._locations[name] = location
        return previous

    def get(self, name: str) -> str | None:
        return self._locations.get(name)

    def remove(self, name: str) -> str | None:
        return self._locations.pop(name, None)

    def names(self) -> list[str]:
        return list(self._locations)

    def items(self) -> list[tuple[str, str]]:
        return list(self._locations.items())

    def __contains__(self, name: object) -> bool:
        return name in self._locations

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._locations))

    def __len__(self) -> int:
        return len(self._locations)

    def __repr__(self) -> str:
        return f"PatternIndex({self._locations!r})"


async def _wait_until_idle(page: RemotePage) -> None:
    for _ in range(BUSY_MAX_POLLS):
        if await read_attribute(page, sel.PATTERN_LIST, sel.PATTERN_LIST_BUSY_ATTR) is None:
            return
        await page.wait(BUSY_POLL_MS)


async def find_existing(session: Session) -> PatternIndex | None:
    """Walk the paginated custom pattern listing of the target.

    Returns None when the listing cannot be loaded, which is different from an
    empty index (the target simply has no custom patterns yet).
    """
    page = await session.remote.new_page()
    try:
        url = session.url(sel.PATTERN_LIST_PATH)
        session.debug(f"Navigating to: {url}")
        try:
            await session.goto(page, url)
        except NavigationFailure as exc:
            session.error(str(exc))
            return None

        index = PatternIndex()
        page_number = 1
        while True:
            await _wait_until_idle(page)

            if await is_visible(page, sel.PATTERN_LIST_EMPTY):
                session.debug("No custom patterns defined for this target")
                break

            rows = await page.locate(sel.PATTERN_ROW)
            if not rows:
                break

            for row in rows:
                link = await first(row, sel.PATTERN_ROW_LINK)
                if link is None:
                    continue
                name = ((await link.text()) or "").strip()
                href = await link.attribute("href")
                if not name or not href:
                    continue
                location = session.absolute(href)
                replaced = index.add(name, location)
                if replaced is not None and replaced != location:
                    session.warn(
                        f"Duplicate remote pattern name '{name}': using {location}, ignoring {replaced}"
                    )
                session.debug(f"Found pattern: {name} ({location})")

            if not await is_usable(page, sel.PATTERN_LIST_NEXT):
                break
            await page.click(sel.PATTERN_LIST_NEXT)
            page_number += 1
            session.debug(f"Loading pattern listing page {page_number}")

        session.info(f"Found {len(index)} existing pattern(s)")
        return index
    finally:
        await page.close()
