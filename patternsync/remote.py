"""Capability interface the sync engine drives.

Anything that can navigate, find elements by selector, read and set their
values, click, and wait can stand in for the remote console. The Playwright
implementation lives in ``browser.py``; tests use an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Navigation:
    ok: bool
    status: int | None = None
    url: str = ""
    location: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.status is not None and 300 <= self.status < 400 and bool(self.location)


class RemoteElement(Protocol):
    async def text(self) -> str | None: ...

    async def attribute(self, name: str) -> str | None: ...

    async def is_visible(self) -> bool: ...

    async def is_enabled(self) -> bool: ...

    async def is_checked(self) -> bool: ...

    async def click(self) -> None: ...

    async def check(self) -> None: ...

    async def locate(self, selector: str) -> list[RemoteElement]: ...


class RemotePage(Protocol):
    async def navigate(self, url: str) -> Navigation: ...

    async def reload(self) -> Navigation: ...

    def current_url(self) -> str: ...

    async def locate(self, selector: str) -> list[RemoteElement]: ...

    async def fill(self, selector: str, text: str) -> None: ...

    async def click(self, selector: str, *, expect_navigation: bool = False) -> Navigation | None: ...

    async def check(self, selector: str) -> None: ...

    async def wait_for(self, selector: str, *, state: str = "visible", timeout: float = 5000) -> bool: ...

    async def wait(self, milliseconds: float) -> None: ...

    async def screenshot(self, path: str) -> None: ...

    async def close(self) -> None: ...


class RemoteConsole(Protocol):
    async def new_page(self) -> RemotePage: ...

    async def close(self) -> None: ...


async def first(page: RemotePage | RemoteElement, selector: str) -> RemoteElement | None:
    found = await page.locate(selector)
    return found[0] if found else None


async def read_text(page: RemotePage | RemoteElement, selector: str) -> str | None:
    el = await first(page, selector)
    if el is None:
        return None
    return await el.text()


async def read_attribute(page: RemotePage | RemoteElement, selector: str, name: str) -> str | None:
    el = await first(page, selector)
    if el is None:
        return None
    return await el.attribute(name)


async def is_visible(page: RemotePage | RemoteElement, selector: str) -> bool:
    el = await first(page, selector)
    return el is not None and await el.is_visible()


async def is_usable(page: RemotePage | RemoteElement, selector: str) -> bool:
    """Visible and enabled, e.g. a pagination control that can be clicked."""
    el = await first(page, selector)
    return el is not None and await el.is_visible() and await el.is_enabled()
