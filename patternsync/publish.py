from __future__ import annotations

from typing import TYPE_CHECKING

from . import selectors as sel
from .config import PushProtectionMode, Scope
from .errors import PublishFailure, PushProtectionFailure
from .patterns import Pattern
from .remote import Navigation, RemoteElement, RemotePage, first, is_visible, read_text

if TYPE_CHECKING:
    from .session import Session

# The push protection table is indexed asynchronously, so a freshly
# published pattern can take a while to show up there.
PUSH_PROTECTION_SEARCH_TRIES = 10
PUSH_PROTECTION_RETRY_MS = 3000
FILTER_SETTLE_MS = 500


async def _follow(session: Session, page: RemotePage, nav: Navigation | None, *, pattern: str) -> None:
    if nav is not None and nav.is_redirect:
        await session.goto(page, session.absolute(nav.location or ""), pattern=pattern)
    else:
        session.check_session(page)


async def publish_pattern(session: Session, page: RemotePage, pattern: Pattern) -> None:
    session.step(f"Publishing pattern: {pattern.name}")
    nav = await page.click(sel.PUBLISH_BUTTON, expect_navigation=True)
    await _follow(session, page, nav, pattern=pattern.name)

    if await is_visible(page, sel.FLASH_ERROR):
        message = ((await read_text(page, sel.FLASH_ERROR)) or "").strip()
        raise PublishFailure(f"Failed to publish pattern: {message}", pattern=pattern.name)
    if not await is_visible(page, sel.FLASH_SUCCESS):
        session.warn(f"No confirmation shown after publishing '{pattern.name}'; assuming it was published")


def label_state(label: str | None) -> bool | None:
    """Current state from a toggle button label: "Disable" means it is on."""
    value = (label or "").strip().lower()
    if "disable" in value:
        return True
    if "enable" in value:
        return False
    return None


def row_state(text: str | None) -> bool | None:
    value = (text or "").strip().lower()
    if "disabled" in value:
        return False
    if "enabled" in value:
        return True
    return None


def desired_push_protection(session: Session, pattern: Pattern) -> bool | None:
    """Resolve the target state; None means leave the remote setting alone.

    Precedence: keep, then an explicit disable, then enable, then the
    pattern's own setting, then the operator (default: do not enable).
    """
    mode = session.config.push_protection
    if mode is PushProtectionMode.keep:
        return None
    if mode is PushProtectionMode.disable:
        return False
    if mode is PushProtectionMode.enable:
        return True
    if pattern.push_protection is not None:
        return pattern.push_protection
    if session.prompter.confirm(f"Enable push protection for '{pattern.name}'?", default=False):
        return True
    return None


async def configure_push_protection(session: Session, page: RemotePage, pattern: Pattern) -> bool | None:
    """Apply the resolved push protection state; return it, or None when nothing was asked for."""
    scope = session.config.scope

    if session.config.push_protection is PushProtectionMode.keep:
        if scope is Scope.repo:
            current = label_state(await read_text(page, sel.PUSH_PROTECTION_TOGGLE))
            if current is not None:
                session.info(
                    f"Push protection for '{pattern.name}' is {'enabled' if current else 'disabled'} (unchanged)"
                )
        return None

    desired = desired_push_protection(session, pattern)
    if desired is None:
        session.debug(f"Leaving push protection unchanged for '{pattern.name}'")
        return None

    if scope is Scope.repo:
        await _toggle_on_pattern_page(session, page, pattern, desired)
    elif scope in (Scope.org, Scope.enterprise):
        await _toggle_in_table(session, page, pattern, desired)
    else:  # pragma: no cover
        raise ValueError(f"Unknown scope: {scope!r}")
    return desired


async def _toggle_on_pattern_page(session: Session, page: RemotePage, pattern: Pattern, desired: bool) -> None:
    word = "enabled" if desired else "disabled"
    toggle = await first(page, sel.PUSH_PROTECTION_TOGGLE)
    if toggle is None or not await toggle.is_visible():
        raise PushProtectionFailure(
            f"Push protection toggle not found for pattern: {pattern.name}", pattern=pattern.name
        )

    if label_state(await toggle.text()) is desired:
        session.info(f"Push protection already {word} for pattern: {pattern.name}")
        return

    nav = await page.click(sel.PUSH_PROTECTION_TOGGLE, expect_navigation=True)
    await _follow(session, page, nav, pattern=pattern.name)

    if label_state(await read_text(page, sel.PUSH_PROTECTION_TOGGLE)) is desired:
        session.success(f"Push protection {word} for pattern: {pattern.name}")
    else:
        session.warn(f"Push protection for '{pattern.name}' did not report as {word} after the change")


async def _find_row(page: RemotePage, name: str) -> RemoteElement | None:
    for row in await page.locate(sel.PUSH_PROTECTION_ROW):
        if ((await read_text(row, sel.PUSH_PROTECTION_ROW_NAME)) or "").strip() == name:
            return row
    return None


async def _search_row(session: Session, page: RemotePage, pattern: Pattern) -> RemoteElement | None:
    url = session.url(sel.PUSH_PROTECTION_PATH)
    for attempt in range(1, PUSH_PROTECTION_SEARCH_TRIES + 1):
        await session.goto(page, url, pattern=pattern.name)
        await page.fill(sel.PUSH_PROTECTION_FILTER, pattern.name)
        await page.wait(FILTER_SETTLE_MS)
        row = await _find_row(page, pattern.name)
        if row is not None:
            return row
        session.debug(
            f"'{pattern.name}' not in the push protection table yet "
            f"(attempt {attempt}/{PUSH_PROTECTION_SEARCH_TRIES})"
        )
        await page.wait(PUSH_PROTECTION_RETRY_MS)
    return None


async def _toggle_in_table(session: Session, page: RemotePage, pattern: Pattern, desired: bool) -> None:
    word = "enabled" if desired else "disabled"
    row = await _search_row(session, page, pattern)
    if row is None:
        raise PushProtectionFailure(
            f"Pattern '{pattern.name}' not found in the push protection table", pattern=pattern.name
        )

    if row_state(await read_text(row, sel.PUSH_PROTECTION_ROW_STATE)) is desired:
        session.info(f"Push protection already {word} for pattern: {pattern.name}")
        return

    menu = await first(row, sel.PUSH_PROTECTION_ROW_MENU)
    if menu is None:
        raise PushProtectionFailure(
            f"No push protection menu for pattern: {pattern.name}", pattern=pattern.name
        )
    await menu.click()
    await page.wait_for(sel.PUSH_PROTECTION_POPOVER, state="visible")
    await page.check(sel.push_protection_radio(desired))
    nav = await page.click(sel.PUSH_PROTECTION_APPLY, expect_navigation=True)
    await _follow(session, page, nav, pattern=pattern.name)

    row = await _find_row(page, pattern.name)
    if row is not None and row_state(await read_text(row, sel.PUSH_PROTECTION_ROW_STATE)) is desired:
        session.success(f"Push protection {word} for pattern: {pattern.name}")
    else:
        session.warn(f"Push protection for '{pattern.name}' did not report as {word} after the change")
