from __future__ import annotations

from typing import TYPE_CHECKING

from . import selectors as sel
from .directory import find_existing
from .errors import NavigationFailure, PatternSyncError
from .remote import RemotePage

if TYPE_CHECKING:
    from .session import Session


async def _delete_one(session: Session, page: RemotePage, name: str, location: str) -> None:
    await session.goto(page, location, pattern=name)
    await page.click(sel.DELETE_BUTTON)
    if not await page.wait_for(sel.DELETE_DIALOG, state="visible"):
        raise PatternSyncError("Delete confirmation dialog did not open", pattern=name)
    nav = await page.click(sel.DELETE_CONFIRM, expect_navigation=True)
    if nav is not None and nav.is_redirect:
        await session.goto(page, session.absolute(nav.location or ""), pattern=name)
    elif nav is not None and not nav.ok:
        raise PatternSyncError(f"Delete was rejected: HTTP {nav.status}", pattern=name)
    else:
        session.check_session(page)


async def delete_existing(session: Session) -> list[str]:
    """Delete the selected remote patterns after a single confirmation.

    Returns the names that were deleted. Per-pattern failures are reported
    and skipped; SessionLost stops the whole batch.
    """
    index = session.index if session.index is not None else await find_existing(session)
    if index is None:
        raise NavigationFailure(
            f"Could not list existing patterns for {session.config.target}",
            url=session.url(sel.PATTERN_LIST_PATH),
        )
    session.index = index

    targets = [(name, location) for name, location in index.items() if session.config.selects(name)]
    if not targets:
        session.info("No existing patterns match the selection; nothing to delete")
        return []

    session.out.print(f"\n[bold]{len(targets)} pattern(s) selected for deletion:[/bold]")
    for name, _ in targets:
        session.info(f"  - {name}")
    if not session.prompter.confirm(
        f"Delete {len(targets)} pattern(s) from {session.config.target}?", default=False
    ):
        session.info("Deletion cancelled")
        return []

    deleted: list[str] = []
    page = await session.remote.new_page()
    try:
        for name, location in targets:
            try:
                await _delete_one(session, page, name, location)
            except PatternSyncError as exc:
                session.error(f"Failed to delete pattern '{name}': {exc}")
                continue
            index.remove(name)
            deleted.append(name)
            session.success(f"Deleted pattern: {name}")
    finally:
        await page.close()

    session.info(f"Deleted {len(deleted)} of {len(targets)} pattern(s)")
    return deleted
