from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import PatternSyncError
from .patterns import Pattern, RuleKind, apply_defaults
from .remote import RemotePage, first, read_attribute, read_text

if TYPE_CHECKING:
    from .session import Session

MAIN_FIELDS = (
    ("pattern", sel.SECRET_FORMAT),
    ("start", sel.BEFORE_SECRET),
    ("end", sel.AFTER_SECRET),
)


@dataclass(frozen=True)
class Rule:
    kind: RuleKind
    value: str


@dataclass
class FormState:
    """Field values of a pattern form, local or as read from the remote."""

    name: str = ""
    pattern: str = ""
    start: str = ""
    end: str = ""
    rules: list[Rule] = field(default_factory=list)
    published: bool = False


def _norm(value: str | None) -> str:
    return (value or "").strip()


def desired_state(pattern: Pattern) -> FormState:
    apply_defaults(pattern)
    regex = pattern.regex
    return FormState(
        name=pattern.name,
        pattern=regex.pattern,
        start=regex.start or "",
        end=regex.end or "",
        rules=[Rule(kind, value) for kind, value in regex.rules()],
    )


def diff_forms(current: FormState, desired: FormState) -> list[str]:
    """Names of the fields that differ after trimming; "rules" covers the whole list.

    Rule lists are compared in order; a different length is always a change.
    """
    changed = [
        name for name, _ in MAIN_FIELDS if _norm(getattr(current, name)) != _norm(getattr(desired, name))
    ]
    if len(current.rules) != len(desired.rules):
        changed.append("rules")
    else:
        for have, want in zip(current.rules, desired.rules):
            if have.kind != want.kind or _norm(have.value) != _norm(want.value):
                changed.append("rules")
                break
    return changed


async def read_rules(page: RemotePage) -> list[Rule]:
    rules: list[Rule] = []
    for entry in await page.locate(sel.ADDITIONAL_RULE):
        classes = (await entry.attribute("class")) or ""
        if sel.ADDITIONAL_RULE_REMOVED_CLASS in classes.split():
            continue
        text_input = await first(entry, sel.ADDITIONAL_RULE_INPUT)
        value = await text_input.attribute("value") if text_input is not None else None
        if not value:
            continue
        radio = await first(entry, sel.ADDITIONAL_RULE_MUST_MATCH)
        must_match = radio is not None and await radio.is_checked()
        rules.append(Rule(RuleKind.must_match if must_match else RuleKind.must_not_match, value))
    return rules


async def read_form(page: RemotePage) -> FormState:
    heading = (await read_text(page, sel.PAGE_HEADING)) or ""
    return FormState(
        name=(await read_attribute(page, sel.DISPLAY_NAME, "value")) or "",
        pattern=(await read_attribute(page, sel.SECRET_FORMAT, "value")) or "",
        start=(await read_attribute(page, sel.BEFORE_SECRET, "value")) or "",
        end=(await read_attribute(page, sel.AFTER_SECRET, "value")) or "",
        rules=await read_rules(page),
        published="Update pattern" in heading,
    )


async def _expand_more_options(page: RemotePage) -> None:
    toggle = await first(page, sel.MORE_OPTIONS_TOGGLE)
    if toggle is None or not await toggle.is_visible():
        return
    if await toggle.attribute("aria-expanded") != "true":
        await toggle.click()
        await page.wait(500)


async def _remove_rules(session: Session, page: RemotePage) -> int:
    """Remove every live rule entry; return the entry count, removed ones included.

    Removed entries stay in the form, so new inputs are numbered after them.
    """
    entries = await page.locate(sel.ADDITIONAL_RULE)
    removed = 0
    for entry in entries:
        classes = (await entry.attribute("class")) or ""
        if sel.ADDITIONAL_RULE_REMOVED_CLASS in classes.split():
            continue
        button = await first(entry, sel.ADDITIONAL_RULE_REMOVE)
        if button is None:
            continue
        await button.click()
        removed += 1
    if removed:
        session.debug(f"Removed {removed} existing additional rule(s)")
    return len(entries)


async def _add_rule(session: Session, page: RemotePage, rule: Rule, index: int) -> None:
    session.debug(f"  Adding additional rule {index + 1}: {rule.kind.value} - {rule.value[:50]}")
    await page.click(sel.ADD_RULE_BUTTON)
    if not await page.wait_for(sel.rule_input(index), timeout=5000):
        raise PatternSyncError(f"Input for additional rule {index + 1} did not appear")
    await page.fill(sel.rule_input(index), rule.value)
    await page.check(sel.rule_kind_radio(index, rule.kind.value))
    await page.wait(200)


async def _add_rules(session: Session, page: RemotePage, rules: list[Rule], base: int) -> None:
    if rules:
        session.step(f"Adding {len(rules)} additional rule(s)...")
    for offset, rule in enumerate(rules):
        await _add_rule(session, page, rule, base + offset)


async def fill_pattern(session: Session, page: RemotePage, pattern: Pattern, *, existing: bool) -> bool:
    """Bring the open pattern form in line with ``pattern``.

    Returns whether the form now needs to be submitted. For an existing
    pattern whose fields already match, nothing on the page is touched; it
    still needs submitting while it is an unpublished draft, for example one
    skipped at the confirmation gate on an earlier run.
    """
    desired = desired_state(pattern)

    if not existing:
        session.step(f"Filling in new pattern: {pattern.name}")
        await page.fill(sel.DISPLAY_NAME, desired.name)
        await page.fill(sel.SECRET_FORMAT, desired.pattern)
        await _expand_more_options(page)
        await page.fill(sel.BEFORE_SECRET, desired.start)
        await page.fill(sel.AFTER_SECRET, desired.end)
        await _add_rules(session, page, desired.rules, 0)
        return True

    current = await read_form(page)
    changed = diff_forms(current, desired)
    if not changed and not session.config.force_submission:
        if not current.published:
            session.step(f"Pattern '{pattern.name}' is an unpublished draft; submitting it again")
            return True
        session.info(f"Pattern '{pattern.name}' is unchanged")
        return False

    if changed:
        session.step(f"Updating pattern '{pattern.name}': {', '.join(changed)} changed")
    else:
        session.step(f"Updating pattern '{pattern.name}': submission forced")

    await _expand_more_options(page)
    force = session.config.force_submission
    for name, selector in MAIN_FIELDS:
        if name in changed or force:
            await page.fill(selector, "")
            await page.fill(selector, getattr(desired, name))

    base = await _remove_rules(session, page)
    await _add_rules(session, page, desired.rules, base)
    return True
