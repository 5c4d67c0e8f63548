from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .dryrun import DryRunResult
from .patterns import Pattern
from .report import print_dry_run_details

if TYPE_CHECKING:
    from .session import Session

CHOICE_PUBLISH = "publish"
CHOICE_SKIP = "skip"
CHOICE_VIEW = "view"
CHOICES = (CHOICE_PUBLISH, CHOICE_SKIP, CHOICE_VIEW)


class GateState(str, Enum):
    prompting = "prompting"
    viewing = "viewing"
    decided = "decided"


def exceeds_threshold(hits: int, threshold: int) -> bool:
    # Strictly greater: hits == threshold still publishes without asking.
    return hits > threshold


def should_proceed(session: Session, pattern: Pattern, result: DryRunResult) -> bool:
    """Decide whether a dry-run result may be published.

    At or below the threshold the answer is yes without asking. Above it the
    operator chooses; "view" shows the detailed matches and asks again, and
    the default answer is to skip.
    """
    threshold = session.config.dry_run_threshold
    if not exceeds_threshold(result.hits, threshold):
        if result.hits == 0:
            session.success(f"Pattern '{pattern.name}' has no matches - proceeding automatically")
        else:
            session.info(
                f"Pattern '{pattern.name}' found {result.hits} match(es), within threshold {threshold}"
            )
        return True

    session.warn(
        f"Pattern '{pattern.name}' exceeds dry run threshold ({result.hits} > {threshold})"
    )
    message = f"Pattern '{pattern.name}' found {result.hits} matches. What would you like to do?"

    state = GateState.prompting
    proceed = False
    while state is not GateState.decided:
        if state is GateState.prompting:
            answer = session.prompter.choose(message, CHOICES, default=CHOICE_SKIP)
            if answer == CHOICE_VIEW:
                state = GateState.viewing
            else:
                proceed = answer == CHOICE_PUBLISH
                state = GateState.decided
        elif state is GateState.viewing:
            print_dry_run_details(session.out, result)
            state = GateState.prompting
    return proceed
