from __future__ import annotations

from fakes import ScriptedPrompter, make_session, output

from patternsync.dryrun import DryRunMatch, DryRunResult
from patternsync.gate import exceeds_threshold, should_proceed
from patternsync.patterns import pattern_from_dict

PATTERN = pattern_from_dict({"name": "Acme key", "regex": {"pattern": "acme_[0-9]+"}})


def _result(hits: int) -> DryRunResult:
    matches = [DryRunMatch(f"acme_{i:012d}", "acme/widgets", f"https://github.com/m/{i}") for i in range(hits)]
    return DryRunResult(id="42", name=PATTERN.name, hits=hits, results=matches, completed=True)


def test_threshold_is_strict() -> None:
    assert not exceeds_threshold(0, 0)
    assert not exceeds_threshold(5, 5)
    assert exceeds_threshold(6, 5)


def test_zero_hits_at_zero_threshold_proceeds_without_asking() -> None:
    prompter = ScriptedPrompter()
    assert should_proceed(make_session(prompter=prompter), PATTERN, _result(0))
    assert prompter.asked == []


def test_hits_equal_to_threshold_proceed_without_asking() -> None:
    prompter = ScriptedPrompter()
    assert should_proceed(make_session(prompter=prompter, dry_run_threshold=3), PATTERN, _result(3))
    assert prompter.asked == []


def test_over_threshold_defaults_to_skip() -> None:
    prompter = ScriptedPrompter()
    assert not should_proceed(make_session(prompter=prompter), PATTERN, _result(1))
    assert len(prompter.asked) == 1


def test_publish_choice_proceeds() -> None:
    prompter = ScriptedPrompter(choices=["publish"])
    assert should_proceed(make_session(prompter=prompter, dry_run_threshold=1), PATTERN, _result(2))


def test_view_shows_details_and_asks_again() -> None:
    prompter = ScriptedPrompter(choices=["view", "view", "skip"])
    session = make_session(prompter=prompter)

    assert not should_proceed(session, PATTERN, _result(2))
    assert len(prompter.asked) == 3
    text = output(session)
    assert text.count('Detailed Results for "Acme key"') == 2
    # Matches are masked in the listing.
    assert "acme_000000000001" not in text
