from __future__ import annotations

from patternsync.patterns import Pattern, PatternFile, RegexSpec, TestData, pattern_from_dict
from patternsync.validator import MAX_ADDITIONAL_RULES, validate_pattern, validate_pattern_file


def _pattern(**overrides):
    raw = {
        "name": "Acme API key",
        "regex": {"version": 1, "pattern": "acme_[a-z0-9]{32}"},
        "test": {"data": "acme_0123456789abcdef0123456789abcdef"},
    }
    raw.update(overrides)
    return pattern_from_dict(raw)


def test_complete_pattern_is_clean() -> None:
    result = validate_pattern(_pattern())
    assert result.is_valid
    assert result.warnings == []
    assert result.suggestions == []


def test_missing_name_and_regex_are_errors() -> None:
    result = validate_pattern(_pattern(name="  ", regex={"version": 1, "pattern": ""}))
    assert not result.is_valid
    assert "Pattern name is required" in result.errors
    assert "Pattern regex is required" in result.errors


def test_missing_version_and_empty_anchors_warn() -> None:
    result = validate_pattern(_pattern(regex={"pattern": "x", "start": " ", "end": ""}))
    assert result.is_valid
    assert "Pattern version is not specified" in result.warnings
    assert "Pattern start regex is empty" in result.warnings
    assert "Pattern end regex is empty" in result.warnings


def test_long_name_warns() -> None:
    result = validate_pattern(_pattern(name="n" * 101))
    assert result.is_valid
    assert any("very long" in w for w in result.warnings)


def test_rules_must_be_a_list_of_strings() -> None:
    spec = RegexSpec(pattern="x", version=1, additional_match="single", additional_not_match=[""])
    result = validate_pattern(Pattern(name="Acme API key", regex=spec, test=TestData("x")))
    assert "Pattern additional_match must be a list" in result.errors
    assert "Each additional_not_match rule must be a non-empty string" in result.errors


def test_too_many_rules_warns() -> None:
    rules = [f"r{i}" for i in range(MAX_ADDITIONAL_RULES + 1)]
    result = validate_pattern(_pattern(regex={"version": 1, "pattern": "x", "additional_match": rules}))
    assert result.is_valid
    assert any("exceed the upload limit" in w for w in result.warnings)


def test_missing_test_data_suggests() -> None:
    result = validate_pattern(_pattern(test=None))
    assert result.is_valid
    assert len(result.suggestions) == 1


def test_file_level_checks_prefix_pattern_name() -> None:
    pf = PatternFile(
        name="",
        patterns=[_pattern(), _pattern(), _pattern(name="Other", regex={"version": 1, "pattern": ""})],
    )
    result = validate_pattern_file(pf)
    assert "Pattern file must have a name" in result.errors
    assert 'Duplicate pattern name: "Acme API key"' in result.errors
    assert 'Pattern "Other": Pattern regex is required' in result.errors


def test_empty_file_is_invalid() -> None:
    result = validate_pattern_file(PatternFile(name="empty"))
    assert result.errors == ["Pattern file must contain at least one pattern"]
