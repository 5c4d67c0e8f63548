from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .errors import CatalogError

# Boundary anchors the platform applies when a pattern omits start/end.
DEFAULT_START = r"\A|[^0-9A-Za-z]"
DEFAULT_END = r"\z|[^0-9A-Za-z]"


class RuleKind(str, Enum):
    must_match = "must_match"
    must_not_match = "must_not_match"


@dataclass
class RegexSpec:
    pattern: str
    version: int | None = None
    start: str | None = None
    end: str | None = None
    additional_match: list[str] = field(default_factory=list)
    additional_not_match: list[str] = field(default_factory=list)

    def rules(self) -> list[tuple[RuleKind, str]]:
        """Additional rules in form order: must-match first, then must-not-match."""
        out = [(RuleKind.must_match, r) for r in self.additional_match]
        out.extend((RuleKind.must_not_match, r) for r in self.additional_not_match)
        return out


@dataclass
class TestData:
    __test__ = False  # not a pytest class

    data: str
    start_offset: int | None = None
    end_offset: int | None = None


@dataclass
class Pattern:
    name: str
    regex: RegexSpec
    test: TestData | None = None
    push_protection: bool | None = None
    comments: list[str] = field(default_factory=list)
    type: str | None = None
    description: str | None = None
    experimental: bool = False
    expected: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class PatternFile:
    name: str
    patterns: list[Pattern] = field(default_factory=list)
    path: Path | None = None


def apply_defaults(pattern: Pattern) -> Pattern:
    """Fill absent anchors with the platform boundary defaults.

    After this, "no anchor given" and "explicit boundary anchor" compare equal.
    """
    if not pattern.regex.start:
        pattern.regex.start = DEFAULT_START
    if not pattern.regex.end:
        pattern.regex.end = DEFAULT_END
    return pattern


def _str_list(value: Any, key: str) -> list[str]:
    """Rule list from a catalog value; a single string counts as one rule."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [x if isinstance(x, str) else str(x) for x in value]
    raise CatalogError(f"{key} must be a list of strings, got {type(value).__name__}")


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def pattern_from_dict(raw: dict[str, Any]) -> Pattern:
    regex_raw = raw.get("regex") or {}
    if not isinstance(regex_raw, dict):
        regex_raw = {}

    regex = RegexSpec(
        pattern=str(regex_raw.get("pattern") or ""),
        version=_optional_int(regex_raw.get("version")),
        start=regex_raw.get("start"),
        end=regex_raw.get("end"),
        additional_match=_str_list(regex_raw.get("additional_match"), "additional_match"),
        additional_not_match=_str_list(regex_raw.get("additional_not_match"), "additional_not_match"),
    )

    test = None
    test_raw = raw.get("test")
    if isinstance(test_raw, dict) and test_raw.get("data") is not None:
        test = TestData(
            data=str(test_raw["data"]),
            start_offset=_optional_int(test_raw.get("start_offset")),
            end_offset=_optional_int(test_raw.get("end_offset")),
        )

    push = raw.get("push_protection")
    comments = raw.get("comments")
    expected = raw.get("expected")

    return Pattern(
        name=str(raw.get("name") or ""),
        regex=regex,
        test=test,
        push_protection=push if isinstance(push, bool) else None,
        comments=[str(c) for c in comments] if isinstance(comments, list) else [],
        type=raw.get("type"),
        description=raw.get("description"),
        experimental=bool(raw.get("experimental", False)),
        expected=[e for e in expected if isinstance(e, dict)] if isinstance(expected, list) else [],
    )


def parse_pattern_file(data: Any, *, path: Path | None = None) -> PatternFile:
    if not isinstance(data, dict):
        raise CatalogError(f"{path or 'pattern file'}: expected a mapping at the top level")

    raw_patterns = data.get("patterns") or []
    if not isinstance(raw_patterns, list):
        raise CatalogError(f"{path or 'pattern file'}: 'patterns' must be a list")

    patterns = [pattern_from_dict(p) for p in raw_patterns if isinstance(p, dict)]
    return PatternFile(name=str(data.get("name") or ""), patterns=patterns, path=path)


def load_pattern_file(path: Path) -> PatternFile:
    """Load a catalog from YAML (or JSON, which YAML mostly accepts)."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"Cannot read {path}: {exc}") from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as yaml_exc:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            raise CatalogError(f"Failed to parse {path} as YAML or JSON: {yaml_exc}") from yaml_exc

    return parse_pattern_file(data, path=path)
