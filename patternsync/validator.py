from __future__ import annotations

from dataclasses import dataclass, field

from .patterns import Pattern, PatternFile

MAX_NAME_LENGTH = 100
# The remote form accepts at most this many additional rules per pattern.
MAX_ADDITIONAL_RULES = 10


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_rules(rules: object, label: str, result: ValidationResult) -> int:
    if not rules:
        return 0
    if not isinstance(rules, list):
        result.errors.append(f"Pattern {label} must be a list")
        return 0
    for rule in rules:
        if not isinstance(rule, str) or not rule.strip():
            result.errors.append(f"Each {label} rule must be a non-empty string")
    return len(rules)


def validate_pattern(pattern: Pattern) -> ValidationResult:
    result = ValidationResult()

    if not pattern.name or not pattern.name.strip():
        result.errors.append("Pattern name is required")
    elif len(pattern.name) > MAX_NAME_LENGTH:
        result.warnings.append(f"Pattern name is very long (>{MAX_NAME_LENGTH} characters)")

    regex = pattern.regex
    if not regex.pattern or not regex.pattern.strip():
        result.errors.append("Pattern regex is required")

    if regex.version is None:
        result.warnings.append("Pattern version is not specified")

    if regex.start is not None and not regex.start.strip():
        result.warnings.append("Pattern start regex is empty")
    if regex.end is not None and not regex.end.strip():
        result.warnings.append("Pattern end regex is empty")

    count = _check_rules(regex.additional_match, "additional_match", result)
    count += _check_rules(regex.additional_not_match, "additional_not_match", result)
    if count > MAX_ADDITIONAL_RULES:
        result.warnings.append(
            f"{count} additional rules exceed the upload limit of {MAX_ADDITIONAL_RULES}"
        )

    if pattern.test is None or not pattern.test.data:
        result.suggestions.append("Add test data so the pattern can be checked before the dry run")

    return result


def validate_pattern_file(pattern_file: PatternFile) -> ValidationResult:
    aggregate = ValidationResult()

    if not pattern_file.name or not pattern_file.name.strip():
        aggregate.errors.append("Pattern file must have a name")
    if not pattern_file.patterns:
        aggregate.errors.append("Pattern file must contain at least one pattern")

    seen: set[str] = set()
    for pattern in pattern_file.patterns:
        if pattern.name in seen:
            aggregate.errors.append(f'Duplicate pattern name: "{pattern.name}"')
        seen.add(pattern.name)

        result = validate_pattern(pattern)
        prefix = f'Pattern "{pattern.name}": '
        aggregate.errors.extend(prefix + e for e in result.errors)
        aggregate.warnings.extend(prefix + w for w in result.warnings)
        aggregate.suggestions.extend(prefix + s for s in result.suggestions)

    return aggregate
