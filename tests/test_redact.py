from __future__ import annotations

import pytest

from patternsync.redact import NOT_AVAILABLE, preview, redact


def test_redact_keeps_edges() -> None:
    assert redact("acme_0123456789abcdef") == "acme*************cdef"


def test_redact_masks_short_values_fully() -> None:
    assert redact("short") == "*****"
    assert redact("") == ""
    assert redact(None) == ""


def test_redact_rejects_negative_widths() -> None:
    with pytest.raises(ValueError):
        redact("abcdef", keep_start=-1)


def test_preview_collapses_whitespace_and_truncates() -> None:
    assert preview("  acme_0123\n456789abcdef  ", mask=False) == "acme_0123 456789abcdef"
    long_value = "x" * 80
    shown = preview(long_value, mask=False)
    assert len(shown) == 55
    assert shown.endswith("...")


def test_preview_of_missing_value() -> None:
    assert preview(None) == NOT_AVAILABLE
    assert preview("   ") == NOT_AVAILABLE
