from __future__ import annotations

NOT_AVAILABLE = "N/A"


def redact(value: str | None, *, keep_start: int = 4, keep_end: int = 4) -> str:
    """Mask the middle of a matched secret for display."""
    if value is None:
        return ""
    if keep_start < 0 or keep_end < 0:
        raise ValueError("keep_start/keep_end must be >= 0")
    if len(value) <= keep_start + keep_end + 4:
        return "*" * len(value)
    return value[:keep_start] + ("*" * (len(value) - keep_start - keep_end)) + value[-keep_end:]


def preview(value: str | None, *, width: int = 55, mask: bool = True) -> str:
    """One-line, optionally masked, width-limited rendering of a dry-run match."""
    if not value or not value.strip():
        return NOT_AVAILABLE
    text = " ".join(value.split())
    if mask:
        text = redact(text)
    if width > 3 and len(text) > width:
        text = text[: width - 3] + "..."
    return text
