from __future__ import annotations


class PatternSyncError(Exception):
    """A failure scoped to one pattern or one operation; the batch continues."""

    def __init__(self, message: str, *, pattern: str | None = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class CatalogError(ValueError):
    """A catalog file could not be read or parsed."""


class ValidationFailure(PatternSyncError):
    pass


class NavigationFailure(PatternSyncError):
    def __init__(
        self, message: str, *, url: str = "", status: int | None = None, pattern: str | None = None
    ) -> None:
        super().__init__(message, pattern=pattern)
        self.url = url
        self.status = status


class NavigationAborted(NavigationFailure):
    """The request was aborted in flight; safe to retry."""


class TestFailure(PatternSyncError):
    __test__ = False


class DryRunAbort(PatternSyncError):
    pass


class PublishFailure(PatternSyncError):
    pass


class PushProtectionFailure(PatternSyncError):
    pass


class SessionLost(Exception):
    """The authenticated remote session is gone; the whole run stops."""


class AuthenticationError(Exception):
    pass
