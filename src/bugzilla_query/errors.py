from __future__ import annotations


class BugzillaAPIError(RuntimeError):
    pass


class BugzillaDecodeError(BugzillaAPIError):
    """A bug record in the response did not have the expected shape."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field
