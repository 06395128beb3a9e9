from __future__ import annotations
from typing import Optional


class TrustError(Exception):
    pass


class InvalidFailureContext(TrustError):
    """The failing URI did not yield a hostname; the load must fail closed."""

    def __init__(self, failing_uri: str, reason: str = "no hostname"):
        super().__init__(f"{reason}: {failing_uri!r}")
        self.failing_uri = failing_uri


class StoreUnavailable(TrustError):
    """The persistent trust store could not be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class PromptFailed(TrustError):
    """The consent surface failed to show or returned no usable choice."""
    pass
