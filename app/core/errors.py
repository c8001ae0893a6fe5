"""
SkillPulse Error Types
Upstream failures and the Outcome wrapper used by backend clients

Backend clients never raise into the analysis code. Every query returns an
Outcome that is either ok(value) or unavailable(reason), and callers collapse
it to a default only where they aggregate results.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class UpstreamError(Exception):
    """A third-party backend failed or returned something unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SearchBackendError(UpstreamError):
    """Search index request failed."""


class ContentBackendError(UpstreamError):
    """CMS request failed."""


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one backend query."""

    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def unavailable(cls, reason: str) -> "Outcome[T]":
        return cls(value=None, reason=reason or "unavailable")

    @property
    def is_ok(self) -> bool:
        return self.reason is None

    def value_or(self, default: T) -> T:
        return self.value if self.is_ok else default
