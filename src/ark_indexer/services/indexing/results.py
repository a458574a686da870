"""Outcome of a single best-effort write in the transfer pipeline.

Callers inspect outcomes instead of logs to decide whether an event has to be
re-queued: only ``FailedRetryable`` asks for a retry.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Applied:
    """The write changed (or idempotently confirmed) stored state."""


@dataclass(frozen=True)
class SkippedBenign:
    """Nothing was written, on purpose."""

    reason: str


@dataclass(frozen=True)
class FailedRetryable:
    """The write failed and may succeed if the event is processed again."""

    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


WriteOutcome = Union[Applied, SkippedBenign, FailedRetryable]

APPLIED = Applied()
