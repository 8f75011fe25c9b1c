"""
Outcomes of a reconciliation pass.

The core never signals a requeue by raising. Every step returns a `Result`
and the kopf handler turns it into the matching retry behaviour.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Outcome(str, Enum):
    DONE = "Done"
    REQUEUE_AFTER = "RequeueAfter"
    REQUEUE = "RequeueImmediate"
    ERROR = "Error"


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    delay: Optional[float] = None
    error: Optional[Exception] = None

    def __post_init__(self) -> None:
        if self.outcome is Outcome.ERROR and self.error is None:
            raise ValueError("An Error result must carry the exception that caused it.")

    @classmethod
    def done(cls) -> "Result":
        return cls(Outcome.DONE)

    @classmethod
    def requeue_after(cls, delay: float) -> "Result":
        return cls(Outcome.REQUEUE_AFTER, delay=delay)

    @classmethod
    def requeue(cls) -> "Result":
        return cls(Outcome.REQUEUE)

    @classmethod
    def failed(cls, error: Exception) -> "Result":
        return cls(Outcome.ERROR, error=error)

    @property
    def is_done(self) -> bool:
        return self.outcome is Outcome.DONE

    def __str__(self) -> str:
        if self.outcome is Outcome.REQUEUE_AFTER:
            return f"{self.outcome.value}({self.delay}s)"
        if self.outcome is Outcome.ERROR:
            return f"{self.outcome.value}({self.error})"
        return self.outcome.value
