"""
Status conditions for MyApp resources.

A condition list is treated as an immutable value: `set_condition` returns a
new tuple and leaves its input alone. Conditions are keyed by type and keep
their insertion order; the transition time only moves when the status, reason
or message of a condition actually changes.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

_VALID_STATUSES = (STATUS_TRUE, STATUS_FALSE, STATUS_UNKNOWN)


@dataclass(frozen=True)
class Condition:
    type: str
    status: str
    reason: str
    message: str = ""
    last_transition_time: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        return cls(
            type=data["type"],
            status=data.get("status", STATUS_UNKNOWN),
            reason=data.get("reason", ""),
            message=data.get("message", ""),
            last_transition_time=data.get("lastTransitionTime", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
            "lastTransitionTime": self.last_transition_time,
        }


Conditions = Tuple[Condition, ...]


def format_timestamp(when: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp with second precision."""
    return when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def set_condition(
    conditions: Sequence[Condition],
    type: str,
    status: str,
    reason: str,
    message: str = "",
    now: Optional[datetime] = None,
) -> Conditions:
    """
    Set the condition of the given type.

    Args:
        conditions: Current condition list. Not modified.
        type: Condition type, the lookup key.
        status: One of "True", "False" or "Unknown".
        reason: CamelCase reason for the last transition.
        message: Human readable detail.
        now: Transition time to record. Defaults to the current time.

    Returns:
        The new condition tuple. If a condition of that type already carries
        the same status, reason and message, the original entries are returned
        unchanged, transition time included.
    """
    if status not in _VALID_STATUSES:
        raise ValueError(f"Invalid condition status: {status!r}")

    current = tuple(conditions)
    existing = find_condition(current, type)
    if (
        existing is not None
        and existing.status == status
        and existing.reason == reason
        and existing.message == message
    ):
        return current

    timestamp = format_timestamp(now or datetime.now(timezone.utc))
    if existing is None:
        return current + (Condition(type, status, reason, message, timestamp),)

    updated = replace(
        existing,
        status=status,
        reason=reason,
        message=message,
        last_transition_time=timestamp,
    )
    return tuple(updated if c.type == type else c for c in current)


def find_condition(conditions: Iterable[Condition], type: str) -> Optional[Condition]:
    for condition in conditions:
        if condition.type == type:
            return condition
    return None


def is_condition_true(conditions: Iterable[Condition], type: str) -> bool:
    condition = find_condition(conditions, type)
    return condition is not None and condition.status == STATUS_TRUE


def conditions_from_status(status: Dict[str, Any]) -> Conditions:
    return tuple(Condition.from_dict(c) for c in status.get("conditions") or [])


def conditions_to_status(conditions: Iterable[Condition]) -> list:
    return [c.to_dict() for c in conditions]
