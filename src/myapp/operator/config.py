"""Operator settings read from the environment."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _parse_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{key} must not be negative, got {raw!r}")
    return value


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")
    if value < 1:
        raise ValueError(f"{key} must be at least 1, got {raw!r}")
    return value


def _parse_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    if raw.strip().lower() in _TRUTHY:
        return True
    if raw.strip().lower() in _FALSY:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class OperatorConfig:
    # Delay before re-checking a freshly created Deployment or Service.
    requeue_delay: float = 60.0
    # Seconds between periodic passes that correct drift in the managed objects.
    resync_interval: float = 60.0
    # The default kopf worker limit is unbounded, which can flood the API
    # server on restart.
    worker_limit: int = 1
    # Posting every log line as a k8s Event adds a lot of API load.
    posting_enabled: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "OperatorConfig":
        env = os.environ if env is None else env
        return cls(
            requeue_delay=_parse_float(env, "MYAPP_REQUEUE_DELAY", cls.requeue_delay),
            resync_interval=_parse_float(env, "MYAPP_RESYNC_INTERVAL", cls.resync_interval),
            worker_limit=_parse_int(env, "MYAPP_WORKER_LIMIT", cls.worker_limit),
            posting_enabled=_parse_bool(env, "MYAPP_POSTING_ENABLED", cls.posting_enabled),
        )
