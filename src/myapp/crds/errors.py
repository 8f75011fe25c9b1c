"""
Exception types shared by the MyApp store, reconciler and operator.
"""
from typing import Optional


class MyAppError(Exception):
    """Base exception for all MyApp operator errors."""
    pass


class KubeConfigError(MyAppError):
    """Raised when the Kubernetes configuration cannot be loaded."""
    pass


class StoreError(MyAppError):
    """A store call failed for a reason the caller should retry with backoff."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(StoreError):
    pass


class AlreadyExistsError(StoreError):
    pass


class ConflictError(StoreError):
    """The write was based on a stale resourceVersion."""
    pass


class InvariantViolation(MyAppError):
    """A precondition the controller relies on does not hold."""
    pass


class OwnerReferenceError(InvariantViolation):
    pass


class InvalidSpecError(InvariantViolation):
    pass


class ReconcileError(MyAppError):
    """Wraps a failure of a primary reconciliation step with the object it concerned."""

    def __init__(self, kind: str, namespace: str, name: str, cause: Exception) -> None:
        super().__init__(f"{kind} '{namespace}/{name}': {cause}")
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.cause = cause
