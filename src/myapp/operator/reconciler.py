"""
Kubernetes resource reconciliation for MyApp resources.
"""
import logging
from typing import NamedTuple, Optional

from ..crds.const import CONDITION_AVAILABLE, FINALIZER
from ..crds.errors import (
    ConflictError,
    InvalidSpecError,
    NotFoundError,
    ReconcileError,
    StoreError,
)
from ..crds.myapp import MyApp
from .applier import DEFAULT_REQUEUE_DELAY, MANAGED_KINDS, ConvergenceApplier
from .conditions import STATUS_FALSE, STATUS_TRUE, STATUS_UNKNOWN
from .finalizer import FinalizerLifecycle
from .results import Outcome, Result
from .status import update_status_condition
from .store import Store


class ResourceKey(NamedTuple):
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class MyAppReconciler:
    """
    Drives the Deployment and Service of a MyApp toward its spec.

    One call to `reconcile` is one pass. It holds no state between passes;
    everything it needs is read back from the store, and the returned
    `Result` tells the caller when to run the next one.
    """

    def __init__(
        self,
        store: Store,
        logger: Optional[logging.Logger] = None,
        requeue_delay: float = DEFAULT_REQUEUE_DELAY,
    ) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.applier = ConvergenceApplier(store, self.logger, requeue_delay)
        self.finalizer = FinalizerLifecycle(store, self.logger)

    def reconcile(self, key: ResourceKey) -> Result:
        result = self._reconcile(key)
        if result.outcome is Outcome.ERROR and _is_conflict(result.error):
            # A stale write is retried against a fresh read, never reported.
            self.logger.info(f"MyApp '{key}' hit a write conflict, requeueing.")
            return Result.requeue()
        return result

    def _reconcile(self, key: ResourceKey) -> Result:
        try:
            app = self.store.get_app(key.namespace, key.name)
        except NotFoundError:
            self.logger.info(f"MyApp '{key}' not found, it has been deleted.")
            return Result.done()
        except StoreError as e:
            self.logger.error(f"Failed to get MyApp '{key}': {e}")
            return Result.failed(ReconcileError(MyApp.kind, key.namespace, key.name, e))

        try:
            app = self._prepare(app)
        except NotFoundError:
            self.logger.info(f"MyApp '{key}' disappeared during reconciliation.")
            return Result.done()
        except StoreError as e:
            self.logger.error(f"Failed to prepare MyApp '{key}': {e}")
            return Result.failed(e)

        if app.is_being_deleted():
            return self.finalizer.finalize(app)

        try:
            spec = app.parsed_spec()
        except InvalidSpecError as e:
            return self._invalid_spec(app, e)

        for managed in MANAGED_KINDS:
            ensured = self.applier.ensure(app, managed)
            self.logger.debug(f"{managed.kind} for MyApp '{key}': {ensured.action.value}")
            if not ensured.result.is_done:
                return ensured.result

        try:
            update_status_condition(
                self.store,
                app,
                CONDITION_AVAILABLE,
                STATUS_TRUE,
                reason="Reconciled",
                message=f"Deployment for custom resource ({app.name}) with {spec.size} replicas created successfully",
            )
        except NotFoundError:
            return Result.done()
        except StoreError as e:
            self.logger.error(f"Failed to update MyApp '{key}' status: {e}")
            return Result.failed(e)
        return Result.done()

    def _prepare(self, app: MyApp) -> MyApp:
        """Initialize the status and make sure our finalizer is in place."""
        if not app.conditions:
            update_status_condition(
                self.store,
                app,
                CONDITION_AVAILABLE,
                STATUS_UNKNOWN,
                reason="Initializing",
                message="Starting reconciliation",
            )
            # The status write bumped the resourceVersion.
            app = self.store.get_app(app.namespace, app.name)

        if not app.is_being_deleted() and app.add_finalizer(FINALIZER):
            self.logger.info(f"Adding finalizer to MyApp '{app.namespace}/{app.name}'.")
            app = self.store.update_app(app)
        return app

    def _invalid_spec(self, app: MyApp, error: InvalidSpecError) -> Result:
        self.logger.error(f"MyApp '{app.namespace}/{app.name}' has an invalid spec: {error}")
        try:
            update_status_condition(
                self.store,
                app,
                CONDITION_AVAILABLE,
                STATUS_FALSE,
                reason="InvalidSpec",
                message=str(error),
            )
        except StoreError as e:
            return Result.failed(e)
        return Result.failed(ReconcileError(MyApp.kind, app.namespace, app.name, error))


def _is_conflict(error: Optional[Exception]) -> bool:
    if isinstance(error, ReconcileError):
        error = error.cause
    return isinstance(error, ConflictError)
