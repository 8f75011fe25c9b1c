"""
Deletion lifecycle of a MyApp.

A MyApp carrying our finalizer cannot be removed by the API server until the
operator has deleted the Deployment and Service it owns. The states are:

    ACTIVE       no deletionTimestamp
    TERMINATING  deletionTimestamp set, finalizer still present
    FINALIZED    deletionTimestamp set, finalizer removed

Every step is safe to repeat: deletes ignore NotFound and the finalizer is
only removed once both deletes have succeeded.
"""
import logging
from enum import Enum
from typing import Optional

from ..crds.const import CONDITION_UNAVAILABLE, FINALIZER
from ..crds.errors import ConflictError, NotFoundError, ReconcileError, StoreError
from ..crds.myapp import MyApp
from .applier import MANAGED_KINDS
from .conditions import STATUS_FALSE, STATUS_TRUE
from .results import Result
from .status import update_status_condition
from .store import Store


class LifecycleState(str, Enum):
    ACTIVE = "Active"
    TERMINATING = "Terminating"
    FINALIZED = "Finalized"


def lifecycle_state(app: MyApp) -> LifecycleState:
    if not app.is_being_deleted():
        return LifecycleState.ACTIVE
    if app.has_finalizer(FINALIZER):
        return LifecycleState.TERMINATING
    return LifecycleState.FINALIZED


class FinalizerLifecycle:
    def __init__(self, store: Store, logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def finalize(self, app: MyApp) -> Result:
        """Run cleanup for a MyApp marked for deletion and release its finalizer."""
        if lifecycle_state(app) is not LifecycleState.TERMINATING:
            return Result.done()

        namespace, name = app.namespace, app.name
        self.logger.info(f"Performing finalizer operations for MyApp '{namespace}/{name}'.")
        try:
            update_status_condition(
                self.store,
                app,
                CONDITION_UNAVAILABLE,
                STATUS_FALSE,
                reason="MarkedForDeletion",
                message=f"Performing finalizer operations for MyApp ({name})",
            )

            self.cleanup(app)

            app = self.store.get_app(namespace, name)

            app = update_status_condition(
                self.store,
                app,
                CONDITION_UNAVAILABLE,
                STATUS_TRUE,
                reason="CleanupComplete",
                message=f"Finalizer operations for MyApp ({name}) completed successfully",
            )

            if app.remove_finalizer(FINALIZER):
                self.logger.info(f"Removing finalizer from MyApp '{namespace}/{name}'.")
                self.store.update_app(app)
        except NotFoundError:
            self.logger.info(f"MyApp '{namespace}/{name}' disappeared during finalization.")
            return Result.done()
        except ConflictError as e:
            self.logger.warning(f"Conflict while finalizing MyApp '{namespace}/{name}': {e}")
            return Result.requeue()
        except (StoreError, ReconcileError) as e:
            self.logger.error(f"Failed to finalize MyApp '{namespace}/{name}': {e}")
            return Result.failed(e)

        return Result.done()

    def cleanup(self, app: MyApp) -> None:
        """Delete every object the MyApp owns. Absent objects are skipped."""
        for managed in MANAGED_KINDS:
            name = managed.identity(app)
            try:
                self.store.delete(managed.kind, app.namespace, name)
                self.logger.info(f"Deleted {managed.kind} '{app.namespace}/{name}'.")
            except NotFoundError:
                self.logger.info(f"{managed.kind} '{app.namespace}/{name}' already deleted.")
            except StoreError as e:
                raise ReconcileError(managed.kind, app.namespace, name, e) from e
