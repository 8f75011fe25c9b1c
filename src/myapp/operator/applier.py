"""
Create-or-converge logic for the objects a MyApp owns.

`ConvergenceApplier.ensure` is the same for every managed kind. What differs
per kind (its identity, how to build it, which fields the controller owns)
is described by a `ManagedKind`.
"""
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import kopf

from ..crds.const import CONDITION_AVAILABLE
from ..crds.errors import (
    AlreadyExistsError,
    ConflictError,
    InvariantViolation,
    NotFoundError,
    OwnerReferenceError,
    ReconcileError,
    StoreError,
)
from ..crds.myapp import MyApp
from .conditions import STATUS_FALSE
from .resources import build_deployment, build_service, deployment_name, service_name
from .results import Result
from .status import update_status_condition
from .store import EXPOSURE, WORKLOAD, Store

FieldPath = Tuple[Any, ...]
Changes = Dict[FieldPath, Any]

DEFAULT_REQUEUE_DELAY = 60.0


@dataclass(frozen=True)
class ManagedKind:
    kind: str
    identity: Callable[[MyApp], str]
    build: Callable[[MyApp], Dict[str, Any]]
    # Returns the controller-owned fields of `existing` that differ from the
    # MyApp spec, keyed by path, with the desired values.
    diff: Callable[[Dict[str, Any], MyApp], Changes]


def _workload_diff(existing: Dict[str, Any], app: MyApp) -> Changes:
    spec = app.parsed_spec()
    changes: Changes = {}
    if existing.get("spec", {}).get("replicas") != spec.size:
        changes[("spec", "replicas")] = spec.size
    containers = existing.get("spec", {}).get("template", {}).get("spec", {}).get("containers") or []
    if containers and containers[0].get("image") != spec.image:
        changes[("spec", "template", "spec", "containers", 0, "image")] = spec.image
    return changes


def _exposure_diff(existing: Dict[str, Any], app: MyApp) -> Changes:
    # The Service is create-once.
    return {}


WORKLOAD_KIND = ManagedKind(
    kind=WORKLOAD,
    identity=deployment_name,
    build=build_deployment,
    diff=_workload_diff,
)

EXPOSURE_KIND = ManagedKind(
    kind=EXPOSURE,
    identity=service_name,
    build=build_service,
    diff=_exposure_diff,
)

MANAGED_KINDS = (WORKLOAD_KIND, EXPOSURE_KIND)


class Action(str, Enum):
    CREATED = "Created"
    UNCHANGED = "Unchanged"
    UPDATED = "Updated"
    CONFLICT = "Conflict"
    FAILED = "Failed"


@dataclass(frozen=True)
class EnsureResult:
    action: Action
    result: Result


def _set_path(obj: Any, path: FieldPath, value: Any) -> None:
    target = obj
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value


def adopt(obj: Dict[str, Any], app: MyApp) -> None:
    """Set the MyApp as the controlling owner of `obj`."""
    if not app.metadata.uid:
        raise OwnerReferenceError(
            f"MyApp '{app.namespace}/{app.name}' has no uid, cannot own {obj.get('kind')}."
        )
    kopf.append_owner_reference(obj, owner=app.to_dict())


class ConvergenceApplier:
    """
    Brings one managed object of a MyApp in line with its spec.

    Every call re-reads the object from the store, so it is safe to call
    again after a partial failure or an abandoned pass.
    """

    def __init__(
        self,
        store: Store,
        logger: Optional[logging.Logger] = None,
        requeue_delay: float = DEFAULT_REQUEUE_DELAY,
    ) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.requeue_delay = requeue_delay

    def ensure(self, app: MyApp, managed: ManagedKind) -> EnsureResult:
        namespace = app.namespace
        name = managed.identity(app)
        try:
            existing = self.store.get(managed.kind, namespace, name)
        except NotFoundError:
            return self._create(app, managed, name)
        except StoreError as e:
            self.logger.error(f"Failed to get {managed.kind} '{namespace}/{name}': {e}")
            return EnsureResult(
                Action.FAILED, Result.failed(ReconcileError(managed.kind, namespace, name, e))
            )

        changes = managed.diff(existing, app)
        if not changes:
            return EnsureResult(Action.UNCHANGED, Result.done())
        return self._update(app, managed, existing, changes)

    def _create(self, app: MyApp, managed: ManagedKind, name: str) -> EnsureResult:
        namespace = app.namespace
        try:
            desired = managed.build(app)
            adopt(desired, app)
            self.logger.info(f"Creating a new {managed.kind} '{namespace}/{name}'.")
            self.store.create(desired)
        except AlreadyExistsError:
            # Another pass created it after our read; look again right away.
            self.logger.info(f"{managed.kind} '{namespace}/{name}' already exists, requeueing.")
            return EnsureResult(Action.CONFLICT, Result.requeue())
        except (StoreError, InvariantViolation) as e:
            self.logger.error(f"Failed to create {managed.kind} '{namespace}/{name}': {e}")
            try:
                update_status_condition(
                    self.store,
                    app,
                    CONDITION_AVAILABLE,
                    STATUS_FALSE,
                    reason=f"FailedToCreate{managed.kind}",
                    message=f"Failed to create {managed.kind} for the custom resource ({app.name}): ({e})",
                )
            except StoreError as status_error:
                self.logger.error(f"Failed to update MyApp '{namespace}/{app.name}' status: {status_error}")
                return EnsureResult(Action.FAILED, Result.failed(status_error))
            return EnsureResult(
                Action.FAILED, Result.failed(ReconcileError(managed.kind, namespace, name, e))
            )

        # Creation settles asynchronously in the store, so check back later
        # instead of re-reading straight away.
        return EnsureResult(Action.CREATED, Result.requeue_after(self.requeue_delay))

    def _update(
        self,
        app: MyApp,
        managed: ManagedKind,
        existing: Dict[str, Any],
        changes: Changes,
    ) -> EnsureResult:
        namespace = app.namespace
        name = managed.identity(app)
        patched = copy.deepcopy(existing)
        for path, value in changes.items():
            _set_path(patched, path, value)

        fields = ", ".join(".".join(str(p) for p in path) for path in changes)
        self.logger.info(f"{managed.kind} '{namespace}/{name}' drifted ({fields}), updating.")
        try:
            self.store.update(patched)
        except ConflictError as e:
            self.logger.warning(f"Conflict updating {managed.kind} '{namespace}/{name}': {e}")
            return self._degraded(app, managed, name, e)
        except StoreError as e:
            self.logger.error(f"Failed to update {managed.kind} '{namespace}/{name}': {e}")
            return EnsureResult(
                Action.FAILED, Result.failed(ReconcileError(managed.kind, namespace, name, e))
            )

        # Let the next pass observe the new state before reporting Available.
        return EnsureResult(Action.UPDATED, Result.requeue())

    def _degraded(
        self, app: MyApp, managed: ManagedKind, name: str, error: ConflictError
    ) -> EnsureResult:
        namespace = app.namespace
        try:
            current = self.store.get(managed.kind, namespace, name)
        except NotFoundError:
            self.logger.info(f"{managed.kind} '{namespace}/{name}' disappeared after conflict.")
        except StoreError as e:
            self.logger.error(f"Failed to re-fetch {managed.kind} '{namespace}/{name}': {e}")
            return EnsureResult(
                Action.FAILED, Result.failed(ReconcileError(managed.kind, namespace, name, e))
            )
        else:
            self.logger.info(
                f"{managed.kind} '{namespace}/{name}' is now at resourceVersion "
                f"{current.get('metadata', {}).get('resourceVersion')} with "
                f"{current.get('spec', {}).get('replicas')} replicas."
            )

        try:
            update_status_condition(
                self.store,
                app,
                CONDITION_AVAILABLE,
                STATUS_FALSE,
                reason="Degraded",
                message=f"Failed to update {managed.kind} ({name}): ({error})",
            )
        except StoreError as status_error:
            self.logger.error(f"Failed to update MyApp '{namespace}/{app.name}' status: {status_error}")
            return EnsureResult(Action.FAILED, Result.failed(status_error))
        return EnsureResult(Action.CONFLICT, Result.requeue())
