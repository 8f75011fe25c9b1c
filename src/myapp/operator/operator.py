"""
Kubernetes operator for MyApp custom resources.

This module contains the Kopf handlers for the MyApp CRD. The handlers are
kept thin and delegate to specialized modules for:
- Resource building (resources/)
- Create-or-converge of managed objects (applier.py)
- Deletion cleanup (finalizer.py)
- The reconciliation pass itself (reconciler.py)

A resync timer re-runs the same pass periodically, since edits to the
Deployment or Service alone raise no MyApp event.
"""
import asyncio
import logging
from typing import Any, cast

import kopf
from kubernetes import config

from ..crds.const import CRD_GROUP, CRD_PLURAL_MYAPP, CRD_VERSION
from ..crds.errors import KubeConfigError
from .config import OperatorConfig
from .reconciler import MyAppReconciler, ResourceKey
from .results import Outcome, Result
from .store import KubernetesStore

CONFIG = OperatorConfig.from_env()


def load_client_config(logger: logging.Logger) -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
        logger.info("Using in-cluster Kubernetes configuration.")
        return
    except config.ConfigException:
        pass
    try:
        config.load_kube_config()
        logger.info("Using local kubeconfig.")
    except config.ConfigException as e:
        raise KubeConfigError(f"Could not configure Kubernetes client: {e}") from e


@kopf.on.startup()
async def on_startup(
    settings: kopf.OperatorSettings, logger: logging.Logger, **kwargs: Any
) -> None:
    """
    Handle the startup of the operator.

    This loads the Kubernetes client configuration and sets operator-wide
    settings.
    """
    try:
        load_client_config(logger)
    except KubeConfigError as e:
        logger.error(str(e))
        raise kopf.PermanentError("Could not configure Kubernetes client.") from e

    settings.batching.worker_limit = CONFIG.worker_limit
    settings.posting.enabled = CONFIG.posting_enabled
    logger.info("Operator started.")


def raise_for_result(result: Result) -> None:
    """Translate a reconcile result into Kopf's retry semantics."""
    if result.outcome is Outcome.DONE:
        return
    if result.outcome is Outcome.REQUEUE_AFTER:
        raise kopf.TemporaryError(f"Requeue after {result.delay}s.", delay=result.delay)
    if result.outcome is Outcome.REQUEUE:
        raise kopf.TemporaryError("Requeue immediately.", delay=0)
    # Errors go back to Kopf as-is so that its own backoff applies.
    raise cast(Exception, result.error)


async def run_pass(
    name: str, namespace: str, logger: logging.Logger, memo: kopf.Memo
) -> Result:
    """
    Run one reconciliation pass for a MyApp.

    Passes for the same MyApp never overlap: the change handlers and the
    resync timer share a lock kept in the object's memo.
    """
    lock = memo.setdefault("reconcile_lock", asyncio.Lock())
    async with lock:
        reconciler = MyAppReconciler(
            KubernetesStore(logger=logger),
            logger,
            requeue_delay=CONFIG.requeue_delay,
        )
        # The reconciler blocks on API calls; keep it off the event loop.
        result = await asyncio.to_thread(reconciler.reconcile, ResourceKey(namespace, name))
    logger.info(f"Reconciled MyApp '{namespace}/{name}': {result}")
    return result


# The delete handler is not optional: Kopf's own finalizer holds a deleting
# MyApp until this handler has run and released ours.
@kopf.on.resume(CRD_GROUP, CRD_VERSION, CRD_PLURAL_MYAPP)
@kopf.on.create(CRD_GROUP, CRD_VERSION, CRD_PLURAL_MYAPP)
@kopf.on.update(CRD_GROUP, CRD_VERSION, CRD_PLURAL_MYAPP)
@kopf.on.delete(CRD_GROUP, CRD_VERSION, CRD_PLURAL_MYAPP)
async def reconcile_myapp(
    name: str,
    namespace: str,
    logger: logging.Logger,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    raise_for_result(await run_pass(name, namespace, logger, memo))


# Changes to the Deployment or Service alone do not touch the MyApp, so drift
# in them is picked up by a periodic pass.
@kopf.timer(
    CRD_GROUP,
    CRD_VERSION,
    CRD_PLURAL_MYAPP,
    interval=CONFIG.resync_interval,
    initial_delay=CONFIG.resync_interval,
)
async def resync_myapp(
    name: str,
    namespace: str,
    logger: logging.Logger,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    result = await run_pass(name, namespace, logger, memo)
    # Requeues are covered by the next tick; only errors go back to Kopf.
    if result.outcome is Outcome.ERROR:
        raise_for_result(result)
