"""
This file contains shared fixtures for the unit tests.

The unit tests never talk to a cluster: the reconciler runs against the
in-memory FakeStore from tests/fakes.py. Cluster-backed fixtures live in
tests/e2e/conftest.py.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import pytest

from myapp.crds.const import CRD_GROUP, CRD_KIND_MYAPP, CRD_VERSION
from myapp.operator.reconciler import MyAppReconciler, ResourceKey
from tests.fakes import FakeStore

TEST_NAMESPACE = "default"
TEST_APP_NAME = "demo"
DEMO_PORTS = [{"port": 80, "targetPort": 8080, "nodePort": 30080}]


def myapp_manifest(
    name: str = TEST_APP_NAME,
    namespace: str = TEST_NAMESPACE,
    size: int = 2,
    image: str = "nginx:1.25",
    ports: Optional[List[Dict[str, Any]]] = None,
    **metadata: Any,
) -> Dict[str, Any]:
    return {
        "apiVersion": f"{CRD_GROUP}/{CRD_VERSION}",
        "kind": CRD_KIND_MYAPP,
        "metadata": {"name": name, "namespace": namespace, **metadata},
        "spec": {
            "size": size,
            "image": image,
            "ports": DEMO_PORTS if ports is None else ports,
        },
    }


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests.myapp")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def reconciler(store: FakeStore, logger: logging.Logger) -> MyAppReconciler:
    return MyAppReconciler(store, logger, requeue_delay=60)


@pytest.fixture
def demo_key() -> ResourceKey:
    return ResourceKey(TEST_NAMESPACE, TEST_APP_NAME)


@pytest.fixture
def make_app(store: FakeStore) -> Callable[..., Dict[str, Any]]:
    """Seed a MyApp into the fake store and return the stored body."""

    def _make(**kwargs: Any) -> Dict[str, Any]:
        return store.add(myapp_manifest(**kwargs))

    return _make
