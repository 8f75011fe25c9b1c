import time
from typing import Any, Callable, Optional, TypeVar

import pytest
from kubernetes import client

from myapp.crds.const import CRD_GROUP, CRD_PLURAL_MYAPP, CRD_VERSION

# Constants for polling
POLL_INTERVAL = 0.5


T = TypeVar("T")


def wait_for(
    callable: Callable[[], T],
    timeout: int = 30,
    interval: float = POLL_INTERVAL,
    failure_message: str = "Condition not met within timeout",
) -> T:
    """
    Generic wait utility that polls a callable until it returns a truthy value
    or a timeout is reached.
    The callable is responsible for handling exceptions and returning a falsy
    value if the condition is not yet met.
    Args:
        callable: A function that is polled. If it returns a truthy value,
                  the wait is considered successful.
        timeout: Total time to wait in seconds.
        interval: Time to sleep between polls in seconds.
        failure_message: The message for pytest.fail if the timeout is reached.
    Returns:
        The truthy value returned by the callable.
    """
    start_time = time.time()
    while time.time() - start_time < timeout:
        result = callable()
        if result:
            return result
        time.sleep(interval)
    pytest.fail(failure_message)


def _read_or_none(read: Callable[[], Any]) -> Optional[Any]:
    try:
        return read()
    except client.ApiException as e:
        if e.status == 404:
            return None
        raise


def _get_myapp(custom_objects_api: client.CustomObjectsApi, name: str, namespace: str) -> Any:
    return custom_objects_api.get_namespaced_custom_object(
        group=CRD_GROUP,
        version=CRD_VERSION,
        namespace=namespace,
        plural=CRD_PLURAL_MYAPP,
        name=name,
    )


def wait_for_deployment_to_exist(
    apps_v1_api: client.AppsV1Api, name: str, namespace: str, timeout: int = 30
) -> Any:
    """Waits for a Deployment to exist and returns it."""
    print(f"⏳ Waiting for deployment '{name}' to be created by operator...")
    deployment = wait_for(
        lambda: _read_or_none(
            lambda: apps_v1_api.read_namespaced_deployment(name=name, namespace=namespace)
        ),
        timeout=timeout,
        failure_message=f"Deployment '{name}' did not appear within {timeout} seconds.",
    )
    print(f"✅ Deployment '{name}' found.")
    return deployment


def wait_for_deployment_replicas(
    apps_v1_api: client.AppsV1Api, name: str, namespace: str, replicas: int, timeout: int = 30
) -> Any:
    """Waits for a Deployment's desired replica count to match."""
    print(f"⏳ Waiting for deployment '{name}' to request {replicas} replicas...")

    def check():
        deployment = _read_or_none(
            lambda: apps_v1_api.read_namespaced_deployment(name=name, namespace=namespace)
        )
        if deployment is not None and deployment.spec.replicas == replicas:
            return deployment
        return None

    return wait_for(
        check,
        timeout=timeout,
        failure_message=f"Deployment '{name}' did not reach {replicas} replicas within {timeout} seconds.",
    )


def wait_for_service_to_exist(
    core_v1_api: client.CoreV1Api, name: str, namespace: str, timeout: int = 30
) -> Any:
    """Waits for a Service to exist and returns it."""
    print(f"⏳ Waiting for service '{name}' to be created by operator...")
    service = wait_for(
        lambda: _read_or_none(
            lambda: core_v1_api.read_namespaced_service(name=name, namespace=namespace)
        ),
        timeout=timeout,
        failure_message=f"Service '{name}' did not appear within {timeout} seconds.",
    )
    print(f"✅ Service '{name}' found.")
    return service


def wait_for_myapp_condition(
    custom_objects_api: client.CustomObjectsApi,
    name: str,
    namespace: str,
    type: str = "Available",
    status: str = "True",
    timeout: int = 60,
) -> Any:
    """
    Waits for a MyApp condition of the given type to report the given status.
    """
    print(f"⏳ Waiting for MyApp '{name}' condition {type}={status}...")

    def check():
        app = _read_or_none(lambda: _get_myapp(custom_objects_api, name, namespace))
        if app is None:
            return None
        for condition in app.get("status", {}).get("conditions", []):
            if condition.get("type") == type and condition.get("status") == status:
                return app
        return None

    app = wait_for(
        check,
        timeout=timeout,
        failure_message=f"MyApp '{name}' did not report {type}={status} within {timeout} seconds.",
    )
    print(f"✅ MyApp '{name}' reports {type}={status}.")
    return app


def wait_for_myapp_to_be_deleted(
    custom_objects_api: client.CustomObjectsApi,
    name: str,
    namespace: str,
    timeout: int = 60,
):
    """Waits for a MyApp to be deleted."""
    print(f"⏳ Waiting for MyApp '{name}' to be deleted...")
    wait_for(
        lambda: _read_or_none(lambda: _get_myapp(custom_objects_api, name, namespace)) is None,
        timeout=timeout,
        failure_message=f"MyApp '{name}' was not deleted within {timeout} seconds.",
    )
    print(f"✅ MyApp '{name}' deleted.")
