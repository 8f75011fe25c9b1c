"""
Cluster-backed fixtures for the end-to-end tests.

These tests need a reachable cluster from the local kubeconfig and are
skipped unless MYAPP_E2E=1 is set.
"""

import asyncio
import os
import threading
import time
import uuid
from typing import cast

import kopf
import pytest
from kubernetes import client, config, utils

# Unique namespace per session so concurrent runs do not collide.
TEST_NAMESPACE = f"myapp-test-{uuid.uuid4().hex[:8]}"

if os.getenv("MYAPP_TEST_NAMESPACE"):
    TEST_NAMESPACE = cast(str, os.getenv("MYAPP_TEST_NAMESPACE"))

CRD_NAME = "myapps.echoh.wonderscloud.com"
CRD_FILE = "crds/echoh.wonderscloud.com_myapps.yaml"


@pytest.fixture(scope="session", autouse=True)
def apply_crds():
    """
    Apply the MyApp CRD and create the test namespace before any e2e test runs,
    then delete the namespace once the session is complete.
    """
    if os.getenv("MYAPP_E2E") != "1":
        pytest.skip("set MYAPP_E2E=1 to run the end-to-end tests")

    config.load_kube_config()
    k8s_client = client.ApiClient()
    core_v1 = client.CoreV1Api()

    try:
        print("🔎 Attempting to connect to Kubernetes API...")
        core_v1.list_namespace(limit=1, _request_timeout=2)
        print("✅ Kubernetes API connection successful.")
    except Exception as e:
        pytest.fail(
            "❌ Could not connect to Kubernetes API. "
            "Please ensure your kubeconfig is correct and the cluster is running.\n"
            f"   Error: {e}",
            pytrace=False,
        )

    try:
        core_v1.create_namespace(
            client.V1Namespace(metadata=client.V1ObjectMeta(name=TEST_NAMESPACE))
        )
        print(f"✅ Created unique test namespace: {TEST_NAMESPACE}")
    except client.ApiException as e:
        if e.status != 409:
            raise
        print(f"ℹ️ Test namespace already exists: {TEST_NAMESPACE}")

    print("🔧 Applying MyApp CRD...")
    utils.create_from_yaml(k8s_client, CRD_FILE, apply=True)
    # The API server needs a moment before it serves a freshly applied CRD.
    time.sleep(2)
    print("✅ CRD applied successfully")

    yield

    print("🧹 Cleaning up test resources...")
    try:
        core_v1.delete_namespace(name=TEST_NAMESPACE)
        print(f"✅ Deleted test namespace: {TEST_NAMESPACE}")
    except client.ApiException as e:
        if e.status != 404:
            raise

    # CRDs are left in place between runs unless asked otherwise.
    if os.getenv("CLEANUP_CRDS", "false").lower() == "true":
        try:
            client.ApiextensionsV1Api().delete_custom_resource_definition(name=CRD_NAME)
            print(f"✅ Deleted CRD: {CRD_NAME}")
        except client.ApiException as e:
            if e.status != 404:
                print(f"⚠️ Failed to delete CRD {CRD_NAME}: {e}")

    print("🏁 Cleanup completed")


@pytest.fixture(scope="session")
def test_namespace() -> str:
    return TEST_NAMESPACE


@pytest.fixture(scope="session")
def k8s_clients():
    config.load_kube_config()
    return {
        "apps_v1": client.AppsV1Api(),
        "core_v1": client.CoreV1Api(),
        "custom_objects_api": client.CustomObjectsApi(),
    }


@pytest.fixture(scope="session")
def operator_runner():
    """
    Run the operator in a daemon thread for the whole session, watching only
    the test namespace.
    """
    os.environ["MYAPP_REQUEUE_DELAY"] = "2"

    # Registers the handlers with the default registry.
    import myapp.operator  # noqa: F401

    # CONFIG is read at import time; make sure the short delay applies.
    from myapp.operator import operator as operator_module
    from myapp.operator.config import OperatorConfig

    operator_module.CONFIG = OperatorConfig.from_env()

    def run_operator():
        config.load_kube_config()

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            print(f"🚀 Starting operator in namespace: {TEST_NAMESPACE}")
            loop.run_until_complete(
                kopf.operator(
                    registry=kopf.get_default_registry(),
                    priority=0,
                    namespaces=[TEST_NAMESPACE],
                )
            )
        finally:
            loop.close()

    operator_thread = threading.Thread(target=run_operator, daemon=True)
    operator_thread.start()

    print("⏳ Waiting for operator to start...")
    time.sleep(5)
    print("✅ Operator running!")

    yield

    print("🏁 Test session ending, tearing down operator...")
