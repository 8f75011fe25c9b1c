"""
Store access for the MyApp reconciler.

The reconciler only talks to the cluster through the `Store` interface so it
can run against the in-memory fake in the tests. `KubernetesStore` is the
production implementation on top of the official kubernetes client. Objects
cross this boundary as API body dicts with camelCase keys, the same shape the
builders produce.
"""
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..crds.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from ..crds.myapp import MyApp

WORKLOAD = "Deployment"
EXPOSURE = "Service"


class Store(Protocol):
    def get_app(self, namespace: str, name: str) -> MyApp: ...

    def update_app(self, app: MyApp) -> MyApp: ...

    def update_app_status(self, app: MyApp) -> MyApp: ...

    def get(self, kind: str, namespace: str, name: str) -> Dict[str, Any]: ...

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]: ...

    def update(self, obj: Dict[str, Any]) -> Dict[str, Any]: ...

    def delete(self, kind: str, namespace: str, name: str) -> None: ...


def translate_api_exception(
    e: ApiException, kind: str, namespace: str, name: str, verb: str
) -> StoreError:
    """Map an ApiException onto the store error taxonomy."""
    target = f"{kind} '{namespace}/{name}'"
    if e.status == 404:
        return NotFoundError(f"{target} not found.", status=e.status)
    if e.status == 409 and verb == "create":
        return AlreadyExistsError(f"{target} already exists.", status=e.status)
    if e.status == 409:
        return ConflictError(
            f"{target} was modified concurrently, {verb} rejected.", status=e.status
        )
    return StoreError(f"Failed to {verb} {target}: {e.reason}", status=e.status)


class KubernetesStore:
    """Store backed by the Kubernetes API server."""

    # kind -> (api attribute, method suffix)
    _KINDS: Dict[str, Tuple[str, str]] = {
        WORKLOAD: ("apps_v1_api", "namespaced_deployment"),
        EXPOSURE: ("core_v1_api", "namespaced_service"),
    }

    def __init__(
        self,
        custom_objects_api: Optional[client.CustomObjectsApi] = None,
        apps_v1_api: Optional[client.AppsV1Api] = None,
        core_v1_api: Optional[client.CoreV1Api] = None,
        api_client: Optional[client.ApiClient] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.custom_objects_api = custom_objects_api if custom_objects_api is not None else client.CustomObjectsApi()
        self.apps_v1_api = apps_v1_api if apps_v1_api is not None else client.AppsV1Api()
        self.core_v1_api = core_v1_api if core_v1_api is not None else client.CoreV1Api()
        self.api_client = api_client if api_client is not None else client.ApiClient()
        self.logger = logger or logging.getLogger(__name__)

    # --- MyApp custom resources ---

    def get_app(self, namespace: str, name: str) -> MyApp:
        data = self._call(
            self.custom_objects_api.get_namespaced_custom_object,
            (MyApp.kind, namespace, name), "get",
            group=MyApp.group,
            version=MyApp.version,
            namespace=namespace,
            plural=MyApp.plural,
            name=name,
        )
        return MyApp.from_dict(data)  # type: ignore[return-value]

    def update_app(self, app: MyApp) -> MyApp:
        data = self._call(
            self.custom_objects_api.replace_namespaced_custom_object,
            (MyApp.kind, app.namespace, app.name), "update",
            group=MyApp.group,
            version=MyApp.version,
            namespace=app.namespace,
            plural=MyApp.plural,
            name=app.name,
            body=app.to_dict(),
        )
        return MyApp.from_dict(data)  # type: ignore[return-value]

    def update_app_status(self, app: MyApp) -> MyApp:
        data = self._call(
            self.custom_objects_api.replace_namespaced_custom_object_status,
            (MyApp.kind, app.namespace, app.name), "update status of",
            group=MyApp.group,
            version=MyApp.version,
            namespace=app.namespace,
            plural=MyApp.plural,
            name=app.name,
            body=app.to_dict(),
        )
        return MyApp.from_dict(data)  # type: ignore[return-value]

    # --- Managed objects ---

    def get(self, kind: str, namespace: str, name: str) -> Dict[str, Any]:
        read = self._method(kind, "read")
        obj = self._call(read, (kind, namespace, name), "get", name=name, namespace=namespace)
        return self._to_dict(obj)

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        kind, namespace, name = self._identity(obj)
        create = self._method(kind, "create")
        created = self._call(create, (kind, namespace, name), "create", namespace=namespace, body=obj)
        self.logger.debug(f"{kind} '{namespace}/{name}' created.")
        return self._to_dict(created)

    def update(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        kind, namespace, name = self._identity(obj)
        replace = self._method(kind, "replace")
        updated = self._call(
            replace, (kind, namespace, name), "update", name=name, namespace=namespace, body=obj
        )
        return self._to_dict(updated)

    def delete(self, kind: str, namespace: str, name: str) -> None:
        delete = self._method(kind, "delete")
        self._call(
            delete, (kind, namespace, name), "delete",
            name=name,
            namespace=namespace,
            body=client.V1DeleteOptions(propagation_policy="Background"),
        )

    # --- helpers ---

    def _method(self, kind: str, verb: str) -> Callable[..., Any]:
        try:
            api_attr, suffix = self._KINDS[kind]
        except KeyError:
            raise ValueError(f"Unsupported kind: {kind}")
        return getattr(getattr(self, api_attr), f"{verb}_{suffix}")

    def _call(
        self,
        method: Callable[..., Any],
        target: Tuple[str, str, str],
        verb: str,
        **kwargs: Any,
    ) -> Any:
        # `target` is (kind, namespace, name) of the object, for error messages.
        try:
            return method(**kwargs)
        except ApiException as e:
            raise translate_api_exception(e, *target, verb) from e

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    @staticmethod
    def _identity(obj: Dict[str, Any]) -> Tuple[str, str, str]:
        meta = obj["metadata"]
        return obj["kind"], meta["namespace"], meta["name"]
