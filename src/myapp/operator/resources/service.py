from typing import Any, Dict

from ...crds.errors import InvalidSpecError
from ...crds.myapp import MyApp
from .common import labels_for, select_port, service_name


def build_service(app: MyApp) -> Dict[str, Any]:
    """Builds the NodePort Service exposing the MyApp pods."""
    spec = app.parsed_spec()
    port = select_port(spec)
    if port is None:
        raise InvalidSpecError("spec.ports must declare a port to expose.")

    service_port: Dict[str, Any] = {
        "port": port.port,
        "targetPort": port.target_port,
    }
    # Leave nodePort out when unset so the API server allocates one.
    if port.node_port:
        service_port["nodePort"] = port.node_port

    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": service_name(app),
            "namespace": app.namespace,
            "labels": labels_for(app),
        },
        "spec": {
            "type": "NodePort",
            "selector": labels_for(app),
            "ports": [service_port],
        },
    }
