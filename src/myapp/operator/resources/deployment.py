from typing import Any, Dict

from ...crds.myapp import MyApp
from .common import deployment_name, labels_for, select_port


def build_deployment(app: MyApp) -> Dict[str, Any]:
    """Builds the Deployment for the MyApp."""
    spec = app.parsed_spec()
    labels = labels_for(app)
    port = select_port(spec)

    container: Dict[str, Any] = {
        "name": f"{app.name}-container",
        "image": spec.image,
        "imagePullPolicy": "IfNotPresent",
    }
    if port is not None:
        container["ports"] = [{"containerPort": port.target_port}]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": deployment_name(app),
            "namespace": app.namespace,
            "labels": dict(labels),
        },
        "spec": {
            "replicas": spec.size,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {"containers": [container]},
            },
        },
    }
