from typing import Dict, Optional

from ...crds.myapp import MyApp, MyAppSpec, PortSpec

SERVICE_SUFFIX = "-svc"


def labels_for(app: MyApp) -> Dict[str, str]:
    """Labels shared by the Deployment, its pods and the Service selector."""
    return {
        "app.kubernetes.io/name": "MyApp-operator",
        "app.kubernetes.io/managed-by": "MyAppController",
        "app": app.name,
    }


def select_port(spec: MyAppSpec) -> Optional[PortSpec]:
    """
    Pick the port tuple exposed by the Deployment and the Service.

    Only a single port is supported. When several are declared the last one
    wins, so the result is stable for a given spec.
    """
    if not spec.ports:
        return None
    return spec.ports[-1]


def deployment_name(app: MyApp) -> str:
    return app.name


def service_name(app: MyApp) -> str:
    return f"{app.name}{SERVICE_SUFFIX}"
