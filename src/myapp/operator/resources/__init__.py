from .common import deployment_name, labels_for, select_port, service_name
from .deployment import build_deployment
from .service import build_service

__all__ = [
    "build_deployment",
    "build_service",
    "deployment_name",
    "labels_for",
    "select_port",
    "service_name",
]
