from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .base import BaseCustomResource
from .const import CRD_GROUP, CRD_KIND_MYAPP, CRD_PLURAL_MYAPP, CRD_VERSION
from .errors import InvalidSpecError


@dataclass(frozen=True)
class PortSpec:
    port: int
    target_port: int
    node_port: Optional[int] = None

    @classmethod
    def from_spec(cls, spec: Dict[str, Any]) -> "PortSpec":
        try:
            port = int(spec["port"])
        except (KeyError, TypeError, ValueError):
            raise InvalidSpecError(f"Invalid port entry: {spec!r}")
        # targetPort defaults to port, as it does on a Service.
        target_port = spec.get("targetPort", port)
        node_port = spec.get("nodePort")
        try:
            return cls(
                port=port,
                target_port=int(target_port),
                node_port=int(node_port) if node_port else None,
            )
        except (TypeError, ValueError):
            raise InvalidSpecError(f"Invalid port entry: {spec!r}")


@dataclass(frozen=True)
class MyAppSpec:
    size: int
    image: str
    ports: Tuple[PortSpec, ...] = ()

    @classmethod
    def from_spec(cls, spec: Dict[str, Any]) -> "MyAppSpec":
        size = spec.get("size", 0)
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise InvalidSpecError(f"spec.size must be a non-negative integer, got {size!r}")
        image = spec.get("image")
        if not image or not isinstance(image, str):
            raise InvalidSpecError("spec.image is required.")
        ports: List[Dict[str, Any]] = spec.get("ports") or []
        return cls(
            size=size,
            image=image,
            ports=tuple(PortSpec.from_spec(p) for p in ports),
        )


class MyApp(BaseCustomResource):
    group = CRD_GROUP
    version = CRD_VERSION
    plural = CRD_PLURAL_MYAPP
    kind = CRD_KIND_MYAPP
    namespaced = True

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or "default"

    def parsed_spec(self) -> MyAppSpec:
        return MyAppSpec.from_spec(self.spec)

    @property
    def conditions(self) -> List[Dict[str, Any]]:
        return list(self.status.get("conditions") or [])

    def with_conditions(self, conditions: List[Dict[str, Any]]) -> "MyApp":
        """Return a copy of this MyApp carrying the given status conditions."""
        updated = self.copy()
        updated.status["conditions"] = [dict(c) for c in conditions]
        return updated  # type: ignore[return-value]
