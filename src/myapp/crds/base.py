import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


_KNOWN_META_KEYS = frozenset(
    (
        "name",
        "namespace",
        "uid",
        "resourceVersion",
        "generation",
        "labels",
        "annotations",
        "finalizers",
        "deletionTimestamp",
    )
)


@dataclass
class ObjectMeta:
    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    generation: Optional[int] = None
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    finalizers: List[str] = field(default_factory=list)
    deletion_timestamp: Optional[str] = None
    # Every other metadata key (ownerReferences, creationTimestamp, ...),
    # written back unchanged by to_dict.
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectMeta":
        return cls(
            name=data["name"],
            namespace=data.get("namespace"),
            uid=data.get("uid"),
            resource_version=data.get("resourceVersion"),
            generation=data.get("generation"),
            labels=dict(data.get("labels") or {}),
            annotations=dict(data.get("annotations") or {}),
            finalizers=list(data.get("finalizers") or []),
            deletion_timestamp=data.get("deletionTimestamp"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _KNOWN_META_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = copy.deepcopy(self.extra)
        meta["name"] = self.name
        if self.namespace is not None:
            meta["namespace"] = self.namespace
        if self.uid is not None:
            meta["uid"] = self.uid
        if self.resource_version is not None:
            meta["resourceVersion"] = self.resource_version
        if self.generation is not None:
            meta["generation"] = self.generation
        if self.labels:
            meta["labels"] = dict(self.labels)
        if self.annotations:
            meta["annotations"] = dict(self.annotations)
        # An empty list is meaningful on update: it clears the finalizers.
        meta["finalizers"] = list(self.finalizers)
        if self.deletion_timestamp is not None:
            meta["deletionTimestamp"] = self.deletion_timestamp
        return meta


class BaseCustomResource:
    group: str
    version: str
    plural: str
    kind: str
    namespaced: bool

    metadata: ObjectMeta
    spec: Dict[str, Any]
    status: Dict[str, Any]

    def __init__(
        self,
        metadata: ObjectMeta,
        spec: Dict[str, Any],
        status: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.metadata = metadata
        self.spec = spec
        self.status = status or {}

    @classmethod
    def api_version(cls) -> str:
        return f"{cls.group}/{cls.version}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseCustomResource":
        return cls(
            metadata=ObjectMeta.from_dict(data["metadata"]),
            spec=copy.deepcopy(data.get("spec") or {}),
            status=copy.deepcopy(data.get("status") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiVersion": self.api_version(),
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": copy.deepcopy(self.spec),
            "status": copy.deepcopy(self.status),
        }

    def copy(self) -> "BaseCustomResource":
        return type(self).from_dict(self.to_dict())

    # Finalizer helpers. Each returns whether the finalizer set changed.

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.metadata.finalizers

    def add_finalizer(self, finalizer: str) -> bool:
        if self.has_finalizer(finalizer):
            return False
        self.metadata.finalizers.append(finalizer)
        return True

    def remove_finalizer(self, finalizer: str) -> bool:
        if not self.has_finalizer(finalizer):
            return False
        self.metadata.finalizers = [f for f in self.metadata.finalizers if f != finalizer]
        return True

    def is_being_deleted(self) -> bool:
        return self.metadata.deletion_timestamp is not None
