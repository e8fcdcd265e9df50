import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Metadata keys mapped onto ObjectMeta attributes; everything else is kept verbatim
_META_FIELDS = {
    "name": "name",
    "namespace": "namespace",
    "labels": "labels",
    "annotations": "annotations",
    "generation": "generation",
    "resourceVersion": "resource_version",
    "creationTimestamp": "creation_timestamp",
    "deletionTimestamp": "deletion_timestamp",
}


@dataclass(frozen=True)
class GroupVersionResource:
    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    @classmethod
    def from_api_version(cls, api_version: str, resource: str) -> "GroupVersionResource":
        group, _, version = api_version.rpartition("/")
        return cls(group, version, resource)

    def __str__(self) -> str:
        return f"{self.resource}.{self.group}/{self.version}" if self.group else f"{self.resource}/{self.version}"


@dataclass
class ObjectMeta:
    name: str
    namespace: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    generation: Optional[int] = None
    resource_version: Optional[str] = None
    creation_timestamp: Optional[str] = None
    deletion_timestamp: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectMeta":
        known = {}
        extra = {}
        for key, value in (data or {}).items():
            if key in _META_FIELDS:
                known[_META_FIELDS[key]] = value
            else:
                extra[key] = copy.deepcopy(value)
        known.setdefault("name", "")
        known["labels"] = dict(known.get("labels") or {})
        known["annotations"] = dict(known.get("annotations") or {})
        return cls(extra=extra, **known)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = copy.deepcopy(self.extra)
        for key, attr in _META_FIELDS.items():
            value = getattr(self, attr)
            if value:
                data[key] = copy.deepcopy(value)
        return data


@dataclass
class Condition:
    type: str
    status: str = "Unknown"
    severity: str = ""
    reason: str = ""
    message: str = ""
    last_transition_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        return cls(
            type=data.get("type", ""),
            status=data.get("status", "Unknown"),
            severity=data.get("severity", ""),
            reason=data.get("reason", ""),
            message=data.get("message", ""),
            last_transition_time=data.get("lastTransitionTime"),
        )


@dataclass(frozen=True)
class ObjectRef:
    """Canonical reference to a remote object."""

    kind: str
    name: str
    group: str = ""
    version: str = ""
    namespace: str = ""
    resource: str = ""

    @property
    def api_version(self) -> str:
        if not self.version:
            return ""
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def gvr(self) -> GroupVersionResource:
        return GroupVersionResource(self.group, self.version, self.resource)

    def to_dict(self, namespace: Optional[str] = None) -> Dict[str, Any]:
        """
        Serializes the reference as a duck-typed KReference.

        The namespace is only written when it differs from ``namespace``, the
        namespace of the object holding the reference.
        """
        data = {"apiVersion": self.api_version, "kind": self.kind, "name": self.name}
        if self.namespace and self.namespace != namespace:
            data["namespace"] = self.namespace
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectRef":
        group, _, version = (data.get("apiVersion") or "").rpartition("/")
        return cls(
            kind=data.get("kind", ""),
            name=data.get("name", ""),
            group=group,
            version=version,
            namespace=data.get("namespace", ""),
        )


@dataclass(frozen=True)
class Destination:
    """Sink of a source: exactly one of ``ref`` or ``uri``."""

    ref: Optional[ObjectRef] = None
    uri: Optional[str] = None
    path: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.ref is None) == (self.uri is None):
            raise ValueError("a destination needs exactly one of ref or uri")
        if self.path and self.ref is None:
            raise ValueError("a destination path requires a ref")

    def to_dict(self, namespace: Optional[str] = None) -> Dict[str, Any]:
        if self.ref is not None:
            data: Dict[str, Any] = {"ref": self.ref.to_dict(namespace)}
            if self.path:
                data["uri"] = self.path
            return data
        return {"uri": self.uri}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Destination"]:
        """Parses ``spec.sink``; returns None for an empty sink."""
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValueError(f"sink must be an object, got {type(data).__name__}")
        ref = data.get("ref")
        uri = data.get("uri")
        if ref is not None and not isinstance(ref, dict):
            raise ValueError(f"sink ref must be an object, got {type(ref).__name__}")
        if ref:
            return cls(ref=ObjectRef.from_dict(ref), path=uri or None)
        if uri:
            return cls(uri=uri)
        return None


class KnObject:
    """A decoded resource: typed metadata plus free-form spec and status."""

    def __init__(
        self,
        api_version: str,
        kind: str,
        metadata: ObjectMeta,
        spec: Optional[Dict[str, Any]] = None,
        status: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.api_version = api_version
        self.kind = kind
        self.metadata = metadata
        self.spec = spec if spec is not None else {}
        self.status = status if status is not None else {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnObject":
        return cls(
            api_version=data.get("apiVersion", ""),
            kind=data.get("kind", ""),
            metadata=ObjectMeta.from_dict(data.get("metadata", {})),
            spec=copy.deepcopy(data.get("spec") or {}),
            status=copy.deepcopy(data.get("status") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": copy.deepcopy(self.spec),
        }
        if self.status:
            data["status"] = copy.deepcopy(self.status)
        return data

    def deep_copy(self) -> "KnObject":
        return KnObject.from_dict(self.to_dict())

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or ""

    @property
    def conditions(self) -> List[Condition]:
        return [Condition.from_dict(c) for c in self.status.get("conditions") or []]

    def condition(self, condition_type: str) -> Optional[Condition]:
        for cond in self.conditions:
            if cond.type == condition_type:
                return cond
        return None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, KnObject) and self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"KnObject({self.kind} {self.namespace}/{self.name})"


def nested_field(obj: Dict[str, Any], *path: str) -> Any:
    """Returns the value at ``path`` or None when any step is missing."""
    current: Any = obj
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current
