"""
Discovery and listing of event sources without compiled-in types.

Installed source kinds are found through their CustomResourceDefinitions, which
carry the ``duck.knative.dev/source=true`` label. Instances of every kind are
projected onto a common ``SourceDescriptor``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .base import Destination, GroupVersionResource, nested_field
from .const import CRD_GVR, SOURCE_LABEL_KEY, SOURCE_LABEL_VALUE
from .sources import BUILTIN_SOURCE_GVKS, SOURCE_TYPE_DESCRIPTIONS, sink_to_string
from ..errors import KnError, TransportError, is_forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceKindDescriptor:
    kind: str
    plural: str
    group_version: str
    description: str = ""

    @property
    def gvr(self) -> GroupVersionResource:
        return GroupVersionResource.from_api_version(self.group_version, self.plural)

    @property
    def group(self) -> str:
        return self.gvr.group

    @property
    def crd_name(self) -> str:
        return f"{self.plural}.{self.group}"


@dataclass(frozen=True)
class SourceDescriptor:
    name: str
    namespace: str
    kind_display: str
    resource_group: str
    sink_display: str
    ready_display: str


def _served_version(spec: Dict[str, Any]) -> str:
    for version in spec.get("versions") or []:
        if version.get("served"):
            return version.get("name", "")
    return spec.get("version", "")


def kind_from_crd(crd: Dict[str, Any]) -> SourceKindDescriptor:
    spec = crd.get("spec") or {}
    names = spec.get("names") or {}
    kind = names.get("kind", "")
    group = spec.get("group", "")
    return SourceKindDescriptor(
        kind=kind,
        plural=names.get("plural") or kind.lower() + "s",
        group_version=f"{group}/{_served_version(spec)}",
        description=SOURCE_TYPE_DESCRIPTIONS.get(kind, ""),
    )


def builtin_source_kinds() -> List[SourceKindDescriptor]:
    return [
        SourceKindDescriptor(
            kind=kind,
            plural=kind.lower() + "s",
            group_version=f"{group}/{version}",
            description=SOURCE_TYPE_DESCRIPTIONS.get(kind, ""),
        )
        for group, version, kind in BUILTIN_SOURCE_GVKS
    ]


def _ready_display(raw: Dict[str, Any]) -> str:
    conditions = nested_field(raw, "status", "conditions")
    if conditions is None:
        return "<unknown>"
    if not isinstance(conditions, list):
        raise KnError(
            f"cannot parse status.conditions of {raw.get('kind')} '{nested_field(raw, 'metadata', 'name')}': "
            f"expected a list, got {type(conditions).__name__}"
        )
    for cond in conditions:
        if isinstance(cond, dict) and cond.get("type") == "Ready":
            return cond.get("status", "<unknown>")
    return "<unknown>"


def to_source_descriptor(raw: Dict[str, Any]) -> SourceDescriptor:
    """Projects a source instance of any kind onto the common descriptor."""
    metadata = raw.get("metadata") or {}
    kind = raw.get("kind", "")
    group = raw.get("apiVersion", "").split("/")[0]
    try:
        sink = Destination.from_dict(nested_field(raw, "spec", "sink"))
    except ValueError as e:
        raise KnError(f"cannot parse spec.sink of {kind} '{metadata.get('name')}': {e}") from e
    return SourceDescriptor(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        kind_display=kind,
        resource_group=f"{kind.lower()}s.{group}",
        sink_display=sink_to_string(sink),
        ready_display=_ready_display(raw),
    )


class SourceCatalog:
    def __init__(self, dynamic, namespace: str):
        self.dynamic = dynamic
        self.namespace = namespace

    def _list_kind(self, kind: SourceKindDescriptor) -> List[Dict[str, Any]]:
        return self.dynamic.list(kind.gvr, self.namespace).get("items") or []

    def _builtin_kinds_available(self) -> List[SourceKindDescriptor]:
        available = []
        for kind in builtin_source_kinds():
            try:
                self._list_kind(kind)
            except TransportError:
                raise
            except KnError as e:
                logger.debug("Skipping source type %s: %s", kind.kind, e)
                continue
            available.append(kind)
        return available

    def _installed_kinds(self) -> Optional[List[SourceKindDescriptor]]:
        """Source kinds from the labelled CRDs, or None if reading CRDs is forbidden."""
        try:
            crds = self.dynamic.list(
                CRD_GVR, None, label_selector=f"{SOURCE_LABEL_KEY}={SOURCE_LABEL_VALUE}"
            )
        except KnError as e:
            if not is_forbidden(e):
                raise
            logger.info("Cannot list source types (%s), falling back to built-in sources", e)
            return None
        return [kind_from_crd(crd) for crd in crds.get("items") or []]

    def list_source_kinds(self) -> List[SourceKindDescriptor]:
        """
        Returns the installed source kinds. Callers without permission to read
        CustomResourceDefinitions get the built-in kinds that they can list.
        """
        kinds = self._installed_kinds()
        if kinds is None:
            return self._builtin_kinds_available()
        return kinds

    def list_raw_sources(self, kind_filters: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """
        Lists the instances of every (matching) source kind. A kind that fails
        to list is logged and skipped; transport failures abort the listing.
        """
        kinds = self._installed_kinds()
        if kinds is None:
            kinds = builtin_source_kinds()
        wanted = {f.lower() for f in kind_filters or []}
        if wanted:
            kinds = [k for k in kinds if k.kind.lower() in wanted]
        items = []
        for kind in kinds:
            try:
                items.extend(self._list_kind(kind))
            except TransportError:
                raise
            except KnError as e:
                logger.warning("Cannot list %s sources: %s", kind.kind, e)
        return items

    def list_sources(self, kind_filters: Optional[Iterable[str]] = None) -> List[SourceDescriptor]:
        return [to_source_descriptor(item) for item in self.list_raw_sources(kind_filters)]

