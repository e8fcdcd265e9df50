"""
Parsing and resolution of sink references.

A sink is given as one of:

    http://host/path, https://host/path   an opaque URI
    name                                  a Knative service in the current namespace
    prefix:name[:namespace]               an object of a known alias (ksvc, broker, channel, ...)
    group/version/kind:name[:namespace]   an object of any addressable kind
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import urlparse

from ..crds.base import Destination, GroupVersionResource, ObjectRef
from ..crds.const import BROKER_GVR, CHANNEL_GVR, SERVICE_GVR
from ..errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SINK_PREFIX = "ksvc"
URI_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class SinkAlias:
    kind: str
    gvr: GroupVersionResource


_SERVICE = SinkAlias("Service", SERVICE_GVR)

SINK_ALIASES: Dict[str, SinkAlias] = {
    "ksvc": _SERVICE,
    "svc": _SERVICE,
    "service": _SERVICE,
    "broker": SinkAlias("Broker", BROKER_GVR),
    "channel": SinkAlias("Channel", CHANNEL_GVR),
}


def sink_aliases(mappings: Iterable[Mapping[str, Any]] = ()) -> Dict[str, SinkAlias]:
    """Built-in aliases extended (or overridden) by user configured sink mappings."""
    aliases = dict(SINK_ALIASES)
    for mapping in mappings:
        gvr = GroupVersionResource(mapping["group"], mapping["version"], mapping["resource"])
        kind = mapping.get("kind") or mapping["resource"].rstrip("s").capitalize()
        aliases[mapping["prefix"]] = SinkAlias(kind, gvr)
    return aliases


def split_sink(sink: str):
    """Splits a sink string into ``(prefix, name, namespace)``; a URI has no prefix."""
    parts = sink.split(":", 2)
    if len(parts) == 1:
        return DEFAULT_SINK_PREFIX, parts[0], ""
    if parts[0] in URI_SCHEMES:
        return "", sink, ""
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    return parts[0], parts[1], ""


def _alias_for_prefix(prefix: str, aliases: Mapping[str, SinkAlias]) -> SinkAlias:
    if prefix in aliases:
        return aliases[prefix]
    group_version, _, kind = prefix.rpartition("/")
    if not group_version or not kind:
        raise ValidationError(
            f"unsupported sink prefix: '{prefix}', please use one of "
            f"{', '.join(sorted(aliases))} or a group/version/kind prefix"
        )
    group, _, version = group_version.rpartition("/")
    if not version:
        raise ValidationError(f"unsupported sink prefix: '{prefix}'")
    resource = kind.lower()
    if not resource.endswith("s"):
        resource += "s"
    return SinkAlias(kind, GroupVersionResource(group, version, resource))


def parse_ref(
    sink: str, namespace: str = "", aliases: Optional[Mapping[str, SinkAlias]] = None
) -> Destination:
    """Parses a user supplied sink into an unverified destination."""
    if not sink:
        raise ValidationError("sink must not be empty")
    if aliases is None:
        aliases = SINK_ALIASES
    prefix, name, ns = split_sink(sink)
    if not prefix:
        parsed = urlparse(name)
        if not parsed.netloc:
            raise ValidationError(f"invalid sink URI '{sink}'")
        return Destination(uri=name)
    if not name:
        raise ValidationError(f"sink '{sink}' is missing a name")
    alias = _alias_for_prefix(prefix, aliases)
    return Destination(
        ref=ObjectRef(
            kind=alias.kind,
            name=name,
            group=alias.gvr.group,
            version=alias.gvr.version,
            resource=alias.gvr.resource,
            namespace=ns or namespace,
        )
    )


def resolve_sink(
    dynamic,
    sink: Union[str, Destination],
    namespace: str,
    aliases: Optional[Mapping[str, SinkAlias]] = None,
) -> Destination:
    """
    Resolves ``sink`` against the cluster.

    URIs are returned unchanged. References are fetched so that the returned
    destination carries the kind and apiVersion reported by the server.
    """
    dest = parse_ref(sink, namespace, aliases) if isinstance(sink, str) else sink
    if dest.ref is None:
        return dest
    ref = dest.ref
    target_ns = ref.namespace or namespace
    try:
        obj = dynamic.get(ref.gvr, ref.name, target_ns)
    except NotFoundError:
        raise NotFoundError(f'{ref.kind} "{ref.name}" not found') from None
    logger.debug("Resolved sink %s:%s in namespace %s", ref.kind, ref.name, target_ns)
    api_version = obj.get("apiVersion", ref.api_version)
    group, _, version = api_version.rpartition("/")
    return Destination(
        ref=ObjectRef(
            kind=obj.get("kind", ref.kind),
            name=obj.get("metadata", {}).get("name", ref.name),
            group=group,
            version=version,
            namespace=target_ns,
            resource=ref.resource,
        ),
        path=dest.path,
    )


def sink_from_spec(spec: Dict[str, Any], field: str = "sink") -> Optional[Destination]:
    """Parses the destination at ``spec[field]``, raising ``ValidationError`` when it is malformed."""
    try:
        return Destination.from_dict(spec.get(field))
    except ValueError as e:
        raise ValidationError(f"cannot parse {field}: {e}") from e
