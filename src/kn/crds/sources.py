"""Builders and helpers for the built-in Knative event sources."""
from typing import Any, Dict, List, Optional, Tuple

from .base import Destination, KnObject, ObjectMeta
from .const import (
    APISERVER_SOURCE_GVR,
    CONTAINER_SOURCE_GVR,
    PING_SOURCE_GVR,
    SINK_BINDING_GVR,
    SERVING_GROUP,
    SOURCES_GROUP,
    SOURCES_VERSION,
)
from ..errors import ValidationError
from ..utils.kv import format_selector, parse_selector

# (group, version, kind) of the sources every eventing installation ships
BUILTIN_SOURCE_GVKS: List[Tuple[str, str, str]] = [
    (SOURCES_GROUP, SOURCES_VERSION, "ApiServerSource"),
    (SOURCES_GROUP, SOURCES_VERSION, "ContainerSource"),
    (SOURCES_GROUP, SOURCES_VERSION, "PingSource"),
    (SOURCES_GROUP, SOURCES_VERSION, "SinkBinding"),
]

SOURCE_TYPE_DESCRIPTIONS = {
    "ApiServerSource": "Watch and send Kubernetes API events to a sink",
    "ContainerSource": "Connect a custom container image to a sink",
    "SinkBinding": "Binding for connecting a PodSpecable to a sink",
    "PingSource": "Send periodically ping events to a sink",
}

APISERVER_MODES = ("Reference", "Resource")
RESOURCE_FORMAT = "<Kind:ApiVersion[:labelKey1=value1,...]>"
DEFAULT_SCHEDULE = "* * * * *"


def _new(gvr, kind: str, name: str, namespace: str, spec: Dict[str, Any]) -> KnObject:
    return KnObject(
        api_version=gvr.api_version,
        kind=kind,
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=spec,
    )


def set_sink(source: KnObject, sink: Optional[Destination]) -> None:
    if sink is not None:
        source.spec["sink"] = sink.to_dict(source.namespace)


def update_ce_overrides(source: KnObject, add: Dict[str, str], remove: List[str]) -> None:
    if not add and not remove:
        return
    extensions = source.spec.setdefault("ceOverrides", {}).setdefault("extensions", {})
    extensions.update(add)
    for key in remove:
        extensions.pop(key, None)
    if not extensions:
        source.spec.pop("ceOverrides")


def ce_overrides(source: KnObject) -> Dict[str, str]:
    return (source.spec.get("ceOverrides") or {}).get("extensions") or {}


# Ping


def update_ping_source(
    source: KnObject,
    schedule: Optional[str] = None,
    data: Optional[str] = None,
    sink: Optional[Destination] = None,
) -> KnObject:
    if schedule is not None:
        source.spec["schedule"] = schedule
    if data is not None:
        source.spec["data"] = data
    set_sink(source, sink)
    return source


def new_ping_source(
    name: str, namespace: str, schedule: str, data: str, sink: Destination
) -> KnObject:
    source = _new(PING_SOURCE_GVR, "PingSource", name, namespace, {})
    return update_ping_source(source, schedule or DEFAULT_SCHEDULE, data, sink)


# ApiServer


def parse_apiserver_resource(spec: str) -> Dict[str, Any]:
    parts = spec.split(":", 2)
    if not parts[0]:
        raise ValidationError(f"cannot find 'Kind' part in resource specification {spec} (expected: {RESOURCE_FORMAT})")
    if len(parts) < 2 or not parts[1]:
        raise ValidationError(
            f"cannot find 'APIVersion' part in resource specification {spec} (expected: {RESOURCE_FORMAT})"
        )
    resource: Dict[str, Any] = {"kind": parts[0], "apiVersion": parts[1]}
    if len(parts) == 3 and parts[2]:
        try:
            resource["selector"] = {"matchLabels": parse_selector(parts[2])}
        except ValidationError:
            raise ValidationError(
                f"invalid label selector in resource specification {spec} (expected: {RESOURCE_FORMAT})"
            ) from None
    return resource


def apiserver_resource_to_string(resource: Dict[str, Any]) -> str:
    text = f"{resource.get('kind', '')}:{resource.get('apiVersion', '')}"
    labels = (resource.get("selector") or {}).get("matchLabels")
    if labels:
        text += ":" + format_selector(labels)
    return text


def update_apiserver_source(
    source: KnObject,
    resources: Optional[List[str]] = None,
    resources_remove: Optional[List[str]] = None,
    service_account: Optional[str] = None,
    mode: Optional[str] = None,
    sink: Optional[Destination] = None,
) -> KnObject:
    if mode is not None:
        if mode not in APISERVER_MODES:
            raise ValidationError(f"mode must be one of {', '.join(APISERVER_MODES)}, got '{mode}'")
        source.spec["mode"] = mode
    if resources or resources_remove:
        current = list(source.spec.get("resources") or [])
        current.extend(parse_apiserver_resource(r) for r in resources or [])
        for spec in resources_remove or []:
            target = parse_apiserver_resource(spec)
            if target not in current:
                raise ValidationError(f"cannot find resource {spec} to remove")
            current.remove(target)
        source.spec["resources"] = current
    if service_account is not None:
        source.spec["serviceAccountName"] = service_account
    set_sink(source, sink)
    return source


def new_apiserver_source(
    name: str,
    namespace: str,
    resources: List[str],
    service_account: Optional[str],
    mode: str,
    sink: Destination,
) -> KnObject:
    if not resources:
        raise ValidationError("at least one --resource is required")
    source = _new(APISERVER_SOURCE_GVR, "ApiServerSource", name, namespace, {})
    return update_apiserver_source(source, resources, None, service_account, mode or "Reference", sink)


# SinkBinding


def parse_subject(spec: str) -> Dict[str, Any]:
    """Parses ``kind:apiVersion:name`` or ``kind:apiVersion:key=value,...``."""
    parts = spec.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise ValidationError(
            f"invalid subject argument '{spec}': not in format kind:api/version:nameOrSelector"
        )
    kind, api_version, name_or_selector = parts
    subject: Dict[str, Any] = {"apiVersion": api_version, "kind": kind}
    if "=" in name_or_selector:
        subject["selector"] = {"matchLabels": parse_selector(name_or_selector)}
    else:
        subject["name"] = name_or_selector
    return subject


def subject_to_string(subject: Optional[Dict[str, Any]]) -> str:
    if not subject:
        return ""
    text = f"{subject.get('kind', '')}:{subject.get('apiVersion', '')}:"
    if subject.get("name"):
        return text + subject["name"]
    return text + format_selector((subject.get("selector") or {}).get("matchLabels") or {})


def update_sink_binding(
    binding: KnObject, subject: Optional[str] = None, sink: Optional[Destination] = None
) -> KnObject:
    if subject:
        binding.spec["subject"] = parse_subject(subject)
    set_sink(binding, sink)
    return binding


def new_sink_binding(name: str, namespace: str, subject: str, sink: Destination) -> KnObject:
    if not subject:
        raise ValidationError("a subject is required, set with --subject")
    binding = _new(SINK_BINDING_GVR, "SinkBinding", name, namespace, {})
    return update_sink_binding(binding, subject, sink)


# ContainerSource


def source_container(source: KnObject) -> Dict[str, Any]:
    pod_spec = source.spec.setdefault("template", {}).setdefault("spec", {})
    containers = pod_spec.setdefault("containers", [{}])
    if not containers:
        containers.append({})
    return containers[0]


def new_container_source(name: str, namespace: str, image: str, sink: Destination) -> KnObject:
    if not image:
        raise ValidationError("an image is required, set with --image")
    source = _new(CONTAINER_SOURCE_GVR, "ContainerSource", name, namespace, {})
    source_container(source)["image"] = image
    set_sink(source, sink)
    return source


def sink_to_string(sink: Optional[Destination]) -> str:
    """Renders a destination for list output, using ``ksvc:`` for Knative services."""
    if sink is None:
        return ""
    if sink.ref is not None:
        if sink.ref.kind == "Service" and sink.ref.api_version.startswith(SERVING_GROUP):
            return f"ksvc:{sink.ref.name}"
        return f"{sink.ref.kind.lower()}:{sink.ref.name}"
    return sink.uri or ""
