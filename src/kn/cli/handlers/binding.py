from typing import Optional, Sequence

from .common import (
    ResourceType,
    create_resource,
    delete_resource,
    list_resources,
    status_columns,
    update_resource,
)
from .source import describe_source, resolve_sink_flag, sink_column
from ..utils import KnParams
from ...crds import sources
from ...crds.base import KnObject
from ...crds.const import SINK_BINDING_GVR
from ...printers.describe import PrefixWriter
from ...printers.table import Column
from ...utils.kv import format_selector, parse_key_values


def _write_details(dw: PrefixWriter, binding: KnObject, verbose: bool) -> None:
    subject = binding.spec.get("subject")
    if not subject:
        return
    section = dw.write_attribute("Subject", "")
    section.write_attribute("Resource", f"{subject.get('kind', '')} ({subject.get('apiVersion', '')})")
    if subject.get("name"):
        section.write_attribute("Name", subject["name"])
    labels = (subject.get("selector") or {}).get("matchLabels")
    if labels:
        section.write_attribute("Selector", format_selector(labels))


SINK_BINDING = ResourceType(
    kind="SinkBinding",
    gvr=SINK_BINDING_GVR,
    display="Sink binding",
    noun="sink binding",
    columns=[
        Column("Name", lambda s: s.name),
        Column("Subject", lambda s: sources.subject_to_string(s.spec.get("subject"))),
        sink_column(),
        *status_columns(),
    ],
    write_details=_write_details,
)


def create_sink_binding(
    params: KnParams,
    name: str,
    sink: str,
    subject: str,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    overrides, _ = parse_key_values(ce_overrides, "ce-override", allow_remove=False)

    def build(target_namespace: str) -> KnObject:
        binding = sources.new_sink_binding(
            name, target_namespace, subject, resolve_sink_flag(params, sink, target_namespace)
        )
        sources.update_ce_overrides(binding, overrides, [])
        return binding

    create_resource(params, SINK_BINDING, name, namespace, build)


def update_sink_binding(
    params: KnParams,
    name: str,
    sink: Optional[str] = None,
    subject: Optional[str] = None,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    overrides, removed = parse_key_values(ce_overrides, "ce-override")

    def update(binding: KnObject, target_namespace: str) -> KnObject:
        sources.update_sink_binding(binding, subject, resolve_sink_flag(params, sink, target_namespace))
        sources.update_ce_overrides(binding, overrides, removed)
        return binding

    update_resource(params, SINK_BINDING, name, namespace, update)


def delete_sink_binding(params: KnParams, name: str, namespace: Optional[str] = None) -> None:
    delete_resource(params, SINK_BINDING, name, namespace)


def describe_sink_binding(
    params: KnParams, name: str, namespace: Optional[str] = None, output: Optional[str] = None, verbose: bool = False
) -> None:
    describe_source(params, SINK_BINDING, name, namespace, output, verbose)


def list_sink_bindings(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, SINK_BINDING, namespace, all_namespaces, output, no_headers)
