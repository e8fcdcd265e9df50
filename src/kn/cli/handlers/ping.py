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
from ...crds.const import PING_SOURCE_GVR
from ...printers.describe import PrefixWriter
from ...printers.table import Column
from ...utils.kv import parse_key_values


def _write_details(dw: PrefixWriter, source: KnObject, verbose: bool) -> None:
    dw.write_attribute("Schedule", source.spec.get("schedule", ""))
    if source.spec.get("data"):
        dw.write_attribute("Data", source.spec["data"])


PING_SOURCE = ResourceType(
    kind="PingSource",
    gvr=PING_SOURCE_GVR,
    display="Ping source",
    noun="ping source",
    columns=[
        Column("Name", lambda s: s.name),
        Column("Schedule", lambda s: s.spec.get("schedule", "")),
        sink_column(),
        *status_columns(),
    ],
    write_details=_write_details,
)


def create_ping_source(
    params: KnParams,
    name: str,
    sink: str,
    schedule: Optional[str] = None,
    data: Optional[str] = None,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    overrides, _ = parse_key_values(ce_overrides, "ce-override", allow_remove=False)

    def build(target_namespace: str) -> KnObject:
        source = sources.new_ping_source(
            name, target_namespace, schedule, data, resolve_sink_flag(params, sink, target_namespace)
        )
        sources.update_ce_overrides(source, overrides, [])
        return source

    create_resource(params, PING_SOURCE, name, namespace, build)


def update_ping_source(
    params: KnParams,
    name: str,
    sink: Optional[str] = None,
    schedule: Optional[str] = None,
    data: Optional[str] = None,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    overrides, removed = parse_key_values(ce_overrides, "ce-override")

    def update(source: KnObject, target_namespace: str) -> KnObject:
        sources.update_ping_source(source, schedule, data, resolve_sink_flag(params, sink, target_namespace))
        sources.update_ce_overrides(source, overrides, removed)
        return source

    update_resource(params, PING_SOURCE, name, namespace, update)


def delete_ping_source(params: KnParams, name: str, namespace: Optional[str] = None) -> None:
    delete_resource(params, PING_SOURCE, name, namespace)


def describe_ping_source(
    params: KnParams, name: str, namespace: Optional[str] = None, output: Optional[str] = None, verbose: bool = False
) -> None:
    describe_source(params, PING_SOURCE, name, namespace, output, verbose)


def list_ping_sources(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, PING_SOURCE, namespace, all_namespaces, output, no_headers)
