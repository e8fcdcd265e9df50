from typing import List, Optional, Sequence

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
from ...crds.const import APISERVER_SOURCE_GVR
from ...printers.describe import PrefixWriter
from ...printers.table import Column
from ...utils.kv import format_selector, parse_key_values


def _resources(source: KnObject) -> List[str]:
    return [sources.apiserver_resource_to_string(r) for r in source.spec.get("resources") or []]


def _write_details(dw: PrefixWriter, source: KnObject, verbose: bool) -> None:
    dw.write_attribute("ServiceAccountName", source.spec.get("serviceAccountName", ""))
    dw.write_attribute("EventMode", source.spec.get("mode", ""))
    resources = source.spec.get("resources") or []
    if resources:
        section = dw.write_attribute("Resources", "")
        for resource in resources:
            section.write_attribute("Kind", f"{resource.get('kind', '')} ({resource.get('apiVersion', '')})")
            labels = (resource.get("selector") or {}).get("matchLabels")
            if labels:
                section.write_attribute("Selector", format_selector(labels))


APISERVER_SOURCE = ResourceType(
    kind="ApiServerSource",
    gvr=APISERVER_SOURCE_GVR,
    display="ApiServer source",
    noun="apiserver source",
    columns=[
        Column("Name", lambda s: s.name),
        Column("Resources", lambda s: ",".join(_resources(s))),
        sink_column(),
        *status_columns(),
    ],
    write_details=_write_details,
)


def create_apiserver_source(
    params: KnParams,
    name: str,
    sink: str,
    resources: Sequence[str],
    service_account: Optional[str] = None,
    mode: Optional[str] = None,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    overrides, _ = parse_key_values(ce_overrides, "ce-override", allow_remove=False)

    def build(target_namespace: str) -> KnObject:
        source = sources.new_apiserver_source(
            name,
            target_namespace,
            list(resources),
            service_account,
            mode,
            resolve_sink_flag(params, sink, target_namespace),
        )
        sources.update_ce_overrides(source, overrides, [])
        return source

    create_resource(params, APISERVER_SOURCE, name, namespace, build)


def update_apiserver_source(
    params: KnParams,
    name: str,
    sink: Optional[str] = None,
    resources: Sequence[str] = (),
    service_account: Optional[str] = None,
    mode: Optional[str] = None,
    ce_overrides: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    """
    Updates an ApiServer source. A resource given as ``Kind:apiVersion-``
    removes that resource.
    """
    overrides, removed = parse_key_values(ce_overrides, "ce-override")
    added = [r for r in resources if not r.endswith("-")]
    dropped = [r[:-1] for r in resources if r.endswith("-")]

    def update(source: KnObject, target_namespace: str) -> KnObject:
        sources.update_apiserver_source(
            source,
            added,
            dropped,
            service_account,
            mode,
            resolve_sink_flag(params, sink, target_namespace),
        )
        sources.update_ce_overrides(source, overrides, removed)
        return source

    update_resource(params, APISERVER_SOURCE, name, namespace, update)


def delete_apiserver_source(params: KnParams, name: str, namespace: Optional[str] = None) -> None:
    delete_resource(params, APISERVER_SOURCE, name, namespace)


def describe_apiserver_source(
    params: KnParams, name: str, namespace: Optional[str] = None, output: Optional[str] = None, verbose: bool = False
) -> None:
    describe_source(params, APISERVER_SOURCE, name, namespace, output, verbose)


def list_apiserver_sources(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, APISERVER_SOURCE, namespace, all_namespaces, output, no_headers)
