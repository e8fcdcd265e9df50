from typing import Optional

from .common import print_list, print_object, print_writer
from ..utils import KnParams, get_namespace
from ...crds.base import KnObject
from ...crds.client import ResourceClient
from ...crds.const import ROUTE_GVR, SERVICE_LABEL_KEY
from ...errors import KnError, operation_error
from ...printers.describe import (
    PrefixWriter,
    ready_condition,
    write_conditions,
    write_metadata,
)
from ...printers.output import as_list
from ...printers.table import Column, TablePrinter

ROUTE_COLUMNS = [
    Column("Name", lambda r: r.name),
    Column("URL", lambda r: r.status.get("url", "")),
    Column("Ready", lambda r: ready_condition(r.conditions)),
]


def _route_client(params: KnParams, namespace: str) -> ResourceClient:
    return ResourceClient(params.new_dynamic_client(), ROUTE_GVR, "Route", namespace)


def list_routes(
    params: KnParams,
    name: Optional[str] = None,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    console = params.get_console()
    target_namespace = get_namespace(params, namespace, all_namespaces)
    raw = _route_client(params, target_namespace).list_raw()
    items = raw.get("items") or []
    if name:
        items = [i for i in items if (i.get("metadata") or {}).get("name") == name]
        raw = as_list(items)
    print_list(
        console,
        TablePrinter(ROUTE_COLUMNS),
        raw,
        [KnObject.from_dict(i) for i in items],
        "No routes found.",
        all_namespaces,
        output,
        no_headers,
    )


def describe_route(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
) -> None:
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)

    try:
        route = _route_client(params, target_namespace).get(name)
    except KnError as e:
        raise operation_error("describe", "route", name, target_namespace, e) from e

    if print_object(console, route.to_dict(), output):
        return

    dw = PrefixWriter()
    write_metadata(dw, route.metadata, verbose)
    dw.write_attribute("URL", route.status.get("url", ""))
    dw.write_attribute("Service", route.metadata.labels.get(SERVICE_LABEL_KEY, ""))
    targets = route.status.get("traffic") or []
    if targets:
        section = dw.write_attribute("Traffic Targets", "")
        for traffic in targets:
            revision = traffic.get("revisionName", "")
            if traffic.get("tag"):
                revision = f"{revision} #{traffic['tag']}"
            section.write_cols(f"{traffic.get('percent', 0)}%", revision)
    write_conditions(dw, route.conditions, verbose)
    print_writer(console, dw)
