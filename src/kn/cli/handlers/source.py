"""
Handlers shared by every source type, plus the kind-agnostic ``source list``
and ``source list-types`` commands.
"""
from typing import Optional, Sequence

from .common import (
    ResourceType,
    get_resource,
    print_list,
    print_object,
    print_writer,
)
from ..sink import resolve_sink, sink_from_spec
from ..utils import KnParams, get_namespace
from ...crds.base import Destination
from ...crds.catalog import SourceCatalog, to_source_descriptor
from ...crds.sources import ce_overrides, sink_to_string
from ...printers.describe import PrefixWriter, write_ce_overrides, write_conditions, write_metadata, write_sink
from ...printers.output import as_list
from ...printers.table import Column, TablePrinter


def sink_column(field: str = "sink") -> Column:
    return Column("Sink", lambda s: sink_to_string(sink_from_spec(s.spec, field)))


def resolve_sink_flag(params: KnParams, sink: Optional[str], namespace: str) -> Optional[Destination]:
    if not sink:
        return None
    return resolve_sink(params.new_dynamic_client(), sink, namespace, params.sink_aliases())


def describe_source(
    params: KnParams,
    source_type: ResourceType,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
) -> None:
    """
    Prints metadata, the kind specific details, the sink, CloudEvent
    overrides and conditions of a source.
    """
    console = params.get_console()
    source = get_resource(params, source_type, name, get_namespace(params, namespace))

    if print_object(console, source.to_dict(), output):
        return

    dw = PrefixWriter()
    write_metadata(dw, source.metadata, verbose)
    if source_type.write_details is not None:
        source_type.write_details(dw, source, verbose)
    write_sink(dw, "Sink", source.namespace, sink_from_spec(source.spec))
    write_ce_overrides(dw, ce_overrides(source))
    write_conditions(dw, source.conditions, verbose)
    print_writer(console, dw)


SOURCE_KIND_COLUMNS = [
    Column("Type", lambda k: k.kind),
    Column("Name", lambda k: k.crd_name),
    Column("Description", lambda k: k.description),
]

SOURCE_COLUMNS = [
    Column("Name", lambda s: s.name),
    Column("Type", lambda s: s.kind_display),
    Column("Resource", lambda s: s.resource_group),
    Column("Sink", lambda s: s.sink_display),
    Column("Ready", lambda s: s.ready_display),
]


def list_source_types(
    params: KnParams, namespace: Optional[str] = None, output: Optional[str] = None, no_headers: bool = False
) -> None:
    """Lists the source kinds installed in the cluster."""
    console = params.get_console()
    catalog = SourceCatalog(params.new_dynamic_client(), get_namespace(params, namespace))
    kinds = sorted(catalog.list_source_kinds(), key=lambda k: k.kind)
    raw = as_list(
        [
            {
                "apiVersion": k.group_version,
                "kind": k.kind,
                "metadata": {"name": k.crd_name},
                "description": k.description,
            }
            for k in kinds
        ]
    )
    print_list(
        console,
        TablePrinter(SOURCE_KIND_COLUMNS),
        raw,
        kinds,
        "No source types found.",
        output=output,
        no_headers=no_headers,
        sort=False,
    )


def list_sources(
    params: KnParams,
    types: Sequence[str] = (),
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    """Lists the instances of every installed source kind."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace, all_namespaces)
    catalog = SourceCatalog(params.new_dynamic_client(), target_namespace)
    items = catalog.list_raw_sources(types)
    sources = [to_source_descriptor(item) for item in items]
    print_list(
        console,
        TablePrinter(SOURCE_COLUMNS),
        as_list(items),
        sources,
        "No sources found.",
        all_namespaces,
        output,
        no_headers,
    )
