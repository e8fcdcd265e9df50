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
from ...crds.const import CONTAINER_SOURCE_GVR
from ...crds.service import update_env
from ...printers.describe import PrefixWriter, write_slice
from ...printers.table import Column
from ...utils.kv import parse_key_values


def _image(source: KnObject) -> str:
    containers = source.spec.get("template", {}).get("spec", {}).get("containers") or [{}]
    return containers[0].get("image", "")


def _write_details(dw: PrefixWriter, source: KnObject, verbose: bool) -> None:
    container = sources.source_container(source.deep_copy())
    dw.write_attribute("Image", container.get("image", ""))
    env = [f"{e.get('name')}={e.get('value', '')}" for e in container.get("env") or []]
    write_slice(dw, env, "Env", verbose)


CONTAINER_SOURCE = ResourceType(
    kind="ContainerSource",
    gvr=CONTAINER_SOURCE_GVR,
    display="Container source",
    noun="container source",
    columns=[
        Column("Name", lambda s: s.name),
        Column("Image", _image),
        sink_column(),
        *status_columns(),
    ],
    write_details=_write_details,
)


def create_container_source(
    params: KnParams,
    name: str,
    sink: str,
    image: str,
    env: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    added, _ = parse_key_values(env, "env", allow_remove=False)

    def build(target_namespace: str) -> KnObject:
        source = sources.new_container_source(
            name, target_namespace, image, resolve_sink_flag(params, sink, target_namespace)
        )
        update_env(sources.source_container(source), added, [])
        return source

    create_resource(params, CONTAINER_SOURCE, name, namespace, build)


def update_container_source(
    params: KnParams,
    name: str,
    sink: Optional[str] = None,
    image: Optional[str] = None,
    env: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    added, removed = parse_key_values(env, "env")

    def update(source: KnObject, target_namespace: str) -> KnObject:
        container = sources.source_container(source)
        if image:
            container["image"] = image
        update_env(container, added, removed)
        sources.set_sink(source, resolve_sink_flag(params, sink, target_namespace))
        return source

    update_resource(params, CONTAINER_SOURCE, name, namespace, update)


def delete_container_source(params: KnParams, name: str, namespace: Optional[str] = None) -> None:
    delete_resource(params, CONTAINER_SOURCE, name, namespace)


def describe_container_source(
    params: KnParams, name: str, namespace: Optional[str] = None, output: Optional[str] = None, verbose: bool = False
) -> None:
    describe_source(params, CONTAINER_SOURCE, name, namespace, output, verbose)


def list_container_sources(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, CONTAINER_SOURCE, namespace, all_namespaces, output, no_headers)
