from typing import List, Optional, Sequence

from .common import effective_timeout, print_list, print_object, print_writer
from ..utils import KnParams, get_namespace
from ...crds.base import KnObject
from ...crds.client import ResourceClient
from ...crds.const import REVISION_GVR, SERVICE_LABEL_KEY
from ...crds.service import CONFIGURATION_GENERATION_LABEL
from ...errors import KnError, ValidationError, operation_error
from ...printers.describe import (
    PrefixWriter,
    conditions_value,
    non_ready_reason,
    ready_condition,
    write_conditions,
    write_metadata,
    write_slice,
)
from ...printers.output import as_list
from ...printers.table import Column, TablePrinter
from ...utils.time import age

# Only revisions in the "active" routing state receive traffic
ROUTING_STATE_LABEL = "serving.knative.dev/routingState"
ROUTING_STATE_ACTIVE = "active"

REVISION_COLUMNS = [
    Column("Name", lambda r: r.name),
    Column("Service", lambda r: r.metadata.labels.get(SERVICE_LABEL_KEY, "")),
    Column("Generation", lambda r: r.metadata.labels.get(CONFIGURATION_GENERATION_LABEL, "")),
    Column("Age", lambda r: age(r.metadata.creation_timestamp)),
    Column("Conditions", lambda r: conditions_value(r.conditions)),
    Column("Ready", lambda r: ready_condition(r.conditions)),
    Column("Reason", lambda r: non_ready_reason(r.conditions)),
]


def _revision_client(params: KnParams, namespace: str) -> ResourceClient:
    return ResourceClient(params.new_dynamic_client(), REVISION_GVR, "Revision", namespace)


def _container(revision: KnObject) -> dict:
    containers = revision.spec.get("containers") or [{}]
    return containers[0]


def list_revisions(
    params: KnParams,
    name: Optional[str] = None,
    service: Optional[str] = None,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    """Lists revisions, optionally only those of one service."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace, all_namespaces)
    client = _revision_client(params, target_namespace)

    selector = f"{SERVICE_LABEL_KEY}={service}" if service else None
    raw = client.list_raw(selector)
    items = raw.get("items") or []
    if name:
        items = [i for i in items if (i.get("metadata") or {}).get("name") == name]
        raw = as_list(items)
    print_list(
        console,
        TablePrinter(REVISION_COLUMNS),
        raw,
        [KnObject.from_dict(i) for i in items],
        "No revisions found.",
        all_namespaces,
        output,
        no_headers,
    )


def describe_revision(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
) -> None:
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = _revision_client(params, target_namespace)

    try:
        revision = client.get(name)
    except KnError as e:
        raise operation_error("describe", "revision", name, target_namespace, e) from e

    if print_object(console, revision.to_dict(), output):
        return

    container = _container(revision)
    dw = PrefixWriter()
    write_metadata(dw, revision.metadata, verbose)
    dw.write_attribute("Image", container.get("image", ""))
    ports = container.get("ports") or []
    if ports:
        dw.write_attribute("Port", str(ports[0].get("containerPort", "")))
    env = [f"{e.get('name')}={e.get('value', '')}" for e in container.get("env") or []]
    write_slice(dw, env, "Env", verbose)
    dw.write_attribute("Service", revision.metadata.labels.get(SERVICE_LABEL_KEY, ""))
    write_conditions(dw, revision.conditions, verbose)
    print_writer(console, dw)


def _unreferenced_revisions(client: ResourceClient, service: Optional[str]) -> List[str]:
    selector = f"{SERVICE_LABEL_KEY}={service}" if service else None
    return sorted(
        r.name for r in client.list(selector) if r.metadata.labels.get(ROUTING_STATE_LABEL) != ROUTING_STATE_ACTIVE
    )


def delete_revisions(
    params: KnParams,
    names: Sequence[str] = (),
    prune: Optional[str] = None,
    prune_all: bool = False,
    namespace: Optional[str] = None,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
) -> None:
    """
    Deletes the named revisions or, with ``prune``/``prune_all``, every
    revision that no longer receives traffic.
    """
    if not names and not prune and not prune_all:
        raise ValidationError("'revision delete' requires one or more revision name")
    if names and prune_all:
        raise ValidationError("'revision delete' with --prune-all flag requires no arguments")

    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = _revision_client(params, target_namespace)

    if prune or prune_all:
        names = _unreferenced_revisions(client, prune)
        if not names:
            console.print("No unreferenced revisions found.")
            return

    timeout = effective_timeout(params, wait_timeout)
    errors = []
    for name in names:
        try:
            client.delete(name, wait=wait, timeout=timeout)
        except KnError as e:
            errors.append(operation_error("delete", "revision", name, target_namespace, e))
            continue
        console.print(f"Revision '{name}' deleted in namespace '{target_namespace}'.")

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise KnError("\n".join(str(e) for e in errors))
