from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from rich.console import Console
from rich.status import Status

from ..utils import KnParams, get_namespace
from ...crds.base import GroupVersionResource, KnObject
from ...crds.client import ResourceClient
from ...errors import KnError, operation_error
from ...printers.describe import PrefixWriter, conditions_value, non_ready_reason, ready_condition
from ...printers.output import format_object, parse_output_format
from ...printers.table import Column, TablePrinter
from ...utils.time import age

DetailWriter = Callable[[PrefixWriter, KnObject, bool], None]


@dataclass
class ResourceType:
    """How the commands of one eventing kind name, print and describe it."""

    kind: str
    gvr: GroupVersionResource
    display: str
    noun: str
    columns: List[Column]
    write_details: Optional[DetailWriter] = None


def print_text(console: Console, text: str) -> None:
    """Prints preformatted text without markup, highlighting or wrapping."""
    if text:
        console.out(text, end="", highlight=False)


def print_writer(console: Console, dw: PrefixWriter) -> None:
    print_text(console, dw.getvalue())


def print_object(console: Console, obj: Dict[str, Any], output: Optional[str]) -> bool:
    """Prints ``obj`` in a machine readable format; False when no such format was requested."""
    fmt, _ = parse_output_format(output)
    if not fmt or fmt == "no-headers":
        return False
    print_text(console, format_object(obj, output))
    return True


def print_list(
    console: Console,
    printer: TablePrinter,
    raw: Dict[str, Any],
    rows: Iterable[Any],
    empty_message: str,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
    sort: bool = True,
) -> None:
    if print_object(console, raw, output):
        return
    rows = list(rows)
    if not rows:
        console.print(empty_message)
        return
    fmt, _ = parse_output_format(output)
    print_text(
        console,
        printer.render(rows, all_namespaces, no_headers or fmt == "no-headers", sort=sort),
    )


def effective_timeout(params: KnParams, wait_timeout: Optional[int]) -> int:
    if wait_timeout is not None:
        return wait_timeout
    return params.configuration.wait_timeout


def wait_until_ready(console: Console, client, name: str, timeout: int, message: str) -> float:
    """Waits for ``name`` to become ready, showing condition messages in a spinner."""
    with Status(message, console=console) as status:

        def on_message(elapsed: float, text: str) -> None:
            status.update(f"{message} {elapsed:5.1f}s {text}")

        return client.wait_for_ready(name, timeout, message_callback=on_message)


def status_columns() -> List[Column]:
    return [
        Column("Age", lambda o: age(o.metadata.creation_timestamp)),
        Column("Conditions", lambda o: conditions_value(o.conditions)),
        Column("Ready", lambda o: ready_condition(o.conditions)),
        Column("Reason", lambda o: non_ready_reason(o.conditions)),
    ]


def resource_client(params: KnParams, resource_type: ResourceType, namespace: str) -> ResourceClient:
    return ResourceClient(params.new_dynamic_client(), resource_type.gvr, resource_type.kind, namespace)


def create_resource(
    params: KnParams,
    resource_type: ResourceType,
    name: str,
    namespace: Optional[str],
    build: Callable[[str], KnObject],
) -> None:
    """Creates the object returned by ``build(namespace)``."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = resource_client(params, resource_type, target_namespace)
    try:
        client.create(build(target_namespace))
    except KnError as e:
        raise operation_error("create", resource_type.noun, name, target_namespace, e) from e
    console.print(f"{resource_type.display} '{name}' created in namespace '{target_namespace}'.")


def update_resource(
    params: KnParams,
    resource_type: ResourceType,
    name: str,
    namespace: Optional[str],
    update: Callable[[KnObject, str], KnObject],
) -> None:
    """Applies ``update(obj, namespace)`` to an existing object, retrying on conflicts."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = resource_client(params, resource_type, target_namespace)
    try:
        client.update_with_retry(name, lambda obj: update(obj, target_namespace))
    except KnError as e:
        raise operation_error("update", resource_type.noun, name, target_namespace, e) from e
    console.print(f"{resource_type.display} '{name}' updated in namespace '{target_namespace}'.")


def delete_resource(
    params: KnParams,
    resource_type: ResourceType,
    name: str,
    namespace: Optional[str],
    wait: bool = False,
    wait_timeout: Optional[int] = None,
) -> None:
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = resource_client(params, resource_type, target_namespace)
    try:
        client.delete(name, wait=wait, timeout=effective_timeout(params, wait_timeout))
    except KnError as e:
        raise operation_error("delete", resource_type.noun, name, target_namespace, e) from e
    console.print(f"{resource_type.display} '{name}' deleted in namespace '{target_namespace}'.")


def get_resource(params: KnParams, resource_type: ResourceType, name: str, namespace: str) -> KnObject:
    try:
        return resource_client(params, resource_type, namespace).get(name)
    except KnError as e:
        raise operation_error("describe", resource_type.noun, name, namespace, e) from e


def list_resources(
    params: KnParams,
    resource_type: ResourceType,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    console = params.get_console()
    target_namespace = get_namespace(params, namespace, all_namespaces)
    raw = resource_client(params, resource_type, target_namespace).list_raw()
    items = raw.get("items") or []
    print_list(
        console,
        TablePrinter(resource_type.columns),
        raw,
        [KnObject.from_dict(i) for i in items],
        f"No {resource_type.noun}s found.",
        all_namespaces,
        output,
        no_headers,
    )
