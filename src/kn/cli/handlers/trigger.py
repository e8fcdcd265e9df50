from typing import Optional, Sequence

from .common import (
    ResourceType,
    create_resource,
    delete_resource,
    get_resource,
    list_resources,
    print_object,
    print_writer,
    status_columns,
    update_resource,
)
from .source import resolve_sink_flag, sink_column
from ..sink import sink_from_spec
from ..utils import KnParams, get_namespace
from ...crds import eventing
from ...crds.base import KnObject
from ...crds.const import TRIGGER_GVR
from ...errors import ValidationError
from ...printers.describe import PrefixWriter, write_conditions, write_metadata, write_sink
from ...printers.table import Column

TRIGGER = ResourceType(
    kind="Trigger",
    gvr=TRIGGER_GVR,
    display="Trigger",
    noun="trigger",
    columns=[
        Column("Name", lambda t: t.name),
        Column("Broker", lambda t: t.spec.get("broker", "")),
        sink_column("subscriber"),
        *status_columns(),
    ],
)


def create_trigger(
    params: KnParams,
    name: str,
    sink: str,
    broker: str = eventing.DEFAULT_BROKER,
    filters: Sequence[str] = (),
    inject_broker: bool = False,
    namespace: Optional[str] = None,
) -> None:
    """Subscribes ``sink`` to the events of ``broker`` that match every filter."""
    attributes, _ = eventing.parse_filters(filters)

    def build(target_namespace: str) -> KnObject:
        subscriber = resolve_sink_flag(params, sink, target_namespace)
        return eventing.new_trigger(name, target_namespace, broker, subscriber, attributes, inject_broker)

    create_resource(params, TRIGGER, name, namespace, build)


def update_trigger(
    params: KnParams,
    name: str,
    sink: Optional[str] = None,
    broker: Optional[str] = None,
    filters: Sequence[str] = (),
    namespace: Optional[str] = None,
) -> None:
    """Merges or removes (``KEY-``) filters and replaces the subscriber of a trigger."""
    if broker is not None:
        raise ValidationError(f"cannot update trigger '{name}' because broker is immutable")
    added, removed = eventing.parse_filters(filters, allow_remove=True)

    def update(trigger: KnObject, target_namespace: str) -> KnObject:
        eventing.update_trigger_filters(trigger, added, removed)
        eventing.set_subscriber(trigger, resolve_sink_flag(params, sink, target_namespace))
        return trigger

    update_resource(params, TRIGGER, name, namespace, update)


def delete_trigger(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
) -> None:
    delete_resource(params, TRIGGER, name, namespace, wait, wait_timeout)


def _write_filters(dw: PrefixWriter, trigger: KnObject) -> None:
    filters = eventing.trigger_filters(trigger)
    if not filters:
        return
    sub = dw.write_attribute("Filter", "")
    for key in sorted(filters):
        sub.write_attribute(key, filters[key])


def describe_trigger(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
) -> None:
    console = params.get_console()
    trigger = get_resource(params, TRIGGER, name, get_namespace(params, namespace))

    if print_object(console, trigger.to_dict(), output):
        return

    dw = PrefixWriter()
    write_metadata(dw, trigger.metadata, verbose)
    dw.write_attribute("Broker", trigger.spec.get("broker", ""))
    _write_filters(dw, trigger)
    write_sink(dw, "Sink", trigger.namespace, sink_from_spec(trigger.spec, "subscriber"))
    write_conditions(dw, trigger.conditions, verbose)
    print_writer(console, dw)


def list_triggers(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, TRIGGER, namespace, all_namespaces, output, no_headers)
