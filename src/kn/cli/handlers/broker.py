from typing import Optional

from .common import (
    ResourceType,
    create_resource,
    delete_resource,
    get_resource,
    list_resources,
    print_object,
    print_text,
    print_writer,
    status_columns,
    update_resource,
)
from .source import resolve_sink_flag
from ..sink import sink_from_spec
from ..utils import KnParams, get_namespace
from ...crds import eventing
from ...crds.base import KnObject
from ...crds.const import BROKER_GVR
from ...errors import ValidationError
from ...printers.describe import PrefixWriter, write_conditions, write_metadata, write_sink
from ...printers.table import Column

BROKER = ResourceType(
    kind="Broker",
    gvr=BROKER_GVR,
    display="Broker",
    noun="broker",
    columns=[
        Column("Name", lambda b: b.name),
        Column("URL", eventing.broker_url),
        *status_columns(),
    ],
)


def _delivery(
    params: KnParams,
    namespace: str,
    dl_sink: Optional[str],
    retry: Optional[int],
    timeout: Optional[str],
    backoff_policy: Optional[str],
    backoff_delay: Optional[str],
    retry_after_max: Optional[str],
) -> eventing.DeliveryOptions:
    return eventing.DeliveryOptions(
        dead_letter_sink=resolve_sink_flag(params, dl_sink, namespace),
        retry=retry,
        timeout=timeout,
        backoff_policy=backoff_policy,
        backoff_delay=backoff_delay,
        retry_after_max=retry_after_max,
    )


def create_broker(
    params: KnParams,
    name: str,
    broker_class: Optional[str] = None,
    broker_config: Optional[str] = None,
    dl_sink: Optional[str] = None,
    retry: Optional[int] = None,
    timeout: Optional[str] = None,
    backoff_policy: Optional[str] = None,
    backoff_delay: Optional[str] = None,
    retry_after_max: Optional[str] = None,
    namespace: Optional[str] = None,
) -> None:
    """Creates a broker, optionally of a given class and with delivery settings."""

    def build(target_namespace: str) -> KnObject:
        delivery = _delivery(
            params, target_namespace, dl_sink, retry, timeout, backoff_policy, backoff_delay, retry_after_max
        )
        return eventing.new_broker(name, target_namespace, broker_class, broker_config, delivery)

    create_resource(params, BROKER, name, namespace, build)


def update_broker(
    params: KnParams,
    name: str,
    dl_sink: Optional[str] = None,
    retry: Optional[int] = None,
    timeout: Optional[str] = None,
    backoff_policy: Optional[str] = None,
    backoff_delay: Optional[str] = None,
    retry_after_max: Optional[str] = None,
    namespace: Optional[str] = None,
) -> None:
    """Changes the delivery settings of a broker."""
    target_namespace = get_namespace(params, namespace)
    delivery = _delivery(
        params, target_namespace, dl_sink, retry, timeout, backoff_policy, backoff_delay, retry_after_max
    )
    if delivery.is_empty():
        raise ValidationError("'broker update' requires at least one delivery flag")

    def update(broker: KnObject, _: str) -> KnObject:
        delivery.apply(broker)
        return broker

    update_resource(params, BROKER, name, target_namespace, update)


def delete_broker(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
) -> None:
    delete_resource(params, BROKER, name, namespace, wait, wait_timeout)


def _write_delivery(dw: PrefixWriter, broker: KnObject) -> None:
    delivery = broker.spec.get("delivery") or {}
    if not delivery:
        return
    sub = dw.write_attribute("Delivery", "")
    write_sink(sub, "Dead Letter Sink", broker.namespace, sink_from_spec(delivery, "deadLetterSink"))
    for label, key in (
        ("Retry", "retry"),
        ("Timeout", "timeout"),
        ("Backoff Policy", "backoffPolicy"),
        ("Backoff Delay", "backoffDelay"),
        ("Retry After Max", "retryAfterMax"),
    ):
        if delivery.get(key):
            sub.write_attribute(label, str(delivery[key]))


def describe_broker(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
) -> None:
    """Prints the details of a broker; ``-o url`` prints only its address."""
    console = params.get_console()
    broker = get_resource(params, BROKER, name, get_namespace(params, namespace))

    if output == "url":
        print_text(console, eventing.broker_url(broker) + "\n")
        return
    if print_object(console, broker.to_dict(), output):
        return

    dw = PrefixWriter()
    write_metadata(dw, broker.metadata, verbose)
    config = eventing.config_to_string(broker.spec.get("config"))
    if config:
        dw.write_attribute("Config", config)
    address = dw.write_attribute("Address", "")
    address.write_attribute("URL", eventing.broker_url(broker))
    _write_delivery(dw, broker)
    write_conditions(dw, broker.conditions, verbose)
    print_writer(console, dw)


def list_brokers(
    params: KnParams,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
) -> None:
    list_resources(params, BROKER, namespace, all_namespaces, output, no_headers)
