"""Builders and helpers for brokers and triggers."""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .base import Destination, KnObject, ObjectMeta, nested_field
from .const import BROKER_GVR, TRIGGER_GVR
from ..errors import ValidationError
from ..utils.kv import parse_key_values

BROKER_CLASS_ANNOTATION = "eventing.knative.dev/broker.class"
INJECTION_ANNOTATION = "eventing.knative.dev/injection"
DEFAULT_BROKER = "default"
BACKOFF_POLICIES = ("linear", "exponential")
BROKER_CONFIG_FORMAT = "[kind:]name[:namespace]"

# Short kinds accepted by --broker-config, mapped to (kind, apiVersion)
CONFIG_KINDS = {
    "cm": ("ConfigMap", "v1"),
    "configmap": ("ConfigMap", "v1"),
    "sc": ("Secret", "v1"),
    "secret": ("Secret", "v1"),
    "rmq": ("RabbitmqCluster", "rabbitmq.com/v1beta1"),
    "rabbitmq": ("RabbitmqCluster", "rabbitmq.com/v1beta1"),
    "rabbitmqcluster": ("RabbitmqCluster", "rabbitmq.com/v1beta1"),
}


def _new(gvr, kind: str, name: str, namespace: str, spec: Dict[str, Any]) -> KnObject:
    return KnObject(
        api_version=gvr.api_version,
        kind=kind,
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=spec,
    )


# Broker


@dataclass
class DeliveryOptions:
    """Delivery settings of a broker; unset and empty values are left alone."""

    dead_letter_sink: Optional[Destination] = None
    retry: Optional[int] = None
    timeout: Optional[str] = None
    backoff_policy: Optional[str] = None
    backoff_delay: Optional[str] = None
    retry_after_max: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            (
                self.dead_letter_sink,
                self.retry,
                self.timeout,
                self.backoff_policy,
                self.backoff_delay,
                self.retry_after_max,
            )
        )

    def apply(self, broker: KnObject) -> None:
        if self.backoff_policy and self.backoff_policy not in BACKOFF_POLICIES:
            raise ValidationError(
                f"invalid backoff policy '{self.backoff_policy}', expected one of: {', '.join(BACKOFF_POLICIES)}"
            )
        fields = {
            "retry": self.retry,
            "timeout": self.timeout,
            "backoffPolicy": self.backoff_policy,
            "backoffDelay": self.backoff_delay,
            "retryAfterMax": self.retry_after_max,
        }
        delivery = {key: value for key, value in fields.items() if value}
        if self.dead_letter_sink is not None:
            delivery["deadLetterSink"] = self.dead_letter_sink.to_dict(broker.namespace)
        if delivery:
            broker.spec.setdefault("delivery", {}).update(delivery)


def parse_broker_config(spec: str) -> Dict[str, Any]:
    """
    Parses ``--broker-config`` into a KReference.

    A bare name refers to a ConfigMap. ``kind:name`` picks the kind from
    CONFIG_KINDS. A third part is either a namespace or comma separated
    ``namespace=``, ``group=`` and ``apiversion=`` settings.
    """
    parts = spec.split(":", 2)
    if not spec or not all(parts):
        raise ValidationError(f"invalid broker config '{spec}', expected {BROKER_CONFIG_FORMAT}")
    if len(parts) == 1:
        return {"kind": "ConfigMap", "apiVersion": "v1", "name": parts[0]}

    kind, name = parts[0], parts[1]
    known = CONFIG_KINDS.get(kind.lower())
    ref: Dict[str, Any] = {"kind": kind, "name": name}
    if known is not None:
        ref["kind"], ref["apiVersion"] = known
    if len(parts) == 3:
        settings = parts[2]
        if "=" not in settings:
            ref["namespace"] = settings
        else:
            for item in settings.split(","):
                key, sep, value = item.partition("=")
                field_name = {"namespace": "namespace", "group": "group", "apiversion": "apiVersion"}.get(
                    key.lower()
                )
                if not sep or field_name is None:
                    raise ValidationError(
                        f"incorrect field '{item}' in broker config '{spec}', "
                        "expected namespace, group or apiversion"
                    )
                ref[field_name] = value
    if not ref.get("apiVersion"):
        raise ValidationError(f'kind "{kind}" is unknown and APIVersion could not be determined')
    return ref


def config_to_string(config: Optional[Dict[str, Any]]) -> str:
    if not config:
        return ""
    text = f"{config.get('kind', '')}:{config.get('name', '')}"
    if config.get("namespace"):
        text += f":{config['namespace']}"
    return text


def new_broker(
    name: str,
    namespace: str,
    broker_class: Optional[str] = None,
    config: Optional[str] = None,
    delivery: Optional[DeliveryOptions] = None,
) -> KnObject:
    if config and not broker_class:
        raise ValidationError("cannot set broker-config without setting class")
    broker = _new(BROKER_GVR, "Broker", name, namespace, {})
    if broker_class:
        broker.metadata.annotations[BROKER_CLASS_ANNOTATION] = broker_class
    if config:
        broker.spec["config"] = parse_broker_config(config)
    if delivery is not None:
        delivery.apply(broker)
    return broker


def broker_url(broker: KnObject) -> str:
    return nested_field(broker.status, "address", "url") or ""


# Trigger


def parse_filters(items: Iterable[str], allow_remove: bool = False) -> Tuple[Dict[str, str], List[str]]:
    """Parses ``--filter`` attributes, refusing keys given twice."""
    items = list(items)
    added, removed = parse_key_values(items, "filter", allow_remove)
    keys = [item.partition("=")[0] for item in items if "=" in item]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        raise ValidationError(f"duplicate --filter key(s): {', '.join(duplicates)}")
    return added, removed


def trigger_filters(trigger: KnObject) -> Dict[str, str]:
    return nested_field(trigger.spec, "filter", "attributes") or {}


def update_trigger_filters(trigger: KnObject, add: Dict[str, str], remove: List[str]) -> None:
    if not add and not remove:
        return
    attributes = dict(trigger_filters(trigger))
    attributes.update(add)
    for key in remove:
        attributes.pop(key, None)
    if attributes:
        trigger.spec["filter"] = {"attributes": attributes}
    else:
        trigger.spec.pop("filter", None)


def set_subscriber(trigger: KnObject, subscriber: Optional[Destination]) -> None:
    if subscriber is not None:
        trigger.spec["subscriber"] = subscriber.to_dict(trigger.namespace)


def new_trigger(
    name: str,
    namespace: str,
    broker: str,
    subscriber: Destination,
    filters: Optional[Dict[str, str]] = None,
    inject_broker: bool = False,
) -> KnObject:
    if inject_broker and broker != DEFAULT_BROKER:
        raise ValidationError(f"broker name must be '{DEFAULT_BROKER}' if '--inject-broker' flag is used")
    trigger = _new(TRIGGER_GVR, "Trigger", name, namespace, {"broker": broker})
    if inject_broker:
        trigger.metadata.annotations[INJECTION_ANNOTATION] = "enabled"
    update_trigger_filters(trigger, filters or {}, [])
    set_subscriber(trigger, subscriber)
    return trigger
