import pytest

from kn.crds.base import Destination, KnObject, ObjectRef
from kn.crds.eventing import (
    BROKER_CLASS_ANNOTATION,
    INJECTION_ANNOTATION,
    DeliveryOptions,
    broker_url,
    config_to_string,
    new_broker,
    new_trigger,
    parse_broker_config,
    parse_filters,
    trigger_filters,
    update_trigger_filters,
)
from kn.errors import ValidationError

KSVC = Destination(ref=ObjectRef("Service", "mysvc", "serving.knative.dev", "v1"))


class TestBrokerConfig:
    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("cfg", {"kind": "ConfigMap", "apiVersion": "v1", "name": "cfg"}),
            ("cm:cfg", {"kind": "ConfigMap", "apiVersion": "v1", "name": "cfg"}),
            ("secret:creds", {"kind": "Secret", "apiVersion": "v1", "name": "creds"}),
            (
                "rmq:cluster:other",
                {"kind": "RabbitmqCluster", "apiVersion": "rabbitmq.com/v1beta1", "name": "cluster", "namespace": "other"},
            ),
            (
                "KafkaConfig:k:namespace=ns,apiversion=kafka.example.com/v1,group=kafka.example.com",
                {
                    "kind": "KafkaConfig",
                    "name": "k",
                    "namespace": "ns",
                    "apiVersion": "kafka.example.com/v1",
                    "group": "kafka.example.com",
                },
            ),
        ],
    )
    def test_parse(self, spec: str, expected: dict) -> None:
        assert parse_broker_config(spec) == expected

    def test_unknown_kind_needs_an_api_version(self) -> None:
        with pytest.raises(ValidationError, match='kind "KafkaConfig" is unknown'):
            parse_broker_config("KafkaConfig:k")

    def test_unknown_setting(self) -> None:
        with pytest.raises(ValidationError, match="incorrect field 'color=red'"):
            parse_broker_config("cm:cfg:color=red")

    @pytest.mark.parametrize("spec", ["", "cm:", ":cfg", "cm:cfg:"])
    def test_empty_parts(self, spec: str) -> None:
        with pytest.raises(ValidationError, match="invalid broker config"):
            parse_broker_config(spec)

    def test_to_string(self) -> None:
        assert config_to_string({"kind": "ConfigMap", "name": "cfg", "namespace": "ns"}) == "ConfigMap:cfg:ns"
        assert config_to_string(None) == ""


class TestBroker:
    def test_new_broker(self) -> None:
        delivery = DeliveryOptions(dead_letter_sink=KSVC, retry=3, backoff_policy="linear", timeout="")
        broker = new_broker("b", "default", "MTChannelBasedBroker", "cfg", delivery)
        assert broker.metadata.annotations == {BROKER_CLASS_ANNOTATION: "MTChannelBasedBroker"}
        assert broker.spec["config"] == {"kind": "ConfigMap", "apiVersion": "v1", "name": "cfg"}
        assert broker.spec["delivery"] == {
            "retry": 3,
            "backoffPolicy": "linear",
            "deadLetterSink": {"ref": {"apiVersion": "serving.knative.dev/v1", "kind": "Service", "name": "mysvc"}},
        }

    def test_plain_broker_has_an_empty_spec(self) -> None:
        broker = new_broker("b", "default")
        assert broker.to_dict() == {
            "apiVersion": "eventing.knative.dev/v1",
            "kind": "Broker",
            "metadata": {"name": "b", "namespace": "default"},
            "spec": {},
        }

    def test_config_needs_a_class(self) -> None:
        with pytest.raises(ValidationError, match="cannot set broker-config without setting class"):
            new_broker("b", "default", config="cfg")

    def test_delivery_merges_into_existing_settings(self) -> None:
        broker = new_broker("b", "default", delivery=DeliveryOptions(retry=3, timeout="PT5S"))
        DeliveryOptions(retry=5).apply(broker)
        assert broker.spec["delivery"] == {"retry": 5, "timeout": "PT5S"}

    def test_invalid_backoff_policy(self) -> None:
        with pytest.raises(ValidationError, match="invalid backoff policy 'random'"):
            new_broker("b", "default", delivery=DeliveryOptions(backoff_policy="random"))

    def test_empty_delivery(self) -> None:
        assert DeliveryOptions().is_empty()
        assert DeliveryOptions(retry=0, timeout="").is_empty()
        assert not DeliveryOptions(backoff_delay="PT1S").is_empty()

    def test_url(self) -> None:
        broker = KnObject.from_dict({"metadata": {"name": "b"}, "status": {"address": {"url": "http://b.example"}}})
        assert broker_url(broker) == "http://b.example"
        assert broker_url(new_broker("b", "default")) == ""


class TestTrigger:
    def test_new_trigger(self) -> None:
        trigger = new_trigger("t", "default", "default", KSVC, {"type": "dev.example"}, inject_broker=True)
        assert trigger.metadata.annotations == {INJECTION_ANNOTATION: "enabled"}
        assert trigger.spec == {
            "broker": "default",
            "filter": {"attributes": {"type": "dev.example"}},
            "subscriber": {"ref": {"apiVersion": "serving.knative.dev/v1", "kind": "Service", "name": "mysvc"}},
        }

    def test_injection_needs_the_default_broker(self) -> None:
        with pytest.raises(ValidationError, match="must be 'default'"):
            new_trigger("t", "default", "other", KSVC, inject_broker=True)

    def test_update_filters(self) -> None:
        trigger = new_trigger("t", "default", "default", KSVC, {"type": "a", "source": "s"})
        update_trigger_filters(trigger, {"type": "b", "extra": "x"}, ["source"])
        assert trigger_filters(trigger) == {"type": "b", "extra": "x"}
        update_trigger_filters(trigger, {}, ["type", "extra"])
        assert "filter" not in trigger.spec

    def test_parse_filters(self) -> None:
        assert parse_filters(["type=a", "source="]) == ({"type": "a", "source": ""}, [])
        assert parse_filters(["type=a", "source-"], allow_remove=True) == ({"type": "a"}, ["source"])

    def test_duplicate_filters(self) -> None:
        with pytest.raises(ValidationError, match="duplicate --filter key"):
            parse_filters(["type=a", "type=b"])

    def test_filter_needs_a_value(self) -> None:
        with pytest.raises(ValidationError, match="--filter"):
            parse_filters(["type"])
