from operator import attrgetter

import pytest

from kn.crds.catalog import SourceCatalog, SourceDescriptor, builtin_source_kinds, kind_from_crd, to_source_descriptor
from kn.crds.const import (
    APISERVER_SOURCE_GVR,
    CONTAINER_SOURCE_GVR,
    CRD_GVR,
    PING_SOURCE_GVR,
    SINK_BINDING_GVR,
)
from kn.errors import KnError, TransportError
from tests.helpers import conditions, source_crd, source_manifest

SINK = {"ref": {"apiVersion": "serving.knative.dev/v1", "kind": "Service", "name": "mysvc"}}


def add_sources(fake_client) -> None:
    fake_client.add(
        PING_SOURCE_GVR,
        source_manifest("PingSource", "ping", spec={"sink": SINK}, status={"conditions": conditions("Ready=True")}),
    )
    fake_client.add(
        APISERVER_SOURCE_GVR,
        source_manifest("ApiServerSource", "api", spec={"sink": {"uri": "http://example.com"}}),
    )
    fake_client.add(SINK_BINDING_GVR, source_manifest("SinkBinding", "binding", namespace="other"))



class TestSourceKinds:
    def test_kind_from_crd_uses_the_served_version(self) -> None:
        kind = kind_from_crd(source_crd("PingSource"))
        assert kind.kind == "PingSource"
        assert kind.gvr == PING_SOURCE_GVR
        assert kind.crd_name == "pingsources.sources.knative.dev"
        assert kind.description == "Send periodically ping events to a sink"

    def test_installed_kinds(self, fake_client) -> None:
        fake_client.add(CRD_GVR, source_crd("KafkaSource", group="sources.example.com", version="v1beta1"))
        kinds = SourceCatalog(fake_client, "default").list_source_kinds()
        assert [(k.kind, k.group_version, k.description) for k in kinds] == [
            ("KafkaSource", "sources.example.com/v1beta1", "")
        ]

    def test_unlabelled_crds_are_ignored(self, fake_client) -> None:
        crd = source_crd("PingSource")
        crd["metadata"]["labels"] = {}
        fake_client.add(CRD_GVR, crd)
        assert SourceCatalog(fake_client, "default").list_source_kinds() == []

    def test_forbidden_crds_fall_back_to_listable_builtins(self, fake_client) -> None:
        fake_client.forbid(CRD_GVR)
        fake_client.forbid(CONTAINER_SOURCE_GVR)
        kinds = SourceCatalog(fake_client, "default").list_source_kinds()
        assert [k.kind for k in kinds] == ["ApiServerSource", "PingSource", "SinkBinding"]

    def test_other_crd_errors_do_not_fall_back(self, mock_client) -> None:
        mock_client.expect_list(
            CRD_GVR, None, label_selector="duck.knative.dev/source=true", error=KnError("etcd unavailable")
        )
        with pytest.raises(KnError, match="etcd unavailable"):
            SourceCatalog(mock_client, "default").list_source_kinds()


class TestListSources:
    def test_descriptors(self, fake_client, with_crds) -> None:
        add_sources(fake_client)
        sources = SourceCatalog(fake_client, "default").list_sources()
        by_name = {s.name: s for s in sources}
        assert set(by_name) == {"ping", "api"}
        assert by_name["ping"] == SourceDescriptor(
            name="ping",
            namespace="default",
            kind_display="PingSource",
            resource_group="pingsources.sources.knative.dev",
            sink_display="ksvc:mysvc",
            ready_display="True",
        )
        assert by_name["api"].sink_display == "http://example.com"
        assert by_name["api"].ready_display == "<unknown>"

    def test_all_namespaces(self, fake_client, with_crds) -> None:
        add_sources(fake_client)
        names = {s.name for s in SourceCatalog(fake_client, "").list_sources()}
        assert names == {"ping", "api", "binding"}

    def test_forbidden_fallback_lists_the_same_sources(self, fake_client, with_crds) -> None:
        """Without access to CRDs the built-in kinds give the same result."""
        add_sources(fake_client)
        with_access = SourceCatalog(fake_client, "").list_sources()
        fake_client.forbid(CRD_GVR)
        without_access = SourceCatalog(fake_client, "").list_sources()
        key = attrgetter("kind_display", "namespace", "name")
        assert sorted(with_access, key=key) == sorted(without_access, key=key)

    def test_type_filter_ignores_case(self, fake_client, with_crds) -> None:
        add_sources(fake_client)
        sources = SourceCatalog(fake_client, "default").list_sources(["pingsource", "SINKBINDING"])
        assert [s.name for s in sources] == ["ping"]

    def test_failing_kind_is_skipped(self, fake_client, with_crds) -> None:
        add_sources(fake_client)
        fake_client.forbid(APISERVER_SOURCE_GVR)
        assert [s.name for s in SourceCatalog(fake_client, "default").list_sources()] == ["ping"]

    def test_transport_errors_abort(self, mock_client) -> None:
        mock_client.expect_list(
            CRD_GVR, None, "duck.knative.dev/source=true", result={"items": [source_crd("PingSource")]}
        )
        mock_client.expect_list(PING_SOURCE_GVR, "default", None, error=TransportError("connection refused"))
        with pytest.raises(TransportError):
            SourceCatalog(mock_client, "default").list_sources()

    def test_nothing_installed(self, fake_client) -> None:
        assert SourceCatalog(fake_client, "default").list_sources() == []


class TestToSourceDescriptor:
    def test_conditions_must_be_a_list(self) -> None:
        raw = source_manifest("PingSource", "ping", status={"conditions": {"type": "Ready"}})
        with pytest.raises(KnError, match="cannot parse status.conditions of PingSource 'ping'"):
            to_source_descriptor(raw)

    def test_sink_must_be_an_object(self) -> None:
        raw = source_manifest("PingSource", "ping", spec={"sink": "ksvc:foo"})
        with pytest.raises(KnError, match="cannot parse spec.sink of PingSource 'ping'"):
            to_source_descriptor(raw)

    def test_sink_without_ready_condition(self) -> None:
        raw = source_manifest(
            "SinkBinding", "b", spec={"sink": SINK}, status={"conditions": conditions("SinkProvided=True")}
        )
        descriptor = to_source_descriptor(raw)
        assert descriptor.ready_display == "<unknown>"
        assert descriptor.resource_group == "sinkbindings.sources.knative.dev"


def test_builtin_source_kinds() -> None:
    assert {k.gvr for k in builtin_source_kinds()} == {
        APISERVER_SOURCE_GVR,
        CONTAINER_SOURCE_GVR,
        PING_SOURCE_GVR,
        SINK_BINDING_GVR,
    }
