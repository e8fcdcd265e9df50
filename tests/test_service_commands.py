import json
from unittest.mock import ANY
from pathlib import Path

import yaml

from kn.crds.base import KnObject
from kn.crds.const import SERVICE_GVR
from kn.crds.service import service_image
from kn.errors import NotFoundError
from tests.helpers import make_params, ready_event, run_cli, service_manifest


def _stored(fake_client, name: str, namespace: str = "default") -> KnObject:
    return KnObject.from_dict(fake_client.get(SERVICE_GVR, name, namespace))


class TestServiceCreate:
    def test_create_no_wait(self, cli_params, fake_client) -> None:
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "gcr.io/foo/bar:baz", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert "Service 'foo' created in namespace 'default'." in result.output
        assert service_image(_stored(fake_client, "foo")) == "gcr.io/foo/bar:baz"

    def test_create_with_flags(self, cli_params, fake_client) -> None:
        result = run_cli(
            cli_params,
            [
                "service", "create", "foo", "--image", "img", "-e", "A=1", "-p", "8080",
                "-l", "team=x", "--scale-min", "1", "--no-wait", "-n", "other",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "in namespace 'other'" in result.output
        service = _stored(fake_client, "foo", "other")
        container = service.spec["template"]["spec"]["containers"][0]
        assert container["env"] == [{"name": "A", "value": "1"}]
        assert container["ports"] == [{"containerPort": 8080}]
        assert service.metadata.labels == {"team": "x"}

    def test_create_waits_until_ready(self, cli_params, fake_client) -> None:
        fake_client.watch_events["foo"] = [ready_event(service_manifest("foo", ready=None))]
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "img"])
        assert result.exit_code == 0, result.output
        assert "Service 'foo' ready after" in result.output
        assert ("watch", SERVICE_GVR, "foo") in fake_client.calls

    def test_create_fails_when_not_ready(self, cli_params, fake_client) -> None:
        fake_client.watch_events["foo"] = [
            ready_event(service_manifest("foo", ready=None), "False", "RevisionFailed", "image not found")
        ]
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "img", "--wait-timeout", "5"])
        assert result.exit_code == 1
        assert "created in namespace 'default'" in result.output
        assert "RevisionFailed: image not found" in result.output
        assert "timeout" not in result.output

    def test_create_times_out_without_events(self, cli_params, fake_client) -> None:
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "img", "--wait-timeout", "1"])
        assert result.exit_code == 1
        assert "timeout: service 'foo' not ready after 1 seconds" in result.output

    def test_create_existing_needs_force(self, cli_params, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "create", "mysvc", "--image", "img", "--no-wait"])
        assert result.exit_code == 1
        assert "cannot create service 'mysvc' in namespace 'default'" in result.output
        assert "already exists and no --force option was given" in result.output

    def test_create_force_replaces(self, cli_params, fake_client, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "create", "mysvc", "--image", "img:v2", "--force", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert "Service 'mysvc' replaced in namespace 'default'." in result.output
        assert service_image(_stored(fake_client, "mysvc")) == "img:v2"

    def test_create_needs_an_image(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "create", "foo", "--no-wait"])
        assert result.exit_code == 1
        assert "requires the image name" in result.output
        assert "Usage:" in result.output

    def test_create_rejects_removals(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "img", "-e", "A-", "--no-wait"])
        assert result.exit_code == 1
        assert "expected KEY=VALUE for --env" in result.output

    def test_create_with_extra_containers(self, cli_params, fake_client, tmp_path: Path) -> None:
        path = tmp_path / "containers.yaml"
        path.write_text(yaml.safe_dump({"containers": [{"name": "sidecar", "image": "side"}]}))
        result = run_cli(
            cli_params, ["service", "create", "foo", "--image", "img", "--containers", str(path), "--no-wait"]
        )
        assert result.exit_code == 0, result.output
        containers = _stored(fake_client, "foo").spec["template"]["spec"]["containers"]
        assert [c["image"] for c in containers] == ["img", "side"]


class TestServiceUpdate:
    def test_update(self, cli_params, fake_client, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "update", "mysvc", "-e", "A=1", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert "Service 'mysvc' updated in namespace 'default'." in result.output
        service = _stored(fake_client, "mysvc")
        assert service.spec["template"]["spec"]["containers"][0]["env"] == [{"name": "A", "value": "1"}]
        assert service.metadata.generation == 2

    def test_update_retries_conflicts(self, cli_params, fake_client, with_service) -> None:
        with_service("mysvc")
        fake_client.inject_conflicts(SERVICE_GVR, 1)
        result = run_cli(cli_params, ["service", "update", "mysvc", "--image", "img:v2", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert service_image(_stored(fake_client, "mysvc")) == "img:v2"

    def test_update_missing(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "update", "absent", "--image", "img", "--no-wait"])
        assert result.exit_code == 1
        assert "cannot update service 'absent'" in result.output
        assert "not found" in result.output

    def test_update_validates_before_reading(self, cli_params, fake_client) -> None:
        result = run_cli(cli_params, ["service", "update", "absent", "--scale-min", "-1", "--no-wait"])
        assert result.exit_code == 1
        assert "invalid scale-min" in result.output
        assert fake_client.calls == []


class TestServiceDelete:
    def test_delete(self, cli_params, fake_client, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "delete", "mysvc"])
        assert result.exit_code == 0, result.output
        assert "Service 'mysvc' successfully deleted in namespace 'default'." in result.output
        assert fake_client.store == {}

    def test_delete_all(self, cli_params, fake_client, with_service) -> None:
        with_service("a")
        with_service("b")
        result = run_cli(cli_params, ["service", "delete", "--all", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert "Service 'a' successfully deleted" in result.output
        assert "Service 'b' successfully deleted" in result.output

    def test_delete_all_when_empty(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "delete", "--all"])
        assert result.exit_code == 0
        assert result.output == "No services found.\n"

    def test_delete_all_with_names(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "delete", "a", "--all"])
        assert result.exit_code == 1
        assert "requires no arguments" in result.output

    def test_delete_needs_names(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "delete"])
        assert result.exit_code == 1
        assert "requires the service name(s)" in result.output

    def test_delete_reports_every_failure(self, cli_params, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "delete", "absent", "mysvc", "gone", "--no-wait"])
        assert result.exit_code == 1
        assert "Service 'mysvc' successfully deleted" in result.output
        assert "cannot delete service 'absent'" in result.output
        assert "cannot delete service 'gone'" in result.output


class TestServiceDescribe:
    def test_describe(self, cli_params, fake_client) -> None:
        manifest = service_manifest("mysvc")
        manifest["status"]["traffic"] = [
            {"revisionName": "mysvc-00001", "latestRevision": True, "percent": 100, "tag": "current"}
        ]
        fake_client.add(SERVICE_GVR, manifest)
        result = run_cli(cli_params, ["service", "describe", "mysvc"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split() == ["Name:", "mysvc"]
        assert "http://mysvc.default.example.com" in result.output
        assert "gcr.io/foo/bar:baz" in result.output
        assert "@latest (mysvc-00001) #current" in result.output
        assert "Conditions:" in result.output
        assert any(line.split()[:2] == ["++", "Ready"] for line in lines)

    def test_describe_json(self, cli_params, with_service) -> None:
        with_service("mysvc")
        result = run_cli(cli_params, ["service", "describe", "mysvc", "-o", "json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["metadata"]["name"] == "mysvc"

    def test_describe_missing(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "describe", "absent"])
        assert result.exit_code == 1
        assert "cannot describe service 'absent' in namespace 'default'" in result.output


class TestServiceList:
    def test_list(self, cli_params, with_service) -> None:
        with_service("b")
        with_service("a")
        result = run_cli(cli_params, ["service", "list"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split() == ["NAME", "URL", "LATEST", "AGE", "CONDITIONS", "READY", "REASON"]
        assert lines[1].split()[:3] == ["a", "http://a.default.example.com", "a-00001"]
        assert lines[2].split()[0] == "b"

    def test_list_by_name(self, cli_params, with_service) -> None:
        with_service("a")
        with_service("b")
        result = run_cli(cli_params, ["service", "list", "b", "--no-headers"])
        assert result.exit_code == 0, result.output
        assert [line.split()[0] for line in result.output.splitlines()] == ["b"]

    def test_list_all_namespaces(self, cli_params, with_service) -> None:
        with_service("a", namespace="other")
        with_service("b")
        result = run_cli(cli_params, ["service", "list", "-A"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split()[0] == "NAMESPACE"
        assert [line.split()[:2] for line in lines[1:]] == [["default", "b"], ["other", "a"]]

    def test_list_output_name(self, cli_params, with_service) -> None:
        with_service("a")
        result = run_cli(cli_params, ["service", "list", "-o", "name"])
        assert result.output == "service.serving.knative.dev/a\n"

    def test_list_bad_output_format(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "list", "-o", "bogus"])
        assert result.exit_code == 1
        assert "unable to match a printer" in result.output

    def test_empty_list(self, cli_params) -> None:
        result = run_cli(cli_params, ["service", "list"])
        assert result.exit_code == 0
        assert result.output == "No services found.\n"


class TestGitOps:
    def test_create_list_and_delete(self, cli_params, fake_client, tmp_path: Path) -> None:
        target = str(tmp_path)
        result = run_cli(cli_params, ["service", "create", "foo", "--image", "img", "--target", target])
        assert result.exit_code == 0, result.output
        assert "Service 'foo' created in namespace 'default'." in result.output
        assert (tmp_path / "default" / "ksvc" / "foo.yaml").exists()

        result = run_cli(cli_params, ["service", "list", "--target", target, "--no-headers"])
        assert result.output.split()[0] == "foo"

        result = run_cli(cli_params, ["service", "update", "foo", "--image", "img:v2", "--target", target])
        assert result.exit_code == 0, result.output

        result = run_cli(cli_params, ["service", "delete", "foo", "--target", target])
        assert result.exit_code == 0, result.output
        assert not (tmp_path / "default" / "ksvc" / "foo.yaml").exists()
        assert fake_client.calls == []


class TestServiceCallOrder:
    """Exact sequence of API calls made by the service commands."""

    def test_create_no_wait(self, mock_client) -> None:
        mock_client.expect_get(SERVICE_GVR, "foo", "default", error=NotFoundError('services "foo" not found'))
        body = {
            "apiVersion": "serving.knative.dev/v1",
            "kind": "Service",
            "metadata": {"name": "foo", "namespace": "default"},
            "spec": ANY,
        }
        mock_client.expect_create(SERVICE_GVR, body, "default", result=service_manifest("foo", ready=None))
        result = run_cli(make_params(mock_client), ["service", "create", "foo", "--image", "img", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert result.output == "Service 'foo' created in namespace 'default'.\n"

    def test_create_force_replaces_at_the_read_version(self, mock_client) -> None:
        existing = service_manifest("foo")
        existing["metadata"]["resourceVersion"] = "7"
        mock_client.expect_get(SERVICE_GVR, "foo", "default", result=existing)
        body = {
            "apiVersion": "serving.knative.dev/v1",
            "kind": "Service",
            "metadata": {"name": "foo", "namespace": "default", "resourceVersion": "7"},
            "spec": ANY,
        }
        mock_client.expect_replace(SERVICE_GVR, "foo", body, "default", result=existing)
        result = run_cli(
            make_params(mock_client), ["service", "create", "foo", "--image", "img", "--force", "--no-wait"]
        )
        assert result.exit_code == 0, result.output
        assert "Service 'foo' replaced in namespace 'default'." in result.output

    def test_delete_waits_with_foreground_propagation(self, mock_client) -> None:
        mock_client.expect_delete(SERVICE_GVR, "mysvc", "default", "Foreground")
        mock_client.expect_get(SERVICE_GVR, "mysvc", "default", error=NotFoundError('services "mysvc" not found'))
        result = run_cli(make_params(mock_client), ["service", "delete", "mysvc"])
        assert result.exit_code == 0, result.output
        assert result.output == "Service 'mysvc' successfully deleted in namespace 'default'.\n"

    def test_delete_no_wait(self, mock_client) -> None:
        mock_client.expect_delete(SERVICE_GVR, "a", "default")
        mock_client.expect_delete(SERVICE_GVR, "b", "default")
        result = run_cli(make_params(mock_client), ["service", "delete", "a", "b", "--no-wait"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "Service 'a' successfully deleted in namespace 'default'.",
            "Service 'b' successfully deleted in namespace 'default'.",
        ]
