"""
Builders and shortcuts shared by the tests.
"""
import copy
from typing import Any, Dict, List, Optional, Sequence

from click.testing import CliRunner, Result

from kn.cli.config import DEFAULT_CONFIG, Configuration, deep_merge
from kn.cli.main import main
from kn.cli.utils import KnParams

NAMESPACE = "default"


def make_config(overrides: Optional[Dict[str, Any]] = None) -> Configuration:
    data = copy.deepcopy(DEFAULT_CONFIG)
    if overrides:
        data = deep_merge(overrides, data)
    return Configuration(data)


def make_params(client, namespace: str = NAMESPACE, console=None, config: Optional[Configuration] = None) -> KnParams:
    return KnParams(
        configuration=config or make_config(),
        dynamic_client=client,
        fixed_current_namespace=namespace,
        console=console,
    )


def run_cli(params: KnParams, args: Sequence[str], input: Optional[str] = None) -> Result:
    """Runs the root command with ``params`` injected, capturing its output."""
    return CliRunner().invoke(main, list(args), obj={"PARAMS": params}, input=input)


def conditions(*specs: str) -> List[Dict[str, str]]:
    """Builds conditions from ``Type=Status`` or ``Type=Status/Severity/Reason`` specs."""
    result = []
    for spec in specs:
        cond_type, _, rest = spec.partition("=")
        status, _, rest = rest.partition("/")
        severity, _, reason = rest.partition("/")
        cond = {"type": cond_type, "status": status}
        if severity:
            cond["severity"] = severity
        if reason:
            cond["reason"] = reason
        result.append(cond)
    return result


def service_manifest(
    name: str,
    namespace: str = NAMESPACE,
    image: str = "gcr.io/foo/bar:baz",
    ready: Optional[str] = "True",
    url: Optional[str] = None,
) -> Dict[str, Any]:
    manifest: Dict[str, Any] = {
        "apiVersion": "serving.knative.dev/v1",
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace, "generation": 1},
        "spec": {"template": {"spec": {"containers": [{"image": image}]}}},
    }
    if ready is not None:
        manifest["status"] = {
            "observedGeneration": 1,
            "url": url or f"http://{name}.{namespace}.example.com",
            "latestReadyRevisionName": f"{name}-00001",
            "conditions": conditions(f"Ready={ready}"),
        }
    return manifest


def source_manifest(
    kind: str,
    name: str,
    namespace: str = NAMESPACE,
    spec: Optional[Dict[str, Any]] = None,
    status: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    manifest: Dict[str, Any] = {
        "apiVersion": "sources.knative.dev/v1",
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec or {},
    }
    if status is not None:
        manifest["status"] = status
    return manifest


def ready_event(obj: Dict[str, Any], status: str = "True", reason: str = "", message: str = "") -> Dict[str, Any]:
    """A MODIFIED watch event carrying a Ready condition for an in-sync generation."""
    obj = copy.deepcopy(obj)
    generation = obj.setdefault("metadata", {}).setdefault("generation", 1)
    cond = {"type": "Ready", "status": status}
    if reason:
        cond["reason"] = reason
    if message:
        cond["message"] = message
    obj["status"] = {"observedGeneration": generation, "conditions": [cond]}
    return {"type": "MODIFIED", "object": obj}


def source_crd(kind: str, group: str = "sources.knative.dev", version: str = "v1") -> Dict[str, Any]:
    """A CustomResourceDefinition labelled as an event source, serving ``version``."""
    plural = kind.lower() + "s"
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{plural}.{group}", "labels": {"duck.knative.dev/source": "true"}},
        "spec": {
            "group": group,
            "names": {"kind": kind, "plural": plural},
            "versions": [{"name": "v1beta1", "served": False}, {"name": version, "served": True}],
        },
    }
