"""
This file contains shared fixtures for all tests.
"""
import pytest

from kn.crds.const import CRD_GVR, SERVICE_GVR
from kn.testing.fakes import FakeDynamicClient, MockDynamicClient
from kn.testing.output import capture_output
from tests.helpers import make_params, service_manifest, source_crd


@pytest.fixture
def fake_client() -> FakeDynamicClient:
    """An empty in-memory control plane."""
    return FakeDynamicClient()


@pytest.fixture
def mock_client():
    """A strict recorded-call client; every expectation must be consumed."""
    client = MockDynamicClient()
    yield client
    client.validate()


@pytest.fixture
def output():
    with capture_output() as captured:
        yield captured


@pytest.fixture
def params(fake_client, output):
    """Handler parameters bound to the fake client with captured output."""
    console, _ = output
    return make_params(fake_client, console=console)


@pytest.fixture
def cli_params(fake_client):
    """Parameters for CLI runs; output goes to the runner's stdout."""
    return make_params(fake_client)


@pytest.fixture
def with_service(fake_client):
    """Registers a ready service 'mysvc' and returns its resource."""

    def add(name: str = "mysvc", namespace: str = "default"):
        return fake_client.add(SERVICE_GVR, service_manifest(name, namespace))

    return add


@pytest.fixture
def with_crds(fake_client):
    """Installs the CustomResourceDefinitions of the built-in source kinds."""
    for kind in ("ApiServerSource", "ContainerSource", "PingSource", "SinkBinding"):
        fake_client.add(CRD_GVR, source_crd(kind))
