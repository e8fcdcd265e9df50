import functools
import logging
import os
from typing import Dict, Optional, Tuple

import click
from kubernetes import config
from rich.console import Console

from .config import Configuration, load_config
from .sink import SinkAlias, sink_aliases
from ..crds.client import DynamicClient, ResourceClient
from ..crds.const import SERVICE_GVR
from ..crds.gitops import GitOpsClient
from ..errors import KnError, ValidationError, get_error

logger = logging.getLogger(__name__)


def get_current_context(
    kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> Tuple[Optional[str], str]:
    """
    Returns the user and namespace of the selected (or active) kubeconfig context.
    Respects the KUBECONFIG environment variable.
    """
    try:
        contexts, active_context = config.list_kube_config_contexts(
            config_file=kubeconfig or os.environ.get("KUBECONFIG")
        )
        if context:
            active_context = next(c for c in contexts if c.get("name") == context)
        context_data = active_context.get("context", {})
        return context_data.get("user"), context_data.get("namespace") or "default"
    except (config.ConfigException, StopIteration, IndexError):
        # Fallback if no config is found or context is incomplete
        return None, "default"


def get_console() -> Console:
    return Console(highlight=False, soft_wrap=True, emoji=False)


class KnParams:
    """
    Everything a command needs besides its own flags: configuration, how to
    reach the cluster and where to print. Tests inject a fake dynamic client,
    a fixed namespace and a capturing console.
    """

    def __init__(
        self,
        configuration: Optional[Configuration] = None,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        dynamic_client=None,
        fixed_current_namespace: Optional[str] = None,
        console: Optional[Console] = None,
    ):
        self.configuration = configuration or load_config(None)
        self.kubeconfig = kubeconfig
        self.context = context
        self.dynamic_client = dynamic_client
        self.fixed_current_namespace = fixed_current_namespace
        self.console = console

    def current_namespace(self) -> str:
        if self.fixed_current_namespace:
            return self.fixed_current_namespace
        _, namespace = get_current_context(self.kubeconfig, self.context)
        return namespace

    def get_console(self) -> Console:
        return self.console or get_console()

    def sink_aliases(self) -> Dict[str, SinkAlias]:
        return sink_aliases(self.configuration.sink_mappings)

    def new_dynamic_client(self):
        if self.dynamic_client is None:
            try:
                api_client = config.new_client_from_config(
                    config_file=self.kubeconfig, context=self.context
                )
            except config.ConfigException as e:
                raise get_error(e) from e
            self.dynamic_client = DynamicClient(api_client)
        return self.dynamic_client

    def new_service_client(self, namespace: str, target: Optional[str] = None):
        """Service client for the cluster, or for a gitops directory when ``target`` is set."""
        if target:
            logger.debug("Using gitops target %s", target)
            return GitOpsClient(target, namespace)
        return ResourceClient(self.new_dynamic_client(), SERVICE_GVR, "Service", namespace)


def get_namespace(
    params: KnParams,
    namespace: Optional[str],
    all_namespaces: bool = False,
    allow_all_namespaces: bool = True,
) -> str:
    """
    Picks the effective namespace: empty for ``--all-namespaces``, then an
    explicit ``--namespace``, then the namespace of the current context.
    """
    if all_namespaces:
        if not allow_all_namespaces:
            raise ValidationError("--all-namespaces is not supported by this command")
        return ""
    if namespace:
        return namespace
    return params.current_namespace() or "default"


class KnUsageError(click.UsageError):
    exit_code = 1


def handle_errors(f):
    """
    Converts kn errors raised by a command into click errors: validation
    errors print the usage after the message, everything else only the
    message. Both exit with status 1.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValidationError as e:
            raise KnUsageError(str(e), ctx=click.get_current_context(silent=True)) from e
        except KnError as e:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(e)) from e

    return wrapper


def get_params(ctx: click.Context) -> KnParams:
    return ctx.find_root().obj["PARAMS"]
