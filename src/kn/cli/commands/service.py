from typing import Optional, Tuple

import click

from .. import handlers
from ..flags import list_options, namespace_option, output_option, target_option, verbose_option, wait_options
from ..utils import get_params, handle_errors
from ...crds.service import ServiceConfig
from ...utils.kv import parse_key_values


def service_options(f):
    """Options shared by ``service create`` and ``service update``."""
    options = [
        click.option("--image", type=str, default=None, help="Image to run."),
        click.option(
            "-e", "--env", multiple=True, metavar="KEY=VALUE", help="Environment variable to set. KEY- removes it."
        ),
        click.option("-p", "--port", type=str, default=None, help="The port the container listens on ([NAME:]PORT)."),
        click.option(
            "-l", "--label", multiple=True, metavar="KEY=VALUE", help="Label to set on the service. KEY- removes it."
        ),
        click.option(
            "-a", "--annotation", multiple=True, metavar="KEY=VALUE", help="Annotation to set. KEY- removes it."
        ),
        click.option("--scale-min", type=int, default=None, help="Minimum number of replicas."),
        click.option("--scale-max", type=int, default=None, help="Maximum number of replicas."),
        click.option(
            "--concurrency-limit", type=int, default=None, help="Hard limit of concurrent requests per replica."
        ),
        click.option("--service-account", type=str, default=None, help="Service account name to run as."),
        click.option(
            "--containers",
            type=str,
            default=None,
            help="Additional containers from a file written by 'kn container add', '-' reads stdin.",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _service_config(
    image: Optional[str],
    env: Tuple[str, ...],
    port: Optional[str],
    label: Tuple[str, ...],
    annotation: Tuple[str, ...],
    scale_min: Optional[int],
    scale_max: Optional[int],
    concurrency_limit: Optional[int],
    service_account: Optional[str],
    containers: Optional[str],
    allow_remove: bool,
) -> ServiceConfig:
    env_add, env_remove = parse_key_values(env, "env", allow_remove)
    labels, labels_remove = parse_key_values(label, "label", allow_remove)
    annotations, annotations_remove = parse_key_values(annotation, "annotation", allow_remove)
    return ServiceConfig(
        image=image,
        env=env_add,
        env_remove=env_remove,
        port=port,
        labels=labels,
        labels_remove=labels_remove,
        annotations=annotations,
        annotations_remove=annotations_remove,
        scale_min=scale_min,
        scale_max=scale_max,
        concurrency_limit=concurrency_limit,
        service_account=service_account,
        containers=handlers.load_containers(containers) if containers else None,
    )


@click.group()
def service() -> None:
    """Manage Knative services."""
    pass


@service.command(help="Create a service.")
@click.argument("name", type=str)
@service_options
@click.option("--force", is_flag=True, help="Create the service forcefully, replacing an existing one.")
@wait_options
@namespace_option
@target_option
@click.pass_context
@handle_errors
def create(ctx, name: str, force: bool, wait: bool, wait_timeout: Optional[int], namespace, target, **flags) -> None:
    handlers.create_service(
        get_params(ctx),
        name=name,
        config=_service_config(allow_remove=False, **flags),
        namespace=namespace,
        force=force,
        wait=wait,
        wait_timeout=wait_timeout,
        target=target,
    )


@service.command(help="Update a service.")
@click.argument("name", type=str)
@service_options
@wait_options
@namespace_option
@target_option
@click.pass_context
@handle_errors
def update(ctx, name: str, wait: bool, wait_timeout: Optional[int], namespace, target, **flags) -> None:
    handlers.update_service(
        get_params(ctx),
        name=name,
        config=_service_config(allow_remove=True, **flags),
        namespace=namespace,
        wait=wait,
        wait_timeout=wait_timeout,
        target=target,
    )


@service.command(help="Delete services.")
@click.argument("names", nargs=-1, type=str)
@click.option("--all", "delete_all", is_flag=True, help="Delete all services in a namespace.")
@wait_options
@namespace_option
@target_option
@click.pass_context
@handle_errors
def delete(ctx, names, delete_all: bool, wait: bool, wait_timeout: Optional[int], namespace, target) -> None:
    handlers.delete_services(
        get_params(ctx),
        names=names,
        namespace=namespace,
        delete_all=delete_all,
        wait=wait,
        wait_timeout=wait_timeout,
        target=target,
    )


@service.command(help="Show details of a service.")
@click.argument("name", type=str)
@namespace_option
@output_option
@verbose_option
@target_option
@click.pass_context
@handle_errors
def describe(ctx, name: str, namespace, output, verbose: bool, target) -> None:
    handlers.describe_service(
        get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose, target=target
    )


@service.command(name="list", help="List services.")
@click.argument("name", required=False, type=str)
@list_options
@target_option
@click.pass_context
@handle_errors
def list_command(ctx, name, namespace, all_namespaces: bool, output, no_headers: bool, target) -> None:
    handlers.list_services(
        get_params(ctx),
        name=name,
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
        target=target,
    )
