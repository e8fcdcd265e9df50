from typing import Optional

import click

from .. import handlers
from ..flags import list_options, namespace_option, output_option, verbose_option, wait_options
from ..utils import get_params, handle_errors


@click.group()
def revision() -> None:
    """Manage service revisions."""
    pass


@revision.command(name="list", help="List revisions.")
@click.argument("name", required=False, type=str)
@click.option("-s", "--service", type=str, default=None, help="Only list revisions of this service.")
@list_options
@click.pass_context
@handle_errors
def list_command(ctx, name, service, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
    handlers.list_revisions(
        get_params(ctx),
        name=name,
        service=service,
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
    )


@revision.command(help="Show details of a revision.")
@click.argument("name", type=str)
@namespace_option
@output_option
@verbose_option
@click.pass_context
@handle_errors
def describe(ctx, name: str, namespace, output, verbose: bool) -> None:
    handlers.describe_revision(get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose)


@revision.command(help="Delete revisions.")
@click.argument("names", nargs=-1, type=str)
@click.option("--prune", type=str, default=None, metavar="SERVICE", help="Delete the unreferenced revisions of a service.")
@click.option("--prune-all", is_flag=True, help="Delete every unreferenced revision in the namespace.")
@wait_options
@namespace_option
@click.pass_context
@handle_errors
def delete(ctx, names, prune, prune_all: bool, wait: bool, wait_timeout: Optional[int], namespace) -> None:
    handlers.delete_revisions(
        get_params(ctx),
        names=names,
        prune=prune,
        prune_all=prune_all,
        namespace=namespace,
        wait=wait,
        wait_timeout=wait_timeout,
    )
