import click

from .. import handlers
from ..flags import list_options, namespace_option, output_option, verbose_option
from ..utils import get_params, handle_errors


@click.group()
def route() -> None:
    """List and describe service routes."""
    pass


@route.command(name="list", help="List routes.")
@click.argument("name", required=False, type=str)
@list_options
@click.pass_context
@handle_errors
def list_command(ctx, name, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
    handlers.list_routes(
        get_params(ctx),
        name=name,
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
    )


@route.command(help="Show details of a route.")
@click.argument("name", type=str)
@namespace_option
@output_option
@verbose_option
@click.pass_context
@handle_errors
def describe(ctx, name: str, namespace, output, verbose: bool) -> None:
    handlers.describe_route(get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose)
