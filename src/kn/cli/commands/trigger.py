from typing import Optional

import click

from .. import handlers
from ..flags import list_options, namespace_option, output_option, sink_option, verbose_option, wait_options
from ..utils import get_params, handle_errors
from ...crds.eventing import DEFAULT_BROKER


@click.group()
def trigger() -> None:
    """Manage event triggers."""
    pass


@trigger.command(help="Create a trigger.")
@click.argument("name", type=str)
@click.option("--broker", type=str, default=DEFAULT_BROKER, show_default=True, help="Name of the broker.")
@click.option(
    "--filter",
    "filters",
    multiple=True,
    metavar="KEY=VALUE",
    help="Only deliver events whose attribute KEY equals VALUE. May be given more than once.",
)
@click.option(
    "--inject-broker", is_flag=True, help="Create the default broker by injection, only with --broker default."
)
@sink_option(required=True)
@namespace_option
@click.pass_context
@handle_errors
def create(ctx, name: str, broker: str, filters, inject_broker: bool, sink: str, namespace) -> None:
    handlers.create_trigger(
        get_params(ctx),
        name=name,
        sink=sink,
        broker=broker,
        filters=filters,
        inject_broker=inject_broker,
        namespace=namespace,
    )


@trigger.command(help="Update a trigger.")
@click.argument("name", type=str)
@click.option("--broker", type=str, default=None, help="Brokers of triggers cannot be changed.", hidden=True)
@click.option(
    "--filter",
    "filters",
    multiple=True,
    metavar="KEY=VALUE",
    help="Filter attribute to add or change. Use KEY- to remove it.",
)
@sink_option()
@namespace_option
@click.pass_context
@handle_errors
def update(ctx, name: str, broker: Optional[str], filters, sink, namespace) -> None:
    handlers.update_trigger(
        get_params(ctx), name=name, sink=sink, broker=broker, filters=filters, namespace=namespace
    )


@trigger.command(help="Delete a trigger.")
@click.argument("name", type=str)
@wait_options
@namespace_option
@click.pass_context
@handle_errors
def delete(ctx, name: str, wait: bool, wait_timeout: Optional[int], namespace) -> None:
    handlers.delete_trigger(get_params(ctx), name=name, namespace=namespace, wait=wait, wait_timeout=wait_timeout)


@trigger.command(help="Show details of a trigger.")
@click.argument("name", type=str)
@namespace_option
@output_option
@verbose_option
@click.pass_context
@handle_errors
def describe(ctx, name: str, namespace, output, verbose: bool) -> None:
    handlers.describe_trigger(get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose)


@trigger.command(name="list", help="List triggers.")
@list_options
@click.pass_context
@handle_errors
def list_command(ctx, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
    handlers.list_triggers(
        get_params(ctx),
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
    )
