from typing import Callable

import click

from .. import handlers
from ..flags import (
    ce_override_option,
    list_options,
    namespace_option,
    no_headers_option,
    output_option,
    sink_option,
    verbose_option,
)
from ..utils import get_params, handle_errors
from ...crds.sources import APISERVER_MODES, RESOURCE_FORMAT


@click.group()
def source() -> None:
    """Manage event sources."""
    pass


@source.command(name="list-types", help="List event source types.")
@namespace_option
@output_option
@no_headers_option
@click.pass_context
@handle_errors
def list_types(ctx, namespace, output, no_headers: bool) -> None:
    handlers.list_source_types(get_params(ctx), namespace=namespace, output=output, no_headers=no_headers)


@source.command(name="list", help="List event sources.")
@click.option("-t", "--type", "types", multiple=True, help="Filter list on given source type, e.g. PingSource.")
@list_options
@click.pass_context
@handle_errors
def list_command(ctx, types, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
    handlers.list_sources(
        get_params(ctx),
        types=types,
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
    )


def add_read_commands(
    group: click.Group, noun: str, delete_fn: Callable, describe_fn: Callable, list_fn: Callable
) -> None:
    """Adds the ``delete``, ``describe`` and ``list`` commands every source type has."""

    @group.command(help=f"Delete a {noun}.")
    @click.argument("name", type=str)
    @namespace_option
    @click.pass_context
    @handle_errors
    def delete(ctx, name: str, namespace) -> None:
        delete_fn(get_params(ctx), name=name, namespace=namespace)

    @group.command(help=f"Show details of a {noun}.")
    @click.argument("name", type=str)
    @namespace_option
    @output_option
    @verbose_option
    @click.pass_context
    @handle_errors
    def describe(ctx, name: str, namespace, output, verbose: bool) -> None:
        describe_fn(get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose)

    @group.command(name="list", help=f"List {noun}s.")
    @list_options
    @click.pass_context
    @handle_errors
    def list_command(ctx, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
        list_fn(
            get_params(ctx),
            namespace=namespace,
            all_namespaces=all_namespaces,
            output=output,
            no_headers=no_headers,
        )


# Ping


@source.group()
def ping() -> None:
    """Manage ping sources."""
    pass


@ping.command(help="Create a ping source.")
@click.argument("name", type=str)
@click.option("--schedule", type=str, default=None, help="Cron schedule, defaults to every minute.")
@click.option("-d", "--data", type=str, default=None, help="Data sent with every ping event.")
@sink_option(required=True)
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def create(ctx, name: str, schedule, data, sink: str, ce_overrides, namespace) -> None:
    handlers.create_ping_source(
        get_params(ctx),
        name=name,
        sink=sink,
        schedule=schedule,
        data=data,
        ce_overrides=ce_overrides,
        namespace=namespace,
    )


@ping.command(help="Update a ping source.")
@click.argument("name", type=str)
@click.option("--schedule", type=str, default=None, help="Cron schedule.")
@click.option("-d", "--data", type=str, default=None, help="Data sent with every ping event.")
@sink_option()
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def update(ctx, name: str, schedule, data, sink, ce_overrides, namespace) -> None:
    handlers.update_ping_source(
        get_params(ctx),
        name=name,
        sink=sink,
        schedule=schedule,
        data=data,
        ce_overrides=ce_overrides,
        namespace=namespace,
    )


add_read_commands(
    ping,
    "ping source",
    handlers.delete_ping_source,
    handlers.describe_ping_source,
    handlers.list_ping_sources,
)


# ApiServer

_mode_option = click.option(
    "--mode",
    type=click.Choice(APISERVER_MODES),
    default=None,
    help="Reference sends only a reference to the resource, Resource sends the full resource.",
)
_service_account_option = click.option(
    "--service-account", type=str, default=None, help="Service account used to watch the resources."
)


@source.group()
def apiserver() -> None:
    """Manage ApiServer sources."""
    pass


@apiserver.command(name="create", help="Create an ApiServer source.")
@click.argument("name", type=str)
@click.option(
    "--resource", "resources", multiple=True, help=f"Resource to watch, in the format {RESOURCE_FORMAT}."
)
@_service_account_option
@_mode_option
@sink_option(required=True)
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def create_apiserver(ctx, name: str, resources, service_account, mode, sink: str, ce_overrides, namespace) -> None:
    handlers.create_apiserver_source(
        get_params(ctx),
        name=name,
        sink=sink,
        resources=resources,
        service_account=service_account,
        mode=mode,
        ce_overrides=ce_overrides,
        namespace=namespace,
    )


@apiserver.command(name="update", help="Update an ApiServer source.")
@click.argument("name", type=str)
@click.option(
    "--resource",
    "resources",
    multiple=True,
    help=f"Resource to watch, in the format {RESOURCE_FORMAT}. A trailing '-' removes it.",
)
@_service_account_option
@_mode_option
@sink_option()
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def update_apiserver(ctx, name: str, resources, service_account, mode, sink, ce_overrides, namespace) -> None:
    handlers.update_apiserver_source(
        get_params(ctx),
        name=name,
        sink=sink,
        resources=resources,
        service_account=service_account,
        mode=mode,
        ce_overrides=ce_overrides,
        namespace=namespace,
    )


add_read_commands(
    apiserver,
    "ApiServer source",
    handlers.delete_apiserver_source,
    handlers.describe_apiserver_source,
    handlers.list_apiserver_sources,
)


# SinkBinding


@source.group()
def binding() -> None:
    """Manage sink bindings."""
    pass


@binding.command(name="create", help="Create a sink binding.")
@click.argument("name", type=str)
@click.option(
    "--subject",
    type=str,
    required=True,
    help="Subject to bind, as Kind:apiVersion:name or Kind:apiVersion:key1=value1,key2=value2.",
)
@sink_option(required=True)
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def create_binding(ctx, name: str, subject: str, sink: str, ce_overrides, namespace) -> None:
    handlers.create_sink_binding(
        get_params(ctx), name=name, sink=sink, subject=subject, ce_overrides=ce_overrides, namespace=namespace
    )


@binding.command(name="update", help="Update a sink binding.")
@click.argument("name", type=str)
@click.option("--subject", type=str, default=None, help="Subject to bind.")
@sink_option()
@ce_override_option
@namespace_option
@click.pass_context
@handle_errors
def update_binding(ctx, name: str, subject, sink, ce_overrides, namespace) -> None:
    handlers.update_sink_binding(
        get_params(ctx), name=name, sink=sink, subject=subject, ce_overrides=ce_overrides, namespace=namespace
    )


add_read_commands(
    binding,
    "sink binding",
    handlers.delete_sink_binding,
    handlers.describe_sink_binding,
    handlers.list_sink_bindings,
)


# ContainerSource


@source.group(name="container")
def container_source() -> None:
    """Manage container sources."""
    pass


@container_source.command(name="create", help="Create a container source.")
@click.argument("name", type=str)
@click.option("--image", type=str, required=True, help="Image to run.")
@click.option("-e", "--env", multiple=True, metavar="KEY=VALUE", help="Environment variable to set.")
@sink_option(required=True)
@namespace_option
@click.pass_context
@handle_errors
def create_container_source(ctx, name: str, image: str, env, sink: str, namespace) -> None:
    handlers.create_container_source(
        get_params(ctx), name=name, sink=sink, image=image, env=env, namespace=namespace
    )


@container_source.command(name="update", help="Update a container source.")
@click.argument("name", type=str)
@click.option("--image", type=str, default=None, help="Image to run.")
@click.option("-e", "--env", multiple=True, metavar="KEY=VALUE", help="Environment variable to set. KEY- removes it.")
@sink_option()
@namespace_option
@click.pass_context
@handle_errors
def update_container_source(ctx, name: str, image, env, sink, namespace) -> None:
    handlers.update_container_source(
        get_params(ctx), name=name, sink=sink, image=image, env=env, namespace=namespace
    )


add_read_commands(
    container_source,
    "container source",
    handlers.delete_container_source,
    handlers.describe_container_source,
    handlers.list_container_sources,
)
