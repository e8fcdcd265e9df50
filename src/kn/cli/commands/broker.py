from typing import Optional

import click

from .. import handlers
from ..flags import list_options, namespace_option, output_option, verbose_option, wait_options
from ..utils import get_params, handle_errors
from ...crds.eventing import BACKOFF_POLICIES, BROKER_CONFIG_FORMAT


@click.group()
def broker() -> None:
    """Manage message brokers."""
    pass


def delivery_options(f):
    for option in reversed(
        (
            click.option(
                "--dl-sink",
                type=str,
                default=None,
                help="Reference to a sink for undeliverable events, in the same format as --sink.",
            ),
            click.option(
                "--retry",
                type=click.IntRange(min=0),
                default=None,
                help="Minimum number of retries before an event is sent to the dead letter sink.",
            ),
            click.option("--timeout", type=str, default=None, help="Timeout of each delivery, as an ISO-8601 duration."),
            click.option(
                "--backoff-policy",
                type=click.Choice(BACKOFF_POLICIES),
                default=None,
                help="Retry backoff policy.",
            ),
            click.option(
                "--backoff-delay", type=str, default=None, help="Delay before retrying, as an ISO-8601 duration."
            ),
            click.option(
                "--retry-after-max",
                type=str,
                default=None,
                help="Upper bound of a Retry-After header honored when retrying, as an ISO-8601 duration.",
            ),
        )
    ):
        f = option(f)
    return f


@broker.command(help="Create a broker.")
@click.argument("name", type=str)
@click.option("--class", "broker_class", type=str, default=None, help="Broker class, e.g. MTChannelBasedBroker.")
@click.option(
    "--broker-config",
    type=str,
    default=None,
    help=f"Reference to the broker configuration: {BROKER_CONFIG_FORMAT}. A bare name is a ConfigMap.",
)
@delivery_options
@namespace_option
@click.pass_context
@handle_errors
def create(
    ctx,
    name: str,
    broker_class,
    broker_config,
    dl_sink,
    retry: Optional[int],
    timeout,
    backoff_policy,
    backoff_delay,
    retry_after_max,
    namespace,
) -> None:
    handlers.create_broker(
        get_params(ctx),
        name=name,
        broker_class=broker_class,
        broker_config=broker_config,
        dl_sink=dl_sink,
        retry=retry,
        timeout=timeout,
        backoff_policy=backoff_policy,
        backoff_delay=backoff_delay,
        retry_after_max=retry_after_max,
        namespace=namespace,
    )


@broker.command(help="Update the delivery settings of a broker.")
@click.argument("name", type=str)
@delivery_options
@namespace_option
@click.pass_context
@handle_errors
def update(
    ctx, name: str, dl_sink, retry: Optional[int], timeout, backoff_policy, backoff_delay, retry_after_max, namespace
) -> None:
    handlers.update_broker(
        get_params(ctx),
        name=name,
        dl_sink=dl_sink,
        retry=retry,
        timeout=timeout,
        backoff_policy=backoff_policy,
        backoff_delay=backoff_delay,
        retry_after_max=retry_after_max,
        namespace=namespace,
    )


@broker.command(help="Delete a broker.")
@click.argument("name", type=str)
@wait_options
@namespace_option
@click.pass_context
@handle_errors
def delete(ctx, name: str, wait: bool, wait_timeout: Optional[int], namespace) -> None:
    handlers.delete_broker(get_params(ctx), name=name, namespace=namespace, wait=wait, wait_timeout=wait_timeout)


@broker.command(help="Show details of a broker.")
@click.argument("name", type=str)
@namespace_option
@output_option
@verbose_option
@click.pass_context
@handle_errors
def describe(ctx, name: str, namespace, output, verbose: bool) -> None:
    handlers.describe_broker(get_params(ctx), name=name, namespace=namespace, output=output, verbose=verbose)


@broker.command(name="list", help="List brokers.")
@list_options
@click.pass_context
@handle_errors
def list_command(ctx, namespace, all_namespaces: bool, output, no_headers: bool) -> None:
    handlers.list_brokers(
        get_params(ctx),
        namespace=namespace,
        all_namespaces=all_namespaces,
        output=output,
        no_headers=no_headers,
    )
