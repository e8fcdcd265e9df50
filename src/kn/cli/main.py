import logging
from pathlib import Path

import click
from click.shell_completion import get_completion_class

from .commands.broker import broker
from .commands.container import container
from .commands.revision import revision
from .commands.route import route
from .commands.service import service
from .commands.source import source
from .commands.trigger import trigger
from .config import get_default_config_path, load_config
from .utils import KnParams, get_params, handle_errors
from .. import __version__
from ..crds.const import EVENTING_GROUP, SERVING_GROUP, SERVING_VERSION, SOURCES_GROUP, SOURCES_VERSION
from ..errors import ValidationError

LOG_LEVELS = ["debug", "info", "warning", "error"]
COMPLETION_SHELLS = ["bash", "zsh", "fish"]


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the kn config file.",
)
@click.option("--kubeconfig", type=str, default=None, help="Path to the kubeconfig file.")
@click.option("--context", type=str, default=None, help="Name of the kubeconfig context to use.")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="warning",
    help="Log level, logs go to stderr.",
)
@click.pass_context
@handle_errors
def main(ctx, config_path, kubeconfig, context, log_level) -> None:
    """A CLI to manage Knative Serving and Eventing resources."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if "PARAMS" in ctx.obj:
        # Injected by the caller, e.g. tests
        return
    effective_config_path = config_path if config_path else get_default_config_path()
    ctx.obj["CONFIG"] = load_config(effective_config_path)
    ctx.obj["PARAMS"] = KnParams(
        configuration=ctx.obj["CONFIG"], kubeconfig=kubeconfig, context=context
    )


main.add_command(service)
main.add_command(revision)
main.add_command(route)
main.add_command(source)
main.add_command(broker)
main.add_command(trigger)
main.add_command(container)


@main.command(help="Output a shell completion script.")
@click.argument("shell", type=click.Choice(COMPLETION_SHELLS))
@click.pass_context
@handle_errors
def completion(ctx, shell: str) -> None:
    """Prints the completion script, e.g. eval "$(kn completion bash)"."""
    completion_class = get_completion_class(shell)
    if completion_class is None:
        raise ValidationError(f"unsupported shell '{shell}'")
    script = completion_class(main, {}, "kn", "_KN_COMPLETE").source()
    get_params(ctx).get_console().out(script, highlight=False)


@main.command(help="Show the version of this client.")
@click.pass_context
def version(ctx) -> None:
    console = get_params(ctx).get_console()
    console.print(f"Version:      {__version__}")
    console.print("Supported APIs:")
    console.print("* Serving")
    console.print(f"  - {SERVING_GROUP}/{SERVING_VERSION}")
    console.print("* Eventing")
    console.print(f"  - {SOURCES_GROUP}/{SOURCES_VERSION}")
    console.print(f"  - {EVENTING_GROUP}/v1")


if __name__ == "__main__":
    main()
