import click

from .. import handlers
from ..utils import get_params, handle_errors


@click.group()
def container() -> None:
    """Build multi-container specs for 'service create --containers'."""
    pass


@container.command(help="Add a container to a containers document and print it as YAML.")
@click.argument("name", type=str)
@click.option("--image", type=str, required=True, help="Image to run.")
@click.option("-e", "--env", multiple=True, metavar="KEY=VALUE", help="Environment variable to set.")
@click.option("-p", "--port", type=str, default=None, help="The port the container listens on ([NAME:]PORT).")
@click.option(
    "--extra-containers",
    type=str,
    default=None,
    help="Containers document to append to, '-' reads stdin.",
)
@click.pass_context
@handle_errors
def add(ctx, name: str, image: str, env, port, extra_containers) -> None:
    handlers.add_container(
        get_params(ctx), name=name, image=image, env=env, port=port, extra_containers=extra_containers
    )
