"""Options shared by the leaf commands."""
import click

from ..printers.output import ALLOWED_FORMATS

namespace_option = click.option(
    "-n", "--namespace", type=str, default=None, help="Namespace to use (defaults to the current context)."
)

all_namespaces_option = click.option(
    "-A",
    "--all-namespaces",
    is_flag=True,
    help="List the requested object(s) across all namespaces.",
)

output_option = click.option(
    "-o",
    "--output",
    type=str,
    default=None,
    help=f"Output format. One of: {', '.join(ALLOWED_FORMATS)}, no-headers.",
)

no_headers_option = click.option(
    "--no-headers", is_flag=True, help="When using the default output format, don't print headers."
)

verbose_option = click.option(
    "-v", "--verbose", is_flag=True, help="More output, including keys of internal annotations."
)

target_option = click.option(
    "--target",
    type=str,
    default=None,
    help="Work on local directory instead of a remote cluster (experimental).",
)

ce_override_option = click.option(
    "--ce-override",
    "ce_overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Cloud Event overrides to apply before sending event to sink. Use KEY- to remove.",
)


def sink_option(required: bool = False):
    return click.option(
        "-s",
        "--sink",
        type=str,
        required=required,
        help="Addressable sink for events: ksvc:name, broker:name, channel:name, a group/version/kind "
        "prefix or a URI.",
    )


def wait_options(f):
    f = click.option(
        "--wait-timeout",
        type=int,
        default=None,
        help="Seconds to wait before giving up on waiting for the resource to be ready.",
    )(f)
    f = click.option(
        "--wait/--no-wait",
        default=True,
        help="Wait for the operation to complete.",
    )(f)
    return f


def list_options(f):
    for option in (no_headers_option, output_option, all_namespaces_option, namespace_option):
        f = option(f)
    return f
