from typing import Any, Dict, List, Optional, Sequence

import click
import yaml

from .common import print_text
from ..utils import KnParams
from ...crds.service import parse_port, update_env
from ...errors import ValidationError
from ...utils.kv import parse_key_values


def load_containers(path: str) -> List[Dict[str, Any]]:
    """
    Reads the ``containers`` list written by ``container add`` from a file, or
    from stdin when ``path`` is ``-``.
    """
    try:
        if path == "-":
            data = yaml.safe_load(click.get_text_stream("stdin").read())
        else:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
    except OSError as e:
        raise ValidationError(f"cannot read containers from '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ValidationError(f"cannot parse containers from '{path}': {e}") from e
    if not data:
        return []
    containers = data.get("containers") if isinstance(data, dict) else None
    if not isinstance(containers, list):
        raise ValidationError(f"expected a 'containers' list in '{path}'")
    return containers


def add_container(
    params: KnParams,
    name: str,
    image: str,
    env: Sequence[str] = (),
    port: Optional[str] = None,
    extra_containers: Optional[str] = None,
) -> None:
    """Prints a ``containers`` YAML document, appending the new container to any given ones."""
    if not image:
        raise ValidationError("'container add' requires the image name to run provided with the --image option")
    container: Dict[str, Any] = {"name": name, "image": image}
    added, _ = parse_key_values(env, "env", allow_remove=False)
    update_env(container, added, [])
    if port:
        container["ports"] = [parse_port(port)]

    containers = load_containers(extra_containers) if extra_containers else []
    containers.append(container)
    print_text(params.get_console(), yaml.safe_dump({"containers": containers}, default_flow_style=False))
