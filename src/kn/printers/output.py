"""Machine readable output selected with ``-o/--output``."""
import json
import re
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateError

from ..errors import ValidationError

TEMPLATE_FORMATS = ("go-template", "template")
TEMPLATE_FILE_FORMATS = ("go-template-file", "templatefile")
JSONPATH_FORMATS = ("jsonpath", "jsonpath-as-json")
JSONPATH_FILE_FORMATS = ("jsonpath-file",)

ALLOWED_FORMATS = (
    ("json", "yaml", "name")
    + TEMPLATE_FORMATS
    + TEMPLATE_FILE_FORMATS
    + JSONPATH_FORMATS
    + JSONPATH_FILE_FORMATS
)

# "{{ .metadata.name }}" is accepted for "{{ metadata.name }}" and "{{ . }}" for the whole object
_ROOT_DOT = re.compile(r"\{\{(-?)\s*\.\s*(-?)\}\}")
_LEADING_DOT = re.compile(r"(\{\{-?\s*)\.(?=[A-Za-z_])")
_JSONPATH_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\*|-?\d+)\]")

_env = Environment(loader=BaseLoader(), undefined=StrictUndefined, keep_trailing_newline=True)


def parse_output_format(value: Optional[str]) -> Tuple[str, str]:
    """Splits ``format=argument`` and validates the format name."""
    if not value:
        return "", ""
    fmt, _, arg = value.partition("=")
    if fmt == "no-headers":
        return fmt, ""
    if fmt not in ALLOWED_FORMATS:
        raise ValidationError(
            f'unable to match a printer suitable for the output format "{value}", '
            f"allowed formats are: {','.join(ALLOWED_FORMATS)}"
        )
    if fmt not in ("json", "yaml", "name") and not arg:
        raise ValidationError(f"{fmt} format specified but no template given")
    return fmt, arg


def _read_file(path: str) -> str:
    try:
        with open(path, "r") as f:
            return f.read()
    except OSError as e:
        raise ValidationError(f"cannot read template file '{path}': {e}") from e


def _name(obj: Dict[str, Any]) -> str:
    group = obj.get("apiVersion", "").rpartition("/")[0]
    kind = obj.get("kind", "").lower()
    resource = f"{kind}.{group}" if group else kind
    return f"{resource}/{obj.get('metadata', {}).get('name', '')}\n"


def render_template(template: str, obj: Dict[str, Any]) -> str:
    source = _ROOT_DOT.sub(r"{{\1 obj \2}}", template)
    source = _LEADING_DOT.sub(r"\1", source)
    try:
        return _env.from_string(source).render({**obj, "obj": obj})
    except TemplateError as e:
        raise ValidationError(f"error executing template {template!r}: {e}") from e


def jsonpath(expression: str, obj: Any) -> List[Any]:
    """
    Evaluates a simple JSONPath expression such as ``{.items[*].metadata.name}``.

    Supported are dotted field access, list indices and the ``[*]`` wildcard.
    """
    expr = expression.strip()
    if expr.startswith("{") and expr.endswith("}"):
        expr = expr[1:-1]
    expr = expr.lstrip("$")
    results = [obj]
    for field, index in _JSONPATH_SEGMENT.findall(expr):
        next_results: List[Any] = []
        for current in results:
            if field:
                if isinstance(current, dict) and field in current:
                    next_results.append(current[field])
            elif isinstance(current, list):
                if index == "*":
                    next_results.extend(current)
                elif -len(current) <= int(index) < len(current):
                    next_results.append(current[int(index)])
        if not next_results:
            raise ValidationError(f"error executing jsonpath {expression!r}: {field or index} is not found")
        results = next_results
    return results


def _scalar(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def format_object(obj: Dict[str, Any], output: str) -> str:
    """Serializes ``obj`` (a single object or a ``List``) in the requested format."""
    fmt, arg = parse_output_format(output)
    if fmt == "json":
        return json.dumps(obj, indent=4) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(obj, default_flow_style=False)
    if fmt == "name":
        items = obj.get("items") if "items" in obj else [obj]
        return "".join(_name(item) for item in items or [])
    if fmt in TEMPLATE_FILE_FORMATS:
        return render_template(_read_file(arg), obj)
    if fmt in TEMPLATE_FORMATS:
        return render_template(arg, obj)
    if fmt in JSONPATH_FILE_FORMATS:
        arg = _read_file(arg).strip()
    results = jsonpath(arg, obj)
    if fmt == "jsonpath-as-json":
        return json.dumps(results, indent=4) + "\n"
    return " ".join(_scalar(r) for r in results) + "\n"


def as_list(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"apiVersion": "v1", "kind": "List", "items": items}
