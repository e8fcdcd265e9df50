from typing import Dict, Iterable, List, Tuple

from ..errors import ValidationError


def parse_key_values(
    items: Iterable[str], flag: str = "", allow_remove: bool = True
) -> Tuple[Dict[str, str], List[str]]:
    """
    Parses ``KEY=VALUE`` arguments into a mapping plus a list of ``KEY-`` removals.
    """
    added: Dict[str, str] = {}
    removed: List[str] = []
    for item in items:
        if allow_remove and item.endswith("-") and "=" not in item:
            removed.append(item[:-1])
            continue
        key, sep, value = item.partition("=")
        if not sep or not key:
            option = f" for --{flag}" if flag else ""
            raise ValidationError(f"expected KEY=VALUE{option}, got '{item}'")
        added[key] = value
    return added, removed


def parse_selector(selector: str) -> Dict[str, str]:
    """Parses ``k1=v1,k2=v2`` into a label map."""
    labels, _ = parse_key_values(selector.split(","), allow_remove=False)
    return labels


def format_selector(labels: Dict[str, str]) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
