"""Helpers for the human readable ``describe`` output of resources."""
import itertools
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from rich.cells import cell_len
from rich.table import Table
from rich.text import Text

from .table import render_plain
from ..crds.base import Condition, Destination, ObjectMeta
from ..utils.time import age

# Maximum length of a single line map or slice, label included
TRUNCATE_AT = 100

BORING_DOMAINS = {"serving.knative.dev", "client.knative.dev", "kubectl.kubernetes.io"}

SEVERITY_ERROR = "Error"
SEVERITY_WARNING = "Warning"
SEVERITY_INFO = "Info"

_SEVERITY_RANK = {"": 0, SEVERITY_ERROR: 0, SEVERITY_WARNING: 1, SEVERITY_INFO: 2}

INDENT = "  "
COLUMN_GAP = 2


@dataclass
class _Row:
    cells: List[str]
    # Computes the last cell from the width left once the other columns are laid out
    fit: Optional[Callable[[int], str]] = None


class PrefixWriter:
    """
    Writes attribute lines at an indentation level.

    Sub-writers returned by ``write_attribute`` share the buffer of their parent.
    Consecutive rows with the same number of cells form a block whose columns
    are aligned in a rich grid; text written with ``writef`` is kept verbatim
    and separates blocks.
    """

    def __init__(self, level: int = 0, _buffer: Optional[List[Union[str, _Row]]] = None):
        self.level = level
        self._buffer: List[Union[str, _Row]] = _buffer if _buffer is not None else []

    def _indent(self, cells: Sequence[str]) -> List[str]:
        return [INDENT * self.level + cells[0]] + list(cells[1:])

    def write_attribute(self, label: str, value: str) -> "PrefixWriter":
        self._buffer.append(_Row(self._indent([f"{label}:", value])))
        return PrefixWriter(self.level + 1, self._buffer)

    def write_fitted(self, label: str, fit: Callable[[int], str]) -> None:
        """Writes an attribute whose value is shortened to end within ``TRUNCATE_AT``."""
        self._buffer.append(_Row(self._indent([f"{label}:", ""]), fit))

    def write_cols(self, *cols: str) -> None:
        self._buffer.append(_Row(self._indent(cols)))

    def writef(self, fmt: str, *args) -> None:
        self._buffer.append(INDENT * self.level + fmt % args)

    def getvalue(self) -> str:
        out = []
        blocks = itertools.groupby(self._buffer, key=lambda e: len(e.cells) if isinstance(e, _Row) else 0)
        for size, entries in blocks:
            if size == 0:
                out.extend(entries)
            else:
                out.append(_render_block(list(entries), size))
        return "".join(out)


def _render_block(rows: List[_Row], size: int) -> str:
    widths = [max(cell_len(row.cells[i]) for row in rows) for i in range(size - 1)]
    offset = sum(widths) + COLUMN_GAP * (size - 1)
    lines = []
    for row in rows:
        cells = list(row.cells)
        if row.fit is not None:
            cells[-1] = row.fit(TRUNCATE_AT - offset)
        lines.append(cells)

    grid = Table.grid(padding=(0, COLUMN_GAP, 0, 0))
    for _ in range(size):
        grid.add_column(no_wrap=True)
    for cells in lines:
        grid.add_row(*(Text(cell) for cell in cells))
    last = max(cell_len(cells[-1]) for cells in lines)
    return render_plain(grid, offset + last + COLUMN_GAP)


def label(name: str) -> str:
    return name + ":"


def key_is_boring(key: str) -> bool:
    domain, sep, _ = key.partition("/")
    return bool(sep) and domain in BORING_DOMAINS


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 4, 0)] + " ..."


def join_and_truncate(sorted_keys: Sequence[str], mapping: Mapping[str, str], width: int) -> str:
    ret = ""
    for key in sorted_keys:
        ret += f"{key}={mapping[key]}, "
        if len(ret) > width:
            break
    return truncate(ret.rstrip(", "), width)


def write_map(dw: PrefixWriter, mapping: Optional[Mapping[str, str]], name: str, details: bool) -> None:
    """
    Writes ``mapping`` sorted by key, in a single truncated line or, with
    ``details``, one entry per line. Keys in boring domains are hidden unless
    ``details`` is set.
    """
    if not mapping:
        return
    keys = sorted(k for k in mapping if details or not key_is_boring(k))
    if not keys:
        return
    if details:
        for i, key in enumerate(keys):
            dw.write_cols(label(name) if i == 0 else "", f"{key}={mapping[key]}")
        return
    dw.write_fitted(name, lambda width: join_and_truncate(keys, mapping, width))


def write_slice(dw: PrefixWriter, values: Sequence[str], name: str, details: bool) -> None:
    if not values:
        return
    if details:
        for i, value in enumerate(values):
            dw.write_cols(label(name) if i == 0 else "", value)
        return
    joined = ", ".join(values)
    dw.write_fitted(name, lambda width: truncate(joined, width))
def write_metadata(dw: PrefixWriter, metadata: ObjectMeta, details: bool) -> None:
    dw.write_attribute("Name", metadata.name)
    dw.write_attribute("Namespace", metadata.namespace or "")
    write_map(dw, metadata.labels, "Labels", details)
    write_map(dw, metadata.annotations, "Annotations", details)
    dw.write_attribute("Age", age(metadata.creation_timestamp))


def write_sink(dw: PrefixWriter, name: str, namespace: str, sink: Optional[Destination]) -> None:
    if sink is None:
        return
    sub = dw.write_attribute(name, "")
    if sink.ref is not None:
        sub.write_attribute("Name", sink.ref.name)
        if sink.ref.namespace and sink.ref.namespace != namespace:
            sub.write_attribute("Namespace", sink.ref.namespace)
        sub.write_attribute("Resource", f"{sink.ref.kind} ({sink.ref.api_version})")
        if sink.path:
            sub.write_attribute("URI", sink.path)
    if sink.uri:
        sub.write_attribute("URI", sink.uri)


def write_ce_overrides(dw: PrefixWriter, overrides: Optional[Dict[str, str]]) -> None:
    if not overrides:
        return
    sub = dw.write_attribute("CloudEvent Overrides", "")
    for key in sorted(overrides):
        sub.write_attribute(key, overrides[key])


def severity_rank(condition: Condition) -> int:
    # Unknown severities sort after Info
    return _SEVERITY_RANK.get(condition.severity, len(_SEVERITY_RANK))


def sort_conditions(conditions: Sequence[Condition]) -> List[Condition]:
    """Ready first, then Error, Warning and Info; same severity sorted by type."""
    return sorted(
        conditions,
        key=lambda c: (c.type != "Ready", severity_rank(c), c.type),
    )


def format_status(condition: Condition) -> str:
    if condition.status == "True":
        return "++"
    if condition.status == "False":
        severity = condition.severity or SEVERITY_ERROR
        if severity == SEVERITY_ERROR:
            return "!!"
        if severity == SEVERITY_WARNING:
            return " W"
        if severity == SEVERITY_INFO:
            return " I"
        return " !"
    return "??"


def write_conditions(dw: PrefixWriter, conditions: Sequence[Condition], print_message: bool) -> None:
    section = dw.write_attribute("Conditions", "")
    conditions = sort_conditions(conditions)
    max_len = max((len(c.type) for c in conditions), default=0)
    row = "%-2s %-" + str(max_len) + "s %6s %-s\n"
    section.writef(row, "OK", "TYPE", "AGE", "REASON")
    for cond in conditions:
        reason = cond.reason
        if print_message and cond.message:
            reason = f"{reason} ({cond.message})"
        section.writef(row, format_status(cond), cond.type, age(cond.last_transition_time), reason)


def ready_condition(conditions: Sequence[Condition]) -> str:
    for cond in conditions:
        if cond.type == "Ready":
            return cond.status
    return "<unknown>"


def conditions_value(conditions: Sequence[Condition]) -> str:
    ok = sum(1 for c in conditions if c.status == "True")
    return f"{ok} OK / {len(conditions)}"


def non_ready_reason(conditions: Sequence[Condition]) -> str:
    for cond in conditions:
        if cond.type == "Ready":
            if cond.status == "True":
                return ""
            if cond.message:
                return f"{cond.reason} : {cond.message}"
            return cond.reason
    return "<unknown>"
