import io
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence

from rich.cells import cell_len
from rich.console import Console, RenderableType
from rich.table import Table
from rich.text import Text

# Columns of priority 0 are only shown when listing across all namespaces
NAMESPACE_PRIORITY = 0


@dataclass
class Column:
    header: str
    extractor: Callable[[Any], Any]
    priority: int = 1


NAMESPACE_COLUMN = Column("Namespace", lambda row: row.namespace, NAMESPACE_PRIORITY)


def render_plain(renderable: RenderableType, width: int) -> str:
    """
    Renders ``renderable`` into plain text, without styles or markup, with the
    trailing blanks of every line trimmed. ``width`` must fit the widest line;
    nothing is wrapped.
    """
    console = Console(
        file=io.StringIO(),
        width=max(width, 1),
        color_system=None,
        markup=False,
        emoji=False,
        highlight=False,
    )
    with console.capture() as capture:
        console.print(renderable)
    return "".join(line.rstrip() + "\n" for line in capture.get().splitlines())


def sort_rows(rows: Iterable[Any], with_namespace: bool) -> List[Any]:
    """
    Orders rows by name or, across namespaces, by namespace then name with
    rows of the ``default`` namespace first.
    """
    if with_namespace:
        return sorted(rows, key=lambda r: (r.namespace != "default", r.namespace, r.name))
    return sorted(rows, key=lambda r: r.name)


class TablePrinter:
    def __init__(self, columns: Sequence[Column], padding: int = 3):
        self.columns = [NAMESPACE_COLUMN] + list(columns)
        self.padding = padding

    def visible_columns(self, all_namespaces: bool) -> List[Column]:
        return [c for c in self.columns if all_namespaces or c.priority != NAMESPACE_PRIORITY]

    def render(
        self, rows: Iterable[Any], all_namespaces: bool = False, no_headers: bool = False, sort: bool = True
    ) -> str:
        """Renders rows as aligned columns; ``sort=False`` keeps the given order."""
        columns = self.visible_columns(all_namespaces)
        ordered = sort_rows(rows, all_namespaces) if sort else list(rows)
        cells = []
        for row in ordered:
            values = (column.extractor(row) for column in columns)
            cells.append(["" if value is None else str(value) for value in values])
        if not cells and no_headers:
            return ""

        headers = [c.header.upper() for c in columns]
        table = Table(
            box=None,
            show_edge=False,
            pad_edge=False,
            show_header=not no_headers,
            padding=(0, self.padding, 0, 0),
        )
        for header in headers:
            table.add_column(header, no_wrap=True)
        for row_cells in cells:
            table.add_row(*(Text(cell) for cell in row_cells))

        widths = [max(cell_len(cell) for cell in column) for column in zip(headers, *cells)]
        return render_plain(table, sum(widths) + self.padding * len(widths))
