"""Text and JSON rendering of API results."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

    from specter.services.resource_service import Column

_GAP = "  "


def format_cell(value: object, width: int | None = None) -> str:
    """Render a value for a table cell; empty values become ``-``."""
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        text = "yes" if value else "no"
    else:
        text = str(value)
    if width is not None and len(text) > width:
        # Dates keep their leading part; long text gets an ellipsis.
        text = text[:width] if width <= 10 else text[: width - 3] + "..."
    return text


def print_table(
    items: Sequence[dict[str, Any]], columns: Sequence[Column], out: TextIO | None = None
) -> None:
    """Print items as an aligned table with a header row."""
    out = out or sys.stdout
    rows = [[c.header for c in columns]]
    rows.extend([format_cell(item.get(c.key), c.width) for c in columns] for item in items)
    widths = [max(len(row[i]) for row in rows) for i in range(len(columns))]
    for row in rows:
        line = _GAP.join(cell.ljust(widths[i]) for i, cell in enumerate(row))
        print(line.rstrip(), file=out)


def print_details(
    pairs: Sequence[tuple[str, object]], out: TextIO | None = None, skip_empty: bool = True
) -> None:
    """Print ``Label: value`` lines with aligned values."""
    out = out or sys.stdout
    shown = [(k, v) for k, v in pairs if not (skip_empty and v in (None, "", []))]
    if not shown:
        return
    width = max(len(k) for k, _ in shown) + 2
    for key, value in shown:
        print(f"{key + ':':<{width}}{format_cell(value)}", file=out)


def print_json(data: object, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    print(json.dumps(data, indent=2, default=str), file=out)


def names(items: object) -> str:
    """Join the ``name`` of each dict in a list (tags, labels, roles)."""
    if not isinstance(items, list):
        return ""
    return ", ".join(str(i.get("name", "")) for i in items if isinstance(i, dict))
