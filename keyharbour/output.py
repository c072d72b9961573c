"""Table and JSON printing for command output."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, TextIO


def _json_default(value: Any) -> Any:
    if callable(getattr(value, "to_dict", None)):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _align(rows: Sequence[Sequence[str]]) -> str:
    """Align tab-separated cells; adjacent lines sharing a column share its width."""
    lines = ["\t".join(row).split("\t") for row in rows]
    widths: list[list[int]] = [[] for _ in lines]

    def assign(indexes: Sequence[int], column: int) -> None:
        for has_cell, group in groupby(indexes, key=lambda i: len(lines[i]) - 1 > column):
            if has_cell:
                block = list(group)
                width = max(len(lines[i][column]) for i in block) + 2
                for i in block:
                    widths[i].append(width)
                assign(block, column + 1)

    assign(range(len(lines)), 0)
    return "".join(
        "".join(cell.ljust(w) for cell, w in zip(line, ws)) + line[-1] + "\n"
        for line, ws in zip(lines, widths)
    )


@dataclass
class Printer:
    """Writes results either as an aligned table or as indented JSON."""

    format: str = "table"
    out: TextIO = field(default_factory=lambda: sys.stdout)

    def json(self, value: Any) -> None:
        """Write value as JSON indented by two spaces, followed by a newline."""
        self.out.write(json.dumps(value, indent=2, ensure_ascii=False, default=_json_default) + "\n")

    def table(self, headers: Sequence[str] | None, rows: Sequence[Sequence[str]] | None) -> None:
        """Write headers and rows as an aligned table, or as JSON in json format."""
        if self.format == "json":
            self.json(
                {
                    "headers": None if headers is None else list(headers),
                    "rows": None if rows is None else [list(row) for row in rows],
                }
            )
            return
        self.out.write(_align([list(headers or []), *(rows or [])]))