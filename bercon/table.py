"""Plain-text tables with aligned columns."""

from __future__ import annotations


class TablePrinter:
    """Collects rows and renders them under left-aligned headers."""

    def __init__(self, headers):
        self.headers = list(headers)
        self.rows: list[list[str]] = []
        self._widths = [len(header) for header in self.headers]

    def add_row(self, row) -> None:
        row = list(row)
        if len(row) != len(self.headers):
            raise ValueError(
                f"row length {len(row)} does not match headers length {len(self.headers)}"
            )
        self._widths = [max(width, len(cell)) for width, cell in zip(self._widths, row)]
        self.rows.append(row)

    def _line(self, cells) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, self._widths)) + "\n"

    def render(self) -> str:
        parts = [self._line(self.headers)]
        parts.append("".join("-" * (width + 2) for width in self._widths) + "\n")
        parts.extend(self._line(row) for row in self.rows)
        return "".join(parts)