"""Two-dimensional cell grids the engine reads from and writes into.

Coordinates are 0-indexed: ``(0, 0)`` is the top-left cell. Adapters over
1-indexed spreadsheet libraries translate at this boundary so the rest of
the package never sees workbook numbering.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Protocol, Union

import pandas as pd
from openpyxl.cell.cell import MergedCell
from openpyxl.worksheet.worksheet import Worksheet

Cell = Union[None, str, int, float]


class Grid(Protocol):
    def get(self, row: int, col: int) -> Any: ...

    def set(self, row: int, col: int, value: Cell) -> None: ...

    def row_count(self) -> int: ...

    def col_count(self) -> int: ...


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def format_number(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
    return str(value)


def cell_text(value: Any) -> str | None:
    """Text of a string or numeric cell; ``None`` for every other kind."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return format_number(value)
    return None


def string_cell(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class ListGrid:
    """In-memory grid backed by a list of row lists. Grows on write."""

    def __init__(self, rows: Iterable[Iterable[Cell]] | None = None) -> None:
        self.rows: list[list[Cell]] = [list(row) for row in (rows or [])]

    def get(self, row: int, col: int) -> Cell:
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        values = self.rows[row]
        if col >= len(values):
            return None
        return values[col]

    def set(self, row: int, col: int, value: Cell) -> None:
        if row < 0 or col < 0:
            raise IndexError(f"Negative grid coordinate ({row}, {col})")
        while len(self.rows) <= row:
            self.rows.append([])
        values = self.rows[row]
        if len(values) <= col:
            values.extend([None] * (col + 1 - len(values)))
        values[col] = value

    def row_count(self) -> int:
        return len(self.rows)

    def col_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def snapshot(self) -> list[list[Cell]]:
        return [list(row) for row in self.rows]

    def __repr__(self) -> str:
        return f"ListGrid(rows={self.row_count()}, cols={self.col_count()})"


class WorksheetGrid:
    """Grid view over an openpyxl worksheet.

    Reads never create cells. Writes to a covered (non-anchor) cell of a
    merged range are dropped; the anchor cell is written like any other.
    """

    def __init__(self, sheet: Worksheet) -> None:
        self.sheet = sheet

    def get(self, row: int, col: int) -> Any:
        if row < 0 or col < 0 or row >= self.sheet.max_row or col >= self.sheet.max_column:
            return None
        return self.sheet.cell(row=row + 1, column=col + 1).value

    def set(self, row: int, col: int, value: Cell) -> None:
        if row < 0 or col < 0:
            raise IndexError(f"Negative grid coordinate ({row}, {col})")
        cell = self.sheet.cell(row=row + 1, column=col + 1)
        if isinstance(cell, MergedCell):
            return
        cell.value = value

    def row_count(self) -> int:
        if self.sheet.max_row == 1 and self.sheet.max_column == 1 and self.sheet["A1"].value is None:
            return 0
        return self.sheet.max_row

    def col_count(self) -> int:
        if self.row_count() == 0:
            return 0
        return self.sheet.max_column


def normalize_frame_value(value: Any) -> Cell:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float, str)):
        return value
    if hasattr(value, "item"):
        item = value.item()
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            return item
    return str(value)


def grid_from_dataframe(df: pd.DataFrame, *, include_header: bool = True) -> ListGrid:
    rows: list[list[Cell]] = []
    if include_header:
        rows.append([normalize_frame_value(column) for column in df.columns])
    for record in df.itertuples(index=False, name=None):
        rows.append([normalize_frame_value(value) for value in record])
    return ListGrid(rows)


def grid_from_csv(path) -> ListGrid:
    try:
        df = pd.read_csv(path, header=None, dtype=object, keep_default_na=False, skip_blank_lines=False)
    except pd.errors.EmptyDataError:
        return ListGrid()
    except Exception as exc:
        raise ValueError(f"Could not read CSV grid: {exc}") from exc
    return grid_from_dataframe(df, include_header=False)
