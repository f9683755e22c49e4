from __future__ import annotations

from typing import Sequence

from report_reconciler.grid import Grid, string_cell
from report_reconciler.models import CanonicalTask, ColumnMap
from report_reconciler.plan import is_plan_marker

PLAN_WINDOW_ROWS = 10
PLAN_WINDOW_COLS = 20


def write_task(grid: Grid, row: int, column_map: ColumnMap, task: CanonicalTask) -> None:
    for key, col in column_map.items():
        value = task.value_for(key)
        grid.set(row, col, "" if value is None else value)


def find_marker_after(grid: Grid, first_row: int, window: int, cols: int) -> tuple[int, int] | None:
    for row in range(first_row, first_row + window):
        for col in range(cols):
            if is_plan_marker(string_cell(grid.get(row, col))):
                return row, col
    return None


def project(
    grid: Grid,
    column_map: ColumnMap,
    tasks: Sequence[CanonicalTask],
    plan_text: str,
    start_row: int,
    *,
    plan_window: int = PLAN_WINDOW_ROWS,
    plan_cols: int = PLAN_WINDOW_COLS,
) -> tuple[int, int] | None:
    """Write tasks into ``grid`` from ``start_row`` down, then the plan text.

    Only mapped columns are written; every other cell keeps its value. The
    plan goes one row below the first plan marker found in the
    ``plan_window`` rows following the task block. Returns the coordinate
    the plan was written to, or None when no marker was found.
    """
    for index, task in enumerate(tasks):
        write_task(grid, start_row + index, column_map, task)

    marker = find_marker_after(grid, start_row + len(tasks), plan_window, plan_cols)
    if marker is None:
        return None
    target = (marker[0] + 1, marker[1])
    grid.set(target[0], target[1], plan_text)
    return target
