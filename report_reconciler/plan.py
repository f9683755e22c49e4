from __future__ import annotations

from report_reconciler.grid import Grid, string_cell

NEXT_PERIOD_KEYWORDS = ("下周", "下一周", "未来工作")
PLAN_KEYWORD = "计划"
PLAN_LOOKAHEAD_ROWS = 10


def is_plan_marker(text: str | None) -> bool:
    if not text or PLAN_KEYWORD not in text:
        return False
    return any(keyword in text for keyword in NEXT_PERIOD_KEYWORDS)


def find_plan_marker(grid: Grid) -> tuple[int, int] | None:
    for row in range(grid.row_count()):
        for col in range(grid.col_count()):
            if is_plan_marker(string_cell(grid.get(row, col))):
                return row, col
    return None


def locate_plan(grid: Grid, lookahead: int = PLAN_LOOKAHEAD_ROWS) -> str:
    """Return the next-period plan text, or "" when the grid has none.

    The first marker cell in row-major order decides; the plan is the first
    non-empty string cell below it in the same column, at most ``lookahead``
    rows down.
    """
    marker = find_plan_marker(grid)
    if marker is None:
        return ""
    marker_row, col = marker
    last_row = min(marker_row + lookahead, grid.row_count() - 1)
    for row in range(marker_row + 1, last_row + 1):
        text = string_cell(grid.get(row, col))
        if text is not None and text.strip():
            return text
    return ""
