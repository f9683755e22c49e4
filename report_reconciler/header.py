from __future__ import annotations

from report_reconciler.errors import HeaderNotFound
from report_reconciler.fields import FieldKey, SynonymTable, match_field
from report_reconciler.grid import Grid, string_cell
from report_reconciler.models import ColumnMap

HEADER_SCAN_ROWS = 20
HEADER_SCAN_COLS = 20
HEADER_MIN_FIELDS = 3


def row_candidates(grid: Grid, row: int, max_cols: int, synonyms: SynonymTable | None = None) -> dict[FieldKey, int]:
    candidates: dict[FieldKey, int] = {}
    for col in range(max_cols):
        raw = string_cell(grid.get(row, col))
        if raw is None:
            continue
        text = raw.strip()
        if not text:
            continue
        field = match_field(text, synonyms)
        if field is not None:
            candidates[field] = col
    return candidates


def locate_header(
    grid: Grid,
    max_rows: int = HEADER_SCAN_ROWS,
    max_cols: int = HEADER_SCAN_COLS,
    *,
    threshold: int = HEADER_MIN_FIELDS,
    synonyms: SynonymTable | None = None,
) -> ColumnMap:
    """Find the first row naming at least ``threshold`` distinct report fields.

    Only string cells are considered. Raises HeaderNotFound when no row in
    the scan window qualifies.
    """
    for row in range(max_rows):
        candidates = row_candidates(grid, row, max_cols, synonyms)
        if len(candidates) >= threshold:
            return ColumnMap(columns=candidates, header_row=row)
    raise HeaderNotFound(max_rows, threshold)
