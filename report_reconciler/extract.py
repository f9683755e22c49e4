from __future__ import annotations

from report_reconciler.config import ReconcilerConfig
from report_reconciler.errors import EmptyResult, NoTaskColumn
from report_reconciler.fields import FieldKey
from report_reconciler.grid import Grid, cell_text, is_blank, string_cell
from report_reconciler.header import locate_header
from report_reconciler.models import CanonicalTask, ColumnMap, ReportTemplate, TaskStatus
from report_reconciler.plan import is_plan_marker, locate_plan

DEFAULT_HOURS = "8"

OPTIONAL_TEXT_FIELDS = (
    FieldKey.TASK_NAME,
    FieldKey.PLAN_START,
    FieldKey.PLAN_END,
    FieldKey.ACTUAL_START,
    FieldKey.ACTUAL_END,
)


def placeholder_task_id(ordinal: int) -> str:
    return f"任务{ordinal:03d}"


def read_field(grid: Grid, row: int, column_map: ColumnMap, key: FieldKey) -> str | None:
    col = column_map.get(key)
    if col is None:
        return None
    value = cell_text(grid.get(row, col))
    if value is None or is_blank(value):
        return None
    return value


def extract_row(
    grid: Grid,
    row: int,
    column_map: ColumnMap,
    ordinal: int,
    *,
    default_hours: str = DEFAULT_HOURS,
) -> CanonicalTask | None:
    task_col = column_map.get(FieldKey.TASK)
    if task_col is None:
        raise NoTaskColumn()
    content = cell_text(grid.get(row, task_col))
    if content is None or not content.strip() or is_plan_marker(content):
        return None

    task = CanonicalTask(
        content=content,
        status=TaskStatus.from_label(read_field(grid, row, column_map, FieldKey.STATUS)),
        remarks=read_field(grid, row, column_map, FieldKey.REMARKS) or "",
        task_id=read_field(grid, row, column_map, FieldKey.TASK_ID) or placeholder_task_id(ordinal),
        plan_hours=read_field(grid, row, column_map, FieldKey.PLAN_HOURS) or default_hours,
        actual_hours=read_field(grid, row, column_map, FieldKey.ACTUAL_HOURS) or default_hours,
    )
    for key in OPTIONAL_TEXT_FIELDS:
        setattr(task, key.value, read_field(grid, row, column_map, key))
    return task


def extract_rows(
    grid: Grid,
    column_map: ColumnMap,
    start_row: int,
    *,
    default_hours: str = DEFAULT_HOURS,
) -> list[CanonicalTask]:
    """One task per data row from ``start_row`` to the last grid row.

    Rows without task text, and rows whose task text is the next-period plan
    heading, are skipped. Placeholder task ids count emitted rows, not grid
    rows.
    """
    if FieldKey.TASK not in column_map:
        raise NoTaskColumn()
    tasks: list[CanonicalTask] = []
    for row in range(max(start_row, 0), grid.row_count()):
        task = extract_row(grid, row, column_map, len(tasks) + 1, default_hours=default_hours)
        if task is not None:
            tasks.append(task)
    return tasks


def resolve_task_column(grid: Grid, column_map: ColumnMap, *, positional_fallback: bool = True) -> ColumnMap:
    if FieldKey.TASK in column_map:
        return column_map
    if positional_fallback and grid.col_count() > 0:
        columns = dict(column_map.items())
        columns[FieldKey.TASK] = 0
        return ColumnMap(columns=columns, header_row=column_map.header_row)
    raise NoTaskColumn("Template structure not recognised: no task content column")


def parse_template(grid: Grid, config: ReconcilerConfig | None = None) -> ReportTemplate:
    config = config or ReconcilerConfig()
    column_map = locate_header(
        grid,
        config.max_header_rows,
        config.max_header_cols,
        threshold=config.header_threshold,
        synonyms=config.synonym_table(),
    )
    column_map = resolve_task_column(grid, column_map, positional_fallback=config.positional_fallback)
    tasks = extract_rows(grid, column_map, column_map.data_start_row, default_hours=config.default_hours)
    if not tasks:
        raise EmptyResult("No task rows could be extracted from the template; check the template format")
    plan = locate_plan(grid, config.plan_lookahead_rows)
    return ReportTemplate(tasks=tasks, next_week_plan=plan, column_map=column_map)


def import_fixed_layout(grid: Grid) -> list[CanonicalTask]:
    """Import a plain three-column sheet: task, status, remarks, header on row 0."""
    tasks: list[CanonicalTask] = []
    for row in range(1, grid.row_count()):
        content = cell_text(grid.get(row, 0))
        if content is None:
            continue
        tasks.append(
            CanonicalTask(
                content=content,
                status=TaskStatus.from_label(string_cell(grid.get(row, 1))),
                remarks=string_cell(grid.get(row, 2)) or "",
            )
        )
    return tasks
