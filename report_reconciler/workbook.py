"""openpyxl-backed workbook input and output."""

from __future__ import annotations

import os
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from report_reconciler.config import ReconcilerConfig
from report_reconciler.extract import DEFAULT_HOURS
from report_reconciler.grid import Grid, WorksheetGrid, grid_from_csv
from report_reconciler.header import locate_header
from report_reconciler.models import CanonicalTask, ColumnMap, DailyObservation, TaskStatus, UserInfo
from report_reconciler.projector import project

WORKBOOK_FORMATS = {".xlsx", ".xlsm"}
CSV_FORMATS = {".csv"}
GRID_FORMATS = WORKBOOK_FORMATS | CSV_FORMATS

WEEKLY_SHEET_TITLE = "周报"
WEEKLY_HEADER_ROW = 3
WEEKLY_COLUMNS = [
    ("日期", 10),
    ("任务编号", 15),
    ("任务名称", 15),
    ("任务描述", 45),
    ("计划开始时间", 16),
    ("计划完成时间", 16),
    ("任务状态", 12),
    ("计划工时(小时)", 12),
    ("实际工时(小时)", 12),
    ("任务负责人", 12),
    ("备注", 20),
]
SUMMARY_HEADING = "（一）周报概况"
PLAN_HEADING = "（二）下周工作计划"
WORKDAYS_PER_WEEK = 5
TASK_NAME_PREVIEW = 20

MONTHLY_USER_CELLS = {"position": (1, 1), "department": (1, 3), "name": (1, 5), "date": (1, 7)}
MONTHLY_FIRST_ROW = 5
MONTHLY_PLAN_CELL = (19, 0)


def is_encrypted_ooxml(file_path: Path) -> bool:
    if file_path.suffix.lower() not in WORKBOOK_FORMATS:
        return False
    try:
        with zipfile.ZipFile(file_path) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


def open_workbook(path: Path, *, read_only_values: bool = False):
    if is_encrypted_ooxml(path):
        raise ValueError("Password-protected / encrypted OOXML workbooks are not supported")
    keep_vba = path.suffix.lower() == ".xlsm"
    try:
        return load_workbook(path, keep_vba=keep_vba, data_only=read_only_values)
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc


def load_grid(path: Path | str) -> Grid:
    """First worksheet of a workbook, or a CSV file, as a grid."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    suffix = path.suffix.lower()
    if suffix in WORKBOOK_FORMATS:
        workbook = open_workbook(path, read_only_values=True)
        return WorksheetGrid(workbook.worksheets[0])
    if suffix in CSV_FORMATS:
        return grid_from_csv(path)
    raise ValueError(f"Unsupported template format '{suffix}'. Supported: {', '.join(sorted(GRID_FORMATS))}")


def save_workbook(workbook: Workbook, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.stem}.", suffix=output_path.suffix, dir=str(output_path.parent))
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        workbook.save(temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def export_with_template(
    template_path: Path,
    output_path: Path,
    tasks: Sequence[CanonicalTask],
    plan_text: str,
    *,
    column_map: ColumnMap | None = None,
    config: ReconcilerConfig | None = None,
) -> dict[str, Any]:
    """Fill the first sheet of a template workbook and save it elsewhere.

    Only cell values change, so template styling and merged ranges survive.
    A supplied ``column_map`` skips header discovery; tasks then start on
    the row after its header row (row 0 when it has none).
    """
    config = config or ReconcilerConfig()
    workbook = open_workbook(template_path)
    sheet = workbook.worksheets[0]
    grid = WorksheetGrid(sheet)
    if column_map is None:
        column_map = locate_header(
            grid,
            config.max_header_rows,
            config.max_header_cols,
            threshold=config.header_threshold,
            synonyms=config.synonym_table(),
        )
    plan_cell = project(
        grid,
        column_map,
        tasks,
        plan_text,
        column_map.data_start_row,
        plan_window=config.projector_plan_window,
        plan_cols=config.projector_plan_cols,
    )
    save_workbook(workbook, output_path)
    return {
        "sheet_name": sheet.title,
        "header_row": column_map.header_row,
        "column_indices": column_map.to_dict(),
        "tasks_written": len(tasks),
        "plan_cell": list(plan_cell) if plan_cell else None,
    }


def weekly_day_label(start_date: str, index: int) -> str:
    parts = start_date.split("-")
    month = parts[1].lstrip("0") if len(parts) >= 2 else "1"
    try:
        first_day = int(parts[2]) if len(parts) >= 3 else 1
    except ValueError:
        first_day = 1
    return f"{month}月{first_day + index % WORKDAYS_PER_WEEK}日"


def short_task_name(content: str) -> str:
    if len(content) > TASK_NAME_PREVIEW:
        return f"{content[:TASK_NAME_PREVIEW]}..."
    return content


def weekly_row_values(task: CanonicalTask, index: int, start_date: str, end_date: str, default_hours: str = DEFAULT_HOURS) -> list[str]:
    return [
        weekly_day_label(start_date, index),
        task.task_id or f"任务{index + 1:03d}",
        task.task_name or short_task_name(task.content),
        task.content,
        task.plan_start or start_date,
        task.plan_end or end_date,
        task.status.label,
        task.plan_hours or default_hours,
        task.actual_hours or default_hours,
        "",
        task.remarks,
    ]


def generate_weekly_workbook(
    output_path: Path,
    start_date: str,
    end_date: str,
    tasks: Sequence[CanonicalTask],
    plan_text: str,
    *,
    config: ReconcilerConfig | None = None,
) -> dict[str, Any]:
    config = config or ReconcilerConfig()
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = WEEKLY_SHEET_TITLE
    width = len(WEEKLY_COLUMNS)
    last_letter = get_column_letter(width)

    title_font = Font(bold=True, size=14)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(fill_type="solid", start_color="1F3864", end_color="1F3864")
    section_font = Font(color="FFFFFF")
    section_fill = PatternFill(fill_type="solid", start_color="000000", end_color="000000")
    centered = Alignment(horizontal="center")
    wrapped = Alignment(horizontal="left", wrap_text=True)

    for col_idx, (_, col_width) in enumerate(WEEKLY_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(col_idx)].width = col_width

    title = sheet.cell(row=1, column=1, value=f"周工作进度计划与完成表 ({start_date} 至 {end_date})")
    title.font = title_font
    title.alignment = centered
    sheet.merge_cells(f"A1:{last_letter}1")

    summary = sheet.cell(row=3, column=1, value=SUMMARY_HEADING)
    summary.font = section_font
    summary.fill = section_fill
    sheet.merge_cells(f"A3:{last_letter}3")

    header_excel_row = WEEKLY_HEADER_ROW + 1
    for col_idx, (label, _) in enumerate(WEEKLY_COLUMNS, start=1):
        cell = sheet.cell(row=header_excel_row, column=col_idx, value=label)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = centered

    centered_cols = {1, 5, 6, 7}
    for index, task in enumerate(tasks):
        excel_row = header_excel_row + 1 + index
        for col_idx, value in enumerate(weekly_row_values(task, index, start_date, end_date, config.default_hours), start=1):
            cell = sheet.cell(row=excel_row, column=col_idx, value=value)
            cell.alignment = centered if col_idx in centered_cols else wrapped

    plan_heading_row = header_excel_row + len(tasks) + 2
    heading = sheet.cell(row=plan_heading_row, column=1, value=PLAN_HEADING)
    heading.font = section_font
    heading.fill = section_fill
    sheet.merge_cells(f"A{plan_heading_row}:{last_letter}{plan_heading_row}")
    if plan_text:
        body = sheet.cell(row=plan_heading_row + 1, column=1, value=plan_text)
        body.alignment = wrapped
        sheet.merge_cells(f"A{plan_heading_row + 1}:{last_letter}{plan_heading_row + 1}")

    save_workbook(workbook, output_path)
    return {
        "sheet_name": WEEKLY_SHEET_TITLE,
        "header_row": WEEKLY_HEADER_ROW,
        "tasks_written": len(tasks),
        "plan_heading_row": plan_heading_row - 1,
    }


def fill_monthly_report(grid: Grid, user_info: UserInfo, observations: Sequence[DailyObservation]) -> str:
    """Fill a fixed-layout monthly sheet; returns the next-month plan text."""
    for attr, (row, col) in MONTHLY_USER_CELLS.items():
        grid.set(row, col, getattr(user_info, attr))
    for offset, observation in enumerate(observations):
        row = MONTHLY_FIRST_ROW + offset
        grid.set(row, 0, observation.should_complete)
        grid.set(row, 1, TaskStatus.DONE.label)
        grid.set(row, 2, observation.remarks)
    plan_text = "\n".join(
        observation.uncompleted for observation in observations if observation.uncompleted.strip()
    ).strip()
    grid.set(MONTHLY_PLAN_CELL[0], MONTHLY_PLAN_CELL[1], plan_text)
    return plan_text


def export_monthly_report(
    template_path: Path,
    output_path: Path,
    user_info: UserInfo,
    observations: Sequence[DailyObservation],
) -> dict[str, Any]:
    workbook = open_workbook(template_path)
    sheet = workbook.worksheets[0]
    plan_text = fill_monthly_report(WorksheetGrid(sheet), user_info, observations)
    save_workbook(workbook, output_path)
    return {"sheet_name": sheet.title, "rows_written": len(observations), "next_month_plan": plan_text}

