from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from report_reconciler import __version__ as TOOL_VERSION
from report_reconciler.config import default_config_text, load_config
from report_reconciler.contracts import build_payload
from report_reconciler.errors import ConfigError, EmptyResult, HeaderNotFound, NoTaskColumn, ObservationError
from report_reconciler.extract import import_fixed_layout, parse_template
from report_reconciler.merge import build_weekly_template
from report_reconciler.models import CanonicalTask, ReportTemplate, TaskStatus, UserInfo
from report_reconciler.observations import load_observations
from report_reconciler.workbook import (
    WORKBOOK_FORMATS,
    export_monthly_report,
    export_with_template,
    generate_weekly_workbook,
    load_grid,
)

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_HEADER_NOT_FOUND = 3
EXIT_EMPTY_RESULT = 4


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ReconcilerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def timestamp_token() -> str:
    override = os.environ.get("REPORT_RECONCILER_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "report-reconciler-output" / f"{input_path.stem}-{timestamp_token()}"


def write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def json_output_path(args: argparse.Namespace, filename: str) -> Path | None:
    if getattr(args, "output", None):
        return Path(args.output)
    if getattr(args, "out_dir", None):
        return Path(args.out_dir) / filename
    return None


def classify_backend_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (HeaderNotFound, NoTaskColumn)):
        return EXIT_HEADER_NOT_FOUND
    if isinstance(exc, EmptyResult):
        return EXIT_EMPTY_RESULT
    if isinstance(exc, (ConfigError, FileNotFoundError)):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (ObservationError, ValueError, UnicodeDecodeError)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def sorted_tasks(tasks: list[CanonicalTask]) -> list[CanonicalTask]:
    return sorted(tasks, key=lambda task: (task.plan_start or "", task.content))


def require_file(path: Path) -> None:
    if not path.exists():
        raise CliError(f"File not found: {path}", EXIT_COMMAND_ERROR)


def require_workbook(path: Path, role: str) -> None:
    require_file(path)
    if path.suffix.lower() not in WORKBOOK_FORMATS:
        raise CliError(f"{role} must be an .xlsx or .xlsm workbook, got '{path.suffix or '[missing extension]'}'", EXIT_COMMAND_ERROR)


def load_task_file(path: Path) -> ReportTemplate:
    require_file(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise CliError(f"Could not read task file: {exc}", EXIT_PARSE_FAILED) from exc
    if isinstance(payload, list):
        payload = {"tasks": payload}
    if not isinstance(payload, dict):
        raise CliError("Task file root must be a JSON object or list.", EXIT_PARSE_FAILED)
    try:
        return ReportTemplate.from_dict(payload)
    except ValueError as exc:
        raise CliError(f"Invalid task file: {exc}", EXIT_PARSE_FAILED) from exc


def render_tasks_text(title: str, template: ReportTemplate, extra: list[str] | None = None) -> str:
    lines = [title, *(extra or []), f"Tasks: {len(template.tasks)}"]
    for task in template.tasks:
        lines.append(f"- [{task.status.label}] {task.content}")
        if task.remarks:
            lines.append(f"    {task.remarks}")
    lines.append(f"Next period plan: {template.next_week_plan or '[none]'}")
    return "\n".join(lines) + "\n"


def build_parser() -> argparse.ArgumentParser:
    parser = ReconcilerArgumentParser(
        prog="report-reconciler",
        description="Parse work-report templates, merge daily status entries, and fill report workbooks.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--json", action="store_true", help="Print machine-readable JSON to stdout")
        sub.add_argument("--quiet", action="store_true", help="Suppress human-readable messages on stderr")
        sub.add_argument("--config", help="Path to a JSON config file")

    parse_cmd = subparsers.add_parser("parse", help="Extract tasks and plan text from a report template")
    parse_cmd.add_argument("input", help="Template workbook (.xlsx/.xlsm) or .csv grid")
    parse_cmd.add_argument("--fixed-layout", action="store_true", help="Read task/status/remarks from columns A-C instead of locating headers")
    parse_cmd.add_argument("--output", help="Write the parsed template JSON to this path")
    parse_cmd.add_argument("--out", dest="out_dir", help="Write template.json into this directory")
    add_common(parse_cmd)

    merge_cmd = subparsers.add_parser("merge", help="Merge daily observations into a weekly task list")
    merge_cmd.add_argument("input", help="Observations file (.json, .jsonl or .csv)")
    merge_cmd.add_argument("--start", help="First date to include (YYYY-MM-DD)")
    merge_cmd.add_argument("--end", help="Last date to include (YYYY-MM-DD)")
    merge_cmd.add_argument("--output", help="Write the weekly JSON to this path")
    merge_cmd.add_argument("--out", dest="out_dir", help="Write weekly.json into this directory")
    add_common(merge_cmd)

    export_cmd = subparsers.add_parser("export", help="Fill a template workbook with tasks from a JSON file")
    export_cmd.add_argument("template", help="Template workbook (.xlsx/.xlsm)")
    export_cmd.add_argument("tasks", help="JSON produced by 'parse' or 'merge'")
    export_cmd.add_argument("--output", help="Output workbook path")
    export_cmd.add_argument("--plan", help="Override the next-period plan text")
    export_cmd.add_argument("--reuse-columns", action="store_true", help="Use column_indices from the task file instead of locating headers")
    add_common(export_cmd)

    generate_cmd = subparsers.add_parser("generate", help="Write a fresh weekly report workbook")
    generate_cmd.add_argument("tasks", help="JSON produced by 'parse' or 'merge'")
    generate_cmd.add_argument("--start", required=True, help="Week start date (YYYY-MM-DD)")
    generate_cmd.add_argument("--end", required=True, help="Week end date (YYYY-MM-DD)")
    generate_cmd.add_argument("--output", help="Output workbook path")
    add_common(generate_cmd)

    monthly_cmd = subparsers.add_parser("monthly", help="Fill a fixed-layout monthly report template")
    monthly_cmd.add_argument("template", help="Monthly template workbook (.xlsx/.xlsm)")
    monthly_cmd.add_argument("observations", help="Observations file (.json, .jsonl or .csv)")
    monthly_cmd.add_argument("--month", required=True, help="Month to report (YYYY-MM)")
    monthly_cmd.add_argument("--output", help="Output workbook path")
    monthly_cmd.add_argument("--position", default="")
    monthly_cmd.add_argument("--department", default="")
    monthly_cmd.add_argument("--name", default="")
    add_common(monthly_cmd)

    config_cmd = subparsers.add_parser("config", help="Config helpers")
    config_sub = config_cmd.add_subparsers(dest="config_command", required=True)
    init_cmd = config_sub.add_parser("init", help="Write a default config file")
    init_cmd.add_argument("path", nargs="?", default="report-reconciler.json")

    subparsers.add_parser("version", help="Print the tool version")
    return parser


def run_parse(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    try:
        require_file(input_path)
        config = load_config(args.config)
        grid = load_grid(input_path)
        if args.fixed_layout:
            tasks = import_fixed_layout(grid)
            if not tasks:
                raise EmptyResult("No task rows found in columns A-C")
            template = ReportTemplate(tasks=tasks)
        else:
            template = parse_template(grid, config)
        output_path = json_output_path(args, "template.json")
        payload = build_payload(
            "reconciler.template",
            template.to_dict(),
            command="parse",
            input_path=input_path,
            output_path=output_path,
            metrics={
                "tasks": len(template.tasks),
                "header_row": template.column_map.header_row if template.column_map else None,
                "plan_found": bool(template.next_week_plan),
            },
        )
        if output_path:
            write_json(output_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_tasks_text("report-reconciler parse", template, [f"File: {input_path}"]).rstrip(), quiet=args.quiet)
            if output_path:
                emit_human(f"Template written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_merge(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    try:
        require_file(input_path)
        observations = load_observations(input_path, start_date=args.start, end_date=args.end)
        template = build_weekly_template(observations)
        template.tasks = sorted_tasks(template.tasks)
        output_path = json_output_path(args, "weekly.json")
        payload = build_payload(
            "reconciler.weekly",
            {**template.to_dict(), "start_date": args.start, "end_date": args.end},
            command="merge",
            input_path=input_path,
            output_path=output_path,
            metrics={
                "observations": len(observations),
                "tasks": len(template.tasks),
                "done": sum(1 for task in template.tasks if task.status is TaskStatus.DONE),
            },
        )
        if output_path:
            write_json(output_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            extra = [f"File: {input_path}", f"Observations: {len(observations)}"]
            emit_human(render_tasks_text("report-reconciler merge", template, extra).rstrip(), quiet=args.quiet)
            if output_path:
                emit_human(f"Weekly report written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_export(args: argparse.Namespace) -> int:
    template_path = Path(args.template)
    try:
        require_workbook(template_path, "Template")
        config = load_config(args.config)
        report = load_task_file(Path(args.tasks))
        column_map = report.column_map if args.reuse_columns else None
        if args.reuse_columns and column_map is None:
            raise CliError("--reuse-columns needs column_indices in the task file", EXIT_COMMAND_ERROR)
        plan_text = args.plan if args.plan is not None else report.next_week_plan
        output_path = Path(args.output) if args.output else default_output_dir(template_path) / f"{template_path.stem}-filled{template_path.suffix}"
        details = export_with_template(template_path, output_path, report.tasks, plan_text, column_map=column_map, config=config)
        warnings = []
        if details["plan_cell"] is None and plan_text:
            warnings.append("No next-period plan heading found below the task rows; plan text not written")
        payload = build_payload(
            "reconciler.export_summary",
            details,
            command="export",
            input_path=template_path,
            output_path=output_path,
            metrics={"tasks": len(report.tasks)},
            warnings=warnings,
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            for warning in warnings:
                emit_human(warning, quiet=args.quiet)
            emit_human(f"Tasks written: {details['tasks_written']} (header row {details['header_row']})", quiet=args.quiet)
            emit_human(f"Filled workbook: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_generate(args: argparse.Namespace) -> int:
    tasks_path = Path(args.tasks)
    try:
        config = load_config(args.config)
        report = load_task_file(tasks_path)
        output_path = Path(args.output) if args.output else default_output_dir(tasks_path) / f"周报_{args.start}_至_{args.end}.xlsx"
        details = generate_weekly_workbook(output_path, args.start, args.end, report.tasks, report.next_week_plan, config=config)
        payload = build_payload(
            "reconciler.export_summary",
            details,
            command="generate",
            input_path=tasks_path,
            output_path=output_path,
            metrics={"tasks": len(report.tasks)},
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(f"Weekly workbook: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def month_bounds(month: str) -> tuple[str, str]:
    try:
        datetime.strptime(month, "%Y-%m")
    except ValueError as exc:
        raise CliError(f"--month must look like YYYY-MM, got '{month}'", EXIT_COMMAND_ERROR) from exc
    return f"{month}-01", f"{month}-31"


def run_monthly(args: argparse.Namespace) -> int:
    template_path = Path(args.template)
    try:
        require_workbook(template_path, "Template")
        start, end = month_bounds(args.month)
        observations = load_observations(Path(args.observations), start_date=start, end_date=end)
        user_info = UserInfo(position=args.position, department=args.department, name=args.name, date=args.month)
        output_path = Path(args.output) if args.output else default_output_dir(template_path) / f"月报_{args.month}.xlsx"
        details = export_monthly_report(template_path, output_path, user_info, observations)
        payload = build_payload(
            "reconciler.export_summary",
            details,
            command="monthly",
            input_path=template_path,
            output_path=output_path,
            metrics={"observations": len(observations)},
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(f"Monthly workbook: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    write_text(config_path, default_config_text())
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "parse":
            return run_parse(args)
        if args.command == "merge":
            return run_merge(args)
        if args.command == "export":
            return run_export(args)
        if args.command == "generate":
            return run_generate(args)
        if args.command == "monthly":
            return run_monthly(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
