from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from openpyxl import Workbook, load_workbook


ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "report_reconciler.cli"]
FIXED_STAMP = "20240405T010203Z"

TEMPLATE_CSV = (
    "研发部周报,,,\n"
    "任务编号,任务内容,任务状态,备注\n"
    "T-1,写文档,已完成,ok\n"
    ",修bug,进行中,\n"
    "下周工作计划,,,\n"
    "上线,,,\n"
)

DAILIES = [
    {"date": "2024-04-01", "should": "写文档\n修bug", "done": "写文档", "undone": "修bug"},
    {"date": "2024-04-02", "should": "评审", "done": "修bug", "undone": "评审"},
    {"date": "2024-04-09", "should": "下周的事"},
]


def run_cli(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["REPORT_RECONCILER_OUTPUT_STAMP"] = FIXED_STAMP
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    return subprocess.run(
        [*CLI, *args],
        cwd=cwd or ROOT,
        capture_output=True,
        text=True,
        env=env,
    )


def write_template(path: Path) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["任务内容", "任务状态", "备注"])
    sheet["A6"] = "下周工作计划"
    workbook.save(path)


class ReportReconcilerCliTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_parse_csv_template_json_stdout_contains_only_json(self):
        template = self.tmpdir / "weekly.csv"
        template.write_text(TEMPLATE_CSV, encoding="utf-8")
        proc = run_cli("parse", str(template), "--json")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertEqual(proc.stderr.strip(), "")
        payload = json.loads(proc.stdout)
        self.assertEqual(payload["contract"]["name"], "reconciler.template")
        self.assertEqual([task["task"] for task in payload["tasks"]], ["写文档", "修bug"])
        self.assertEqual(payload["tasks"][1]["task_id"], "任务002")
        self.assertEqual(payload["next_week_plan"], "上线")
        self.assertEqual(payload["column_indices"]["header_row"], 1)
        self.assertEqual(payload["run_summary"]["metrics"]["tasks"], 2)

    def test_parse_writes_template_json_into_out_dir(self):
        template = self.tmpdir / "weekly.csv"
        template.write_text(TEMPLATE_CSV, encoding="utf-8")
        proc = run_cli("parse", str(template), "--out", str(self.tmpdir / "out"))
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertIn("Template written:", proc.stderr)
        self.assertIn("[已完成] 写文档", proc.stderr)
        payload = json.loads((self.tmpdir / "out" / "template.json").read_text(encoding="utf-8"))
        self.assertEqual(len(payload["tasks"]), 2)

    def test_parse_without_header_returns_exit_3(self):
        template = self.tmpdir / "plain.csv"
        template.write_text("a,b\nc,d\n", encoding="utf-8")
        proc = run_cli("parse", str(template))
        self.assertEqual(proc.returncode, 3)
        self.assertIn("check the template format", proc.stderr)

    def test_parse_fixed_layout(self):
        template = self.tmpdir / "plain.csv"
        template.write_text("a,b,c\n写文档,完成,ok\n", encoding="utf-8")
        proc = run_cli("parse", str(template), "--fixed-layout", "--json")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        payload = json.loads(proc.stdout)
        self.assertEqual(payload["tasks"][0]["status"], "已完成")
        self.assertEqual(payload["column_indices"], {})

    def test_parse_unreadable_workbook_returns_exit_2(self):
        broken = self.tmpdir / "broken.xlsx"
        broken.write_bytes(b"not a workbook")
        proc = run_cli("parse", str(broken))
        self.assertEqual(proc.returncode, 2)
        self.assertIn("Could not read workbook", proc.stderr)

    def test_merge_filters_by_week(self):
        dailies = self.tmpdir / "dailies.json"
        dailies.write_text(json.dumps(DAILIES, ensure_ascii=False), encoding="utf-8")
        proc = run_cli("merge", str(dailies), "--start", "2024-04-01", "--end", "2024-04-05", "--json")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        payload = json.loads(proc.stdout)
        tasks = {task["task"]: task for task in payload["tasks"]}
        self.assertEqual(set(tasks), {"写文档", "修bug", "评审"})
        self.assertEqual(tasks["写文档"]["status"], "已完成")
        self.assertEqual(tasks["修bug"]["status"], "已完成")
        self.assertEqual(tasks["评审"]["status"], "进行中")
        self.assertEqual(payload["next_week_plan"], "继续完成本周未完成工作：评审")
        self.assertEqual(payload["run_summary"]["metrics"], {"observations": 2, "tasks": 3, "done": 2})

    def test_merge_with_no_dailies_in_range_returns_exit_4(self):
        dailies = self.tmpdir / "dailies.json"
        dailies.write_text(json.dumps(DAILIES, ensure_ascii=False), encoding="utf-8")
        proc = run_cli("merge", str(dailies), "--start", "2024-05-01", "--end", "2024-05-07")
        self.assertEqual(proc.returncode, 4)
        self.assertIn("No daily reports", proc.stderr)

    def test_export_fills_template_from_parsed_tasks(self):
        source = self.tmpdir / "weekly.csv"
        source.write_text(TEMPLATE_CSV, encoding="utf-8")
        tasks_json = self.tmpdir / "template.json"
        self.assertEqual(run_cli("parse", str(source), "--output", str(tasks_json), "--quiet").returncode, 0)

        template = self.tmpdir / "template.xlsx"
        write_template(template)
        output = self.tmpdir / "filled.xlsx"
        proc = run_cli("export", str(template), str(tasks_json), "--output", str(output), "--json")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        details = json.loads(proc.stdout)
        self.assertEqual(details["contract"]["name"], "reconciler.export_summary")
        self.assertEqual(details["plan_cell"], [6, 0])

        sheet = load_workbook(output).active
        self.assertEqual([sheet["A2"].value, sheet["B2"].value, sheet["C2"].value], ["写文档", "已完成", "ok"])
        self.assertEqual(sheet["A3"].value, "修bug")
        self.assertEqual(sheet["A7"].value, "上线")

    def test_export_rejects_csv_template(self):
        tasks_json = self.tmpdir / "tasks.json"
        tasks_json.write_text("[]", encoding="utf-8")
        template = self.tmpdir / "template.csv"
        template.write_text("任务内容\n", encoding="utf-8")
        proc = run_cli("export", str(template), str(tasks_json))
        self.assertEqual(proc.returncode, 1)
        self.assertIn("must be an .xlsx or .xlsm workbook", proc.stderr)

    def test_generate_uses_default_output_directory(self):
        tasks_json = self.tmpdir / "weekly.json"
        tasks_json.write_text(
            json.dumps({"tasks": [{"task": "写文档", "status": "已完成"}], "next_week_plan": "上线"}, ensure_ascii=False),
            encoding="utf-8",
        )
        proc = run_cli("generate", str(tasks_json), "--start", "2024-04-01", "--end", "2024-04-05", cwd=self.tmpdir)
        self.assertEqual(proc.returncode, 0, proc.stderr)
        output = self.tmpdir / "report-reconciler-output" / f"weekly-{FIXED_STAMP}" / "周报_2024-04-01_至_2024-04-05.xlsx"
        self.assertTrue(output.exists(), proc.stderr)

        parsed = run_cli("parse", str(output), "--json")
        self.assertEqual(parsed.returncode, 0, parsed.stderr)
        payload = json.loads(parsed.stdout)
        self.assertEqual([task["task"] for task in payload["tasks"]], ["写文档"])
        self.assertEqual(payload["next_week_plan"], "上线")

    def test_generate_uses_configured_default_hours(self):
        tasks_json = self.tmpdir / "weekly.json"
        tasks_json.write_text(json.dumps([{"task": "写文档"}], ensure_ascii=False), encoding="utf-8")
        config = self.tmpdir / "config.json"
        config.write_text('{"default_hours": "6"}', encoding="utf-8")
        output = self.tmpdir / "weekly.xlsx"
        proc = run_cli(
            "generate", str(tasks_json), "--start", "2024-04-01", "--end", "2024-04-05",
            "--config", str(config), "--output", str(output),
        )
        self.assertEqual(proc.returncode, 0, proc.stderr)
        sheet = load_workbook(output).active
        self.assertEqual([sheet["H5"].value, sheet["I5"].value], ["6", "6"])

    def test_export_reports_unwritten_plan_as_warning(self):
        tasks_json = self.tmpdir / "tasks.json"
        tasks_json.write_text(json.dumps({"tasks": [{"task": "写文档"}], "next_week_plan": "上线"}, ensure_ascii=False), encoding="utf-8")
        template = self.tmpdir / "template.xlsx"
        workbook = Workbook()
        workbook.active.append(["任务内容", "任务状态", "备注"])
        workbook.save(template)
        proc = run_cli("export", str(template), str(tasks_json), "--output", str(self.tmpdir / "out.xlsx"), "--json")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        run_summary = json.loads(proc.stdout)["run_summary"]
        self.assertEqual(run_summary["status"], "warning")
        self.assertEqual(len(run_summary["warnings"]), 1)

    def test_monthly_fills_fixed_cells(self):
        template = self.tmpdir / "monthly.xlsx"
        Workbook().save(template)
        dailies = self.tmpdir / "dailies.json"
        dailies.write_text(json.dumps(DAILIES, ensure_ascii=False), encoding="utf-8")
        output = self.tmpdir / "monthly-filled.xlsx"
        proc = run_cli("monthly", str(template), str(dailies), "--month", "2024-04", "--name", "小王", "--output", str(output))
        self.assertEqual(proc.returncode, 0, proc.stderr)
        sheet = load_workbook(output).active
        self.assertEqual(sheet["F2"].value, "小王")
        self.assertEqual(sheet["H2"].value, "2024-04")
        self.assertEqual(sheet["A8"].value, "下周的事")
        self.assertEqual(sheet["A20"].value, "修bug\n评审")

    def test_bad_month_returns_exit_1(self):
        template = self.tmpdir / "monthly.xlsx"
        Workbook().save(template)
        proc = run_cli("monthly", str(template), "missing.json", "--month", "April")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("YYYY-MM", proc.stderr)

    def test_invalid_config_returns_exit_1(self):
        template = self.tmpdir / "weekly.csv"
        template.write_text(TEMPLATE_CSV, encoding="utf-8")
        config = self.tmpdir / "config.json"
        config.write_text('{"header_threshold": 0}', encoding="utf-8")
        proc = run_cli("parse", str(template), "--config", str(config))
        self.assertEqual(proc.returncode, 1)
        self.assertIn("header_threshold", proc.stderr)

    def test_config_init_refuses_to_overwrite(self):
        config = self.tmpdir / "report-reconciler.json"
        first = run_cli("config", "init", str(config))
        self.assertEqual(first.returncode, 0, first.stderr)
        self.assertIn("任务内容", config.read_text(encoding="utf-8"))
        second = run_cli("config", "init", str(config))
        self.assertEqual(second.returncode, 1)
        self.assertIn("Refusing to overwrite", second.stderr)

    def test_missing_subcommand_is_a_usage_error(self):
        proc = run_cli()
        self.assertEqual(proc.returncode, 1)

    def test_version(self):
        proc = run_cli("version")
        self.assertEqual(proc.returncode, 0)
        self.assertRegex(proc.stdout.strip(), r"^\d+\.\d+\.\d+$")


if __name__ == "__main__":
    unittest.main()
