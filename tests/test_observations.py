from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from report_reconciler.errors import ErrorKind, ObservationError
from report_reconciler.models import DailyObservation
from report_reconciler.observations import load_observations, observations_from_frame


class DailyObservationTests(unittest.TestCase):
    def test_store_column_names_are_accepted(self):
        observation = DailyObservation.from_dict(
            {"date": "2024-04-01", "should": "写文档", "done": "写文档", "undone": None, "content": "顺利", "user_id": 7}
        )
        self.assertEqual(observation.should_complete, "写文档")
        self.assertEqual(observation.completed, "写文档")
        self.assertEqual(observation.uncompleted, "")
        self.assertEqual(observation.remarks, "顺利")
        self.assertIsNone(observation.task_id)

    def test_missing_date_is_rejected(self):
        with self.assertRaisesRegex(ValueError, "missing its date"):
            DailyObservation.from_dict({"should": "写文档"})


class LoadObservationTests(unittest.TestCase):
    def write(self, name: str, text: str) -> Path:
        path = Path(self.tmpdir.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_json_list_is_sorted_stably_by_date(self):
        path = self.write(
            "dailies.json",
            json.dumps(
                [
                    {"date": "2024-04-02", "should": "c"},
                    {"date": "2024-04-01", "should": "a"},
                    {"date": "2024-04-01", "should": "b", "done": "a"},
                ],
                ensure_ascii=False,
            ),
        )
        observations = load_observations(path)
        self.assertEqual([(o.date, o.should_complete) for o in observations], [("2024-04-01", "a"), ("2024-04-01", "b"), ("2024-04-02", "c")])
        self.assertEqual(observations[0].completed, "")
        self.assertEqual(observations[1].completed, "a")

    def test_date_range_is_inclusive(self):
        records = [{"date": f"2024-04-0{day}", "should": str(day)} for day in range(1, 8)]
        path = self.write("dailies.json", json.dumps({"observations": records}))
        observations = load_observations(path, start_date="2024-04-02", end_date="2024-04-05")
        self.assertEqual([o.date for o in observations], ["2024-04-02", "2024-04-03", "2024-04-04", "2024-04-05"])

    def test_jsonl_and_csv_sources(self):
        jsonl = self.write(
            "dailies.jsonl",
            '{"date": "2024-04-01", "should": "写文档"}\n\n{"date": "2024-04-02", "undone": "写文档"}\n',
        )
        csv = self.write("dailies.csv", "date,should,done,undone\n2024-04-01,写文档,,\n2024-04-02,,写文档,\n")
        self.assertEqual([o.uncompleted for o in load_observations(jsonl)], ["", "写文档"])
        self.assertEqual([o.completed for o in load_observations(csv)], ["", "写文档"])

    def test_numbers_keep_their_written_form_when_other_rows_lack_them(self):
        records = [
            {"date": "2024-04-01", "should": "A", "plan_hours": 8, "task_id": 101, "actual_hours": 7.5},
            {"date": "2024-04-02", "should": "B"},
        ]
        json_path = self.write("dailies.json", json.dumps(records))
        jsonl_path = self.write("dailies.jsonl", "\n".join(json.dumps(record) for record in records))
        for path in (json_path, jsonl_path):
            with self.subTest(path=path.name):
                first, second = load_observations(path)
                self.assertEqual(first.plan_hours, "8")
                self.assertEqual(first.task_id, "101")
                self.assertEqual(first.actual_hours, "7.5")
                self.assertIsNone(second.plan_hours)
                self.assertIsNone(second.task_id)

    def test_empty_file_yields_no_observations(self):
        self.assertEqual(load_observations(self.write("dailies.json", "[]")), [])

    def test_bad_inputs_raise_observation_error(self):
        cases = [
            ("dailies.txt", "date\n"),
            ("dailies.json", "{not json"),
            ("dailies.json", '{"rows": 3}'),
            ("dailies.csv", "day,should\n2024-04-01,写文档\n"),
            ("dailies.csv", "date,should\n,写文档\n"),
        ]
        for name, text in cases:
            with self.subTest(name=name, text=text):
                with self.assertRaises(ObservationError) as ctx:
                    load_observations(self.write(name, text))
                self.assertIs(ctx.exception.kind, ErrorKind.INVALID_OBSERVATIONS)

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_observations(Path(self.tmpdir.name) / "missing.json")

    def test_frame_without_sorting_keeps_file_order(self):
        df = pd.DataFrame([{"date": "2024-04-02", "should": "b"}, {"date": "2024-04-01", "should": "a"}])
        observations = observations_from_frame(df, sort_by_date=False)
        self.assertEqual([o.should_complete for o in observations], ["b", "a"])


if __name__ == "__main__":
    unittest.main()
