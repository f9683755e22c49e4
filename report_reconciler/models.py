from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from report_reconciler.fields import FieldKey

DONE_LABELS = {"已完成", "完成", "done", "completed", "finished"}


class TaskStatus(str, Enum):
    IN_PROGRESS = "进行中"
    DONE = "已完成"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, text: str | None) -> "TaskStatus":
        if text is None:
            return cls.IN_PROGRESS
        if text.strip().lower() in DONE_LABELS:
            return cls.DONE
        return cls.IN_PROGRESS


@dataclass(frozen=True)
class ColumnMap:
    """Field -> column index, plus the row the headers were found on."""

    columns: Mapping[FieldKey, int]
    header_row: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))

    def get(self, key: FieldKey) -> int | None:
        return self.columns.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.columns

    def __len__(self) -> int:
        return len(self.columns)

    def items(self):
        return self.columns.items()

    @property
    def data_start_row(self) -> int:
        return 0 if self.header_row is None else self.header_row + 1

    def to_dict(self) -> dict[str, int]:
        payload = {key.value: col for key, col in self.columns.items()}
        if self.header_row is not None:
            payload["header_row"] = self.header_row
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ColumnMap":
        columns: dict[FieldKey, int] = {}
        header_row = None
        for key, value in payload.items():
            if key == "header_row":
                header_row = int(value)
                continue
            columns[FieldKey(key)] = int(value)
        return cls(columns=columns, header_row=header_row)


@dataclass
class DailyObservation:
    date: str
    should_complete: str = ""
    completed: str = ""
    uncompleted: str = ""
    task_id: str | None = None
    task_name: str | None = None
    plan_hours: str | None = None
    actual_hours: str | None = None
    remarks: str = ""

    # Column names used by the daily-report store.
    ALIASES = {"should": "should_complete", "done": "completed", "undone": "uncompleted", "content": "remarks"}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailyObservation":
        values: dict[str, Any] = {}
        for key, value in payload.items():
            name = cls.ALIASES.get(key, key)
            if name in OBSERVATION_FIELDS:
                values[name] = value
        if not values.get("date"):
            raise ValueError("Daily observation is missing its date")
        for name in ("should_complete", "completed", "uncompleted", "remarks"):
            values[name] = "" if values.get(name) is None else str(values[name])
        for name in ("task_id", "task_name", "plan_hours", "actual_hours"):
            if values.get(name) is not None:
                values[name] = str(values[name])
        values["date"] = str(values["date"])
        return cls(**values)


OBSERVATION_FIELDS = {
    "date",
    "should_complete",
    "completed",
    "uncompleted",
    "task_id",
    "task_name",
    "plan_hours",
    "actual_hours",
    "remarks",
}


@dataclass
class CanonicalTask:
    content: str
    status: TaskStatus = TaskStatus.IN_PROGRESS
    remarks: str = ""
    task_id: str | None = None
    task_name: str | None = None
    plan_start: str | None = None
    plan_end: str | None = None
    actual_start: str | None = None
    actual_end: str | None = None
    plan_hours: str | None = None
    actual_hours: str | None = None

    def value_for(self, key: FieldKey) -> str | None:
        if key is FieldKey.TASK:
            return self.content
        if key is FieldKey.STATUS:
            return self.status.label
        return getattr(self, key.value)

    def to_dict(self) -> dict[str, Any]:
        return {key.value: self.value_for(key) for key in FieldKey}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CanonicalTask":
        content = payload.get("task", payload.get("content"))
        if content is None or not str(content).strip():
            raise ValueError("Task record has no content")
        optional = {}
        for key in FieldKey:
            if key in (FieldKey.TASK, FieldKey.STATUS, FieldKey.REMARKS):
                continue
            value = payload.get(key.value)
            optional[key.value] = None if value is None else str(value)
        return cls(
            content=str(content),
            status=TaskStatus.from_label(payload.get("status")),
            remarks=str(payload.get("remarks") or ""),
            **optional,
        )


@dataclass
class ReportTemplate:
    tasks: list[CanonicalTask] = field(default_factory=list)
    next_week_plan: str = ""
    column_map: ColumnMap | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "next_week_plan": self.next_week_plan,
            "column_indices": self.column_map.to_dict() if self.column_map else {},
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReportTemplate":
        indices = payload.get("column_indices") or {}
        return cls(
            tasks=[CanonicalTask.from_dict(item) for item in payload.get("tasks", [])],
            next_week_plan=str(payload.get("next_week_plan") or ""),
            column_map=ColumnMap.from_dict(indices) if indices else None,
        )


@dataclass
class UserInfo:
    position: str = ""
    department: str = ""
    name: str = ""
    date: str = ""
