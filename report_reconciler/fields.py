"""Canonical report fields and the header synonyms that identify them."""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence


class FieldKey(str, Enum):
    TASK = "task"
    TASK_ID = "task_id"
    TASK_NAME = "task_name"
    PLAN_START = "plan_start"
    PLAN_END = "plan_end"
    ACTUAL_START = "actual_start"
    ACTUAL_END = "actual_end"
    STATUS = "status"
    PLAN_HOURS = "plan_hours"
    ACTUAL_HOURS = "actual_hours"
    REMARKS = "remarks"


# Declaration order matters: a header cell resolves to the first field
# whose synonyms it contains.
FIELD_SYNONYMS: dict[FieldKey, tuple[str, ...]] = {
    FieldKey.TASK: ("任务内容", "内容", "量化指标", "工作内容", "任务描述"),
    FieldKey.TASK_ID: ("任务编号", "编号", "ID"),
    FieldKey.TASK_NAME: ("任务名称", "名称"),
    FieldKey.PLAN_START: ("计划开始时间", "计划开始"),
    FieldKey.PLAN_END: ("计划结束时间", "计划结束", "计划完成时间"),
    FieldKey.ACTUAL_START: ("实际开始时间", "实际开始"),
    FieldKey.ACTUAL_END: ("实际结束时间", "实际结束"),
    FieldKey.STATUS: ("任务状态", "状态", "完成状态"),
    FieldKey.PLAN_HOURS: ("计划工时", "计划工时(小时)"),
    FieldKey.ACTUAL_HOURS: ("实际工时", "实际工时(小时)"),
    FieldKey.REMARKS: ("备注", "说明"),
}

SynonymTable = Mapping[FieldKey, Sequence[str]]


def match_field(text: str, synonyms: SynonymTable | None = None) -> FieldKey | None:
    table = FIELD_SYNONYMS if synonyms is None else synonyms
    for field, needles in table.items():
        if any(needle in text for needle in needles):
            return field
    return None


def with_synonyms(overrides: Mapping[str, Sequence[str]]) -> dict[FieldKey, tuple[str, ...]]:
    """Return a copy of the default table with per-field replacements.

    Keys are FieldKey values (``"task"``, ``"status"`` ...). Overridden
    fields keep their position in the declaration order.
    """
    table = dict(FIELD_SYNONYMS)
    for key, needles in overrides.items():
        try:
            field = FieldKey(key)
        except ValueError:
            raise ValueError(f"Unknown report field '{key}'. Known: {', '.join(f.value for f in FieldKey)}") from None
        cleaned = tuple(str(needle) for needle in needles if str(needle))
        if not cleaned:
            raise ValueError(f"Synonym list for '{key}' is empty")
        table[field] = cleaned
    return table
