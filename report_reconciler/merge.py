"""Fold per-day status observations into canonical task records.

Tasks are keyed by the exact trimmed item text. Two items that differ only
in whitespace inside the text or in punctuation are different tasks; there
is no fuzzy matching.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from report_reconciler.errors import EmptyResult
from report_reconciler.models import CanonicalTask, DailyObservation, ReportTemplate, TaskStatus
from report_reconciler.splitter import split_items

CARRY_OVER_PREFIX = "继续完成本周未完成工作："


def not_completed_note(date: str) -> str:
    return f"{date}未能完成"


def new_task(item: str, observation: DailyObservation, status: TaskStatus) -> CanonicalTask:
    return CanonicalTask(
        content=item,
        status=status,
        task_id=observation.task_id,
        task_name=observation.task_name,
        plan_start=observation.date,
        plan_end=observation.date,
        plan_hours=observation.plan_hours,
        actual_hours=observation.actual_hours,
    )


def apply_should(tasks: dict[str, CanonicalTask], item: str, observation: DailyObservation) -> None:
    if item not in tasks:
        tasks[item] = new_task(item, observation, TaskStatus.IN_PROGRESS)


def apply_completed(tasks: dict[str, CanonicalTask], item: str, observation: DailyObservation) -> None:
    task = tasks.get(item)
    if task is None:
        task = tasks[item] = new_task(item, observation, TaskStatus.DONE)
    task.status = TaskStatus.DONE
    # Completion collapses to the sighting day, even for multi-day work.
    task.actual_start = observation.date
    task.actual_end = observation.date


def apply_uncompleted(tasks: dict[str, CanonicalTask], item: str, observation: DailyObservation) -> None:
    task = tasks.get(item)
    if task is None:
        task = tasks[item] = new_task(item, observation, TaskStatus.IN_PROGRESS)
        task.plan_end = None
        task.remarks = not_completed_note(observation.date)
        return
    task.status = TaskStatus.IN_PROGRESS
    task.remarks = f"{not_completed_note(observation.date)}: {task.remarks}"
    task.actual_end = None


def merge_observation(tasks: dict[str, CanonicalTask], observation: DailyObservation) -> None:
    for item in split_items(observation.should_complete):
        apply_should(tasks, item, observation)
    for item in split_items(observation.completed):
        apply_completed(tasks, item, observation)
    for item in split_items(observation.uncompleted):
        apply_uncompleted(tasks, item, observation)


def merge_observations(observations: Iterable[DailyObservation]) -> list[CanonicalTask]:
    """Merge observations given in ascending date order.

    Within one observation the should, completed and uncompleted lists are
    applied in that order, so an item reported both done and not done on
    the same day ends up in progress. The order of the returned list is not
    meaningful.
    """
    tasks: dict[str, CanonicalTask] = {}
    for observation in observations:
        merge_observation(tasks, observation)
    return list(tasks.values())


def derive_next_plan(observations: Sequence[DailyObservation]) -> str:
    if not observations:
        return ""
    leftover = observations[-1].uncompleted
    if not leftover.strip():
        return ""
    return f"{CARRY_OVER_PREFIX}{leftover}"


def build_weekly_template(observations: Sequence[DailyObservation]) -> ReportTemplate:
    if not observations:
        raise EmptyResult("No daily reports found for the requested period")
    tasks = merge_observations(observations)
    if not tasks:
        raise EmptyResult("The daily reports for the requested period list no tasks")
    return ReportTemplate(
        tasks=tasks,
        next_week_plan=derive_next_plan(observations),
    )
