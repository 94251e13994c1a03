"""Condition evaluation for automation rules.

A rule's ``conditions`` column holds ``{"logic": "AND" | "OR", "conditions": [...]}``
where each condition is ``{"field", "operator", "value"}``. Evaluation runs
against a :class:`TaskSnapshot`, never against live ORM objects, so the
matching logic stays a pure function of its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import selectinload

from planboard.domains.projects.models.project_models import (
    Task,
    TaskCustomFieldValue,
    TaskProject,
)

LOGIC_AND = "AND"
LOGIC_OR = "OR"

OPERATORS = (
    "equals",
    "not_equals",
    "greater_than",
    "less_than",
    "contains",
    "not_contains",
    "is_empty",
    "is_not_empty",
)

BUILTIN_FIELDS = ("title", "status", "assignee", "section", "dueDate")


@dataclass(frozen=True)
class TaskSnapshot:
    """The task attributes a condition may reference."""

    title: Optional[str] = None
    status: Optional[str] = None
    assignee: Optional[str] = None
    section: Optional[str] = None
    due_date: Optional[datetime] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_datetime(value: datetime) -> str:
    # Stored rules compare against millisecond ISO-8601 UTC strings.
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, datetime):
        return _format_datetime(value)
    return str(value)


def _as_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_field(snapshot: TaskSnapshot, name: str) -> Optional[str]:
    """Built-in attributes win; otherwise look the name up among custom fields."""
    if name == "title":
        return _as_text(snapshot.title)
    if name == "status":
        return _as_text(snapshot.status)
    if name == "assignee":
        return _as_text(snapshot.assignee)
    if name == "section":
        return _as_text(snapshot.section)
    if name == "dueDate":
        return _as_text(snapshot.due_date)
    return _as_text(snapshot.custom_fields.get(name))


def compare(operator: str, actual: Optional[str], expected: str) -> bool:
    if operator == "is_empty":
        return actual is None or actual == ""
    if operator == "is_not_empty":
        return not (actual is None or actual == "")
    if actual is None:
        # A missing value never equals anything.
        return operator == "not_equals"
    if operator == "equals":
        return actual == expected
    if operator == "not_equals":
        return actual != expected
    if operator in ("greater_than", "less_than"):
        left, right = _as_float(actual), _as_float(expected)
        if left is None or right is None:
            return False
        return left > right if operator == "greater_than" else left < right
    if operator == "contains":
        return expected.lower() in actual.lower()
    if operator == "not_contains":
        return expected.lower() not in actual.lower()
    return False


def evaluate_condition(condition: Mapping[str, Any], snapshot: TaskSnapshot) -> bool:
    if not isinstance(condition, Mapping):
        return False
    name = condition.get("field")
    if not name:
        return False
    expected = condition.get("value")
    expected_text = "" if expected is None else _as_text(expected)
    return compare(condition.get("operator") or "", resolve_field(snapshot, name), expected_text)


def evaluate(group: Optional[Mapping[str, Any]], snapshot: TaskSnapshot) -> bool:
    """Evaluate a condition group; an empty group always matches."""
    group = group or {}
    conditions = group.get("conditions") or []
    if not conditions:
        return True
    results = (evaluate_condition(condition, snapshot) for condition in conditions)
    if str(group.get("logic") or LOGIC_AND).upper() == LOGIC_OR:
        return any(results)
    return all(results)


def has_conditions(group: Optional[Mapping[str, Any]]) -> bool:
    return bool((group or {}).get("conditions"))


def snapshot_task(task: Task) -> TaskSnapshot:
    first = task.task_projects[0] if task.task_projects else None
    numbers: Dict[str, float] = {}
    strings: Dict[str, str] = {}
    for value in task.custom_field_values:
        name = value.custom_field.name if value.custom_field else None
        if not name:
            continue
        if value.number_value is not None:
            numbers.setdefault(name, value.number_value)
        elif value.string_value is not None:
            strings.setdefault(name, value.string_value)
    custom_fields: Dict[str, Any] = dict(strings)
    custom_fields.update(numbers)
    return TaskSnapshot(
        title=task.title,
        status=task.status,
        assignee=task.assignee.name if task.assignee else None,
        section=first.section.name if first and first.section else None,
        due_date=task.due_date,
        custom_fields=custom_fields,
    )


def load_snapshot(task_id: str) -> Optional[TaskSnapshot]:
    """Read a fresh task snapshot from the store (bypassing cached identities)."""
    task = (
        Task.query.options(
            selectinload(Task.assignee),
            selectinload(Task.task_projects).selectinload(TaskProject.section),
            selectinload(Task.custom_field_values).selectinload(
                TaskCustomFieldValue.custom_field
            ),
        )
        .populate_existing()
        .filter_by(id=task_id)
        .first()
    )
    if task is None:
        return None
    return snapshot_task(task)


def conditions_met(group: Optional[Mapping[str, Any]], task_id: str) -> bool:
    """Evaluate ``group`` for a stored task; a missing task never matches."""
    if not has_conditions(group):
        return True
    snapshot = load_snapshot(task_id)
    if snapshot is None:
        return False
    return evaluate(group, snapshot)
