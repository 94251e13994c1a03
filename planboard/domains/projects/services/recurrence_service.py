"""Next-occurrence generation for recurring tasks."""

from __future__ import annotations

import calendar
import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from planboard.domains.projects.models.project_models import (
    TASK_STATUS_INCOMPLETE,
    Task,
    TaskProject,
)
from planboard.domains.projects.services.project_service import next_task_position
from planboard.extensions import db

logger = logging.getLogger(__name__)


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _add_months(value: datetime, months: int, day_of_month: Optional[int] = None) -> datetime:
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_dom = _days_in_month(year, month)
    return value.replace(year=year, month=month, day=min(day_of_month or value.day, last_dom))


def _interval(descriptor: Mapping[str, Any]) -> int:
    try:
        return max(1, int(descriptor.get("interval") or 1))
    except (TypeError, ValueError):
        return 1


def _day_of_month(descriptor: Mapping[str, Any]) -> Optional[int]:
    try:
        day = int(descriptor.get("dayOfMonth") or 0)
    except (TypeError, ValueError):
        return None
    return day if day > 0 else None


def parse_end_date(value: Any) -> Optional[datetime]:
    """Parse a stored ISO end date into a naive UTC datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Ignoring unparseable recurrence endDate %r", value)
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def next_due_date(
    current_due: Optional[datetime],
    descriptor: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Advance ``current_due`` (or ``now``) by one recurrence step."""
    base = current_due or now or datetime.utcnow()
    interval = _interval(descriptor)
    frequency = descriptor.get("frequency")

    if frequency == "DAILY":
        return base + timedelta(days=interval)
    if frequency == "WEEKLY":
        return base + timedelta(days=7 * interval)
    if frequency == "MONTHLY":
        return _add_months(base, interval, _day_of_month(descriptor))
    if frequency == "YEARLY":
        return _add_months(base, 12 * interval)
    return None


def spawn_next_occurrence(task: Task, actor_id: Optional[str] = None) -> Optional[Task]:
    """Create the next occurrence of a completed recurring task.

    Returns the new task, or ``None`` when the task does not recur or the
    series has reached its end date. ``endAfterOccurrences`` is stored with
    the descriptor but not enforced here.
    """
    descriptor = task.recurrence_rule
    if not task.is_recurring or not descriptor:
        return None

    next_due = next_due_date(task.due_date, descriptor)
    if next_due is None:
        return None
    end_date = parse_end_date(descriptor.get("endDate"))
    if end_date is not None and next_due > end_date:
        return None

    start_date = None
    if task.start_date and task.due_date:
        start_date = next_due - (task.due_date - task.start_date)

    occurrence = Task(
        title=task.title,
        description=copy.deepcopy(task.description),
        assignee_id=task.assignee_id,
        created_by_id=actor_id or task.created_by_id,
        status=TASK_STATUS_INCOMPLETE,
        is_recurring=True,
        recurrence_rule=copy.deepcopy(descriptor),
        due_date=next_due,
        start_date=start_date,
    )
    db.session.add(occurrence)
    db.session.flush()
    for membership in task.task_projects:
        db.session.add(
            TaskProject(
                task_id=occurrence.id,
                project_id=membership.project_id,
                section_id=membership.section_id,
                position=next_task_position(membership.project_id, membership.section_id),
            )
        )
    db.session.commit()
    return occurrence

