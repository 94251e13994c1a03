"""Task service.

Every mutation commits first and only then announces itself on the event
bus, so rule evaluation always observes committed state.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from planboard.core.events.event_bus import publish
from planboard.domains.projects.events import (
    TASK_COMPLETED,
    TASK_CREATED,
    TASK_FIELD_CHANGED,
    TASK_MOVED,
)
from planboard.domains.projects.models.project_models import (
    TASK_STATUS_COMPLETE,
    TASK_STATUS_INCOMPLETE,
    CustomField,
    Project,
    Section,
    Task,
    TaskCustomFieldValue,
    TaskProject,
)
from planboard.domains.projects.services.project_service import next_task_position
from planboard.domains.projects.services.recurrence_service import spawn_next_occurrence
from planboard.extensions import db

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("title", "description", "assignee_id", "due_date", "start_date")


def _validate_section(project_id: str, section_id: str | None) -> Section | None:
    if section_id is None:
        return None
    section = db.session.get(Section, section_id)
    if not section or section.project_id != project_id:
        raise ValueError("validation_error")
    return section


def _primary_project_id(task: Task) -> Optional[str]:
    return task.task_projects[0].project_id if task.task_projects else None


def get_task(task_id: str) -> Task | None:
    return db.session.get(Task, task_id)


def create_task(
    user_id: str,
    project_id: str,
    *,
    title: str,
    description: dict | None = None,
    assignee_id: str | None = None,
    due_date: datetime | None = None,
    start_date: datetime | None = None,
    section_id: str | None = None,
) -> Task:
    project = db.session.get(Project, project_id)
    if not project:
        raise ValueError("not_found")
    _validate_section(project_id, section_id)
    task = Task(
        title=title.strip(),
        description=description,
        assignee_id=assignee_id,
        created_by_id=user_id,
        status=TASK_STATUS_INCOMPLETE,
        due_date=due_date,
        start_date=start_date,
    )
    db.session.add(task)
    db.session.flush()
    db.session.add(
        TaskProject(
            task_id=task.id,
            project_id=project_id,
            section_id=section_id,
            position=next_task_position(project_id, section_id),
        )
    )
    db.session.commit()
    publish(
        TASK_CREATED,
        {
            "task_id": task.id,
            "project_id": project_id,
            "user_id": user_id,
            "title": task.title,
            "section_id": section_id,
        },
        user_id=user_id,
    )
    return task


def list_tasks(
    project_id: str,
    *,
    section_id: str | None = None,
    status: str | None = None,
) -> List[Task]:
    query = Task.query.join(TaskProject, TaskProject.task_id == Task.id).filter(
        TaskProject.project_id == project_id
    )
    if section_id:
        query = query.filter(TaskProject.section_id == section_id)
    if status:
        query = query.filter(Task.status == status)
    return query.order_by(Task.created_at.desc()).all()


def update_task(user_id: str, task_id: str, **fields) -> Task | None:
    task = get_task(task_id)
    if not task:
        return None
    changed = []
    for key in _UPDATABLE_FIELDS:
        if key not in fields:
            continue
        val = fields[key].strip() if isinstance(fields[key], str) else fields[key]
        if key == "title" and not val:
            raise ValueError("validation_error")
        if getattr(task, key) != val:
            setattr(task, key, val)
            changed.append(key)
    db.session.commit()
    project_id = _primary_project_id(task)
    if changed and project_id:
        publish(
            TASK_FIELD_CHANGED,
            {"task_id": task.id, "project_id": project_id, "user_id": user_id, "fields": changed},
            user_id=user_id,
        )
    return task


def move_task(
    user_id: str,
    task_id: str,
    *,
    project_id: str,
    section_id: str | None = None,
    position: float | None = None,
) -> TaskProject:
    membership = TaskProject.query.filter_by(task_id=task_id, project_id=project_id).first()
    if not membership:
        raise ValueError("not_found")
    membership.section = _validate_section(project_id, section_id)
    membership.position = position if position is not None else next_task_position(project_id, section_id)
    db.session.commit()
    publish(
        TASK_MOVED,
        {
            "task_id": task_id,
            "project_id": project_id,
            "user_id": user_id,
            "section_id": section_id,
            "position": membership.position,
        },
        user_id=user_id,
    )
    return membership


def complete_task(user_id: str, task_id: str) -> Task | None:
    task = get_task(task_id)
    if not task:
        return None
    task.status = TASK_STATUS_COMPLETE
    task.completed_at = datetime.utcnow()
    db.session.commit()

    # Spawned from the record as completed, before any TASK_COMPLETED rule
    # can rewrite its dates or sections. The completion stands even if the
    # next occurrence cannot be created.
    try:
        spawn_next_occurrence(task, actor_id=user_id)
    except Exception:
        db.session.rollback()
        logger.exception("Could not create next occurrence for task %s", task_id)

    project_id = _primary_project_id(task)
    if project_id:
        publish(
            TASK_COMPLETED,
            {
                "task_id": task.id,
                "project_id": project_id,
                "user_id": user_id,
                "completed_at": task.completed_at.isoformat(),
            },
            user_id=user_id,
        )
    return task


def uncomplete_task(user_id: str, task_id: str) -> Task | None:
    task = get_task(task_id)
    if not task:
        return None
    task.status = TASK_STATUS_INCOMPLETE
    task.completed_at = None
    db.session.commit()
    return task


def set_custom_field_value(user_id: str, task_id: str, field_id: str, value) -> TaskCustomFieldValue:
    task = get_task(task_id)
    custom_field = db.session.get(CustomField, field_id)
    if not task or not custom_field:
        raise ValueError("not_found")
    field_value = TaskCustomFieldValue.query.filter_by(
        task_id=task_id, custom_field_id=field_id
    ).first()
    if field_value is None:
        field_value = TaskCustomFieldValue(task_id=task_id, custom_field_id=field_id)
        db.session.add(field_value)
    if custom_field.field_type == "NUMBER" and value is not None:
        try:
            field_value.number_value = float(value)
        except (TypeError, ValueError) as exc:
            db.session.rollback()
            raise ValueError("validation_error") from exc
        field_value.string_value = None
    else:
        field_value.string_value = None if value is None else str(value)
        field_value.number_value = None
    db.session.commit()
    publish(
        TASK_FIELD_CHANGED,
        {
            "task_id": task_id,
            "project_id": custom_field.project_id,
            "user_id": user_id,
            "fields": [custom_field.name],
        },
        user_id=user_id,
    )
    return field_value


def set_recurrence(
    user_id: str, task_id: str, *, is_recurring: bool, recurrence_rule: dict | None
) -> Task | None:
    task = get_task(task_id)
    if not task:
        return None
    task.is_recurring = is_recurring
    task.recurrence_rule = recurrence_rule
    db.session.commit()
    return task
