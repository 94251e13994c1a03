"""DTO mappers for projects."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from planboard.domains.projects.models.project_models import (
    CustomField,
    Project,
    Section,
    Task,
    TaskCustomFieldValue,
    TaskProject,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def map_project(project: Project) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "owner_id": project.owner_id,
        "created_at": _iso(project.created_at),
        "updated_at": _iso(project.updated_at),
    }


def map_section(section: Section) -> dict:
    return {
        "id": section.id,
        "project_id": section.project_id,
        "name": section.name,
        "position": section.position,
    }


def map_custom_field(custom_field: CustomField) -> dict:
    return {
        "id": custom_field.id,
        "project_id": custom_field.project_id,
        "name": custom_field.name,
        "field_type": custom_field.field_type,
    }


def map_task_project(membership: TaskProject) -> dict:
    return {
        "project_id": membership.project_id,
        "section_id": membership.section_id,
        "position": membership.position,
    }


def map_custom_field_value(value: TaskCustomFieldValue) -> dict:
    return {
        "custom_field_id": value.custom_field_id,
        "string_value": value.string_value,
        "number_value": value.number_value,
    }


def map_task(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "assignee_id": task.assignee_id,
        "created_by_id": task.created_by_id,
        "due_date": _iso(task.due_date),
        "start_date": _iso(task.start_date),
        "completed_at": _iso(task.completed_at),
        "is_recurring": task.is_recurring,
        "recurrence_rule": task.recurrence_rule,
        "projects": [map_task_project(tp) for tp in task.task_projects],
        "custom_field_values": [map_custom_field_value(v) for v in task.custom_field_values],
        "created_at": _iso(task.created_at),
        "updated_at": _iso(task.updated_at),
    }
