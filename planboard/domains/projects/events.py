"""Projects domain event catalog."""

from __future__ import annotations

TASK_CREATED = "projects.task.created"
TASK_MOVED = "projects.task.moved"
TASK_COMPLETED = "projects.task.completed"
TASK_FIELD_CHANGED = "projects.task.field_changed"
TASK_DUE_DATE_APPROACHING = "projects.task.due_date_approaching"

_TASK_PAYLOAD = {
    "task_id": "str",
    "project_id": "str",
    "user_id": "str",
}

EVENT_CATALOG = {
    TASK_CREATED: {
        "version": "v1",
        "payload": dict(_TASK_PAYLOAD, title="str", section_id="str?"),
    },
    TASK_MOVED: {
        "version": "v1",
        "payload": dict(_TASK_PAYLOAD, section_id="str?", position="float"),
    },
    TASK_COMPLETED: {
        "version": "v1",
        "payload": dict(_TASK_PAYLOAD, completed_at="datetime"),
    },
    TASK_FIELD_CHANGED: {
        "version": "v1",
        "payload": dict(_TASK_PAYLOAD, fields="list[str]"),
    },
    # Raised by an external due-date scanner, never by a task mutation.
    TASK_DUE_DATE_APPROACHING: {
        "version": "v1",
        "payload": dict(_TASK_PAYLOAD, due_date="datetime"),
    },
}

__all__ = [
    "EVENT_CATALOG",
    "TASK_CREATED",
    "TASK_MOVED",
    "TASK_COMPLETED",
    "TASK_FIELD_CHANGED",
    "TASK_DUE_DATE_APPROACHING",
]
