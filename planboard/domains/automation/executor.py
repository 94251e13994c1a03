"""Apply a single rule action to the triggering task."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Union

from planboard.domains.automation.actions import (
    Action,
    AddComment,
    CompleteTask,
    MoveToSection,
    SetAssignee,
    SetDueDate,
    SetField,
    parse_action,
)
from planboard.domains.projects.models.project_models import (
    TASK_STATUS_COMPLETE,
    Comment,
    CustomField,
    Section,
    Task,
    TaskCustomFieldValue,
    TaskProject,
)
from planboard.extensions import db

logger = logging.getLogger(__name__)


class ActionError(Exception):
    """Raised when an action references something the store cannot resolve."""


@dataclass(frozen=True)
class RuleContext:
    """Who and what raised the trigger."""

    project_id: str
    task_id: str
    actor_id: Optional[str] = None


def _load_task(task_id: str) -> Task:
    task = Task.query.filter_by(id=task_id).first()
    if task is None:
        raise ActionError(f"Task {task_id} not found")
    return task


def _complete_task(action: CompleteTask, context: RuleContext) -> None:
    task = _load_task(context.task_id)
    task.status = TASK_STATUS_COMPLETE
    task.completed_at = datetime.utcnow()


def _set_assignee(action: SetAssignee, context: RuleContext) -> None:
    task = _load_task(context.task_id)
    task.assignee_id = action.user_id


def _move_to_section(action: MoveToSection, context: RuleContext) -> None:
    memberships = TaskProject.query.filter_by(
        task_id=context.task_id, project_id=context.project_id
    ).all()
    if not memberships:
        return
    section = db.session.get(Section, action.section_id)
    if section is None or section.project_id != context.project_id:
        raise ActionError(
            f"Section {action.section_id} not found in project {context.project_id}"
        )
    for membership in memberships:
        membership.section = section


def _add_comment(action: AddComment, context: RuleContext) -> None:
    _load_task(context.task_id)
    if not context.actor_id:
        raise ActionError("Comments need an acting user")
    comment = Comment(
        task_id=context.task_id,
        author_id=context.actor_id,
        body={
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": action.text}]}
            ],
        },
    )
    db.session.add(comment)


def _set_due_date(action: SetDueDate, context: RuleContext) -> None:
    task = _load_task(context.task_id)
    task.due_date = datetime.utcnow() + timedelta(days=action.days)


def _set_field(action: SetField, context: RuleContext) -> None:
    _load_task(context.task_id)
    if db.session.get(CustomField, action.field_id) is None:
        raise ActionError(f"Custom field {action.field_id} not found")
    value = TaskCustomFieldValue.query.filter_by(
        task_id=context.task_id, custom_field_id=action.field_id
    ).first()
    if value is None:
        value = TaskCustomFieldValue(
            task_id=context.task_id, custom_field_id=action.field_id
        )
        db.session.add(value)
    # Always the string slot, whatever the field's declared type.
    value.string_value = action.value


_HANDLERS: Dict[type, Callable[[Any, RuleContext], None]] = {
    CompleteTask: _complete_task,
    SetAssignee: _set_assignee,
    MoveToSection: _move_to_section,
    AddComment: _add_comment,
    SetDueDate: _set_due_date,
    SetField: _set_field,
}


def execute_action(action: Union[Action, Mapping[str, Any]], context: RuleContext) -> bool:
    """Run one action and commit it.

    Returns ``False`` when the action was skipped because its config could not
    be interpreted. Store failures propagate to the caller.
    """
    parsed = action if type(action) in _HANDLERS else parse_action(action)  # type: ignore[arg-type]
    if parsed is None:
        logger.debug("Skipping action with unusable config: %r", action)
        return False
    _HANDLERS[type(parsed)](parsed, context)
    db.session.commit()
    return True
