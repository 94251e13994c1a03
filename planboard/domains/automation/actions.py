"""Typed rule actions and the legacy ``{type, config}`` parser.

Stored rules keep one opaque ``config`` string per action. It is parsed here,
once, into a payload dataclass per action type. Configs that cannot be
interpreted parse to ``None``; the executor treats that as a no-op.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

COMPLETE_TASK = "COMPLETE_TASK"
SET_ASSIGNEE = "SET_ASSIGNEE"
MOVE_TO_SECTION = "MOVE_TO_SECTION"
ADD_COMMENT = "ADD_COMMENT"
SET_DUE_DATE = "SET_DUE_DATE"
SET_FIELD = "SET_FIELD"

ACTION_TYPES = (
    SET_ASSIGNEE,
    MOVE_TO_SECTION,
    SET_FIELD,
    ADD_COMMENT,
    COMPLETE_TASK,
    SET_DUE_DATE,
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class CompleteTask:
    pass


@dataclass(frozen=True)
class SetAssignee:
    user_id: str


@dataclass(frozen=True)
class MoveToSection:
    section_id: str


@dataclass(frozen=True)
class AddComment:
    text: str


@dataclass(frozen=True)
class SetDueDate:
    days: int


@dataclass(frozen=True)
class SetField:
    field_id: str
    value: str


Action = Union[CompleteTask, SetAssignee, MoveToSection, AddComment, SetDueDate, SetField]


def _config_text(config: Any) -> Optional[str]:
    if config is None or isinstance(config, bool):
        return None
    if isinstance(config, (int, float, str)):
        text = str(config)
        return text or None
    return None


def parse_day_offset(config: Any) -> Optional[int]:
    """Read a leading integer (``"7"``, ``"-3"``, ``"5 days"``)."""
    text = _config_text(config)
    if text is None:
        return None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def parse_field_assignment(config: Any) -> Optional[tuple[str, str]]:
    """Split ``"<fieldId>:<value>"`` on the first colon only."""
    text = _config_text(config)
    if text is None or ":" not in text:
        return None
    field_id, value = text.split(":", 1)
    if not field_id or not value:
        return None
    return field_id, value


def parse_action(raw: Mapping[str, Any]) -> Optional[Action]:
    """Parse a stored action; ``None`` means there is nothing safe to do."""
    if not isinstance(raw, Mapping):
        return None
    action_type = raw.get("type")
    config = raw.get("config")

    if action_type == COMPLETE_TASK:
        return CompleteTask()
    if action_type == SET_ASSIGNEE:
        user_id = _config_text(config)
        return SetAssignee(user_id) if user_id else None
    if action_type == MOVE_TO_SECTION:
        section_id = _config_text(config)
        return MoveToSection(section_id) if section_id else None
    if action_type == ADD_COMMENT:
        text = _config_text(config)
        return AddComment(text) if text else None
    if action_type == SET_DUE_DATE:
        days = parse_day_offset(config)
        return SetDueDate(days) if days is not None else None
    if action_type == SET_FIELD:
        assignment = parse_field_assignment(config)
        return SetField(*assignment) if assignment else None
    return None
