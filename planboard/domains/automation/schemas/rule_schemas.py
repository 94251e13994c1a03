"""Automation rule schemas.

Stored rule documents keep the field names the rule editor sends:
``{"type", "config"}`` for triggers and actions and ``{"logic", "conditions"}``
for condition groups.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from planboard.domains.automation.actions import ACTION_TYPES
from planboard.domains.automation.conditions import OPERATORS
from planboard.domains.automation.runner import TRIGGER_TYPES


class TriggerSpec(BaseModel):
    type: str
    config: Optional[Any] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in TRIGGER_TYPES:
            raise ValueError(f"unsupported trigger type: {value}")
        return value


class Condition(BaseModel):
    field: str = Field(min_length=1, max_length=255)
    operator: str
    value: Optional[Any] = None

    @field_validator("operator")
    @classmethod
    def check_operator(cls, value: str) -> str:
        if value not in OPERATORS:
            raise ValueError(f"unsupported operator: {value}")
        return value


class ConditionGroup(BaseModel):
    logic: Literal["AND", "OR"] = "AND"
    conditions: List[Condition] = Field(default_factory=list)


class ActionSpec(BaseModel):
    type: str
    config: Optional[Any] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in ACTION_TYPES:
            raise ValueError(f"unsupported action type: {value}")
        return value


class RuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    trigger: TriggerSpec
    conditions: Optional[ConditionGroup] = None
    actions: List[ActionSpec] = Field(default_factory=list)
    is_active: bool = True


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    trigger: Optional[TriggerSpec] = None
    conditions: Optional[ConditionGroup] = None
    actions: Optional[List[ActionSpec]] = None
    is_active: Optional[bool] = None


class RuleToggle(BaseModel):
    is_active: Optional[bool] = None


class ExecutionLogFilter(BaseModel):
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=50, ge=1, le=200)
    status: Optional[Literal["SUCCESS", "FAILED", "SKIPPED"]] = None
