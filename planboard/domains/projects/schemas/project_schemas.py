"""Project schemas."""

from __future__ import annotations

import datetime as dt
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def naive_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """Store timestamps as naive UTC, matching the rest of the schema."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=4096)


class SectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    position: Optional[float] = None


class CustomFieldCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    field_type: Literal["TEXT", "NUMBER", "DROPDOWN", "DATE"] = "TEXT"


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[Any] = None
    assignee_id: Optional[str] = None
    due_date: Optional[dt.datetime] = None
    start_date: Optional[dt.datetime] = None
    section_id: Optional[str] = None

    @field_validator("due_date", "start_date")
    @classmethod
    def normalize_dates(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return naive_utc(value)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[Any] = None
    assignee_id: Optional[str] = None
    due_date: Optional[dt.datetime] = None
    start_date: Optional[dt.datetime] = None

    @field_validator("due_date", "start_date")
    @classmethod
    def normalize_dates(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return naive_utc(value)


class TaskListFilter(BaseModel):
    section_id: Optional[str] = None
    status: Optional[Literal["INCOMPLETE", "COMPLETE"]] = None


class TaskMove(BaseModel):
    project_id: str = Field(min_length=1)
    section_id: Optional[str] = None
    position: Optional[float] = None


class CustomFieldValueSet(BaseModel):
    value: Optional[Any] = None


class RecurrenceRule(BaseModel):
    """Stored recurrence descriptor; keys are persisted in camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    frequency: Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY"]
    interval: int = Field(default=1, ge=1, le=365)
    days_of_week: Optional[List[int]] = Field(default=None, alias="daysOfWeek")
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31, alias="dayOfMonth")
    end_date: Optional[dt.datetime] = Field(default=None, alias="endDate")
    end_after_occurrences: Optional[int] = Field(default=None, ge=1, alias="endAfterOccurrences")

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        # 0=Sun ... 6=Sat
        if value is not None and any(day < 0 or day > 6 for day in value):
            raise ValueError("days_of_week entries must be between 0 and 6")
        return value

    def to_descriptor(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RecurrenceSet(BaseModel):
    is_recurring: bool
    recurrence_rule: Optional[RecurrenceRule] = None
