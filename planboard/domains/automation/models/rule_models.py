"""Automation rule models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from planboard.core.users.models import TimestampMixin, new_id
from planboard.extensions import db

LOG_STATUS_SUCCESS = "SUCCESS"
LOG_STATUS_FAILED = "FAILED"
LOG_STATUS_SKIPPED = "SKIPPED"


class Rule(db.Model, TimestampMixin):
    """A project-scoped trigger -> conditions -> actions automation.

    ``trigger`` stores ``{"type": ..., "config": ...}``, ``conditions`` stores
    ``{"logic": "AND" | "OR", "conditions": [...]}`` and ``actions`` stores an
    ordered ``[{"type": ..., "config": ...}]`` list. These shapes are shared
    with the rule editor and must stay stable.
    """

    __tablename__ = "rule"
    __table_args__ = (
        db.Index("ix_rule_project_active", "project_id", "is_active"),
    )

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        db.ForeignKey("project.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    trigger: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)
    conditions: Mapped[dict | None] = mapped_column(db.JSON)
    actions: Mapped[list] = mapped_column(db.JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    # Creation order within the project; breaks created_at ties.
    sequence: Mapped[int] = mapped_column(default=0, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(db.ForeignKey("user.id"))

    logs: Mapped[list["RuleExecutionLog"]] = relationship(
        "RuleExecutionLog", back_populates="rule", cascade="all, delete-orphan"
    )

    @property
    def trigger_type(self) -> str | None:
        return (self.trigger or {}).get("type")


class RuleExecutionLog(db.Model):
    __tablename__ = "rule_execution_log"
    __table_args__ = (
        db.Index("ix_rule_execution_log_rule_executed_at", "rule_id", "executed_at"),
    )

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    rule_id: Mapped[str] = mapped_column(
        db.ForeignKey("rule.id", ondelete="CASCADE"), index=True, nullable=False
    )
    task_id: Mapped[str | None] = mapped_column(db.String(64), index=True)
    status: Mapped[str] = mapped_column(db.String(16), nullable=False)
    message: Mapped[str | None] = mapped_column(db.Text)
    executed_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    rule: Mapped[Rule] = relationship(Rule, back_populates="logs")


__all__ = [
    "LOG_STATUS_FAILED",
    "LOG_STATUS_SKIPPED",
    "LOG_STATUS_SUCCESS",
    "Rule",
    "RuleExecutionLog",
]
