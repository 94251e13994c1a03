"""Rule matching and execution for task lifecycle triggers."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from flask import current_app

from planboard.core.events.event_bus import DomainEvent, EventBus, event_bus
from planboard.domains.automation.conditions import conditions_met
from planboard.domains.automation.executor import RuleContext, execute_action
from planboard.domains.automation.models.rule_models import (
    LOG_STATUS_FAILED,
    LOG_STATUS_SKIPPED,
    LOG_STATUS_SUCCESS,
    Rule,
    RuleExecutionLog,
)
from planboard.domains.projects.events import (
    TASK_COMPLETED,
    TASK_CREATED,
    TASK_DUE_DATE_APPROACHING,
    TASK_FIELD_CHANGED,
    TASK_MOVED,
)
from planboard.extensions import db

logger = logging.getLogger(__name__)

TRIGGER_TASK_ADDED = "TASK_ADDED"
TRIGGER_TASK_MOVED = "TASK_MOVED"
TRIGGER_TASK_COMPLETED = "TASK_COMPLETED"
TRIGGER_FIELD_CHANGED = "FIELD_CHANGED"
TRIGGER_DUE_DATE_APPROACHING = "DUE_DATE_APPROACHING"

TRIGGER_TYPES = (
    TRIGGER_TASK_ADDED,
    TRIGGER_TASK_MOVED,
    TRIGGER_TASK_COMPLETED,
    TRIGGER_FIELD_CHANGED,
    TRIGGER_DUE_DATE_APPROACHING,
)

EVENT_TRIGGERS = {
    TASK_CREATED: TRIGGER_TASK_ADDED,
    TASK_MOVED: TRIGGER_TASK_MOVED,
    TASK_COMPLETED: TRIGGER_TASK_COMPLETED,
    TASK_FIELD_CHANGED: TRIGGER_FIELD_CHANGED,
    TASK_DUE_DATE_APPROACHING: TRIGGER_DUE_DATE_APPROACHING,
}

CONDITIONS_NOT_MET = "Conditions not met"

_local = threading.local()


@dataclass
class RunSummary:
    trigger_type: str
    task_id: str
    outcomes: List[Tuple[str, str]] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for _, outcome in self.outcomes if outcome == status)


def active_rules(project_id: str) -> List[Rule]:
    """Active rules for a project, oldest first. Always read fresh."""
    return (
        Rule.query.filter_by(project_id=project_id, is_active=True)
        .order_by(Rule.created_at.asc(), Rule.sequence.asc())
        .all()
    )


def record_execution(rule_id: str, task_id: Optional[str], status: str, message: Optional[str] = None) -> None:
    """Append an execution log row. Never raises."""
    try:
        db.session.add(
            RuleExecutionLog(rule_id=rule_id, task_id=task_id, status=status, message=message)
        )
        db.session.commit()
    except Exception as exc:
        logger.warning("Could not record %s for rule %s: %s", status, rule_id, exc)
        try:
            db.session.rollback()
        except Exception:
            logger.debug("Rollback after log failure also failed", exc_info=True)


def _run_actions(rule: Rule, context: RuleContext) -> None:
    actions = rule.actions if isinstance(rule.actions, list) else []
    _local.executing = True
    try:
        for action in actions:
            execute_action(action, context)
    finally:
        _local.executing = False


def run_rule(rule: Rule, context: RuleContext) -> Tuple[str, Optional[str]]:
    """Evaluate and execute one rule inside its own fault boundary."""
    try:
        if not conditions_met(rule.conditions, context.task_id):
            return LOG_STATUS_SKIPPED, CONDITIONS_NOT_MET
        _run_actions(rule, context)
    except Exception as exc:
        db.session.rollback()
        return LOG_STATUS_FAILED, str(exc) or exc.__class__.__name__
    return LOG_STATUS_SUCCESS, None


def run_rules(trigger_type: str, context: RuleContext) -> RunSummary:
    """Run every active rule of the project that listens to ``trigger_type``."""
    summary = RunSummary(trigger_type=trigger_type, task_id=context.task_id)
    if getattr(_local, "executing", False):
        logger.warning(
            "Ignoring %s for task %s raised while rule actions were running",
            trigger_type,
            context.task_id,
        )
        return summary

    for rule in active_rules(context.project_id):
        if rule.trigger_type != trigger_type:
            continue
        rule_id = rule.id
        status, message = run_rule(rule, context)
        if status == LOG_STATUS_FAILED:
            logger.warning("Rule %s failed on task %s: %s", rule_id, context.task_id, message)
        record_execution(rule_id, context.task_id, status, message)
        summary.outcomes.append((rule_id, status))

    logger.info(
        "Rules for %s on task %s: %s succeeded, %s failed, %s skipped",
        trigger_type,
        context.task_id,
        summary.count(LOG_STATUS_SUCCESS),
        summary.count(LOG_STATUS_FAILED),
        summary.count(LOG_STATUS_SKIPPED),
    )
    return summary


def _guarded_run(trigger_type: str, context: RuleContext) -> Optional[RunSummary]:
    try:
        return run_rules(trigger_type, context)
    except Exception:
        db.session.rollback()
        logger.exception("Rule run for %s on task %s aborted", trigger_type, context.task_id)
        return None


def _run_in_app_context(app, trigger_type: str, context: RuleContext) -> None:
    with app.app_context():
        _guarded_run(trigger_type, context)


def dispatch_rules(trigger_type: str, context: RuleContext) -> None:
    """Fire-and-forget entry point used after a task mutation commits.

    Nothing raised while evaluating rules reaches the caller.
    """
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    if not app.config.get("AUTOMATION_ENABLED", True):
        return
    if app.config.get("AUTOMATION_RUN_INLINE", False):
        _guarded_run(trigger_type, context)
        return
    worker = threading.Thread(
        target=_run_in_app_context,
        args=(app, trigger_type, context),
        name=f"rules-{trigger_type.lower()}-{context.task_id}",
        daemon=True,
    )
    worker.start()


def handle_task_event(event: DomainEvent) -> None:
    trigger_type = EVENT_TRIGGERS.get(event.event_type)
    payload = event.payload or {}
    project_id = payload.get("project_id")
    task_id = payload.get("task_id")
    if not trigger_type or not project_id or not task_id:
        return
    context = RuleContext(
        project_id=project_id,
        task_id=task_id,
        actor_id=payload.get("user_id") or event.user_id,
    )
    dispatch_rules(trigger_type, context)


def register_subscriptions(bus: EventBus = event_bus) -> None:
    for event_type in EVENT_TRIGGERS:
        bus.subscribe(event_type, handle_task_event)
