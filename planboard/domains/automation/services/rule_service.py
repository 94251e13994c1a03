"""Rule management service."""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from planboard.domains.automation.models.rule_models import Rule, RuleExecutionLog
from planboard.domains.projects.models.project_models import Project
from planboard.extensions import db

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "trigger", "conditions", "actions", "is_active")


def get_rule(rule_id: str) -> Rule | None:
    return db.session.get(Rule, rule_id)


def list_rules(project_id: str) -> List[Rule]:
    return (
        Rule.query.filter_by(project_id=project_id)
        .order_by(Rule.created_at.desc(), Rule.sequence.desc())
        .all()
    )


def _next_sequence(project_id: str) -> int:
    last = (
        Rule.query.filter_by(project_id=project_id)
        .order_by(Rule.sequence.desc())
        .first()
    )
    return (last.sequence if last else 0) + 1


def create_rule(
    user_id: str,
    project_id: str,
    *,
    name: str,
    trigger: dict,
    conditions: dict | None = None,
    actions: List[dict],
    is_active: bool = True,
) -> Rule:
    if not db.session.get(Project, project_id):
        raise ValueError("not_found")
    rule = Rule(
        project_id=project_id,
        name=name.strip(),
        trigger=trigger,
        conditions=conditions,
        actions=actions,
        is_active=is_active,
        created_by_id=user_id,
        sequence=_next_sequence(project_id),
    )
    db.session.add(rule)
    db.session.commit()
    logger.info("Rule %s created on project %s for %s", rule.id, project_id, rule.trigger_type)
    return rule


def update_rule(rule_id: str, **fields: Any) -> Rule | None:
    rule = get_rule(rule_id)
    if not rule:
        return None
    for key in _UPDATABLE_FIELDS:
        if key not in fields:
            continue
        val = fields[key]
        if key == "name":
            if not val or not val.strip():
                raise ValueError("validation_error")
            val = val.strip()
        if key in ("trigger", "actions", "is_active") and val is None:
            raise ValueError("validation_error")
        setattr(rule, key, val)
    db.session.commit()
    return rule


def toggle_rule(rule_id: str, is_active: bool | None = None) -> Rule | None:
    """Flip ``is_active``, or set it explicitly when a value is given."""
    rule = get_rule(rule_id)
    if not rule:
        return None
    rule.is_active = (not rule.is_active) if is_active is None else is_active
    db.session.commit()
    logger.info("Rule %s is now %s", rule.id, "active" if rule.is_active else "inactive")
    return rule


def delete_rule(rule_id: str) -> bool:
    rule = get_rule(rule_id)
    if not rule:
        return False
    db.session.delete(rule)
    db.session.commit()
    return True


def list_execution_logs(
    rule_id: str, *, status: str | None = None, page: int = 1, per_page: int = 50
) -> Tuple[List[RuleExecutionLog], int]:
    if not get_rule(rule_id):
        raise ValueError("not_found")
    query = RuleExecutionLog.query.filter_by(rule_id=rule_id)
    if status:
        query = query.filter(RuleExecutionLog.status == status)
    total = query.count()
    items = (
        query.order_by(RuleExecutionLog.executed_at.desc(), RuleExecutionLog.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total
