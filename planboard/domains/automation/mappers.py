"""DTO mappers for automation rules."""

from __future__ import annotations

from planboard.domains.automation.models.rule_models import Rule, RuleExecutionLog


def map_rule(rule: Rule) -> dict:
    return {
        "id": rule.id,
        "project_id": rule.project_id,
        "name": rule.name,
        "trigger": rule.trigger,
        "conditions": rule.conditions,
        "actions": rule.actions or [],
        "is_active": rule.is_active,
        "created_by_id": rule.created_by_id,
        "created_at": rule.created_at.isoformat() if rule.created_at else None,
        "updated_at": rule.updated_at.isoformat() if rule.updated_at else None,
    }


def map_execution_log(log: RuleExecutionLog) -> dict:
    return {
        "id": log.id,
        "rule_id": log.rule_id,
        "task_id": log.task_id,
        "status": log.status,
        "message": log.message,
        "executed_at": log.executed_at.isoformat() if log.executed_at else None,
    }
