"""Automation rule API controllers."""

from __future__ import annotations

import math

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError

from planboard.domains.automation import services
from planboard.domains.automation.mappers import map_execution_log, map_rule
from planboard.domains.automation.schemas.rule_schemas import (
    ExecutionLogFilter,
    RuleCreate,
    RuleToggle,
    RuleUpdate,
)

rule_api_bp = Blueprint("rule_api", __name__)


def _parse_query(schema_cls):
    data = {k: v for k, v in request.args.items()}
    try:
        return schema_cls.model_validate(data), None
    except ValidationError as exc:
        return None, exc


def _parse_body(schema_cls):
    payload = request.get_json(silent=True) or {}
    try:
        return schema_cls.model_validate(payload), None
    except ValidationError as exc:
        return None, exc


def _invalid(exc: ValidationError):
    return (
        jsonify({"ok": False, "error": "validation_error", "details": exc.errors(include_context=False)}),
        400,
    )


@rule_api_bp.get("/projects/<project_id>/rules")
@jwt_required()
def list_rules(project_id: str):
    rules = services.list_rules(project_id)
    return jsonify({"ok": True, "items": [map_rule(r) for r in rules], "total": len(rules)})


@rule_api_bp.post("/projects/<project_id>/rules")
@jwt_required()
def create_rule(project_id: str):
    data, err = _parse_body(RuleCreate)
    if err:
        return _invalid(err)
    user_id = get_jwt_identity()
    try:
        rule = services.create_rule(
            user_id,
            project_id,
            name=data.name,
            trigger=data.trigger.model_dump(mode="json"),
            conditions=data.conditions.model_dump(mode="json") if data.conditions else None,
            actions=[a.model_dump(mode="json") for a in data.actions],
            is_active=data.is_active,
        )
    except ValueError as exc:
        if str(exc) == "not_found":
            return jsonify({"ok": False, "error": "not_found"}), 404
        return jsonify({"ok": False, "error": "validation_error"}), 400
    return jsonify({"ok": True, "rule": map_rule(rule)}), 201


@rule_api_bp.get("/rules/<rule_id>")
@jwt_required()
def get_rule(rule_id: str):
    rule = services.get_rule(rule_id)
    if not rule:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "rule": map_rule(rule)})


@rule_api_bp.patch("/rules/<rule_id>")
@jwt_required()
def update_rule(rule_id: str):
    data, err = _parse_body(RuleUpdate)
    if err:
        return _invalid(err)
    try:
        rule = services.update_rule(rule_id, **data.model_dump(mode="json", exclude_unset=True))
    except ValueError:
        return jsonify({"ok": False, "error": "validation_error"}), 400
    if not rule:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "rule": map_rule(rule)})


@rule_api_bp.post("/rules/<rule_id>/toggle")
@jwt_required()
def toggle_rule(rule_id: str):
    data, err = _parse_body(RuleToggle)
    if err:
        return _invalid(err)
    rule = services.toggle_rule(rule_id, data.is_active)
    if not rule:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "rule": map_rule(rule)})


@rule_api_bp.delete("/rules/<rule_id>")
@jwt_required()
def delete_rule(rule_id: str):
    if not services.delete_rule(rule_id):
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True})


@rule_api_bp.get("/rules/<rule_id>/logs")
@jwt_required()
def list_execution_logs(rule_id: str):
    params, err = _parse_query(ExecutionLogFilter)
    if err:
        return _invalid(err)
    try:
        items, total = services.list_execution_logs(
            rule_id, status=params.status, page=params.page, per_page=params.per_page
        )
    except ValueError:
        return jsonify({"ok": False, "error": "not_found"}), 404
    pages = math.ceil(total / params.per_page) if params.per_page else 1
    return jsonify(
        {
            "ok": True,
            "items": [map_execution_log(log) for log in items],
            "page": params.page,
            "pages": pages,
            "total": total,
        }
    )
