"""Project and task API controllers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError

from planboard.domains.projects import services
from planboard.domains.projects.mappers import (
    map_custom_field,
    map_custom_field_value,
    map_project,
    map_section,
    map_task,
    map_task_project,
)
from planboard.domains.projects.schemas.project_schemas import (
    CustomFieldCreate,
    CustomFieldValueSet,
    ProjectCreate,
    RecurrenceSet,
    SectionCreate,
    TaskCreate,
    TaskListFilter,
    TaskMove,
    TaskUpdate,
)

project_api_bp = Blueprint("project_api", __name__)


def _validation_error(exc: ValidationError):
    return (
        jsonify({"ok": False, "error": "validation_error", "details": exc.errors(include_context=False)}),
        400,
    )


def _parse_body(schema_cls):
    payload = request.get_json(silent=True) or {}
    try:
        return schema_cls.model_validate(payload), None
    except ValidationError as exc:
        return None, _validation_error(exc)


def _error_response(exc: ValueError):
    if str(exc) == "not_found":
        return jsonify({"ok": False, "error": "not_found"}), 404
    if str(exc) == "duplicate":
        return jsonify({"ok": False, "error": "duplicate"}), 409
    return jsonify({"ok": False, "error": "validation_error"}), 400


@project_api_bp.get("")
@jwt_required()
def list_projects():
    items = services.list_projects(get_jwt_identity())
    return jsonify({"ok": True, "items": [map_project(p) for p in items], "total": len(items)})


@project_api_bp.post("")
@jwt_required()
def create_project():
    data, err = _parse_body(ProjectCreate)
    if err:
        return err
    try:
        project = services.create_project(
            get_jwt_identity(), name=data.name, description=data.description
        )
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "project": map_project(project)}), 201


@project_api_bp.get("/<project_id>")
@jwt_required()
def get_project(project_id: str):
    project = services.get_project(project_id)
    if not project:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify(
        {
            "ok": True,
            "project": map_project(project),
            "sections": [map_section(s) for s in project.sections],
            "custom_fields": [map_custom_field(f) for f in project.custom_fields],
        }
    )


@project_api_bp.post("/<project_id>/sections")
@jwt_required()
def create_section(project_id: str):
    data, err = _parse_body(SectionCreate)
    if err:
        return err
    try:
        section = services.create_section(project_id, name=data.name, position=data.position)
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "section": map_section(section)}), 201


@project_api_bp.post("/<project_id>/custom-fields")
@jwt_required()
def create_custom_field(project_id: str):
    data, err = _parse_body(CustomFieldCreate)
    if err:
        return err
    try:
        custom_field = services.create_custom_field(
            project_id, name=data.name, field_type=data.field_type
        )
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "custom_field": map_custom_field(custom_field)}), 201


@project_api_bp.get("/<project_id>/tasks")
@jwt_required()
def list_tasks(project_id: str):
    try:
        params = TaskListFilter.model_validate(dict(request.args.items()))
    except ValidationError as exc:
        return _validation_error(exc)
    items = services.list_tasks(project_id, section_id=params.section_id, status=params.status)
    return jsonify({"ok": True, "items": [map_task(t) for t in items], "total": len(items)})


@project_api_bp.post("/<project_id>/tasks")
@jwt_required()
def create_task(project_id: str):
    data, err = _parse_body(TaskCreate)
    if err:
        return err
    try:
        task = services.create_task(
            get_jwt_identity(),
            project_id,
            title=data.title,
            description=data.description,
            assignee_id=data.assignee_id,
            due_date=data.due_date,
            start_date=data.start_date,
            section_id=data.section_id,
        )
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "task": map_task(task)}), 201


@project_api_bp.get("/tasks/<task_id>")
@jwt_required()
def get_task(task_id: str):
    task = services.get_task(task_id)
    if not task:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "task": map_task(task)})


@project_api_bp.patch("/tasks/<task_id>")
@jwt_required()
def update_task(task_id: str):
    data, err = _parse_body(TaskUpdate)
    if err:
        return err
    try:
        task = services.update_task(
            get_jwt_identity(), task_id, **data.model_dump(exclude_unset=True)
        )
    except ValueError as exc:
        return _error_response(exc)
    if not task:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "task": map_task(task)})


@project_api_bp.post("/tasks/<task_id>/move")
@jwt_required()
def move_task(task_id: str):
    data, err = _parse_body(TaskMove)
    if err:
        return err
    try:
        membership = services.move_task(
            get_jwt_identity(),
            task_id,
            project_id=data.project_id,
            section_id=data.section_id,
            position=data.position,
        )
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "membership": map_task_project(membership)})


@project_api_bp.post("/tasks/<task_id>/complete")
@jwt_required()
def complete_task(task_id: str):
    task = services.complete_task(get_jwt_identity(), task_id)
    if not task:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "task": map_task(task)})


@project_api_bp.post("/tasks/<task_id>/uncomplete")
@jwt_required()
def uncomplete_task(task_id: str):
    task = services.uncomplete_task(get_jwt_identity(), task_id)
    if not task:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "task": map_task(task)})


@project_api_bp.put("/tasks/<task_id>/custom-fields/<field_id>")
@jwt_required()
def set_custom_field_value(task_id: str, field_id: str):
    data, err = _parse_body(CustomFieldValueSet)
    if err:
        return err
    try:
        value = services.set_custom_field_value(get_jwt_identity(), task_id, field_id, data.value)
    except ValueError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "value": map_custom_field_value(value)})


@project_api_bp.put("/tasks/<task_id>/recurrence")
@jwt_required()
def set_recurrence(task_id: str):
    data, err = _parse_body(RecurrenceSet)
    if err:
        return err
    task = services.set_recurrence(
        get_jwt_identity(),
        task_id,
        is_recurring=data.is_recurring,
        recurrence_rule=data.recurrence_rule.to_descriptor() if data.recurrence_rule else None,
    )
    if not task:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "task": map_task(task)})
