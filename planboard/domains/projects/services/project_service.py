"""Project service layer."""

from __future__ import annotations

from typing import List

from planboard.domains.projects.models.project_models import (
    CUSTOM_FIELD_TYPES,
    CustomField,
    Project,
    Section,
    TaskProject,
)
from planboard.extensions import db


def create_project(user_id: str, *, name: str, description: str | None = None) -> Project:
    existing = Project.query.filter_by(owner_id=user_id, name=name.strip()).first()
    if existing:
        raise ValueError("duplicate")
    project = Project(
        owner_id=user_id,
        name=name.strip(),
        description=(description or "").strip() or None,
    )
    db.session.add(project)
    db.session.commit()
    return project


def get_project(project_id: str) -> Project | None:
    return db.session.get(Project, project_id)


def list_projects(user_id: str) -> List[Project]:
    return Project.query.filter_by(owner_id=user_id).order_by(Project.created_at.asc()).all()


def create_section(project_id: str, *, name: str, position: float | None = None) -> Section:
    project = get_project(project_id)
    if not project:
        raise ValueError("not_found")
    if position is None:
        last = (
            Section.query.filter_by(project_id=project_id)
            .order_by(Section.position.desc())
            .first()
        )
        position = (last.position if last else 0) + 1
    section = Section(project_id=project_id, name=name.strip(), position=position)
    db.session.add(section)
    db.session.commit()
    return section


def create_custom_field(project_id: str, *, name: str, field_type: str = "TEXT") -> CustomField:
    project = get_project(project_id)
    if not project:
        raise ValueError("not_found")
    if field_type not in CUSTOM_FIELD_TYPES:
        raise ValueError("validation_error")
    custom_field = CustomField(project_id=project_id, name=name.strip(), field_type=field_type)
    db.session.add(custom_field)
    db.session.commit()
    return custom_field


def next_task_position(project_id: str, section_id: str | None) -> float:
    """Position that appends a task to the end of a section (or project root)."""
    last = (
        TaskProject.query.filter_by(project_id=project_id, section_id=section_id)
        .order_by(TaskProject.position.desc())
        .first()
    )
    return (last.position if last else 0) + 1
