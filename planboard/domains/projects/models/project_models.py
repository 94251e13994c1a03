"""Project domain models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from planboard.core.users.models import TimestampMixin, User, new_id
from planboard.extensions import db

TASK_STATUS_INCOMPLETE = "INCOMPLETE"
TASK_STATUS_COMPLETE = "COMPLETE"

CUSTOM_FIELD_TYPES = ("TEXT", "NUMBER", "DROPDOWN", "DATE")


class Project(db.Model, TimestampMixin):
    __tablename__ = "project"
    __table_args__ = (db.Index("ix_project_owner_name", "owner_id", "name"),)

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(
        db.ForeignKey("user.id"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text)

    sections: Mapped[list["Section"]] = relationship(
        "Section",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Section.position",
    )
    custom_fields: Mapped[list["CustomField"]] = relationship(
        "CustomField", back_populates="project", cascade="all, delete-orphan"
    )


class Section(db.Model, TimestampMixin):
    __tablename__ = "section"
    __table_args__ = (db.Index("ix_section_project_position", "project_id", "position"),)

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        db.ForeignKey("project.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    position: Mapped[float] = mapped_column(db.Float, default=0, nullable=False)

    project: Mapped[Project] = relationship(Project, back_populates="sections")


class Task(db.Model, TimestampMixin):
    __tablename__ = "task"
    __table_args__ = (
        db.Index("ix_task_assignee_status", "assignee_id", "status"),
        db.Index("ix_task_due_date", "due_date"),
    )

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(db.String(500), nullable=False)
    description: Mapped[dict | None] = mapped_column(db.JSON)
    status: Mapped[str] = mapped_column(
        db.String(32), default=TASK_STATUS_INCOMPLETE, nullable=False
    )
    assignee_id: Mapped[str | None] = mapped_column(db.ForeignKey("user.id"), index=True)
    created_by_id: Mapped[str | None] = mapped_column(db.ForeignKey("user.id"))
    due_date: Mapped[datetime | None] = mapped_column()
    start_date: Mapped[datetime | None] = mapped_column()
    completed_at: Mapped[datetime | None] = mapped_column()
    is_recurring: Mapped[bool] = mapped_column(default=False, nullable=False)
    recurrence_rule: Mapped[dict | None] = mapped_column(db.JSON)

    assignee: Mapped[User | None] = relationship(User, foreign_keys=[assignee_id])
    task_projects: Mapped[list["TaskProject"]] = relationship(
        "TaskProject",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskProject.created_at",
    )
    custom_field_values: Mapped[list["TaskCustomFieldValue"]] = relationship(
        "TaskCustomFieldValue", back_populates="task", cascade="all, delete-orphan"
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )


class TaskProject(db.Model):
    """Membership of a task in a project, optionally placed in a section."""

    __tablename__ = "task_project"
    __table_args__ = (
        db.UniqueConstraint("task_id", "project_id", name="uq_task_project_task_project"),
        db.Index("ix_task_project_project_section", "project_id", "section_id"),
    )

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(
        db.ForeignKey("task.id", ondelete="CASCADE"), index=True, nullable=False
    )
    project_id: Mapped[str] = mapped_column(
        db.ForeignKey("project.id", ondelete="CASCADE"), index=True, nullable=False
    )
    section_id: Mapped[str | None] = mapped_column(
        db.ForeignKey("section.id", ondelete="SET NULL")
    )
    position: Mapped[float] = mapped_column(db.Float, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    task: Mapped[Task] = relationship(Task, back_populates="task_projects")
    project: Mapped[Project] = relationship(Project)
    section: Mapped[Section | None] = relationship(Section)


class CustomField(db.Model, TimestampMixin):
    __tablename__ = "custom_field"
    __table_args__ = (db.Index("ix_custom_field_project_name", "project_id", "name"),)

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        db.ForeignKey("project.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(db.String(32), default="TEXT", nullable=False)

    project: Mapped[Project] = relationship(Project, back_populates="custom_fields")


class TaskCustomFieldValue(db.Model):
    __tablename__ = "task_custom_field_value"
    __table_args__ = (
        db.UniqueConstraint(
            "task_id", "custom_field_id", name="uq_task_custom_field_value_task_field"
        ),
    )

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(
        db.ForeignKey("task.id", ondelete="CASCADE"), index=True, nullable=False
    )
    custom_field_id: Mapped[str] = mapped_column(
        db.ForeignKey("custom_field.id", ondelete="CASCADE"), index=True, nullable=False
    )
    string_value: Mapped[str | None] = mapped_column(db.Text)
    number_value: Mapped[float | None] = mapped_column(db.Float)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow
    )

    task: Mapped[Task] = relationship(Task, back_populates="custom_field_values")
    custom_field: Mapped[CustomField] = relationship(CustomField)


class Comment(db.Model):
    __tablename__ = "comment"
    __table_args__ = (db.Index("ix_comment_task_created_at", "task_id", "created_at"),)

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(
        db.ForeignKey("task.id", ondelete="CASCADE"), index=True, nullable=False
    )
    author_id: Mapped[str] = mapped_column(db.ForeignKey("user.id"), nullable=False)
    body: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    task: Mapped[Task] = relationship(Task, back_populates="comments")
    author: Mapped[User] = relationship(User)


__all__ = [
    "CUSTOM_FIELD_TYPES",
    "TASK_STATUS_COMPLETE",
    "TASK_STATUS_INCOMPLETE",
    "Comment",
    "CustomField",
    "Project",
    "Section",
    "Task",
    "TaskCustomFieldValue",
    "TaskProject",
]
