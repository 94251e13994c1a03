"""User models."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy.orm import Mapped, mapped_column

from planboard.extensions import db


def new_id() -> str:
    return uuid4().hex


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class User(db.Model, TimestampMixin):
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(db.String(255))
    is_active: Mapped[bool] = mapped_column(default=True)
