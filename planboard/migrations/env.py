"""Alembic environment for Planboard, run through ``flask db``."""

from __future__ import annotations

from alembic import context
from flask import current_app

from planboard.extensions import db

# Import models so every table is registered on db.metadata
from planboard.core.users import models as user_models  # noqa: F401
from planboard.domains.automation.models import rule_models  # noqa: F401
from planboard.domains.projects.models import project_models  # noqa: F401

target_metadata = db.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=current_app.config["SQLALCHEMY_DATABASE_URI"],
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with db.engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
