"""CLI commands for running automation rules by hand.

Usage:
    flask automation fire TASK_MOVED --project <id> --task <id>
    flask automation fire DUE_DATE_APPROACHING --project <id> --task <id> --actor <user id>

``fire`` is also the entry point for external schedulers that detect
approaching due dates.
"""

from __future__ import annotations

import click
from flask.cli import AppGroup

from planboard.domains.automation.runner import TRIGGER_TYPES

automation_cli = AppGroup("automation", help="Automation rule commands.")


@automation_cli.command("fire")
@click.argument("trigger", type=click.Choice(TRIGGER_TYPES))
@click.option("--project", "-p", "project_id", required=True, help="Project whose rules should run")
@click.option("--task", "-t", "task_id", required=True, help="Task the trigger applies to")
@click.option("--actor", "-a", "actor_id", default=None, help="User credited with rule actions")
def fire_command(trigger: str, project_id: str, task_id: str, actor_id: str | None):
    """Run matching rules synchronously and print the outcome."""
    from planboard.domains.automation.executor import RuleContext
    from planboard.domains.automation.models.rule_models import (
        LOG_STATUS_FAILED,
        LOG_STATUS_SKIPPED,
        LOG_STATUS_SUCCESS,
    )
    from planboard.domains.automation.runner import run_rules

    click.echo(f"Running {trigger} rules for task {task_id} in project {project_id}...")
    summary = run_rules(trigger, RuleContext(project_id=project_id, task_id=task_id, actor_id=actor_id))
    for rule_id, status in summary.outcomes:
        click.echo(f"  {status:<8} {rule_id}")
    click.echo(
        f"Done: {summary.count(LOG_STATUS_SUCCESS)} succeeded, "
        f"{summary.count(LOG_STATUS_FAILED)} failed, "
        f"{summary.count(LOG_STATUS_SKIPPED)} skipped"
    )


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(automation_cli)
