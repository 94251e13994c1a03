"""Tests for rule matching, execution logging and dispatch."""

from datetime import datetime
from unittest.mock import patch

import pytest

from planboard.domains.automation import runner
from planboard.domains.automation.executor import RuleContext
from planboard.domains.automation.models.rule_models import Rule, RuleExecutionLog
from planboard.domains.automation.runner import (
    TRIGGER_FIELD_CHANGED,
    TRIGGER_TASK_ADDED,
    TRIGGER_TASK_COMPLETED,
    TRIGGER_TASK_MOVED,
    dispatch_rules,
    run_rules,
)
from planboard.domains.automation.services.rule_service import create_rule
from planboard.domains.projects.models.project_models import (
    Comment,
    CustomField,
    Task,
    TaskCustomFieldValue,
)
from planboard.domains.projects.services.task_service import (
    complete_task,
    create_task,
    move_task,
    update_task,
)
from planboard.extensions import db

pytestmark = pytest.mark.integration


def _rule(user, project, trigger, actions, conditions=None, name="rule", created_at=None, is_active=True):
    rule = create_rule(
        user.id,
        project.id,
        name=name,
        trigger={"type": trigger, "config": None},
        conditions=conditions,
        actions=[{"type": t, "config": c} for t, c in actions],
        is_active=is_active,
    )
    if created_at is not None:
        rule.created_at = created_at
        db.session.commit()
    return rule


def _logs(rule):
    return RuleExecutionLog.query.filter_by(rule_id=rule.id).all()


@pytest.fixture
def task(app, user, project, sections):
    return create_task(user.id, project.id, title="Plan sprint", section_id=sections["To Do"].id)


@pytest.fixture
def context(task, project, user):
    return RuleContext(project_id=project.id, task_id=task.id, actor_id=user.id)


class TestRunRules:
    def test_rule_without_conditions_always_runs(self, app, user, project, task, context):
        rule = _rule(user, project, TRIGGER_TASK_MOVED, [("SET_DUE_DATE", "2")])

        summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.outcomes == [(rule.id, "SUCCESS")]
        assert db.session.get(Task, task.id).due_date is not None
        [log] = _logs(rule)
        assert log.status == "SUCCESS"
        assert log.task_id == task.id
        assert log.message is None

    def test_unmet_conditions_are_skipped(self, app, user, project, task, context):
        conditions = {"logic": "AND", "conditions": [{"field": "section", "operator": "equals", "value": "Done"}]}
        rule = _rule(user, project, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")], conditions=conditions)

        summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.count("SKIPPED") == 1
        [log] = _logs(rule)
        assert log.status == "SKIPPED"
        assert log.message == "Conditions not met"
        assert db.session.get(Task, task.id).status == "INCOMPLETE"

    def test_only_matching_trigger_and_active_rules_run(self, app, user, project, task, context):
        _rule(user, project, TRIGGER_TASK_COMPLETED, [("COMPLETE_TASK", "")], name="other trigger")
        _rule(user, project, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")], name="paused", is_active=False)

        summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.outcomes == []
        assert RuleExecutionLog.query.count() == 0

    def test_same_timestamp_rules_run_in_creation_order(self, app, user, project, task, context):
        stamp = datetime(2024, 1, 1, 12, 0)
        rules = [
            _rule(user, project, TRIGGER_TASK_MOVED, [("SET_DUE_DATE", "1")], name=f"r{i}", created_at=stamp)
            for i in range(5)
        ]

        summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert [rule_id for rule_id, _ in summary.outcomes] == [r.id for r in rules]
        assert [r.sequence for r in rules] == [1, 2, 3, 4, 5]

    def test_rules_of_other_projects_are_ignored(self, app, user, task, context):
        from planboard.domains.projects.services.project_service import create_project

        elsewhere = create_project(user.id, name="Elsewhere")
        _rule(user, elsewhere, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")])

        assert run_rules(TRIGGER_TASK_MOVED, context).outcomes == []

    def test_failing_rule_does_not_stop_the_next(self, app, user, project, other_user, task, context):
        broken = _rule(user, project, TRIGGER_TASK_MOVED, [("SET_FIELD", "missing:1"), ("COMPLETE_TASK", "")], name="broken")
        healthy = _rule(user, project, TRIGGER_TASK_MOVED, [("SET_ASSIGNEE", other_user.id)], name="healthy")

        summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.count("FAILED") == 1
        assert summary.count("SUCCESS") == 1
        [failed] = _logs(broken)
        assert failed.status == "FAILED"
        assert "missing" in failed.message
        assert [log.status for log in _logs(healthy)] == ["SUCCESS"]
        stored = db.session.get(Task, task.id)
        assert stored.assignee_id == other_user.id
        # Actions after the failing one are abandoned
        assert stored.status == "INCOMPLETE"

    def test_actions_before_a_failure_stay_applied(self, app, user, project, other_user, task, context):
        rule = _rule(user, project, TRIGGER_TASK_MOVED, [("SET_ASSIGNEE", other_user.id), ("SET_FIELD", "missing:1")])

        run_rules(TRIGGER_TASK_MOVED, context)

        assert [log.status for log in _logs(rule)] == ["FAILED"]
        assert db.session.get(Task, task.id).assignee_id == other_user.id

    def test_later_rules_see_earlier_writes(self, app, user, project, sections, task, context):
        _rule(
            user, project, TRIGGER_TASK_MOVED, [("MOVE_TO_SECTION", sections["Done"].id)],
            name="file it", created_at=datetime(2024, 1, 1),
        )
        conditions = {"logic": "AND", "conditions": [{"field": "section", "operator": "equals", "value": "Done"}]}
        closer = _rule(
            user, project, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")],
            conditions=conditions, name="close it", created_at=datetime(2024, 1, 2),
        )

        run_rules(TRIGGER_TASK_MOVED, context)

        assert [log.status for log in _logs(closer)] == ["SUCCESS"]
        assert db.session.get(Task, task.id).status == "COMPLETE"

    def test_log_write_failure_is_swallowed(self, app, user, project, other_user, task, context):
        rule = _rule(user, project, TRIGGER_TASK_MOVED, [("SET_ASSIGNEE", other_user.id)])

        with patch.object(runner, "RuleExecutionLog", side_effect=RuntimeError("log store down")):
            summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.outcomes == [(rule.id, "SUCCESS")]
        assert db.session.get(Task, task.id).assignee_id == other_user.id
        assert _logs(rule) == []

    def test_nested_runs_are_refused(self, app, user, project, task, context):
        _rule(user, project, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")])
        nested = []

        def reenter(action, ctx):
            nested.append(run_rules(TRIGGER_TASK_MOVED, ctx))
            return True

        with patch.object(runner, "execute_action", side_effect=reenter):
            summary = run_rules(TRIGGER_TASK_MOVED, context)

        assert summary.count("SUCCESS") == 1
        assert len(nested) == 1
        assert nested[0].outcomes == []


class TestDispatch:
    def test_disabled_automation_does_nothing(self, app, context):
        app.config["AUTOMATION_ENABLED"] = False
        with patch.object(runner, "run_rules") as run:
            dispatch_rules(TRIGGER_TASK_MOVED, context)
        run.assert_not_called()

    def test_errors_never_reach_the_caller(self, app, context):
        with patch.object(runner, "run_rules", side_effect=RuntimeError("boom")):
            dispatch_rules(TRIGGER_TASK_MOVED, context)

    def test_background_mode_uses_daemon_thread(self, app, context):
        app.config["AUTOMATION_RUN_INLINE"] = False
        with patch.object(runner.threading, "Thread") as thread_cls:
            dispatch_rules(TRIGGER_TASK_MOVED, context)
        _, kwargs = thread_cls.call_args
        assert kwargs["daemon"] is True
        assert kwargs["args"][1:] == (TRIGGER_TASK_MOVED, context)
        thread_cls.return_value.start.assert_called_once()


class TestTaskLifecycleScenarios:
    def test_new_tasks_get_assigned(self, app, user, project, other_user):
        rule = _rule(user, project, TRIGGER_TASK_ADDED, [("SET_ASSIGNEE", other_user.id)])

        task = create_task(user.id, project.id, title="Anything")

        assert db.session.get(Task, task.id).assignee_id == other_user.id
        assert [log.status for log in _logs(rule)] == ["SUCCESS"]

    def test_completion_comment_only_in_done_section(self, app, user, project, sections):
        conditions = {"logic": "AND", "conditions": [{"field": "section", "operator": "equals", "value": "Done"}]}
        rule = _rule(user, project, TRIGGER_TASK_COMPLETED, [("ADD_COMMENT", "Nice work!")], conditions=conditions)
        open_task = create_task(user.id, project.id, title="Open", section_id=sections["To Do"].id)
        done_task = create_task(user.id, project.id, title="Filed", section_id=sections["Done"].id)

        complete_task(user.id, open_task.id)
        assert Comment.query.filter_by(task_id=open_task.id).count() == 0
        assert [log.status for log in _logs(rule)] == ["SKIPPED"]

        complete_task(user.id, done_task.id)
        comment = Comment.query.filter_by(task_id=done_task.id).one()
        assert comment.author_id == user.id
        statuses = sorted(log.status for log in _logs(rule))
        assert statuses == ["SKIPPED", "SUCCESS"]

    def test_set_field_upserts_string_value(self, app, user, project, task):
        db.session.add(CustomField(id="field-1", project_id=project.id, name="Estimate"))
        db.session.commit()
        _rule(user, project, TRIGGER_TASK_MOVED, [("SET_FIELD", "field-1:42")])

        move_task(user.id, task.id, project_id=project.id)
        value = TaskCustomFieldValue.query.filter_by(task_id=task.id, custom_field_id="field-1").one()
        assert value.string_value == "42"

        value.string_value = "old"
        db.session.commit()
        move_task(user.id, task.id, project_id=project.id)
        assert TaskCustomFieldValue.query.filter_by(task_id=task.id).count() == 1
        assert TaskCustomFieldValue.query.filter_by(task_id=task.id).one().string_value == "42"

    def test_field_change_triggers_rules(self, app, user, project, task):
        rule = _rule(user, project, TRIGGER_FIELD_CHANGED, [("COMPLETE_TASK", "")])

        update_task(user.id, task.id, title="Plan sprint 12")

        assert [log.status for log in _logs(rule)] == ["SUCCESS"]
        assert db.session.get(Task, task.id).status == "COMPLETE"

    def test_rule_actions_do_not_raise_new_triggers(self, app, user, project, task):
        _rule(user, project, TRIGGER_TASK_MOVED, [("COMPLETE_TASK", "")], name="close")
        on_complete = _rule(user, project, TRIGGER_TASK_COMPLETED, [("ADD_COMMENT", "closed")], name="comment")

        move_task(user.id, task.id, project_id=project.id)

        assert db.session.get(Task, task.id).status == "COMPLETE"
        assert _logs(on_complete) == []

    def test_rule_failure_does_not_fail_the_mutation(self, app, user, project):
        _rule(user, project, TRIGGER_TASK_ADDED, [("SET_FIELD", "missing:1")])

        task = create_task(user.id, project.id, title="Still created")

        assert db.session.get(Task, task.id) is not None
        assert Rule.query.count() == 1
