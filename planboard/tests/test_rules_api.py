"""Tests for the automation rule API."""

from datetime import datetime

import pytest

from planboard.domains.automation.models.rule_models import Rule, RuleExecutionLog
from planboard.domains.automation.services.rule_service import create_rule, list_rules
from planboard.extensions import db

pytestmark = pytest.mark.integration


def _payload(**overrides):
    payload = {
        "name": "Close finished work",
        "trigger": {"type": "TASK_MOVED"},
        "conditions": {
            "logic": "AND",
            "conditions": [{"field": "section", "operator": "equals", "value": "Done"}],
        },
        "actions": [{"type": "COMPLETE_TASK", "config": ""}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def rule(app, user, project):
    return create_rule(
        user.id,
        project.id,
        name="Assign reviewer",
        trigger={"type": "TASK_COMPLETED", "config": None},
        actions=[{"type": "ADD_COMMENT", "config": "Ready for review"}],
    )


class TestRulesAPI:
    def test_create_rule(self, client, auth_headers, user, project):
        resp = client.post(
            f"/api/automation/projects/{project.id}/rules", json=_payload(), headers=auth_headers
        )
        assert resp.status_code == 201
        data = resp.get_json()["rule"]
        assert data["trigger"] == {"type": "TASK_MOVED", "config": None}
        assert data["conditions"]["conditions"][0] == {
            "field": "section",
            "operator": "equals",
            "value": "Done",
        }
        assert data["is_active"] is True
        assert data["created_by_id"] == user.id

    def test_create_rule_for_missing_project(self, client, auth_headers):
        resp = client.post("/api/automation/projects/nope/rules", json=_payload(), headers=auth_headers)
        assert resp.status_code == 404

    @pytest.mark.parametrize(
        "overrides",
        [
            {"trigger": {"type": "TASK_DELETED"}},
            {"actions": [{"type": "SEND_EMAIL", "config": "x"}]},
            {"conditions": {"logic": "XOR", "conditions": []}},
            {"conditions": {"logic": "AND", "conditions": [{"field": "title", "operator": "like"}]}},
            {"name": ""},
        ],
    )
    def test_create_rule_validation(self, client, auth_headers, project, overrides):
        resp = client.post(
            f"/api/automation/projects/{project.id}/rules",
            json=_payload(**overrides),
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_rule_without_actions_is_a_noop(self, client, auth_headers, project, sections):
        payload = {"name": "Placeholder", "trigger": {"type": "TASK_ADDED"}}
        for body in (dict(payload, actions=[]), payload):
            resp = client.post(
                f"/api/automation/projects/{project.id}/rules", json=body, headers=auth_headers
            )
            assert resp.status_code == 201
            assert resp.get_json()["rule"]["actions"] == []

        task = client.post(
            f"/api/projects/{project.id}/tasks",
            json={"title": "Untouched", "section_id": sections["To Do"].id},
            headers=auth_headers,
        ).get_json()["task"]

        resp = client.get(f"/api/projects/tasks/{task['id']}", headers=auth_headers)
        data = resp.get_json()["task"]
        assert data["status"] == "INCOMPLETE"
        assert data["due_date"] is None
        assert [log.status for log in RuleExecutionLog.query.all()] == ["SUCCESS", "SUCCESS"]

    def test_list_rules_newest_first(self, client, auth_headers, user, project, rule):
        newer = create_rule(
            user.id,
            project.id,
            name="Newer",
            trigger={"type": "TASK_ADDED"},
            actions=[{"type": "COMPLETE_TASK"}],
        )
        rule.created_at = datetime(2024, 1, 1)
        db.session.commit()

        resp = client.get(f"/api/automation/projects/{project.id}/rules", headers=auth_headers)
        data = resp.get_json()
        assert [r["id"] for r in data["items"]] == [newer.id, rule.id]
        assert [r.id for r in list_rules(project.id)] == [newer.id, rule.id]

    def test_update_rule(self, client, auth_headers, rule):
        resp = client.patch(
            f"/api/automation/rules/{rule.id}",
            json={"name": "Renamed", "actions": [{"type": "SET_DUE_DATE", "config": "3"}]},
            headers=auth_headers,
        )
        data = resp.get_json()["rule"]
        assert data["name"] == "Renamed"
        assert data["actions"] == [{"type": "SET_DUE_DATE", "config": "3"}]
        assert data["trigger"]["type"] == "TASK_COMPLETED"

    def test_update_rule_rejects_null_trigger(self, client, auth_headers, rule):
        resp = client.patch(f"/api/automation/rules/{rule.id}", json={"trigger": None}, headers=auth_headers)
        assert resp.status_code == 400

    def test_update_missing_rule(self, client, auth_headers):
        resp = client.patch("/api/automation/rules/nope", json={"name": "x"}, headers=auth_headers)
        assert resp.status_code == 404

    def test_toggle_rule(self, client, auth_headers, rule):
        resp = client.post(f"/api/automation/rules/{rule.id}/toggle", headers=auth_headers)
        assert resp.get_json()["rule"]["is_active"] is False

        resp = client.post(
            f"/api/automation/rules/{rule.id}/toggle", json={"is_active": False}, headers=auth_headers
        )
        assert resp.get_json()["rule"]["is_active"] is False

        resp = client.post(f"/api/automation/rules/{rule.id}/toggle", headers=auth_headers)
        assert resp.get_json()["rule"]["is_active"] is True

    def test_delete_rule_removes_logs(self, client, auth_headers, rule):
        db.session.add(RuleExecutionLog(rule_id=rule.id, task_id="t1", status="SUCCESS"))
        db.session.commit()

        resp = client.delete(f"/api/automation/rules/{rule.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert db.session.get(Rule, rule.id) is None
        assert RuleExecutionLog.query.count() == 0

        resp = client.delete(f"/api/automation/rules/{rule.id}", headers=auth_headers)
        assert resp.status_code == 404

    def test_execution_logs(self, client, auth_headers, rule):
        for status in ("SUCCESS", "FAILED", "SKIPPED"):
            db.session.add(RuleExecutionLog(rule_id=rule.id, task_id="t1", status=status))
        db.session.commit()

        resp = client.get(f"/api/automation/rules/{rule.id}/logs?per_page=2", headers=auth_headers)
        data = resp.get_json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 2

        resp = client.get(f"/api/automation/rules/{rule.id}/logs?status=FAILED", headers=auth_headers)
        assert [log["status"] for log in resp.get_json()["items"]] == ["FAILED"]

    def test_execution_logs_for_missing_rule(self, client, auth_headers):
        resp = client.get("/api/automation/rules/nope/logs", headers=auth_headers)
        assert resp.status_code == 404

    def test_rules_fire_through_task_move(self, client, auth_headers, user, project, sections):
        client.post(f"/api/automation/projects/{project.id}/rules", json=_payload(), headers=auth_headers)
        task = client.post(
            f"/api/projects/{project.id}/tasks",
            json={"title": "Polish copy", "section_id": sections["To Do"].id},
            headers=auth_headers,
        ).get_json()["task"]

        client.post(
            f"/api/projects/tasks/{task['id']}/move",
            json={"project_id": project.id, "section_id": sections["Done"].id},
            headers=auth_headers,
        )

        resp = client.get(f"/api/projects/tasks/{task['id']}", headers=auth_headers)
        assert resp.get_json()["task"]["status"] == "COMPLETE"
