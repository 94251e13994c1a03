import pytest

from planboard.core.events.event_bus import DomainEvent, EventBus, event_bus, publish
from planboard.domains.automation import runner
from planboard.domains.projects.events import EVENT_CATALOG, TASK_MOVED
from planboard.domains.projects.services.task_service import create_task, move_task, update_task


@pytest.mark.unit
def test_subscribe_is_idempotent():
    bus = EventBus()
    received = []

    def handler(event):
        received.append(event.payload["n"])

    bus.subscribe("custom.test", handler)
    bus.subscribe("custom.test", handler)
    bus.publish(DomainEvent("custom.test", {"n": 1}))
    bus.unsubscribe("custom.test", handler)
    bus.publish(DomainEvent("custom.test", {"n": 2}))

    assert received == [1]


@pytest.mark.unit
def test_every_trigger_event_is_catalogued():
    assert set(runner.EVENT_TRIGGERS) <= set(EVENT_CATALOG)


@pytest.mark.integration
def test_task_mutations_publish_trigger_events(app, user, project, sections):
    seen = []

    def handler(event):
        seen.append((event.event_type, event.payload["project_id"], event.user_id))

    for event_type in runner.EVENT_TRIGGERS:
        event_bus.subscribe(event_type, handler)
    try:
        task = create_task(user.id, project.id, title="Observe me")
        move_task(user.id, task.id, project_id=project.id, section_id=sections["Done"].id)
        update_task(user.id, task.id, title="Observe me")
        update_task(user.id, task.id, title="Renamed")
    finally:
        for event_type in runner.EVENT_TRIGGERS:
            event_bus.unsubscribe(event_type, handler)

    # An update that changes nothing publishes nothing
    assert [event_type for event_type, _, _ in seen] == [
        "projects.task.created",
        TASK_MOVED,
        "projects.task.field_changed",
    ]
    assert {project_id for _, project_id, _ in seen} == {project.id}
    assert {user_id for _, _, user_id in seen} == {user.id}


@pytest.mark.integration
def test_unknown_events_are_ignored(app):
    publish("projects.task.archived", {"task_id": "t", "project_id": "p"})
    runner.handle_task_event(DomainEvent("projects.task.moved", {"task_id": "t"}))
