from planboard.domains.projects.services.project_service import (
    create_custom_field,
    create_project,
    create_section,
    get_project,
    list_projects,
)
from planboard.domains.projects.services.recurrence_service import (
    next_due_date,
    spawn_next_occurrence,
)
from planboard.domains.projects.services.task_service import (
    complete_task,
    create_task,
    get_task,
    list_tasks,
    move_task,
    set_custom_field_value,
    set_recurrence,
    uncomplete_task,
    update_task,
)

__all__ = [
    "create_project",
    "get_project",
    "list_projects",
    "create_section",
    "create_custom_field",
    "create_task",
    "get_task",
    "list_tasks",
    "update_task",
    "move_task",
    "complete_task",
    "uncomplete_task",
    "set_custom_field_value",
    "set_recurrence",
    "next_due_date",
    "spawn_next_occurrence",
]
