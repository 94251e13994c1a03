from planboard.domains.automation.services.rule_service import (
    create_rule,
    delete_rule,
    get_rule,
    list_execution_logs,
    list_rules,
    toggle_rule,
    update_rule,
)

__all__ = [
    "create_rule",
    "update_rule",
    "toggle_rule",
    "delete_rule",
    "get_rule",
    "list_rules",
    "list_execution_logs",
]
