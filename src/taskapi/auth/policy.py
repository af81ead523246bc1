"""Access policy — who may do what to which task.

Learn: The policy is a pure function of (operation, caller, resource owner).
It never touches the database; handlers load whatever they need (e.g. the
task, to learn its owner) and ask the policy for a decision.

Every Operation maps to exactly one Rule in RULES:
- ANYONE: any authenticated caller (the handler scopes the data itself)
- ADMIN_ONLY: role must be Admin
- ADMIN_OR_OWNER: Admin, or the caller is the resource owner
"""

import enum
from typing import Optional

from taskapi.auth.identity import CurrentIdentity


class Operation(str, enum.Enum):
    LIST_ALL_TASKS = "list-all-tasks"
    LIST_OWN_TASKS = "list-own-tasks"
    GET_TASK = "get-task"
    LIST_TASKS_BY_USER = "list-tasks-by-user"
    CREATE_TASK = "create-task"
    UPDATE_TASK = "update-task"
    DELETE_TASK = "delete-task"
    GET_COMMENTS = "get-comments"
    ADD_COMMENT = "add-comment"


class Rule(enum.Enum):
    ANYONE = "anyone"
    ADMIN_ONLY = "admin-only"
    ADMIN_OR_OWNER = "admin-or-owner"


RULES: dict[Operation, Rule] = {
    Operation.LIST_ALL_TASKS: Rule.ADMIN_ONLY,
    Operation.LIST_OWN_TASKS: Rule.ANYONE,
    Operation.GET_TASK: Rule.ADMIN_OR_OWNER,
    # owner = the user whose tasks are requested
    Operation.LIST_TASKS_BY_USER: Rule.ADMIN_OR_OWNER,
    # owner = the requested assignee
    Operation.CREATE_TASK: Rule.ADMIN_OR_OWNER,
    Operation.UPDATE_TASK: Rule.ADMIN_OR_OWNER,
    Operation.DELETE_TASK: Rule.ADMIN_ONLY,
    Operation.GET_COMMENTS: Rule.ADMIN_OR_OWNER,
    # author is forced to the caller by the handler
    Operation.ADD_COMMENT: Rule.ANYONE,
}


class AccessDenied(Exception):
    """Raised when the caller is authenticated but not allowed."""

    def __init__(self, operation: Operation, caller: CurrentIdentity):
        self.operation = operation
        self.caller = caller
        super().__init__(
            f"User {caller.user_id} is not allowed to {operation.value}"
        )


def allowed(
    operation: Operation,
    caller: CurrentIdentity,
    resource_owner_id: Optional[int] = None,
) -> bool:
    """Decide whether `caller` may perform `operation`.

    A missing owner (unassigned task, no assignee) never matches a caller.
    """
    try:
        rule = RULES[operation]
    except KeyError:
        raise ValueError(f"No access rule for operation: {operation!r}")

    if rule is Rule.ANYONE:
        return True
    if rule is Rule.ADMIN_ONLY:
        return caller.is_admin
    if rule is Rule.ADMIN_OR_OWNER:
        if caller.is_admin:
            return True
        return resource_owner_id is not None and resource_owner_id == caller.user_id
    raise ValueError(f"Unhandled rule: {rule!r}")


def authorize(
    operation: Operation,
    caller: CurrentIdentity,
    resource_owner_id: Optional[int] = None,
) -> None:
    """Like allowed(), but raises AccessDenied instead of returning False."""
    if not allowed(operation, caller, resource_owner_id):
        raise AccessDenied(operation, caller)
