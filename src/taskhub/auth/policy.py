"""Authorization policy: pure decisions, no I/O.

Tasks: admin OR owner, the same rule for read, update and delete.
Users: admins manage any record; everyone else only sees and edits their
own username/email through the self-profile path; nobody deletes
themselves.

check_task_access() returns a tagged AccessDecision so callers can log
why a request was refused. Outside the service layer that detail is
collapsed into a single "not found".
"""

import enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from taskhub.auth.dependencies import Principal
    from taskhub.db.models import Task


class Operation(str, enum.Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class AccessDecision(str, enum.Enum):
    ALLOWED_OWNER = "allowed_owner"
    ALLOWED_ADMIN = "allowed_admin"
    DENIED_NOT_OWNER = "denied_not_owner"
    DENIED_MISSING = "denied_missing"

    @property
    def allowed(self) -> bool:
        return self in (AccessDecision.ALLOWED_OWNER, AccessDecision.ALLOWED_ADMIN)


def check_task_access(
    principal: "Principal", task: Optional["Task"], operation: Operation
) -> AccessDecision:
    """Decide whether principal may perform operation on task.

    Ownership is binary: the operation does not change the outcome.
    """
    if task is None:
        return AccessDecision.DENIED_MISSING
    if task.owner_id == principal.id:
        return AccessDecision.ALLOWED_OWNER
    if principal.is_admin:
        return AccessDecision.ALLOWED_ADMIN
    return AccessDecision.DENIED_NOT_OWNER


def can_access_task(
    principal: "Principal", task: "Task", operation: Operation
) -> bool:
    return check_task_access(principal, task, operation).allowed


def can_access_user(
    principal: "Principal",
    target_user_id: int,
    operation: Operation,
    self_profile: bool = False,
) -> bool:
    """Admins may act on any user record.

    A regular user may read or update only their own record, and only via
    the self-profile endpoints.
    """
    if principal.is_admin:
        return True
    if not self_profile or target_user_id != principal.id:
        return False
    return operation in (Operation.READ, Operation.UPDATE)


def can_change_role(principal: "Principal", self_profile: bool) -> bool:
    """Role is never editable through the self-profile path."""
    return principal.is_admin and not self_profile


def can_self_delete(principal: "Principal", target_user_id: int) -> bool:
    """False whenever the target is the principal's own record."""
    return target_user_id != principal.id


def can_delete_user(principal: "Principal", target_user_id: int) -> bool:
    return (
        can_access_user(principal, target_user_id, Operation.DELETE)
        and can_self_delete(principal, target_user_id)
    )


def task_owner_scope(principal: "Principal") -> Optional[int]:
    """Owner filter for task list queries: None means unfiltered (admin)."""
    return None if principal.is_admin else principal.id
