"""Domain errors raised by the auth layer and the services.

Routes translate these into HTTP responses; services never import
fastapi. NotFoundOrUnauthorized keeps the internal reason for logging,
but its message is the same whether the row is missing or belongs to
someone else.
"""


class TaskHubError(Exception):
    """Base class for all domain errors."""


class Unauthenticated(TaskHubError):
    """Missing, malformed, tampered or expired access token."""

    def __init__(self, message: str = "Not authorized, invalid or missing token"):
        super().__init__(message)


class Forbidden(TaskHubError):
    """Principal is authenticated but its role does not allow the route."""


class NotFoundOrUnauthorized(TaskHubError):
    """Resource is absent, or present but not visible to the principal."""

    def __init__(self, resource: str, resource_id: int, reason: str = "missing"):
        self.resource = resource
        self.resource_id = resource_id
        self.reason = reason
        super().__init__(f"{resource.capitalize()} not found")


class DuplicateIdentity(TaskHubError):
    """Username or email already belongs to another account."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"User with this {field} already exists")


class NoFieldsToUpdate(TaskHubError):
    def __init__(self):
        super().__init__("No valid fields to update")


class SelfDeletionForbidden(TaskHubError):
    def __init__(self):
        super().__init__("You cannot delete your own account")
