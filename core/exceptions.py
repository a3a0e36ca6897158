"""
Workflow error hierarchy.

Every failed transition surfaces as one of these. Callers pick between
"refresh and retry" (ConflictError) and "fix input and resubmit"
(ValidationError) from the class and the structured details alone.
"""

from typing import Any, Optional


class EngagementError(Exception):
    """Base class for all workflow errors."""

    code = "ENGAGEMENT_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for an API response body."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(EngagementError):
    """Malformed or missing input. Never auto-retried."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class ConflictError(EngagementError):
    """
    The entity is not in a state permitting the transition.

    Carries the current state snapshot so the caller can refresh
    instead of repeating the same conflicting call.
    """

    code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str,
        current: Optional[dict[str, Any]] = None,
        entity: Optional[str] = None,
    ):
        details: dict[str, Any] = {}
        if entity:
            details["entity"] = entity
        if current is not None:
            details["current"] = current
        super().__init__(message, details)
        self.current = current
        self.entity = entity


class AuthorizationError(EngagementError):
    """The actor's role does not permit the operation."""

    code = "PERMISSION_DENIED"
    status_code = 403


class NotFoundError(EngagementError):
    """A referenced entity id does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )
        self.entity = entity
        self.entity_id = entity_id


class InternalError(EngagementError):
    """Opaque persistence failure; the transition was aborted with no effect."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "The transition could not be persisted"):
        super().__init__(message)
