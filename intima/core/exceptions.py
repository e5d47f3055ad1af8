"""
Domain errors for the submission portal.

Controllers and services raise these instead of bare exceptions; the handlers
installed in ``intima.main`` turn them into ``{"message": ...}`` responses with
the matching HTTP status.
"""

from typing import Any, Dict, Optional


class PortalError(Exception):
    """Base class for all portal errors"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        body.update(self.details)
        return body


class ValidationFailed(PortalError):
    """A required field is missing or invalid"""

    status_code = 400


class InvalidTransition(PortalError):
    """The requested action is not allowed from the submission's current status"""

    status_code = 400

    def __init__(self, action: str, current_status: str):
        super().__init__(
            f"Cannot {action} a submission in status '{current_status}'",
            details={"currentStatus": current_status},
        )


class NotFound(PortalError):
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        details = {}
        if resource_id is not None:
            details[f"{resource_type[0].lower()}{resource_type[1:]}Id"] = resource_id
        super().__init__(f"{resource_type} not found", details=details)


class Forbidden(PortalError):
    status_code = 403


class Conflict(PortalError):
    status_code = 409


class ValidationServiceError(PortalError):
    """The external document validator failed or returned an unusable body"""

    status_code = 502
