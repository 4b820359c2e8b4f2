from __future__ import annotations


class BadgerError(Exception):
    """Base for every error that is rendered to API callers.

    Subclasses pick a stable ``code`` and HTTP status; ``extras()`` returns the
    structured context that accompanies the message in the error payload.
    """

    code = "internal_error"
    http_status = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def extras(self) -> dict[str, object]:
        return {}

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.code, "message": self.message}
        payload.update(self.extras())
        return payload


class InputValidationError(BadgerError):
    code = "validation_error"
    http_status = 400
    default_message = "Invalid input"

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        details: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.details = details

    def extras(self) -> dict[str, object]:
        if self.details is not None:
            return {"details": self.details}
        if self.field is None:
            return {}
        return {"details": [{"field": self.field, "message": self.message}]}


class UnauthorizedError(BadgerError):
    code = "unauthorized"
    http_status = 401
    default_message = "Authentication required"


class ForbiddenError(BadgerError):
    code = "forbidden"
    http_status = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(BadgerError):
    code = "not_found"
    http_status = 404
    default_message = "Resource not found"


class ConflictError(BadgerError):
    code = "conflict"
    http_status = 409
    default_message = "Request conflicts with the current state"


class InvalidStatusError(ConflictError):
    code = "invalid_status"

    def __init__(
        self,
        *,
        current_status: str,
        action: str,
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"Cannot {action} while status is {current_status}")
        self.current_status = current_status
        self.action = action

    def extras(self) -> dict[str, object]:
        return {"current_status": self.current_status}
