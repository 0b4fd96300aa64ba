from typing import Any


class InterfaceLoopError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class RequestValidationError(InterfaceLoopError):
    """A required field is missing or names something unknown."""

    status_code = 400

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"Field '{field}' is required")
        self.field = field


class PolicyError(InterfaceLoopError):
    """The request is well-formed but not allowed by server policy."""

    status_code = 403

    def __init__(self, reason: str, instruction: str):
        super().__init__(reason)
        self.instruction = instruction

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "message": self.instruction}


class GenerationError(InterfaceLoopError):
    """The generation backend failed: network error, timeout or bad status."""

    status_code = 500
