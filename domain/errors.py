"""
Domain error taxonomy.

Every expected, request-scoped failure raises a subclass of ArenaError; the
HTTP layer turns it into a response using `http_status`. Infrastructure
failures of the execution service are NOT errors here: they become recorded
submissions with a failure status.
"""

from typing import Optional


class ArenaError(Exception):
    """Base class of expected business errors."""

    default_message: str = "Request failed"
    http_status: int = 400

    def __init__(self, message: Optional[str] = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class ValidationError(ArenaError):
    """Missing or malformed input; nothing was written."""
    default_message = "Invalid request"
    http_status = 400


class AuthorizationError(ArenaError):
    """Caller is known but not allowed to act on the resource."""
    default_message = "Forbidden"
    http_status = 403


class NotFoundError(ArenaError):
    default_message = "Not found"
    http_status = 404


class ConflictError(ArenaError):
    """The resource is not in a state that allows the action."""
    default_message = "Conflict"
    http_status = 409


__all__ = [
    "ArenaError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
]
