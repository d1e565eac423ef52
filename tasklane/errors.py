"""Typed failures raised by the service and store layers.

The API layer maps each class onto an HTTP status (see ``api/errors.py``).
"""


class TasklaneError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TasklaneError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(TasklaneError):
    status_code = 401
    default_message = "Could not validate credentials"


class NotFound(TasklaneError):
    # Also used when the row exists but belongs to someone else.
    status_code = 404
    default_message = "Task not found"


class Conflict(TasklaneError):
    status_code = 409
    default_message = "Email already in use"


class Unexpected(TasklaneError):
    status_code = 500
    default_message = "Internal server error"
