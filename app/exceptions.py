"""
Application exception hierarchy.

Services raise these; ``app.main`` turns them into JSON responses using
``ERROR_STATUS_CODES``. Anything not listed there is an unexpected error
and becomes a 500.

    TodoAppError
    ├── ValidationError          → 400
    ├── DuplicateEmailError      → 400
    ├── InvalidCredentialsError  → 401
    ├── UnauthenticatedError     → 401
    ├── NotFoundError            → 404
    └── ServiceUnavailableError  → 503
"""

from typing import Any


class TodoAppError(Exception):
    """Base class for expected, client-facing errors.

    ``message`` is safe to return to the client, ``context`` is extra detail
    for logs and for the ``details`` field of the response.
    """

    error_code = "application_error"

    def __init__(self, message: str = "An unexpected error occurred", context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TodoAppError):
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ):
        if errors is None:
            errors = [{"field": field, "message": message}] if field else []
        super().__init__(message=message, context={"errors": errors})
        self.field = field
        self.errors = errors


class DuplicateEmailError(TodoAppError):
    error_code = "duplicate_email"

    def __init__(self, email: str | None = None):
        super().__init__(message="Email already registered", context={"field": "email"})
        self.email = email


class InvalidCredentialsError(TodoAppError):
    # Same message for unknown email and wrong password
    error_code = "invalid_credentials"

    def __init__(self):
        super().__init__(message="Invalid email or password")


class UnauthenticatedError(TodoAppError):
    error_code = "unauthenticated"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message=message)


class NotFoundError(TodoAppError):
    """Entity is absent, soft-deleted, or owned by someone else."""

    error_code = "not_found"

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message=message, context={"resource": resource})
        self.resource = resource
        self.resource_id = resource_id


class ServiceUnavailableError(TodoAppError):
    error_code = "service_unavailable"

    def __init__(self, message: str = "Service unavailable"):
        super().__init__(message=message)


# Most specific classes first; lookup walks the exception's MRO
ERROR_STATUS_CODES: dict[type[TodoAppError], int] = {
    ValidationError: 400,
    DuplicateEmailError: 400,
    InvalidCredentialsError: 401,
    UnauthenticatedError: 401,
    NotFoundError: 404,
    ServiceUnavailableError: 503,
}


def status_code_for(exc: TodoAppError) -> int:
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[klass]
    return 500
