"""
Shared error types.

Service code raises these; the app's exception handlers turn them into the
`{"status": false, "message": ..., "data": {}}` envelope with the status code
carried by the class.
"""


class ServiceError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None, data: dict = None):
        self.message = message or self.default_message
        self.data = data or {}
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class UnsupportedTypeError(ValidationError):
    """Uploaded file type is not accepted."""

    default_message = "Unsupported file type"


class ConflictError(ServiceError):
    """Duplicate value for a unique key."""

    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(ServiceError):
    """Missing credentials."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidTokenError(AuthenticationError):
    """Token signature, format or expiry check failed."""

    status_code = 403
    default_message = "Invalid token"


class AuthorizationError(ServiceError):
    """Authenticated, but not allowed."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class ExternalServiceError(ServiceError):
    """Downstream AI / enrichment API failure or timeout."""

    status_code = 502
    default_message = "External service error"


class StorageError(ServiceError):
    """Database or filesystem failure."""

    status_code = 500
    default_message = "Storage error"
