"""
Error taxonomy shared by the auth module, the access guard and the routers.

Every error carries the HTTP status and the message rendered in the
response envelope {"status": ..., "message": ...}.
"""


class ApiError(Exception):
    """Base class for errors that terminate a request."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"status": self.status_code, "message": self.message}


class MissingCredential(ApiError):
    """No authentication key was presented."""

    status_code = 401
    default_message = "Authentication key missing"


class InvalidCredential(ApiError):
    """The presented authentication key resolves to no user."""

    status_code = 401
    default_message = "Authentication key invalid"


class Forbidden(ApiError):
    """The user's role is not allowed on this operation."""

    status_code = 403
    default_message = "Access forbidden"


class InvalidCredentials(ApiError):
    """Login failed. Raised identically for unknown email and wrong password."""

    status_code = 401
    default_message = "Invalid credentials"


class Conflict(ApiError):
    status_code = 409
    default_message = "The provided email address is already associated with another account."


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class StoreFailure(ApiError):
    """The document store failed while serving the request."""

    status_code = 500
    default_message = "Database error"


class ServiceUnavailable(ApiError):
    status_code = 503
    default_message = "Service not initialized"
