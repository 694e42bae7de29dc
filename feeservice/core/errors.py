"""Service error taxonomy.

Services raise these; ``feeservice.main`` maps them to HTTP responses.
Messages of every class except ``Internal`` only restate the caller's own
input against published policy, so they are returned verbatim.
"""


class FeeServiceError(Exception):
    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(FeeServiceError):
    status_code = 400
    title = "Bad Request"


class TenantResolutionError(FeeServiceError):
    """No usable tenant claim on an authenticated principal."""

    status_code = 401
    title = "Unauthorized"


class Forbidden(FeeServiceError):
    status_code = 403
    title = "Forbidden"


class NotFound(FeeServiceError):
    status_code = 404
    title = "Not Found"


class Conflict(FeeServiceError):
    status_code = 409
    title = "Conflict"


class Unavailable(FeeServiceError):
    """A backing dependency (object store, database) could not be reached."""

    status_code = 503
    title = "Service Unavailable"


class Internal(FeeServiceError):
    status_code = 500
    title = "Internal Server Error"

    PUBLIC_MESSAGE = "An error occurred while processing your request. Please try again later."
