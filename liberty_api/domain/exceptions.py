"""
Domain exceptions - Error taxonomy shared by every layer

Each exception carries the HTTP status and stable error code it maps to,
so the API layer can translate it without inspecting the message.
"""


class DomainError(Exception):
    """Base class for expected, user-visible failures"""

    status_code = 400
    error = "bad_request"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(DomainError):
    """Malformed or out-of-range input"""

    status_code = 400
    error = "validation_error"


class AuthenticationError(DomainError):
    """Missing, invalid or expired credentials"""

    status_code = 401
    error = "not_authenticated"

    def __init__(self, detail: str = "Invalid or missing credentials"):
        super().__init__(detail)


class PermissionDeniedError(DomainError):
    """Authenticated but not allowed to touch the resource"""

    status_code = 403
    error = "forbidden"


class NotFoundError(DomainError):
    """Referenced resource does not exist"""

    status_code = 404
    error = "not_found"


class ConflictError(DomainError):
    """Write rejected because it conflicts with existing state"""

    status_code = 409
    error = "conflict"
