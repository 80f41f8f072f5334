"""
Error taxonomy shared by the authorizer, the sandbox and the short-link registry.

Every error carries the HTTP status the request layer answers with and a
message that is safe to show to clients.
"""

from typing import Optional


class ShareError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class Unauthorized(ShareError):
    # missing, unknown, wrong-capability and disabled tokens all end up here
    status_code = 401
    message = "Unauthorized"


class InvalidPath(ShareError):
    status_code = 400
    message = "Invalid filename or path"


class NotFound(ShareError):
    status_code = 404
    message = "Not found"


class Conflict(ShareError):
    status_code = 409
    message = "Conflict"


class Exhausted(Conflict):
    status_code = 500
    message = "Failed to generate a unique short code"


class StoreUnavailable(ShareError):
    status_code = 503
    message = "Storage temporarily unavailable"


class DuplicateKey(Conflict):
    """Raised by a store when an insert hits its unique constraint."""
