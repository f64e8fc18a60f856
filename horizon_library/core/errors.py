"""Error taxonomy shared by the store, the cover image manager and the auth gate.

Each error carries the HTTP status it is rendered with; the handlers in
``horizon_library.main`` turn them into ``{"detail": ...}`` responses.
"""
from typing import Literal, Optional


class CatalogError(Exception):
    status_code = 500
    default_detail = "Server Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(CatalogError):
    status_code = 422
    default_detail = "Validation Error"


class UploadTooLargeError(ValidationError):
    status_code = 413
    default_detail = "File too large"


class DuplicateKeyError(CatalogError):
    status_code = 409
    default_detail = "A book with this ISBN already exists."


class NotFoundError(CatalogError):
    status_code = 404
    default_detail = "Book not found"


AuthFailure = Literal["missing", "invalid", "expired"]

_AUTH_MESSAGES = {
    "missing": "No token, authorization denied",
    "invalid": "Token is not valid",
    "expired": "Token has expired",
}


class AuthError(CatalogError):
    status_code = 401

    def __init__(self, reason: AuthFailure = "invalid", detail: Optional[str] = None):
        self.reason = reason
        super().__init__(detail or _AUTH_MESSAGES[reason])


class ForbiddenError(CatalogError):
    status_code = 403
    default_detail = "Forbidden: You do not have permission to access this resource"


class StorageError(CatalogError):
    status_code = 500
    default_detail = "Storage failure"
