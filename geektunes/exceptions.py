"""Error taxonomy shared by the repositories and the HTTP layer."""


class CatalogError(Exception):
    """Base exception for catalog errors.

    ``message`` is safe to show to clients; ``status_code`` is the HTTP status
    the top-level handler answers with.
    """

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class InvalidArgument(CatalogError):
    """Malformed id, empty search query, bad reference in a payload."""
    status_code = 400


class Unauthorized(CatalogError):
    """Missing or bad credentials."""
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(CatalogError):
    """Authenticated, but not allowed (non-admin, not the owner)."""
    status_code = 403


class NotFound(CatalogError):
    status_code = 404


class DuplicateKey(CatalogError):
    """A uniqueness rule was violated (username, like)."""
    status_code = 400


class StorageError(CatalogError):
    """The backing store failed."""
    status_code = 500
