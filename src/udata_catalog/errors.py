"""Connector errors, each carrying the HTTP-style status surfaced to the host."""


class CatalogError(Exception):
    """Base connector error."""

    status = 500

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class InvalidInputError(CatalogError):
    """Malformed identifier or missing required input."""

    status = 400


class UnauthorizedError(CatalogError):
    """Missing or rejected API key."""

    status = 401


class ForbiddenError(CatalogError):
    """API key valid but without access to the requested organization."""

    status = 403


class NotFoundError(CatalogError):
    """Dataset or resource absent from the remote catalog."""

    status = 404


class GoneError(CatalogError):
    """Remote object exists but was deleted."""

    status = 410
