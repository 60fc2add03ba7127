from __future__ import annotations

from http import HTTPStatus


class ServiceError(Exception):
    """Base class for failures surfaced to the caller of a service operation."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    status_code = HTTPStatus.NOT_FOUND


class ForbiddenError(ServiceError):
    status_code = HTTPStatus.FORBIDDEN


class BadRequestError(ServiceError):
    status_code = HTTPStatus.BAD_REQUEST


class ConflictError(ServiceError):
    status_code = HTTPStatus.CONFLICT


class CsvImportError(BadRequestError):
    """The CSV document was rejected; ``errors`` holds every collected message."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("CSV import failed")
        self.errors = list(errors)
