"""
Error taxonomy of the phonebook directory and its HTTP rendering.

Every failure the directory service can report is one of the
``DirectoryError`` subclasses below.  The set is closed: the
``STATUS_BY_KIND`` table maps each class to an HTTP status code and
``register_exception_handlers`` turns any raised instance into a JSON
payload of the form ``{"error": <message>, "kind": <class name>}``
(validation errors also carry ``field``).  Storage details are logged
but never returned to the client.
"""

import logging
from typing import Any, Dict, Optional, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Base class for every failure reported by the directory service."""

    message = "Server error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind}


class MissingField(DirectoryError):
    message = "Name and number are required"


class ValidationError(DirectoryError):
    """A field broke one of the record rules."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class MalformedIdentifier(DirectoryError):
    message = "Malformatted ID"


class NotFound(DirectoryError):
    message = "Person not found"


class DuplicateName(DirectoryError):
    message = "Name already exists"


class StorageError(DirectoryError):
    message = "Server error"


STATUS_BY_KIND: Dict[Type[DirectoryError], int] = {
    MissingField: status.HTTP_400_BAD_REQUEST,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    MalformedIdentifier: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    DuplicateName: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: DirectoryError) -> int:
    """Return the HTTP status code for ``error``.

    Raises ``KeyError`` for a ``DirectoryError`` subclass that has not
    been added to ``STATUS_BY_KIND``.
    """
    return STATUS_BY_KIND[type(error)]


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error renderers to ``app``."""

    @app.exception_handler(DirectoryError)
    async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
        code = status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Bodies that are not JSON objects or carry non-string fields.
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = [str(part) for part in first.get("loc", ()) if part != "body"]
        field = location[-1] if location else "body"
        message = first.get("msg", "Invalid request")
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, message, field)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": message, "kind": ValidationError.__name__, "field": field},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routing misses: no path matched, or the path exists for other methods.
        if (exc.status_code, exc.detail) in {(404, "Not Found"), (405, "Method Not Allowed")}:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Unknown endpoint"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
