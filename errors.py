"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Store errors (NotFoundError, ConflictError, StoreError, StoreUnavailable)
surface to the immediate caller, which owns any retry decision.
ViewSyncFailed and ExternalBillingFailed are raised and absorbed where they
originate; they never abort a write or an append.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    """Revision mismatch on a write. Re-fetch and retry is up to the caller."""

    status_code = 409
    error_code = "conflict"


class StoreError(AppError):
    """The document store rejected a request for a reason other than 404/409."""

    status_code = 502
    error_code = "store_error"


class StoreUnavailable(StoreError):
    """Transport failure or 5xx from the document store."""

    status_code = 503
    error_code = "store_unavailable"


class ViewSyncFailed(AppError):
    error_code = "view_sync_failed"


class ExternalBillingFailed(AppError):
    status_code = 502
    error_code = "external_billing_failed"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry, when initialised, captures the exception before this runs.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
