# app/shared/exceptions.py
"""
Exceptions de la couche service + handlers FastAPI.

Chaque exception porte son code HTTP et une raison lisible par machine
(reason). Les routers ne font aucun try/except : les handlers enregistrés
dans main.py rendent toutes les erreurs au même format.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceException(Exception):
    """Base des erreurs métier."""
    status_code: int = 500
    default_reason: str = "INTERNAL_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason
        self.context = context


class UnauthorizedError(ServiceException):
    status_code = 401
    default_reason = "UNAUTHORIZED"


class ForbiddenError(ServiceException):
    status_code = 403
    default_reason = "FORBIDDEN"


class NotFoundError(ServiceException):
    status_code = 404
    default_reason = "NOT_FOUND"


class ValidationFailed(ServiceException):
    status_code = 400
    default_reason = "VALIDATION_FAILED"


class ConflictError(ServiceException):
    status_code = 409
    default_reason = "CONFLICT"


class AnswersNotSaved(ServiceException):
    """La candidature existe mais ses réponses n'ont pas pu être enregistrées."""
    status_code = 500
    default_reason = "ANSWERS_NOT_SAVED"


def _body(error: str, reason: str, type_: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "error": error, "reason": reason, "type": type_, **extra}


async def service_exception_handler(request: Request, exc: ServiceException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
        # Message assaini : seuls reason + contexte explicite sortent
        error = "Internal server error"
    else:
        error = exc.message
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(error, exc.reason, exc.__class__.__name__, **exc.context),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(exc.detail, "HTTP_ERROR", "HTTPException"),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error in {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_body("Internal server error", "INTERNAL_ERROR", "InternalError"),
    )
