"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List

logger = logging.getLogger("dsr")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Permissions insuffisantes", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        if message is None:
            message = f"{resource} non trouvé"
            if resource_id:
                message = f"{resource} avec l'ID {resource_id} non trouvé"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": str(resource_id) if resource_id else None}
        )


class ConflictError(AppException):
    """Raised when a write would violate a uniqueness or reference rule."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Identifiants invalides"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InvalidTokenError(AppException):
    """Raised when a password reset token is unknown or expired."""

    def __init__(self, message: str = "Lien invalide ou expiré"):
        super().__init__(
            message=message,
            error_code="ERR_TOKEN_001",
            status_code=status.HTTP_400_BAD_REQUEST
        )


# Validation message localization

_FIELD_MESSAGES = {
    "missing": "Ce champ est requis",
    "string_too_short": "Doit contenir au moins {min_length} caractères",
    "string_too_long": "Ne peut pas dépasser {max_length} caractères",
    "string_pattern_mismatch": "Format invalide",
    "string_type": "Doit être une chaîne de caractères",
    "literal_error": "Valeur invalide, valeurs acceptées : {expected}",
    "enum": "Valeur invalide, valeurs acceptées : {expected}",
    "greater_than_equal": "Doit être supérieur ou égal à {ge}",
    "less_than_equal": "Doit être inférieur ou égal à {le}",
    "int_parsing": "Doit être un nombre entier",
    "int_type": "Doit être un nombre entier",
    "bool_parsing": "Doit être un booléen",
    "uuid_parsing": "Identifiant invalide",
    "date_parsing": "Date invalide",
    "date_from_datetime_parsing": "Date invalide",
    "datetime_parsing": "Date invalide",
    "datetime_from_date_parsing": "Date invalide",
    "json_invalid": "Corps de requête JSON invalide",
}


def _localize(error: Dict[str, Any]) -> str:
    """Translate one pydantic error into a French user-facing message."""
    error_type = error.get("type", "")
    if error_type == "value_error":
        # Custom validators already raise French messages
        message = str(error.get("msg", ""))
        return message.removeprefix("Value error, ")
    template = _FIELD_MESSAGES.get(error_type)
    if template is None:
        return str(error.get("msg", "Valeur invalide"))
    try:
        return template.format(**(error.get("ctx") or {}))
    except KeyError:
        return template


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into one entry per field."""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append({
            "field": ".".join(loc) or None,
            "type": error.get("type"),
            "message": _localize(error),
        })
    return formatted


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Données invalides",
            "details": {
                "errors": format_validation_errors(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "exception_type": type(exc).__name__},
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "Une erreur interne est survenue",
            "details": {}
        }
    )
