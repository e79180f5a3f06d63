from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import traceback
from .logger import logger


class ExplainerBaseException(Exception):
    """Base exception for the problem explainer service"""
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ExplainerBaseException):
    """Raised when user input has the wrong shape, size or type"""
    def __init__(self, message: str = "Validation failed"):
        super().__init__(message, "VALIDATION_ERROR", 400)


class AuthRequiredError(ExplainerBaseException):
    """Raised when the request carries no authenticated session"""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "AUTH_REQUIRED", 401)


class PermissionDeniedError(ExplainerBaseException):
    """Raised when an authenticated user acts on a record they do not own"""
    def __init__(self, message: str = "You can only rate your own problems"):
        super().__init__(message, "PERMISSION_DENIED", 403)


class NotFoundError(ExplainerBaseException):
    """Raised when a record id does not resolve"""
    def __init__(self, message: str = "Problem not found"):
        super().__init__(message, "NOT_FOUND", 404)


class CSRFInvalidError(ExplainerBaseException):
    """Raised when the CSRF token is missing or does not match the session secret"""
    def __init__(self, message: str = "Invalid CSRF token"):
        super().__init__(message, "CSRF_INVALID", 403)


class UpstreamFailure(ExplainerBaseException):
    """Raised when the AI backend or the database fails"""
    def __init__(self, message: str = "Upstream service failed", code: str = "UPSTREAM_FAILURE"):
        super().__init__(message, code, 502)


class AnalysisFailedError(UpstreamFailure):
    """Raised when the explanation for an uploaded problem could not be generated"""
    def __init__(self, message: str = "Failed to analyze the problem. Please try again."):
        super().__init__(message, "ANALYSIS_FAILED")


def error_payload(exc: ExplainerBaseException) -> dict:
    return {
        "error": exc.code,
        "message": exc.message,
        "status_code": exc.status_code,
    }


async def explainer_exception_handler(request: Request, exc: ExplainerBaseException):
    """Handle custom application exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exc.code} - {exc.message}",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies, params and form fields"""
    logger.warning(
        "Request validation failed",
        extra={
            "request_path": request.url.path,
            "errors": jsonable_encoder(exc.errors()),
        }
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Validation failed",
            "status_code": 400,
            "details": jsonable_encoder(exc.errors()),
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={
            "http_status_code": exc.status_code,
            "http_detail": exc.detail,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP_ERROR",
            "message": exc.detail,
            "status_code": exc.status_code,
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
            "request_path": request.url.path,
            "exc_traceback": traceback.format_exc(),
        }
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An internal error occurred. Please try again later.",
        }
    )
