import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("formbuilder.errors")


class ApiError(Exception):
    """
    Expected failure carrying the HTTP status to report.

    Raised anywhere in the request pipeline and translated to the error
    envelope by the handlers registered in ``register_exception_handlers``.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        is_operational: bool = True,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.is_operational = is_operational
        self.errors = errors or []


class ValidationFailedError(ApiError):
    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, errors=errors)


class UnauthenticatedError(ApiError):
    def __init__(self, message: str = "Authentication required. Please log in."):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message)


class ForbiddenError(ApiError):
    def __init__(self, message: str = "You do not have permission to access this resource"):
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class NotFoundError(ApiError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, message)


def error_body(status_code: int, message: str, errors: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "status": "error",
        "statusCode": status_code,
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return body


def format_validation_errors(errors) -> List[Dict[str, str]]:
    """Turn pydantic error dicts into ``{path, message}`` pairs relative to the request segment"""
    formatted = []
    for err in errors:
        loc = list(err.get("loc", ()))
        # Drop the segment name ("body", "query", "path")
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        path = ".".join(str(part) for part in loc)
        formatted.append({"path": path, "message": err.get("msg", "Invalid value")})
    return formatted


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    log_message = f"[ERROR] {exc.status_code} - {exc.message} ({request.method} {request.url.path})"
    if exc.is_operational:
        logger.warning(log_message)
    else:
        # Programming or infrastructure fault raised as an ApiError
        logger.error(log_message, exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.errors),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    summary = ", ".join(f"{e['path']}: {e['message']}" if e["path"] else e["message"] for e in errors)
    message = f"Validation failed: {summary}"
    logger.warning(f"[ERROR] 400 - {message} ({request.method} {request.url.path})")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, message, errors),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled Exception: {str(exc)}", exc_info=True)
    settings = request.app.state.settings
    body = error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
    if settings.is_development:
        body["message"] = str(exc) or body["message"]
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
