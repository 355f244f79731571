"""RFC 7807 Problem Details error response formatting and exception handlers"""

import logging
from typing import Optional, Dict, Any, List

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from crewcommand.exceptions import CrewCommandError

logger = logging.getLogger(__name__)

ERROR_TYPE_BASE = "https://api.crewcommand.app/errors"
VOICE_PREFIX = "/api/v1/voice"


class ValidationErrorDetail(BaseModel):
    """Validation error detail for a specific field"""
    field: str
    message: str


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs"""
    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference identifying the specific occurrence")
    errors: Optional[List[ValidationErrorDetail]] = Field(None, description="Validation errors")


def create_error_response(
    status_code: int,
    title: str,
    detail: str,
    error_type: Optional[str] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None,
    extensions: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Create an RFC 7807 compliant error response

    Args:
        status_code: HTTP status code
        title: Short error title
        detail: Detailed error message
        error_type: Error type slug (defaults to one derived from the status code)
        instance: Request path or identifier
        errors: List of validation errors with field and message
        extensions: Extra problem members, e.g. ambiguous candidates

    Returns:
        JSONResponse with problem details
    """
    error_type_map = {
        400: "validation_error",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        429: "rate_limit_exceeded",
        500: "internal_server_error",
        502: "bad_gateway",
        503: "service_unavailable"
    }

    if not error_type:
        error_type = error_type_map.get(status_code, "error")

    problem = {
        "type": f"{ERROR_TYPE_BASE}/{error_type}",
        "title": title,
        "status": status_code,
        "detail": detail
    }

    if instance:
        problem["instance"] = instance

    if errors:
        problem["errors"] = errors

    for key, value in (extensions or {}).items():
        problem.setdefault(key, value)

    return JSONResponse(
        status_code=status_code,
        content=problem,
        headers=headers,
    )


def voice_error_response(request: Request, status_code: int, error: str, details: Any = None) -> JSONResponse:
    """
    Envelope used by the voice endpoints.

    Execute answers {success: false, error, details}; the other voice
    endpoints answer {error, details}.
    """
    content: Dict[str, Any] = {"error": error, "details": details}
    if request.url.path.endswith("/execute"):
        content = {"success": False, **content}
    return JSONResponse(status_code=status_code, content=content)


def _is_voice(request: Request) -> bool:
    return request.url.path.startswith(VOICE_PREFIX)


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return errors


async def crewcommand_error_handler(request: Request, exc: CrewCommandError) -> JSONResponse:
    """Render a domain error for the route family that raised it"""
    if _is_voice(request):
        details = {"type": exc.error_type, **exc.details} if exc.details else {"type": exc.error_type}
        return voice_error_response(request, exc.status_code, exc.detail, details)

    details = dict(exc.details)
    errors = details.pop("errors", None)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return create_error_response(
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
        error_type=exc.error_type,
        instance=request.url.path,
        errors=errors,
        extensions=details,
        headers=headers,
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are 400, not FastAPI's default 422"""
    errors = _field_errors(exc)

    if _is_voice(request):
        message = errors[0]["message"] if errors else "Invalid request"
        return voice_error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            f"Invalid request: {message}",
            {"type": "validation_error", "errors": errors},
        )

    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        title="Validation Error",
        detail="Request validation failed",
        instance=request.url.path,
        errors=errors,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, return a generic 500"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    if _is_voice(request):
        return voice_error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to process voice command",
            {"type": "internal_server_error"},
        )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="An internal server error occurred",
        instance=request.url.path,
    )
