"""
Domain error taxonomy.

Services raise these; the API layer turns them into RFC 7807 problem
documents (REST routes) or the voice envelopes (voice routes). Every error
carries the HTTP status it maps to, so routes never re-derive it.

Usage:
    from crewcommand.exceptions import NotFound, AmbiguousReference

    raise NotFound("Worker", detail='Worker "Jose" not found')
    raise AmbiguousReference("worker", "Jose", ["Jose Martinez", "Jose Silva"])
"""

from typing import Any, Dict, List, Optional


class CrewCommandError(Exception):
    """Base class for every error surfaced to an end user"""

    status_code = 500
    title = "Internal Server Error"
    error_type = "internal_server_error"

    def __init__(self, detail: str, details: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.details = details or {}
        super().__init__(detail)


class ValidationError(CrewCommandError):
    """Malformed input or missing required fields; the caller can correct it"""

    status_code = 400
    title = "Validation Error"
    error_type = "validation_error"


class Unauthenticated(CrewCommandError):
    """Caller identity is missing or cannot be resolved"""

    status_code = 401
    title = "Unauthorized"
    error_type = "unauthorized"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class Forbidden(CrewCommandError):
    """
    Authorization denial.

    The detail text is the same for an organization mismatch and for an
    insufficient role. The internal reason is kept for logging only.
    """

    status_code = 403
    title = "Forbidden"
    error_type = "forbidden"
    GENERIC_DETAIL = "You do not have permission to perform this action"

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(self.GENERIC_DETAIL)


class NotFound(CrewCommandError):
    """
    Resource or reference resolution failure.

    Used for both missing rows and rows owned by another organization:
    lookups are tenant-scoped, so the two are indistinguishable.
    """

    status_code = 404
    title = "Not Found"
    error_type = "not_found"

    def __init__(self, resource: str, detail: Optional[str] = None):
        self.resource = resource
        super().__init__(detail or f"{resource} not found")


class AmbiguousReference(CrewCommandError):
    """A spoken name matched more than one record equally well"""

    status_code = 404
    title = "Ambiguous Reference"
    error_type = "ambiguous_reference"

    def __init__(self, kind: str, query: str, candidates: List[str]):
        self.kind = kind
        self.query = query
        self.candidates = candidates
        super().__init__(
            f'Multiple {kind}s match "{query}": {", ".join(candidates)}. '
            "Please be more specific.",
            details={"candidates": candidates},
        )


class ParseError(CrewCommandError):
    """The language model returned output that does not satisfy the Intent contract"""

    status_code = 502
    title = "Parse Error"
    error_type = "parse_error"


class ExternalServiceError(CrewCommandError):
    """Speech or language capability unavailable, errored, or timed out"""

    status_code = 503
    title = "Service Unavailable"
    error_type = "service_unavailable"

    def __init__(self, service: str, detail: str, retryable: bool = True):
        self.service = service
        self.retryable = retryable
        if retryable:
            detail = f"{detail}. Please try again."
        super().__init__(detail, details={"service": service, "retryable": retryable})


class PartialExecutionError(CrewCommandError):
    """A multi-date operation applied to some dates and failed on others"""

    status_code = 500
    title = "Partially Applied"
    error_type = "partial_execution"

    def __init__(self, detail: str, succeeded: List[str], failed: List[Dict[str, str]]):
        self.succeeded = succeeded
        self.failed = failed
        super().__init__(detail, details={"succeeded": succeeded, "failed": failed})


class InvalidStateTransition(CrewCommandError):
    """A voice session operation was requested from a state that does not allow it"""

    status_code = 409
    title = "Conflict"
    error_type = "conflict"


class RateLimited(CrewCommandError):
    """Too many failed attempts from one client"""

    status_code = 429
    title = "Too Many Requests"
    error_type = "rate_limit_exceeded"
