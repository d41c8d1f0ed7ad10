"""Domain-layer exceptions.

These replace HTTPException in domain and service code, keeping those layers
free of HTTP awareness. Global exception handlers in app/api/errors.py map
these to the appropriate HTTP status codes.
"""

from typing import Optional


class EntityNotFoundError(Exception):
    """Owner-scoped entity lookup miss. Maps to HTTP 404."""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        msg = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(msg)


class DomainValidationError(Exception):
    """Malformed or missing required input. Maps to HTTP 400, never retried."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ConfigurationError(Exception):
    """A required collaborator is not configured (e.g. provider credential). Maps to HTTP 500."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class RateLimitedError(Exception):
    """Admission controller rejected the request. Maps to HTTP 429."""

    def __init__(self, operation_class: str, retry_after: int, message: Optional[str] = None):
        self.operation_class = operation_class
        self.retry_after = retry_after
        self.message = message or "Too many requests, please try again later."
        super().__init__(self.message)


class ProviderError(Exception):
    """Base for failures of calls to the generative provider."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        prefix = f"Provider error {status_code}" if status_code else "Provider error"
        super().__init__(f"{prefix}: {message}")


class TerminalError(ProviderError):
    """Provider rejected the request for a client-side reason; retrying cannot help. Maps to HTTP 502."""


class ExhaustedRetriesError(ProviderError):
    """Provider stayed unavailable through every allowed attempt. Maps to HTTP 503."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: Optional[str] = None, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, status_code=status_code, endpoint=endpoint)
