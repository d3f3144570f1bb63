from __future__ import annotations

from typing import Optional


class HubSpotError(RuntimeError):
    """Base class for everything the HubSpot connector raises on purpose."""


class ConfigurationError(HubSpotError, ValueError):
    """Invalid or incomplete connector configuration."""


class HttpStatusError(HubSpotError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, body_excerpt: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body_excerpt = body_excerpt


class ClientError(HttpStatusError):
    """Non-retryable 4xx response."""


class AuthorizationError(ClientError):
    """HTTP 403: credentials lack access to the endpoint. Never retried."""


class RetryableServerError(HttpStatusError):
    """5xx response or transport failure. Retried per policy."""


class RequestFailedError(HubSpotError):
    def __init__(self, message: str, *, attempts: int, last_status: Optional[int] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status


class MalformedResponseError(HubSpotError):
    """Response envelope does not match the endpoint profile."""
