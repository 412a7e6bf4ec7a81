"""Hosted backend access: retrying HTTP transport and the boards API client."""

from feedback_portal.backend.client import (
    FeedbackBackendClient,
    FeedbackPage,
    translate_error,
)
from feedback_portal.backend.http_client import (
    HTTPClient,
    HTTPClientError,
    RateLimitError,
    RetryConfig,
)

__all__ = [
    "FeedbackBackendClient",
    "FeedbackPage",
    "HTTPClient",
    "HTTPClientError",
    "RateLimitError",
    "RetryConfig",
    "translate_error",
]
