"""
errors.py: failure taxonomy shared by the sources, the scorer client and the routes.
Degradations (comment provider, model meta) never raise; they are logged where they happen.
"""
from typing import Optional

GATEWAY_FAILURE_CODES = (502, 503, 504)


class ReviewServiceError(Exception):
    pass


class ConfigError(ReviewServiceError):
    """A required credential is not configured."""


class UpstreamError(ReviewServiceError):
    """An external provider call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_gateway_failure(self) -> bool:
        return self.status_code in GATEWAY_FAILURE_CODES


class ScoringUnavailable(UpstreamError):
    """
    The sentiment scorer could not produce a usable answer: timeout, refused
    connection, non-2xx, unknown response shape, or a result count that does
    not match the submitted texts.
    """
