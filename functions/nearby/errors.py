"""
Error taxonomy shared by the API handlers and the backend clients.

Every error carries the HTTP status it maps to; the app renders them all as
``{"error": "<message>"}``.
"""

from __future__ import annotations


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    """Bad or duplicate input, usually as reported by the identity provider."""

    status_code = 400


class Unauthorized(ApiError):
    """Missing, malformed or unresolvable bearer token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InternalError(ApiError):
    """Anything else: storage failures, provider outages."""

    status_code = 500
