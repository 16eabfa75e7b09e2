# core/errors.py

from typing import Any, List, Optional


class AnalyticsError(Exception):
    """Base error rendered as {"success": false, "message", "errors"?}."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(AnalyticsError):
    status_code = 400


class CredentialError(AnalyticsError):
    status_code = 401


class AuthorizationError(AnalyticsError):
    status_code = 403


class NotFoundError(AnalyticsError):
    status_code = 404


class ConflictError(AnalyticsError):
    status_code = 409


class RateLimitError(AnalyticsError):
    status_code = 429


def error_body(message: str, errors: Optional[List[Any]] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
