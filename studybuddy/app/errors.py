"""
errors.py — AppError base class and error code registry.

Every error returned by the StudyBuddy API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Never conflate 401 (unauthenticated) with 403 (unauthorized).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
            retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error
        self.retryable   = retryable

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.retryable:
            payload["retryable"] = True
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (400) ─────────────────────────────────────────────────
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    UNAUTHENTICATED  = "UNAUTHENTICATED"   # 401: no credential / bad login
    INVALID_SESSION  = "INVALID_SESSION"   # 401: credential not resolvable
    NOT_AUTHORIZED   = "NOT_AUTHORIZED"    # 403: also covers missing listings on update/delete
    MUST_JOIN_FIRST  = "MUST_JOIN_FIRST"   # 403: members list of a listing you have not joined

    # ── Not Found (404) ────────────────────────────────────────────────────
    NOT_FOUND        = "NOT_FOUND"

    # ── Conflict (409) ─────────────────────────────────────────────────────
    ALREADY_JOINED   = "ALREADY_JOINED"

    # ── System Errors ──────────────────────────────────────────────────────
    UNAVAILABLE      = "UNAVAILABLE"       # 503: retryable
    INTERNAL_ERROR   = "INTERNAL_ERROR"    # 500


def unavailable(message: str = "A backing service is unavailable. Please retry.") -> AppError:
    """The one retryable error: store timeouts and outages."""
    return AppError(ErrorCode.UNAVAILABLE, message, 503, retryable=True)
