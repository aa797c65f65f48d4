"""
Unit tests for the AppError envelope.
"""

from __future__ import annotations

from studybuddy.app.errors import AppError, ErrorCode, unavailable


def test_unavailable_is_retryable_503():
    err = unavailable()

    assert err.http_status == 503
    assert err.to_dict() == {
        "error": {
            "code": ErrorCode.UNAVAILABLE,
            "message": err.message,
            "retryable": True,
        }
    }


def test_non_retryable_error_omits_retryable_key():
    err = AppError(ErrorCode.NOT_FOUND, "gone", 404)
    assert "retryable" not in err.to_dict()["error"]


def test_field_is_included_when_set():
    err = AppError(ErrorCode.INVALID_ARGUMENT, "bad", 400, field="group_size")
    assert err.to_dict()["error"]["field"] == "group_size"
