"""
errors.py — AppError base class and error code registry.

Every error returned by the SplitBill engine must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - New error codes require: add constant here + add test
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Split validation failures are rejections of user input, never system faults.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class SplitError(AppError):
    """
    Raised by split_service.calculate_split when a split request is invalid.

    validate_split() reports the same conditions as a {"valid": False, ...}
    dict instead of raising. `details` carries the offending participant id,
    value, or sums so callers can build field-level messages.
    """

    def __init__(
            self,
            code: str,
            message: str,
            field: str | None = None,
            **details: Any,
    ) -> None:
        super().__init__(code, message, 422, field=field)
        self.details = details

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.details:
            payload["error"]["details"] = {
                key: str(value) for key, value in self.details.items()
            }
        return payload


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD                     = "MISSING_FIELD"
    INVALID_FIELD                     = "INVALID_FIELD"
    INVALID_AMOUNT_PRECISION          = "INVALID_AMOUNT_PRECISION"
    INVALID_SPLIT_METHOD              = "INVALID_SPLIT_METHOD"
    SELF_SETTLEMENT                   = "SELF_SETTLEMENT"

    # ── Split Rule Violations (422) ────────────────────────────────────────
    # Raised by split_service. Each maps to one precondition of calculate_split.
    INVALID_AMOUNT                    = "INVALID_AMOUNT"
    EMPTY_PARTICIPANTS                = "EMPTY_PARTICIPANTS"
    DUPLICATE_PARTICIPANT             = "DUPLICATE_PARTICIPANT"
    MISSING_SHARES                    = "MISSING_SHARES"
    MISSING_SHARE_FOR                 = "MISSING_SHARE_FOR"
    EXTRA_SHARE_FOR                   = "EXTRA_SHARE_FOR"
    INVALID_PERCENTAGE                = "INVALID_PERCENTAGE"
    PERCENTAGES_DO_NOT_SUM_100        = "PERCENTAGES_DO_NOT_SUM_100"
    INVALID_EXACT_AMOUNT              = "INVALID_EXACT_AMOUNT"
    EXACT_AMOUNTS_DO_NOT_SUM_TO_TOTAL = "EXACT_AMOUNTS_DO_NOT_SUM_TO_TOTAL"

    # ── Request Size (413) ─────────────────────────────────────────────────
    LEDGER_TOO_LARGE                  = "LEDGER_TOO_LARGE"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR                    = "INTERNAL_ERROR"
