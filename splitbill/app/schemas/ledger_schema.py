"""
schemas/ledger_schema.py — Marshmallow schemas for the balance endpoints.

A ledger is the full expense + settlement history of one group, fetched by
the caller from its own storage:

    {
      "expenses":    [{"payer_id": "A", "amount": "150.00",
                       "shares": {"A": "50.00", "B": "50.00", "C": "50.00"}}],
      "settlements": [{"from_user_id": "B", "to_user_id": "A", "amount": "50.00"}],
      "members":     {"A": "Alice", "B": "Bob", "C": "Carol"}
    }

Validation responsibility:
  - This file: field types, positive amounts, precision (INVALID_AMOUNT_PRECISION),
    SELF_SETTLEMENT (from_user_id == to_user_id).
  - balance_service.py trusts what this schema lets through and raises nothing.

IMPORTANT: Inherits from marshmallow.Schema directly, never flask_marshmallow.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    post_load,
    validate,
    validates_schema,
)

from splitbill.app.errors import ErrorCode
from splitbill.app.models.ledger import Expense, Settlement
from splitbill.app.money import MAX_AMOUNT


# ── Shared monetary amount validators ─────────────────────────────────────

def _validate_monetary_amount(value: Decimal) -> None:
    """
    Validates an expense or settlement amount:
      - Must be strictly greater than zero and at most MAX_AMOUNT.
      - Must have at most 2 decimal places.
    """
    if value <= Decimal("0"):
        raise ValidationError("Amount must be greater than zero.")
    if value > MAX_AMOUNT:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}.")
    _validate_share(value)


def _validate_share(value: Decimal) -> None:
    """
    Stored shares come out of the split calculator rounded to cents and no
    larger than MAX_AMOUNT. Their sign is not checked: the ledger is trusted
    as persisted.
    """
    if abs(value) > MAX_AMOUNT:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}.")
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


# ── Ledger records ─────────────────────────────────────────────────────────

class ExpenseRecordSchema(Schema):
    """One persisted expense: who paid, how much, and the stored split result."""

    payer_id = fields.Str(required=True, validate=validate.Length(min=1, max=100))

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    shares = fields.Dict(
        keys=fields.Str(validate=validate.Length(min=1, max=100)),
        values=fields.Decimal(validate=_validate_share),
        required=True,
    )

    @post_load
    def make_expense(self, data: dict, **kwargs) -> Expense:
        return Expense(**data)


class SettlementRecordSchema(Schema):
    """One direct payment from from_user_id to to_user_id."""

    from_user_id = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    to_user_id   = fields.Str(required=True, validate=validate.Length(min=1, max=100))

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    @validates_schema
    def validate_not_self(self, data: dict, **kwargs) -> None:
        """SELF_SETTLEMENT (400): a member cannot pay themself."""
        if data.get("from_user_id") is not None and data.get("from_user_id") == data.get("to_user_id"):
            raise ValidationError(
                {
                    "to_user_id": [ErrorCode.SELF_SETTLEMENT],
                }
            )

    @post_load
    def make_settlement(self, data: dict, **kwargs) -> Settlement:
        return Settlement(**data)


# ── Ledger ─────────────────────────────────────────────────────────────────

class LedgerSchema(Schema):
    """
    POST /balances and POST /balances/summary

    Both lists default to empty; an empty ledger yields no balances.
    `members` optionally maps user ids to display names.
    """

    expenses = fields.List(
        fields.Nested(ExpenseRecordSchema),
        load_default=list,
    )

    settlements = fields.List(
        fields.Nested(SettlementRecordSchema),
        load_default=list,
    )

    members = fields.Dict(
        keys=fields.Str(validate=validate.Length(min=1, max=100)),
        values=fields.Str(validate=validate.Length(max=255)),
        load_default=dict,
    )
