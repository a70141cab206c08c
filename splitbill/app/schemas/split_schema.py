"""
schemas/split_schema.py — Marshmallow schema for the split endpoints.

Validation responsibility:
  - This file:
      - Field types (decimal amount, list of participant ids, share map)
      - split_method enum value (INVALID_SPLIT_METHOD, 400)
      - total_amount and exact share precision: at most 2 decimal places
        (INVALID_AMOUNT_PRECISION, 400)
  - services/split_service.py:
      - Every split rule (INVALID_AMOUNT, DUPLICATE_PARTICIPANT, MISSING_SHARE_FOR,
        PERCENTAGES_DO_NOT_SUM_100, ...) — 422, or {"valid": false} from /validate.

The schema deliberately lets a zero/negative amount, an empty participant list
or a bad share map through: those are split rules, and /validate must report
them as {"valid": false} rather than as a 400.

IMPORTANT: Inherits from marshmallow.Schema directly so it loads without a
           Flask application context.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    post_load,
    pre_load,
    validate,
    validates_schema,
)

from splitbill.app.errors import ErrorCode
from splitbill.app.models.split import SplitMethod, SplitRequest


def _validate_precision(value: Decimal) -> None:
    """
    Rejects amounts with more than 2 decimal places — never rounds them.

    Decimal.as_tuple().exponent gives the scale as a negative integer:
      Decimal("10.123").as_tuple().exponent == -3  → 3 dp → REJECT
      Decimal("10.12").as_tuple().exponent  == -2  → 2 dp → accept
    """
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


class SplitRequestSchema(Schema):
    """
    POST /splits/validate and POST /splits/calculate

    Example payload:
        {
          "total_amount": "100.00",
          "participant_ids": ["alice", "bob", "charlie"],
          "split_method": "percentage",
          "shares": {"alice": 50, "bob": 30, "charlie": 20}
        }

    `shares` keeps the key order of the JSON object; the last key absorbs
    the rounding remainder for percentage splits.
    """

    total_amount = fields.Decimal(
        required=True,
        validate=_validate_precision,
    )

    participant_ids = fields.List(
        fields.Str(validate=validate.Length(min=1, max=100)),
        required=True,
    )

    split_method = fields.Enum(
        SplitMethod,
        load_default=SplitMethod.EQUAL,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_SPLIT_METHOD},
    )

    shares = fields.Dict(
        keys=fields.Str(validate=validate.Length(min=1, max=100)),
        values=fields.Decimal(),
        load_default=None,
        allow_none=True,
    )

    @pre_load
    def normalise_split_method(self, data, **kwargs):
        """Accepts 'EQUAL' / 'Percentage' as well as the canonical lowercase values."""
        if isinstance(data, dict) and isinstance(data.get("split_method"), str):
            data = {**data, "split_method": data["split_method"].strip().lower()}
        return data

    @validates_schema
    def validate_exact_share_precision(self, data: dict, **kwargs) -> None:
        """
        Exact shares are currency amounts and obey the same 2-dp rule as
        total_amount. Percentages may carry more decimals.
        """
        if data.get("split_method") != SplitMethod.EXACT or not data.get("shares"):
            return
        for pid, value in data["shares"].items():
            if value.as_tuple().exponent < -2:
                raise ValidationError(
                    {"shares": {pid: [ErrorCode.INVALID_AMOUNT_PRECISION]}}
                )

    @post_load
    def make_request(self, data: dict, **kwargs) -> SplitRequest:
        return SplitRequest(**data)
