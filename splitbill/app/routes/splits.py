"""
routes/splits.py — Split calculator route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic. No arithmetic.

Endpoints (base url_prefix=/api/v1/splits):
  POST /splits/validate   → 200  {"valid": bool, "error"?, "code"?}
  POST /splits/calculate  → 200  per-participant shares
                            422  SplitError (same rules /validate reports)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitbill.app.models.split import SplitRequest
from splitbill.app.money import format_amount
from splitbill.app.schemas.split_schema import SplitRequestSchema
from splitbill.app.services import split_service

splits_bp = Blueprint("splits", __name__)


def _load_request() -> SplitRequest:
    return SplitRequestSchema().load(request.get_json(force=True) or {})


@splits_bp.route("/validate", methods=["POST"])
def validate_split():
    """
    POST /splits/validate — Form-level check without computing shares.

    A request that fails a split rule still returns 200 with valid=false;
    only a malformed payload (wrong types, bad split_method) is a 400.
    """
    split_request = _load_request()
    result = split_service.validate_split(split_request)
    return jsonify({"data": result, "warnings": []}), 200


@splits_bp.route("/calculate", methods=["POST"])
def calculate_split():
    """POST /splits/calculate — Compute each participant's share."""
    split_request = _load_request()
    shares = split_service.calculate_split(split_request)
    return jsonify({
        "data": {
            "split_method": split_request.split_method.value,
            "total_amount": format_amount(split_request.total_amount),
            "splits": {pid: format_amount(amount) for pid, amount in shares.items()},
        },
        "warnings": [],
    }), 200
