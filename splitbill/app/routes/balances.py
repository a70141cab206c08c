"""
routes/balances.py — Balance route handlers.

Layer rules:
  - Parse the posted ledger, call ONE service, return envelope.
  - Nothing is stored: the caller posts the full expense + settlement
    history of a group and receives the derived balances.

Endpoints (base url_prefix=/api/v1/balances):
  POST /balances          → 200  balances + optimized debts + summary
  POST /balances/summary  → 200  summary statistics only
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from splitbill.app.errors import AppError, ErrorCode
from splitbill.app.money import format_amount
from splitbill.app.schemas.ledger_schema import LedgerSchema
from splitbill.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


def _load_ledger() -> dict:
    """
    Validates the posted ledger and enforces MAX_LEDGER_RECORDS.

    Raises:
        ValidationError            -- malformed ledger (400, via the app handler)
        AppError(LEDGER_TOO_LARGE) -- more records than the configured limit (413)
    """
    ledger = LedgerSchema().load(request.get_json(force=True) or {})

    limit = current_app.config["MAX_LEDGER_RECORDS"]
    record_count = len(ledger["expenses"]) + len(ledger["settlements"])
    if record_count > limit:
        raise AppError(
            ErrorCode.LEDGER_TOO_LARGE,
            f"Ledger has {record_count} records; at most {limit} are accepted per request.",
            413,
        )
    return ledger


@balances_bp.route("", methods=["POST"])
def get_balances():
    """
    POST /balances

    Returns balances (non-zero only), optimized_debts (ordered suggested
    payments), summary, and balance_sum. Amounts are strings.
    """
    ledger = _load_ledger()
    result = balance_service.get_balance_response(
        expenses=ledger["expenses"],
        settlements=ledger["settlements"],
        member_names=ledger["members"],
    )
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/summary", methods=["POST"])
def get_balance_summary():
    """POST /balances/summary — counts and unsettled total only."""
    ledger = _load_ledger()
    summary = balance_service.get_balance_summary(
        expenses=ledger["expenses"],
        settlements=ledger["settlements"],
    )
    summary["unsettled_amount"] = format_amount(summary["unsettled_amount"])
    return jsonify({"data": summary, "warnings": []}), 200
