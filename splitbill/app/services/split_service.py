"""
services/split_service.py — Split Calculator.

Converts (total_amount, participant_ids, split_method, shares) into a
SplitResult: {participant_id: amount owed}, whose values sum to total_amount.

Public functions:
  validate_split(request)  -> {"valid": bool, "error"?: str, "code"?: str}
                              Never raises. Used for form-level validation.
  calculate_split(request) -> SplitResult
                              Raises SplitError on the same conditions.

Remainder absorption:
  Rounding error is always concentrated on the LAST participant (EQUAL: last
  in participant_ids; PERCENTAGE: last in shares insertion order). This is a
  deliberate, deterministic choice — callers must pass ordered inputs.

Layer rules:
  - No Flask imports. No HTTP knowledge. No I/O.
  - Decimal arithmetic only. Every computed share is rounded to cents
    immediately after the step that could introduce error.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Hashable, Mapping, Sequence

from splitbill.app.errors import ErrorCode, SplitError
from splitbill.app.models.split import SplitMethod, SplitRequest, SplitResult
from splitbill.app.money import CENT, HUNDRED, MAX_AMOUNT, ZERO, round2, to_decimal


# ── Private helpers ────────────────────────────────────────────────────────

def _parse_number(value) -> Decimal | None:
    """Returns value as a finite Decimal, or None if it is not a number."""
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _first_duplicate(participant_ids: Sequence[Hashable]) -> Hashable | None:
    seen = set()
    for pid in participant_ids:
        if pid in seen:
            return pid
        seen.add(pid)
    return None


def _check_total_amount(total_amount) -> Decimal:
    """
    Raises INVALID_AMOUNT unless total_amount is a number strictly above zero
    and no larger than MAX_AMOUNT. Returns the amount as Decimal.
    """
    amount = _parse_number(total_amount)
    if amount is None or amount <= ZERO:
        raise SplitError(
            ErrorCode.INVALID_AMOUNT,
            "Amount must be greater than 0",
            field="total_amount",
            value=total_amount,
        )
    if amount > MAX_AMOUNT:
        raise SplitError(
            ErrorCode.INVALID_AMOUNT,
            f"Amount must not exceed {MAX_AMOUNT}",
            field="total_amount",
            value=total_amount,
        )
    return amount


def _check_participants(participant_ids: Sequence[Hashable]) -> None:
    if len(participant_ids) == 0:
        raise SplitError(
            ErrorCode.EMPTY_PARTICIPANTS,
            "At least one participant required",
            field="participant_ids",
        )

    duplicate = _first_duplicate(participant_ids)
    if duplicate is not None:
        raise SplitError(
            ErrorCode.DUPLICATE_PARTICIPANT,
            f"Duplicate participants: {duplicate}",
            field="participant_ids",
            participant_id=duplicate,
        )


def _check_share_keys(
        participant_ids: Sequence[Hashable],
        shares: Mapping[Hashable, object] | None,
        split_method: SplitMethod,
) -> None:
    """Shares must exist and their key set must equal participant_ids exactly."""
    if shares is None:
        raise SplitError(
            ErrorCode.MISSING_SHARES,
            f"Splits required for {split_method.value.upper()} method",
            field="shares",
        )

    for pid in participant_ids:
        if pid not in shares:
            raise SplitError(
                ErrorCode.MISSING_SHARE_FOR,
                f"Missing split for participant: {pid}",
                field="shares",
                participant_id=pid,
            )

    participant_set = set(participant_ids)
    for pid in shares:
        if pid not in participant_set:
            raise SplitError(
                ErrorCode.EXTRA_SHARE_FOR,
                f"Extra participant in splits: {pid}",
                field="shares",
                participant_id=pid,
            )


def _check_percentages(shares: Mapping[Hashable, object]) -> dict[Hashable, Decimal]:
    percentages: dict[Hashable, Decimal] = {}
    for pid, raw in shares.items():
        value = _parse_number(raw)
        if value is None or value < ZERO or value > HUNDRED:
            raise SplitError(
                ErrorCode.INVALID_PERCENTAGE,
                f"Invalid percentage for participant {pid}: {raw}",
                field="shares",
                participant_id=pid,
                value=raw,
            )
        percentages[pid] = value

    total = sum(percentages.values(), ZERO)
    if abs(total - HUNDRED) > CENT:
        raise SplitError(
            ErrorCode.PERCENTAGES_DO_NOT_SUM_100,
            f"Percentages must sum to 100, got {total}",
            field="shares",
            actual=total,
        )
    return percentages


def _check_exact_amounts(
        shares: Mapping[Hashable, object],
        total_amount: Decimal,
) -> dict[Hashable, Decimal]:
    amounts: dict[Hashable, Decimal] = {}
    for pid, raw in shares.items():
        value = _parse_number(raw)
        if value is None or value < ZERO or value > MAX_AMOUNT:
            raise SplitError(
                ErrorCode.INVALID_EXACT_AMOUNT,
                f"Invalid amount for participant {pid}: {raw}",
                field="shares",
                participant_id=pid,
                value=raw,
            )
        amounts[pid] = value

    total = sum(amounts.values(), ZERO)
    if abs(total - total_amount) > CENT:
        raise SplitError(
            ErrorCode.EXACT_AMOUNTS_DO_NOT_SUM_TO_TOTAL,
            f"Amounts must sum to {total_amount}, got {total}",
            field="shares",
            actual=total,
            expected=total_amount,
        )
    return amounts


def _check_request(request: SplitRequest) -> tuple[Decimal, dict[Hashable, Decimal] | None]:
    """
    Runs every precondition in order and raises SplitError on the first failure.

    Returns the parsed total amount and, for PERCENTAGE/EXACT, the parsed
    shares (same insertion order as request.shares).
    """
    total_amount = _check_total_amount(request.total_amount)
    _check_participants(request.participant_ids)

    if request.split_method == SplitMethod.EQUAL:
        return total_amount, None

    _check_share_keys(request.participant_ids, request.shares, request.split_method)

    if request.split_method == SplitMethod.PERCENTAGE:
        return total_amount, _check_percentages(request.shares)

    return total_amount, _check_exact_amounts(request.shares, total_amount)


# ── Split strategies ───────────────────────────────────────────────────────

def _equal_split(total_amount: Decimal, participant_ids: Sequence[Hashable]) -> SplitResult:
    """
    Every participant gets round2(total / n) except the last, who gets
    the exact remainder total - base * (n - 1).

    Example: 100.00 / [a, b, c] -> {a: 33.33, b: 33.33, c: 33.34}
    """
    n = len(participant_ids)
    base = round2(total_amount / Decimal(n))

    result: SplitResult = {pid: base for pid in participant_ids[:-1]}
    result[participant_ids[-1]] = total_amount - base * (n - 1)
    return result


def _percentage_split(total_amount: Decimal, percentages: dict[Hashable, Decimal]) -> SplitResult:
    """
    Every entry but the last (in shares order) gets round2(total * pct / 100);
    the last absorbs total - allocated.
    """
    result: SplitResult = {}
    allocated = ZERO
    last_index = len(percentages) - 1

    for index, (pid, percentage) in enumerate(percentages.items()):
        if index == last_index:
            result[pid] = total_amount - allocated
        else:
            share = round2(total_amount * percentage / HUNDRED)
            result[pid] = share
            allocated += share

    return result


def _exact_split(amounts: dict[Hashable, Decimal]) -> SplitResult:
    # The sum was already checked against the total; no redistribution.
    return {pid: round2(amount) for pid, amount in amounts.items()}


# ── Public service functions ───────────────────────────────────────────────

def validate_split(request: SplitRequest) -> dict:
    """
    Checks a split request without computing it.

    Returns:
        {"valid": True} or
        {"valid": False, "error": "<human-readable message>", "code": "<ErrorCode>"}
    """
    try:
        _check_request(request)
    except SplitError as error:
        return {"valid": False, "error": error.message, "code": error.code}
    return {"valid": True}


def calculate_split(request: SplitRequest) -> SplitResult:
    """
    Computes each participant's share of an expense.

    Raises:
        SplitError -- any precondition reported by validate_split() fails.

    Returns:
        {participant_id: Decimal} whose values sum to request.total_amount.
    """
    total_amount, parsed_shares = _check_request(request)

    if request.split_method == SplitMethod.EQUAL:
        return _equal_split(total_amount, request.participant_ids)

    if request.split_method == SplitMethod.PERCENTAGE:
        return _percentage_split(total_amount, parsed_shares)

    return _exact_split(parsed_shares)
