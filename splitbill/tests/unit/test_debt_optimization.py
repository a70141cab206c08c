"""
tests/unit/test_debt_optimization.py — Unit tests for balance_service.optimize_debts.

What this file proves:
  - Two-person debt → single transaction
  - One creditor, many debtors → one payment per debtor, largest debtor first
  - The emitted order and amounts are exactly those of the greedy
    descending-magnitude two-pointer match
  - At most (creditors + debtors - 1) transactions
  - Applying the transactions reproduces the original balances
  - Near-zero balances are ignored; empty input → empty list
  - An unbalanced input leaves the tail unmatched and logs a warning

Pre-condition for optimize_debts: balances sum to zero (within a cent).
Only the tests for the unbalanced case break it, on purpose.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

import pytest

from splitbill.app.models.ledger import Balance, OptimizedDebt
from splitbill.app.services.balance_service import optimize_debts

_LOGGER = "splitbill.app.services.balance_service"


# ── Helpers ────────────────────────────────────────────────────────────────

def _balances(**amounts: str) -> list[Balance]:
    return [Balance(uid, Decimal(amount)) for uid, amount in amounts.items()]


def _verify_correctness(balances: list[Balance], debts: list[OptimizedDebt]) -> None:
    """
    Applies the suggested payments and asserts the resulting net positions
    match the original balances: optimize_debts must not invent money,
    lose money, or misroute payments.
    """
    net = defaultdict(lambda: Decimal("0.00"))
    for debt in debts:
        net[debt.from_user_id] -= debt.amount
        net[debt.to_user_id]   += debt.amount

    for b in balances:
        assert net[b.user_id] == b.balance, (
            f"user {b.user_id}: expected net {b.balance}, got {net[b.user_id]}"
        )


def _as_tuples(debts: list[OptimizedDebt]) -> list[tuple]:
    return [(d.from_user_id, d.to_user_id, d.amount) for d in debts]


# ── Tests ──────────────────────────────────────────────────────────────────

def test_empty_returns_empty_list():
    assert optimize_debts([]) == []


def test_near_zero_balances_are_ignored():
    assert optimize_debts(_balances(A="0.01", B="-0.01")) == []


def test_two_person_debt_one_transaction():
    result = optimize_debts(_balances(A="50.00", B="-50.00"))

    assert result == [OptimizedDebt("B", "A", Decimal("50.00"))]


def test_one_creditor_two_debtors():
    """
    End-to-end shape: {A: 100, B: -50, C: -50} → B pays A 50, C pays A 50.
    Equal debtors keep their input order.
    """
    result = optimize_debts(_balances(A="100.00", B="-50.00", C="-50.00"))

    assert _as_tuples(result) == [
        ("B", "A", Decimal("50.00")),
        ("C", "A", Decimal("50.00")),
    ]


def test_largest_debtor_pays_first():
    result = optimize_debts(_balances(A="100.00", B="-40.00", C="-60.00"))

    assert _as_tuples(result) == [
        ("C", "A", Decimal("60.00")),
        ("B", "A", Decimal("40.00")),
    ]


def test_greedy_match_order_five_members():
    """
    Creditors: 1 (100), 2 (50). Debtors by magnitude: 4 (60), 5 (50), 3 (40).

      4 → 1  60   (1 has 40 left)
      5 → 1  40   (1 done, 5 has 10 left)
      5 → 2  10   (5 done, 2 has 40 left)
      3 → 2  40   (both done)
    """
    balances = [
        Balance(1, Decimal("100.00")),
        Balance(2, Decimal("50.00")),
        Balance(3, Decimal("-40.00")),
        Balance(4, Decimal("-60.00")),
        Balance(5, Decimal("-50.00")),
    ]

    result = optimize_debts(balances)

    assert _as_tuples(result) == [
        (4, 1, Decimal("60.00")),
        (5, 1, Decimal("40.00")),
        (5, 2, Decimal("10.00")),
        (3, 2, Decimal("40.00")),
    ]
    _verify_correctness(balances, result)


def test_exact_tie_advances_both_pointers():
    result = optimize_debts(_balances(A="30.00", B="20.00", C="-30.00", D="-20.00"))

    assert _as_tuples(result) == [
        ("C", "A", Decimal("30.00")),
        ("D", "B", Decimal("20.00")),
    ]


@pytest.mark.parametrize(
    "amounts",
    [
        {"A": "60.00", "B": "-30.00", "C": "-30.00"},
        {"A": "80.00", "B": "-50.00", "C": "-50.00", "D": "20.00"},
        {"A": "33.33", "B": "33.34", "C": "-66.67"},
        {"A": "0.02", "B": "-0.02"},
        {"A": "999999.99", "B": "-999999.99"},
        {"A": "10.00", "B": "20.00", "C": "30.00", "D": "-15.00", "E": "-25.00", "F": "-20.00"},
        {"A": "-12.34", "B": "-0.66", "C": "7.00", "D": "3.00", "E": "3.00"},
    ],
)
def test_transactions_settle_every_balance_within_bound(amounts):
    balances = _balances(**amounts)
    creditors = sum(1 for b in balances if b.balance > 0)
    debtors = sum(1 for b in balances if b.balance < 0)

    result = optimize_debts(balances)

    assert len(result) <= creditors + debtors - 1
    _verify_correctness(balances, result)


def test_transactions_are_positive_decimals_between_different_users():
    result = optimize_debts(_balances(A="50.00", B="-30.00", C="-20.00"))

    for debt in result:
        assert isinstance(debt.amount, Decimal)
        assert debt.amount > Decimal("0.00")
        assert debt.from_user_id != debt.to_user_id


def test_input_balances_are_not_mutated():
    balances = _balances(A="50.00", B="-50.00")

    optimize_debts(balances)

    assert balances == _balances(A="50.00", B="-50.00")


def test_to_dict_serialises_amount_as_string():
    debt = optimize_debts(_balances(A="5", B="-5"))[0]

    assert debt.to_dict() == {"from_user_id": "B", "to_user_id": "A", "amount": "5.00"}


# ── Unbalanced input ───────────────────────────────────────────────────────

def test_unbalanced_input_leaves_tail_unmatched(caplog):
    with caplog.at_level(logging.WARNING, logger=_LOGGER):
        result = optimize_debts(_balances(A="100.00", B="-50.00"))

    assert _as_tuples(result) == [("B", "A", Decimal("50.00"))]
    assert "Unbalanced ledger" in caplog.text


def test_all_positive_no_debtors(caplog):
    with caplog.at_level(logging.WARNING, logger=_LOGGER):
        result = optimize_debts(_balances(A="50.00", B="50.00"))

    assert result == []
    assert "Unbalanced ledger" in caplog.text


def test_balanced_input_logs_no_warning(caplog):
    with caplog.at_level(logging.WARNING, logger=_LOGGER):
        optimize_debts(_balances(A="50.00", B="-50.00"))

    assert caplog.records == []
