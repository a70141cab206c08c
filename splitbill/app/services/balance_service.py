"""
services/balance_service.py — Balance computation and debt optimization.

This file is the SINGLE SOURCE OF TRUTH for how balances are computed.
The canonical formula must not be reimplemented elsewhere in the codebase.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives plain ledger records (Expense, Settlement) as arguments.
  - Returns plain value objects and dicts.
  - Never raises validation errors: the ledger is trusted as already validated.

Balances are DERIVED, never stored. Every call recomputes from the full
expense + settlement history, so a balance can never drift from its ledger.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Hashable, Iterable, Mapping

from splitbill.app.models.ledger import Balance, Expense, OptimizedDebt, Settlement
from splitbill.app.money import CENT, ZERO, format_amount, round2, to_decimal

logger = logging.getLogger(__name__)


# ── Core algorithms ────────────────────────────────────────────────────────

def compute_balances(
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement] = (),
) -> list[Balance]:
    """
    Canonical balance computation for a group.

    Algorithm:
      1. Credit each payer for the full expense amount they fronted.
      2. Debit each share holder for their share (the payer's own share too).
      3. Net settlements: the paying side moves toward zero, the receiving
         side's credit is reduced by the same amount.
      4. Round to cents and drop everyone within one cent of zero.

    Returns:
        [Balance(user_id, balance)] in order of first appearance in the ledger.
        Positive = the group owes this user; negative = the user owes the group.
    """
    balances: dict[Hashable, Decimal] = defaultdict(Decimal)

    for expense in expenses:
        balances[expense.payer_id] += to_decimal(expense.amount)
        for user_id, share in expense.shares.items():
            balances[user_id] -= to_decimal(share)

    for settlement in settlements:
        amount = to_decimal(settlement.amount)
        balances[settlement.from_user_id] += amount
        balances[settlement.to_user_id] -= amount

    result = []
    for user_id, raw in balances.items():
        balance = round2(raw)
        if abs(balance) > CENT:
            result.append(Balance(user_id=user_id, balance=balance))
    return result


def optimize_debts(balances: Iterable[Balance]) -> list[OptimizedDebt]:
    """
    Greedy debt matching: largest creditor against largest debtor.

    Creditors (balance > 0.01) and debtors (balance < -0.01, taken as positive
    magnitudes) are each sorted descending. Two pointers walk both lists; each
    step emits one payment of min(remaining credit, remaining debt) and moves
    past whichever side dropped below one cent (both sides on an exact tie).

    This is a heuristic, not a proven minimum. It emits at most
    len(creditors) + len(debtors) - 1 payments and its output order is part
    of the contract; do not swap in another algorithm.

    If the creditor and debtor totals do not match (an inconsistent ledger),
    a warning is logged and the unmatched tail is left unpaid.
    """
    balances = list(balances)

    # sorted() is stable: ties keep their first-appearance order.
    creditors = sorted(
        [[b.user_id, b.balance] for b in balances if b.balance > CENT],
        key=lambda x: x[1],
        reverse=True,
    )
    debtors = sorted(
        [[b.user_id, -b.balance] for b in balances if b.balance < -CENT],
        key=lambda x: x[1],
        reverse=True,
    )

    credit_total = sum((c[1] for c in creditors), ZERO)
    debt_total = sum((d[1] for d in debtors), ZERO)
    if abs(credit_total - debt_total) > CENT:
        logger.warning(
            "Unbalanced ledger: creditors are owed %s but debtors owe %s; "
            "the difference will remain unmatched.",
            credit_total,
            debt_total,
        )

    debts: list[OptimizedDebt] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = round2(min(creditor[1], debtor[1]))
        debts.append(OptimizedDebt(
            from_user_id=debtor[0],
            to_user_id=creditor[0],
            amount=amount,
        ))

        creditor[1] -= amount
        debtor[1] -= amount

        if creditor[1] < CENT:
            i += 1
        if debtor[1] < CENT:
            j += 1

    return debts


# ── Public service functions ───────────────────────────────────────────────

def get_optimized_debts(
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement] = (),
) -> dict:
    """
    Returns {"balances": [Balance], "optimized_debts": [OptimizedDebt]}.
    """
    balances = compute_balances(expenses, settlements)
    return {
        "balances": balances,
        "optimized_debts": optimize_debts(balances),
    }


def _summarise(balances: list[Balance], debts: list[OptimizedDebt]) -> dict:
    unsettled = sum((abs(b.balance) for b in balances), ZERO)
    return {
        "total_debts": len(balances),
        "total_settled": len(debts),
        "unsettled_amount": round2(unsettled),
        "transactions_needed": len(debts),
    }


def get_balance_summary(
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement] = (),
) -> dict:
    """
    Summary statistics for a group.

    Returns:
        total_debts         -- number of non-zero balances
        total_settled       -- number of suggested payments
        unsettled_amount    -- sum of |balance| over non-zero balances (Decimal)
        transactions_needed -- number of suggested payments
    """
    result = get_optimized_debts(expenses, settlements)
    return _summarise(result["balances"], result["optimized_debts"])


def get_balance_response(
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement] = (),
        member_names: Mapping[Hashable, str] | None = None,
) -> dict:
    """
    Builds the full balance payload for POST /balances.

    Balances and optimized debts are enriched with display names from
    member_names; a user without a name is shown by their id. Amounts are
    strings. balance_sum is the sum of the reported balances ("0.00" for a
    consistent ledger, within the one-cent settled threshold).
    """
    member_names = member_names or {}
    result = get_optimized_debts(expenses, settlements)
    balances: list[Balance] = result["balances"]
    debts: list[OptimizedDebt] = result["optimized_debts"]

    def _name(user_id: Hashable) -> str:
        return member_names.get(user_id, str(user_id))

    balance_list = [
        {**b.to_dict(), "name": _name(b.user_id)}
        for b in balances
    ]
    debt_list = [
        {
            **d.to_dict(),
            "from_name": _name(d.from_user_id),
            "to_name": _name(d.to_user_id),
        }
        for d in debts
    ]

    summary = _summarise(balances, debts)
    summary["unsettled_amount"] = format_amount(summary["unsettled_amount"])

    balance_sum = sum((b.balance for b in balances), ZERO)

    return {
        "balances": balance_list,
        "optimized_debts": debt_list,
        "summary": summary,
        "balance_sum": format_amount(balance_sum),
    }
