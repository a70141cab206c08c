"""
models/ledger.py — Ledger records and balance value types.

Expense and Settlement are the records a caller fetches from its own storage
and hands to balance_service. Balance and OptimizedDebt are what
balance_service hands back. None of them is ever persisted by this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable, Mapping

from splitbill.app.money import format_amount


@dataclass(frozen=True)
class Expense:
    """An expense fronted by payer_id; shares is the stored split result."""

    payer_id: Hashable
    amount: Decimal
    shares: Mapping[Hashable, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class Settlement:
    """from_user_id paid to_user_id directly, outside of any expense."""

    from_user_id: Hashable
    to_user_id: Hashable
    amount: Decimal


@dataclass(frozen=True)
class Balance:
    user_id: Hashable
    balance: Decimal  # positive = owed money, negative = owes money

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "balance": format_amount(self.balance)}


@dataclass(frozen=True)
class OptimizedDebt:
    from_user_id: Hashable
    to_user_id: Hashable
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "amount": format_amount(self.amount),
        }
