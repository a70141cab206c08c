"""
models/split.py — Split request value types.

No business logic. No imports from services or routes.

Key design points:
  - SplitMethod is a str enum so it can be compared with and serialised as
    its plain value ('equal', 'percentage', 'exact').
  - SplitRequest keeps participant_ids as a tuple and shares as an
    insertion-ordered dict. The LAST element of each absorbs the rounding
    remainder, so their order is part of the contract.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable, Mapping, Sequence


class SplitMethod(str, enum.Enum):
    EQUAL      = "equal"
    PERCENTAGE = "percentage"
    EXACT      = "exact"


# Participant ids are opaque; anything hashable works (str, int, UUID).
ParticipantId = Hashable

# {participant_id: amount owed}, in participant/share order.
SplitResult = dict


@dataclass(frozen=True)
class SplitRequest:
    total_amount: Decimal | int | float | str
    participant_ids: Sequence[ParticipantId]
    split_method: SplitMethod = SplitMethod.EQUAL
    shares: Mapping[ParticipantId, Decimal | int | float | str] | None = field(default=None)

    def __post_init__(self) -> None:
        # Accept lists and plain strings from callers; store immutable/ordered copies.
        object.__setattr__(self, "participant_ids", tuple(self.participant_ids))
        object.__setattr__(self, "split_method", SplitMethod(self.split_method))
        if self.shares is not None:
            object.__setattr__(self, "shares", dict(self.shares))
