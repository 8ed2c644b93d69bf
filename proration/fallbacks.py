"""
proration/fallbacks.py
----------------------
Branches that bypass the iterative distributor.

  - Full satisfaction: capacity covers every request (also zero capacity and
    an empty claimant list)
  - Equal weight: every claimant has zero weight, so there is no basis for a
    proportional split

The equal split performs a single division and does NOT hand the surplus
freed by small requests to anyone else.  The iterative distributor uses the
same split for its zero-weight sub-case.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from proration.enums import AllocationPath
from proration.models import ZERO, AllocationRequest, ClaimantState


def full_satisfaction(
    request: AllocationRequest,
) -> Optional[Tuple[AllocationPath, Dict[str, Decimal]]]:
    """
    Return ``(path, allocations)`` when no proration is needed, else ``None``.

    Requested amounts are returned untouched: they are already the caller's
    canonical values, so no rounding is applied.
    """
    if request.capacity <= ZERO:
        return AllocationPath.ZERO_CAPACITY, {c.name: ZERO for c in request.claimants}

    if not request.claimants:
        return AllocationPath.NO_CLAIMANTS, {}

    if request.capacity >= request.total_requested:
        return AllocationPath.FULL_SATISFACTION, {c.name: c.requested for c in request.claimants}

    return None


def all_weights_zero(request: AllocationRequest) -> bool:
    return all(c.weight == ZERO for c in request.claimants)


def split_equally(states: List[ClaimantState], amount: Decimal) -> Decimal:
    """
    Give each state ``min(amount / n, requested)``; return the share used.

    Nothing freed by a small request is passed on to the others.
    """
    share = amount / len(states)
    for s in states:
        s.assign(min(share, s.requested))
    return share
