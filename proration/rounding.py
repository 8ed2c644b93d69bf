"""
proration/rounding.py
---------------------
Cent rounding and dust reconciliation.

After the distributor converges each running allocation is an unrounded
``Decimal``.  Rounding them independently can leave the total a few cents
away from the rounded capacity; :class:`DustReconciler` repairs that with a
single, deterministic sweep from the last claimant to the first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Any, Iterable

from proration.config import CENT, CENT_PLACES, GUARD_DIGITS, HALF_CENT, ROUNDING_MODE
from proration.models import ZERO, AllocationState

logger = logging.getLogger(__name__)


def money_precision(amounts: Iterable[Decimal], base: int) -> int:
    """
    Significant digits needed to carry *amounts* down to the cent.

    Never less than *base*, so ordinary inputs keep the default context.
    """
    largest = max((a.adjusted() for a in amounts if a.is_finite() and a), default=0)
    return max(base, largest + 1 + CENT_PLACES + GUARD_DIGITS)


def _quantize(value: Any, rounding: str) -> Decimal:
    value = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = money_precision([value], ctx.prec)
        return value.quantize(CENT, rounding=rounding)


def round_to_cents(value: Any) -> Decimal:
    """Round to the nearest cent, ties away from zero."""
    return _quantize(value, ROUNDING_MODE)


def cent_ceiling(requested: Decimal) -> Decimal:
    """Largest whole-cent amount that does not exceed *requested*."""
    return _quantize(requested, ROUND_DOWN)


def to_cents(amount: Decimal) -> int:
    """Express a cent-quantised amount as an integer number of cents."""
    return int((amount / CENT).to_integral_value())


@dataclass(frozen=True)
class DustReport:
    """Outcome of one reconciliation."""
    dust: Decimal           # signed discrepancy before the sweep
    distributed: Decimal    # signed amount moved by the sweep
    residual: Decimal       # signed amount the sweep could not place

    @property
    def dust_cents(self) -> int:
        return abs(to_cents(self.dust))

    @property
    def distributed_cents(self) -> int:
        return abs(to_cents(self.distributed))

    @property
    def residual_cents(self) -> int:
        return abs(to_cents(self.residual))


class DustReconciler:
    """
    Round every allocation to cents and push the rounding error back in.

    Policy:
      * ``dust = round(capacity) - sum(round(allocated))``
      * positive dust adds one cent to each claimant that still has room
        under its request; negative dust removes one cent from each claimant
        holding a positive amount
      * claimants are visited once, last to first; the sweep stops as soon
        as the outstanding dust is below half a cent
      * whatever is left after that single sweep is reported, not hidden
    """

    @staticmethod
    def round_all(state: AllocationState) -> None:
        """Quantise every allocation in place, never rounding above the request."""
        for s in state:
            s.allocated = min(round_to_cents(s.allocated), cent_ceiling(s.requested))

    @staticmethod
    def reconcile(state: AllocationState, capacity: Decimal) -> DustReport:
        DustReconciler.round_all(state)

        dust = round_to_cents(capacity) - state.allocated_total()
        if dust == ZERO:
            return DustReport(dust=ZERO, distributed=ZERO, residual=ZERO)

        increment = CENT if dust > ZERO else -CENT
        remaining = abs(dust)

        for s in reversed(state):
            if remaining < HALF_CENT:
                break
            if dust > ZERO and s.allocated + CENT <= s.requested:
                s.allocated += increment
                remaining -= CENT
            elif dust < ZERO and s.allocated > ZERO:
                s.allocated += increment
                remaining -= CENT

        residual = remaining if dust > ZERO else -remaining
        report = DustReport(dust=dust, distributed=dust - residual, residual=residual)

        if residual != ZERO:
            logger.warning(
                "Dust sweep exhausted eligible claimants: %s of %s left undistributed",
                residual, dust,
            )
        else:
            logger.debug("Redistributed %d cent(s) of rounding dust", report.dust_cents)
        return report
