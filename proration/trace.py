"""
proration/trace.py
------------------
Passive recorder for distributor passes.

The distributor reports raw numbers; the recorder turns them into the
human-readable formula strings shown in calculation details.  Swapping in
:class:`NullTraceRecorder` removes all of that work and must leave the
numeric result untouched.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from proration.enums import AllocationPath, PassOutcome
from proration.models import AllocationTrace, PassCalculation, PassRecord


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


class TraceRecorder:
    """Accumulates :class:`PassRecord` objects for one engine call."""

    enabled = True

    def __init__(self):
        self._trace = AllocationTrace()
        self._current: Optional[PassRecord] = None

    # ------------------------------------------------------------------ #
    #  Pass recording
    # ------------------------------------------------------------------ #

    def begin_pass(self, number: int, remaining: Decimal) -> None:
        self._current = PassRecord(number=number, remaining=remaining)
        self._trace.passes.append(self._current)

    def record_share(
        self,
        name: str,
        remaining: Decimal,
        weight: Decimal,
        sum_weights: Decimal,
        proportional: Decimal,
        requested: Decimal,
        capped: bool,
    ) -> None:
        formula = (
            f"{_money(remaining)} × ({weight} / {sum_weights}) = {_money(proportional)}"
        )
        if capped:
            result, amount, outcome = (
                f"Capped at request: {_money(requested)}", requested, PassOutcome.CAPPED,
            )
        else:
            result, amount, outcome = (
                f"Allocated: {_money(proportional)}", proportional, PassOutcome.TENTATIVE,
            )
        self._current.calculations.append(PassCalculation(
            name=name,
            formula=formula,
            result=result,
            requested=requested,
            amount=amount,
            outcome=outcome,
        ))

    def record_equal_split(
        self,
        name: str,
        remaining: Decimal,
        count: int,
        share: Decimal,
        requested: Decimal,
    ) -> None:
        amount = min(share, requested)
        self._current.calculations.append(PassCalculation(
            name=name,
            formula=f"{_money(remaining)} / {count} = {_money(share)}",
            result=f"Allocated: {_money(amount)}",
            requested=requested,
            amount=amount,
            outcome=PassOutcome.EQUAL_SPLIT,
        ))

    def record_note(self, note: str) -> None:
        self._current.notes.append(note)

    # ------------------------------------------------------------------ #
    #  Finalisation
    # ------------------------------------------------------------------ #

    @property
    def pass_count(self) -> int:
        return len(self._trace.passes)

    def finish(
        self,
        path: AllocationPath,
        summary: str,
        dust: Decimal = Decimal("0"),
        residual_dust: Decimal = Decimal("0"),
    ) -> Optional[AllocationTrace]:
        self._trace.path = path
        self._trace.summary = summary
        self._trace.dust = dust
        self._trace.residual_dust = residual_dust
        return self._trace


class NullTraceRecorder(TraceRecorder):
    """Recorder that records nothing; ``finish`` returns ``None``."""

    enabled = False

    def begin_pass(self, number, remaining):
        pass

    def record_share(self, name, remaining, weight, sum_weights, proportional, requested, capped):
        pass

    def record_equal_split(self, name, remaining, count, share, requested):
        pass

    def record_note(self, note):
        pass

    def finish(self, path, summary, dust=Decimal("0"), residual_dust=Decimal("0")):
        return None
