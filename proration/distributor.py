"""
proration/distributor.py
------------------------
Iterative capped pro-rata distribution.

Each pass splits the remaining capacity across the uncapped claimants in
proportion to their weights.  A claimant whose share reaches its request is
capped at the request for good; the capacity it leaves unused flows back to
the others on the next pass.  The loop stops when a pass caps nobody, when
no uncapped claimant is left, or when nothing remains to distribute.

Every pass that continues caps at least one new claimant, so the loop runs
at most ``n + 1`` passes of ``O(n)`` work each: ``O(n²)`` in the worst case.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from proration.fallbacks import split_equally
from proration.models import ZERO, AllocationState
from proration.trace import NullTraceRecorder, TraceRecorder

logger = logging.getLogger(__name__)

ZERO_WEIGHT_NOTE = "Remaining uncapped claimants have zero weight. Splitting equally."


class ProRataDistributor:
    """
    Stateless driver: all mutable data lives in the :class:`AllocationState`
    passed in, which is returned after convergence.
    """

    @staticmethod
    def run(
        capacity: Decimal,
        state: AllocationState,
        recorder: Optional[TraceRecorder] = None,
    ) -> int:
        """
        Distribute *capacity* over *state* until convergence.

        Preconditions: capacity is below total demand and at least one
        claimant has positive weight.

        Returns
        -------
        int
            Number of passes executed.
        """
        recorder = recorder or NullTraceRecorder()
        remaining = capacity
        passes = 0

        while ProRataDistributor._should_continue(state, remaining):
            passes += 1
            newly_capped = ProRataDistributor._run_pass(passes, remaining, state, recorder)
            logger.debug("Pass %d: remaining=%s newly_capped=%s", passes, remaining, newly_capped)

            if not newly_capped:
                break

            remaining = capacity - state.capped_total()

        return passes

    @staticmethod
    def _should_continue(state: AllocationState, remaining: Decimal) -> bool:
        return bool(state.uncapped()) and remaining > ZERO

    @staticmethod
    def _run_pass(
        number: int,
        remaining: Decimal,
        state: AllocationState,
        recorder: TraceRecorder,
    ) -> Optional[int]:
        """
        Execute one pass over the uncapped claimants.

        Returns the number of claimants capped in this pass, or ``None`` when
        the pass fell back to an equal split (which always ends the loop).
        """
        uncapped = state.uncapped()
        sum_weights = sum((s.weight for s in uncapped), ZERO)
        recorder.begin_pass(number, remaining)

        if sum_weights == ZERO:
            share = split_equally(uncapped, remaining)
            for s in uncapped:
                recorder.record_equal_split(s.name, remaining, len(uncapped), share, s.requested)
            recorder.record_note(ZERO_WEIGHT_NOTE)
            return None

        newly_capped = 0
        for s in uncapped:
            proportional = remaining * s.weight / sum_weights
            capped = proportional >= s.requested
            if capped:
                s.cap()
                newly_capped += 1
            else:
                s.assign(proportional)
            recorder.record_share(
                s.name, remaining, s.weight, sum_weights, proportional, s.requested, capped,
            )

        return newly_capped
