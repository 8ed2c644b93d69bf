"""
proration/engine.py
-------------------
Allocation engine: the single entry point that composes the branches.

Design contract:
  - Pure computation: no I/O, no state kept between calls
  - Every call builds its own AllocationState and TraceRecorder
  - The trace is returned as data, never logged in its place
  - Disabling the trace never changes the allocations

Control flow::

    ensure_valid ─► full_satisfaction? ──yes──► requested / zero / {}
                          │ no
                          ▼
                   all weights zero? ──yes──► equal split (no redistribution)
                          │ no
                          ▼
                  ProRataDistributor.run ─► DustReconciler.reconcile

Worst case cost is O(n²) in the number of claimants (at most n + 1 passes
of O(n) each).
"""

from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import Any, Dict

from proration.distributor import ProRataDistributor
from proration.enums import AllocationPath
from proration.fallbacks import all_weights_zero, full_satisfaction, split_equally
from proration.models import ZERO, AllocationRequest, AllocationResult, AllocationState
from proration.rounding import DustReconciler, DustReport, money_precision, round_to_cents
from proration.trace import NullTraceRecorder, TraceRecorder
from proration.validation import ensure_valid

logger = logging.getLogger(__name__)


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _cents(count: int) -> str:
    return f"{count} cent{'s' if count != 1 else ''}"


class AllocationEngine:
    """
    Distribute ``request.capacity`` across ``request.claimants``.

    Entry point::

        result = AllocationEngine.allocate(request)
        result.allocations   # {name: Decimal}, input order
        result.trace.summary # "Completed proration in 2 pass(es). ..."
    """

    @staticmethod
    def allocate(request: AllocationRequest, record_trace: bool = True) -> AllocationResult:
        """
        Run the engine on *request*.

        Raises
        ------
        InvalidInputError
            If a precondition does not hold.  Raised before any arithmetic,
            so no partial result is ever produced.
        """
        ensure_valid(request)
        amounts = [request.capacity]
        for c in request.claimants:
            amounts.extend((c.requested, c.weight))

        with localcontext() as ctx:
            ctx.prec = money_precision(amounts, ctx.prec)
            return AllocationEngine._allocate(request, record_trace)

    @staticmethod
    def _allocate(request: AllocationRequest, record_trace: bool) -> AllocationResult:
        recorder = TraceRecorder() if record_trace else NullTraceRecorder()

        shortcut = full_satisfaction(request)
        if shortcut is not None:
            path, allocations = shortcut
            logger.debug("Short-circuit path %s for %d claimant(s)", path.value, len(allocations))
            trace = recorder.finish(path, AllocationEngine._shortcut_summary(path, request))
            return AllocationResult(allocations=allocations, path=path, trace=trace)

        state = AllocationState(request.claimants)

        if all_weights_zero(request):
            return AllocationEngine._equal_weight(request, state, recorder)

        passes = ProRataDistributor.run(request.capacity, state, recorder)
        report = DustReconciler.reconcile(state, request.capacity)
        logger.debug("Pro-rata converged in %d pass(es), dust=%s", passes, report.dust)

        trace = recorder.finish(
            AllocationPath.PRO_RATA,
            AllocationEngine._pro_rata_summary(request, passes, report),
            dust=report.dust,
            residual_dust=report.residual,
        )
        return AllocationResult(
            allocations=state.allocations(),
            path=AllocationPath.PRO_RATA,
            trace=trace,
        )

    # ------------------------------------------------------------------ #
    #  Branches
    # ------------------------------------------------------------------ #

    @staticmethod
    def _equal_weight(
        request: AllocationRequest,
        state: AllocationState,
        recorder: TraceRecorder,
    ) -> AllocationResult:
        """
        One even split, rounded to cents.

        Surplus freed by small requests stays undistributed.  Rounding that
        overshoots capacity (three thirds of 20.00 -> 20.01) is taken back
        by the usual reverse dust sweep.
        """
        split_equally(list(state), request.capacity)
        DustReconciler.round_all(state)

        summary = "All weights are zero. Splitting capacity equally among all claimants."
        dust = ZERO
        if state.allocated_total() > round_to_cents(request.capacity):
            report = DustReconciler.reconcile(state, request.capacity)
            dust = report.dust
            summary += f" Dust of {_cents(report.distributed_cents)} redistributed."

        leftover = round_to_cents(request.capacity) - state.allocated_total()
        if leftover > ZERO:
            summary += f" {_money(leftover)} left undistributed."
            logger.info("Equal-weight split left %s undistributed", leftover)

        trace = recorder.finish(
            AllocationPath.EQUAL_WEIGHT, summary, dust=dust, residual_dust=leftover,
        )
        return AllocationResult(
            allocations=state.allocations(),
            path=AllocationPath.EQUAL_WEIGHT,
            trace=trace,
        )

    # ------------------------------------------------------------------ #
    #  Summaries
    # ------------------------------------------------------------------ #

    @staticmethod
    def _shortcut_summary(path: AllocationPath, request: AllocationRequest) -> str:
        if path is AllocationPath.ZERO_CAPACITY:
            return "No allocation to distribute (capacity = 0)."
        if path is AllocationPath.NO_CLAIMANTS:
            return "No claimants provided."
        return (
            f"Capacity ({_money(request.capacity)}) >= total requested "
            f"({_money(request.total_requested)}). Every claimant receives the full request."
        )

    @staticmethod
    def _pro_rata_summary(request: AllocationRequest, passes: int, report: DustReport) -> str:
        distributed = round_to_cents(request.capacity) - report.residual
        summary = (
            f"Completed proration in {passes} pass(es). "
            f"Total allocated: {_money(distributed)}."
        )
        if report.distributed != ZERO:
            summary += f" Dust of {_cents(report.distributed_cents)} redistributed."
        if report.residual != ZERO:
            summary += f" Residual dust of {_cents(report.residual_cents)} left undistributed."
        return summary


def calculate_proration(payload: Dict[str, Any], record_trace: bool = True) -> Dict[str, Any]:
    """
    Wire-format convenience wrapper.

    Accepts the fixture JSON shape (``allocation_amount`` /
    ``investor_amounts``) and returns ``{"results": {...}, "details": {...}}``.
    """
    result = AllocationEngine.allocate(AllocationRequest.from_dict(payload), record_trace)
    return {
        "results": dict(result.allocations),
        "details": result.trace.to_dict() if result.trace else None,
    }
