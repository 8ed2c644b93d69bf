"""
proration/explanation.py
------------------------
Human-readable explanation of an allocation result.

Design contract:
  - Does NOT compute allocations
  - Does NOT mutate the result or the request
  - Only interprets AllocationEngine output and its trace
  - Fully stateless (all methods are @staticmethod)
"""

from typing import Dict, List

from proration.enums import AllocationPath, PassOutcome
from proration.formatting import format_currency
from proration.models import ZERO, AllocationRequest, AllocationResult, AllocationTrace


ALGORITHM_RULES = (
    "Sufficient capacity: when capacity >= the sum of all requests, every claimant "
    "receives exactly what it requested.\n"
    "Limited capacity: otherwise capacity is distributed pro-rata by weight, not by "
    "requested amount.\n"
    "Respect caps: no claimant receives more than it requested.\n"
    "No waste: capacity freed by a capped claimant is redistributed to the others "
    "on the next pass.\n"
    "Formula: claimant share = remaining capacity × (claimant weight / sum of "
    "uncapped weights).\n"
    "Zero weights: if every weight is zero the capacity is split equally, without "
    "redistributing what small requests leave over.\n"
    "Cent rounding: amounts are rounded to cents and leftover pennies are handed "
    "out from the last claimant backwards."
)


class AllocationExplanationEngine:
    """
    Produce structured explanations for :class:`AllocationResult`.

    Entry point::

        sections = AllocationExplanationEngine.explain(request, result)

    Returns a dict with five string sections:
    ``summary``             – one-line overview
    ``allocation_table``    – fixed-width per-claimant breakdown
    ``calculation_details`` – pass-by-pass formulas from the trace
    ``algorithm_rules``     – the rules the engine applies
    ``final_statement``     – closing sentence on how capacity was used
    """

    @staticmethod
    def explain(request: AllocationRequest, result: AllocationResult) -> Dict[str, str]:
        return {
            "summary":             AllocationExplanationEngine._summary(request, result),
            "allocation_table":    AllocationExplanationEngine._allocation_table(request, result),
            "calculation_details": AllocationExplanationEngine._calculation_details(result.trace),
            "algorithm_rules":     ALGORITHM_RULES,
            "final_statement":     AllocationExplanationEngine._final_statement(request, result),
        }

    # ------------------------------------------------------------------ #
    #  Section builders
    # ------------------------------------------------------------------ #

    @staticmethod
    def _summary(request: AllocationRequest, result: AllocationResult) -> str:
        count = len(request.claimants)
        if count == 0:
            return "No claimants to allocate to."
        return (
            f"{format_currency(result.total)} of {format_currency(request.capacity)} "
            f"allocated across {count} claimant{'s' if count != 1 else ''}."
        )

    @staticmethod
    def _allocation_table(request: AllocationRequest, result: AllocationResult) -> str:
        """Fixed-width table: Name | Requested | Weight | Allocated."""
        width = max([len("Claimant")] + [len(c.name) for c in request.claimants])
        lines = [f"{'Claimant':<{width}}  {'Requested':>16}  {'Weight':>12}  {'Allocated':>16}"]
        for c in request.claimants:
            allocated = result.allocations.get(c.name)
            lines.append(
                f"{c.name:<{width}}  {format_currency(c.requested):>16}  "
                f"{str(c.weight):>12}  {format_currency(allocated):>16}"
            )
        return "\n".join(lines)

    @staticmethod
    def _calculation_details(trace: AllocationTrace) -> str:
        if trace is None:
            return "Calculation details were not recorded."

        lines: List[str] = [trace.summary]
        for p in trace.passes:
            lines.append(f"Pass {p.number} (remaining: {format_currency(p.remaining)})")
            for calc in p.calculations:
                marker = " [capped]" if calc.outcome is PassOutcome.CAPPED else ""
                lines.append(
                    f"  {calc.name}: {calc.formula} → {calc.result}"
                    f" (requested: {format_currency(calc.requested)}){marker}"
                )
            for note in p.notes:
                lines.append(f"  {note}")
        return "\n".join(lines)

    @staticmethod
    def _final_statement(request: AllocationRequest, result: AllocationResult) -> str:
        if result.path is AllocationPath.ZERO_CAPACITY:
            return "There was no capacity to distribute."
        if result.path is AllocationPath.NO_CLAIMANTS:
            return "There were no claimants to receive the capacity."
        if result.path is AllocationPath.FULL_SATISFACTION:
            return "Capacity covered every request in full."

        capped = [
            c.name for c in request.claimants
            if c.requested > ZERO and result.allocations.get(c.name) == c.requested
        ]
        if capped:
            return (
                f"Capacity was prorated; {', '.join(capped)} received "
                f"{'its' if len(capped) == 1 else 'their'} full request."
            )
        return "Capacity was prorated; no claimant received its full request."
