"""
proration/models.py
-------------------
Typed request, state, trace, and result objects.

Design contract:
  - Requests and claimants are immutable; order of claimants is preserved
    exactly as supplied and never re-sorted
  - AllocationState is created fresh for every engine call and discarded
    afterwards; nothing here is shared between calls
  - Trace objects are write-only from the engine's point of view
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from proration.enums import AllocationPath, PassOutcome
from proration.errors import InvalidInputError

ZERO = Decimal("0")


def to_decimal(value: Any, label: str) -> Decimal:
    """
    Convert *value* to ``Decimal`` without going through binary floats.

    Floats are converted via ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    Non-finite values are returned as-is; rejecting them is the job of
    :func:`proration.validation.ensure_valid`.

    Raises
    ------
    InvalidInputError
        If *value* is a bool, ``None``, or a string that is not a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidInputError([f"{label} must be a number (got {value!r})"])
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, (float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInputError([f"{label} must be a number (got {value!r})"]) from None
    raise InvalidInputError([f"{label} must be a number (got {type(value).__name__})"])


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Claimant:
    """A party with a hard upper bound (``requested``) and a share basis (``weight``)."""
    name: str
    requested: Decimal
    weight: Decimal

    @classmethod
    def create(cls, name: str, requested: Any, weight: Any) -> "Claimant":
        label = name or "claimant"
        return cls(
            name=name,
            requested=to_decimal(requested, f"{label}: requested"),
            weight=to_decimal(weight, f"{label}: weight"),
        )


@dataclass(frozen=True)
class AllocationRequest:
    """
    Capacity to distribute plus the ordered claimants competing for it.

    The fixture wire format mirrors the historical JSON files::

        {
          "allocation_amount": 100,
          "investor_amounts": [
            {"name": "A", "requested_amount": 150, "average_amount": 100},
            ...
          ]
        }
    """
    capacity: Decimal
    claimants: Tuple[Claimant, ...] = ()

    @classmethod
    def create(cls, capacity: Any, claimants: Iterable[Any] = ()) -> "AllocationRequest":
        """
        Build a request from loosely-typed values.

        Each element of *claimants* may be a :class:`Claimant`, a
        ``(name, requested, weight)`` tuple, or a dict with those keys.
        """
        built: List[Claimant] = []
        for item in claimants:
            if isinstance(item, Claimant):
                built.append(item)
            elif isinstance(item, dict):
                built.append(Claimant.create(item.get("name"), item.get("requested"), item.get("weight")))
            else:
                name, requested, weight = item
                built.append(Claimant.create(name, requested, weight))
        return cls(capacity=to_decimal(capacity, "capacity"), claimants=tuple(built))

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AllocationRequest":
        """Parse the fixture wire format; raise InvalidInputError on missing keys."""
        if not isinstance(payload, dict):
            raise InvalidInputError(["Request payload must be a JSON object"])
        missing = [k for k in ("allocation_amount", "investor_amounts") if k not in payload]
        if missing:
            raise InvalidInputError([f"Missing key: {k!r}" for k in missing])

        claimants = []
        for index, raw in enumerate(payload["investor_amounts"] or []):
            if not isinstance(raw, dict):
                raise InvalidInputError([f"Claimant {index + 1}: entry must be an object"])
            claimants.append(Claimant.create(
                raw.get("name"),
                raw.get("requested_amount"),
                raw.get("average_amount"),
            ))
        return cls(
            capacity=to_decimal(payload["allocation_amount"], "capacity"),
            claimants=tuple(claimants),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocation_amount": self.capacity,
            "investor_amounts": [
                {
                    "name":             c.name,
                    "requested_amount": c.requested,
                    "average_amount":   c.weight,
                }
                for c in self.claimants
            ],
        }

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.claimants]

    @property
    def total_requested(self) -> Decimal:
        return sum((c.requested for c in self.claimants), ZERO)

    @property
    def total_weight(self) -> Decimal:
        return sum((c.weight for c in self.claimants), ZERO)


# ---------------------------------------------------------------------------
# Per-call engine state
# ---------------------------------------------------------------------------

@dataclass
class ClaimantState:
    """Running allocation for one claimant during a single engine call."""
    claimant: Claimant
    allocated: Decimal = ZERO
    capped: bool = False

    @property
    def name(self) -> str:
        return self.claimant.name

    @property
    def requested(self) -> Decimal:
        return self.claimant.requested

    @property
    def weight(self) -> Decimal:
        return self.claimant.weight

    def cap(self) -> None:
        """Fix the allocation at the requested amount.  Irreversible."""
        self.allocated = self.claimant.requested
        self.capped = True

    def assign(self, amount: Decimal) -> None:
        """Set a tentative allocation; capped claimants are frozen."""
        if self.capped:
            raise RuntimeError(
                f"Claimant {self.name!r} is capped; its allocation cannot be revised."
            )
        self.allocated = amount


class AllocationState:
    """
    Request-scoped collection of :class:`ClaimantState`, kept in input order
    and indexable by claimant name.
    """

    def __init__(self, claimants: Iterable[Claimant]):
        self._states: List[ClaimantState] = [ClaimantState(c) for c in claimants]
        self._by_name: Dict[str, ClaimantState] = {s.name: s for s in self._states}

    def __iter__(self) -> Iterator[ClaimantState]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __getitem__(self, name: str) -> ClaimantState:
        return self._by_name[name]

    def __reversed__(self) -> Iterator[ClaimantState]:
        return reversed(self._states)

    def uncapped(self) -> List[ClaimantState]:
        return [s for s in self._states if not s.capped]

    def capped_total(self) -> Decimal:
        return sum((s.allocated for s in self._states if s.capped), ZERO)

    def allocated_total(self) -> Decimal:
        return sum((s.allocated for s in self._states), ZERO)

    def allocations(self) -> Dict[str, Decimal]:
        return {s.name: s.allocated for s in self._states}


# ---------------------------------------------------------------------------
# Trace
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PassCalculation:
    """One claimant's computation inside one pass."""
    name: str
    formula: str
    result: str
    requested: Decimal
    amount: Decimal
    outcome: PassOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":      self.name,
            "formula":   self.formula,
            "result":    self.result,
            "requested": self.requested,
            "amount":    self.amount,
            "outcome":   self.outcome.value,
        }


@dataclass
class PassRecord:
    number: int
    remaining: Decimal
    calculations: List[PassCalculation] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number":       self.number,
            "remaining":    self.remaining,
            "calculations": [c.to_dict() for c in self.calculations],
            "notes":        list(self.notes),
        }


@dataclass
class AllocationTrace:
    """
    Audit record of one engine call.

    ``dust`` is the rounding discrepancy found after the distributor
    converged; ``residual_dust`` is whatever the single reverse sweep could
    not place (zero in the common case).
    """
    summary: str = ""
    path: Optional[AllocationPath] = None
    passes: List[PassRecord] = field(default_factory=list)
    dust: Decimal = ZERO
    residual_dust: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary":       self.summary,
            "path":          self.path.value if self.path else None,
            "passes":        [p.to_dict() for p in self.passes],
            "dust":          self.dust,
            "residual_dust": self.residual_dust,
        }


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AllocationResult:
    """Final ``{name: amount}`` mapping in input order, plus the optional trace."""
    allocations: Dict[str, Decimal]
    path: AllocationPath
    trace: Optional[AllocationTrace] = None

    @property
    def total(self) -> Decimal:
        return sum(self.allocations.values(), ZERO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocations": dict(self.allocations),
            "trace":       self.trace.to_dict() if self.trace else None,
        }
