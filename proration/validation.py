"""
proration/validation.py
-----------------------
Input validation, in two layers.

  - ``validate_*`` functions check raw, loosely-typed form input and collect
    every problem as a message (plus non-blocking warnings) so callers can
    show them all at once.  This is the primary gate.
  - ``ensure_valid`` is the engine's backstop on an already-typed
    :class:`AllocationRequest`: it raises :class:`InvalidInputError` so a
    non-finite or negative value can never reach the arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from proration.errors import InvalidInputError
from proration.models import ZERO, AllocationRequest


@dataclass(frozen=True)
class FieldCheck:
    valid: bool
    error: Optional[str] = None
    warning: Optional[str] = None


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_number(value: Any) -> Optional[Decimal]:
    """Return a finite Decimal, or ``None`` if *value* is not a usable number."""
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


# ---------------------------------------------------------------------------
# Raw form input
# ---------------------------------------------------------------------------

def validate_capacity(value: Any) -> FieldCheck:
    if _is_blank(value):
        return FieldCheck(False, "Allocation amount is required")

    number = _parse_number(value)
    if number is None:
        return FieldCheck(False, "Allocation amount must be a valid number")
    if number < ZERO:
        return FieldCheck(False, "Allocation amount cannot be negative")
    if number == ZERO:
        return FieldCheck(True, warning="Allocation amount is zero - no funds will be distributed")
    return FieldCheck(True)


def _check_amount(value: Any, label: str, field_name: str) -> Optional[str]:
    if _is_blank(value):
        return f"{label}: {field_name} is required"
    number = _parse_number(value)
    if number is None:
        return f"{label}: {field_name} must be a valid number"
    if number < ZERO:
        return f"{label}: {field_name} cannot be negative"
    return None


def validate_claimant(claimant: Dict[str, Any], index: int) -> List[str]:
    """
    Check one claimant dict with keys ``name``, ``requested``, ``weight``.

    Messages are prefixed with the claimant's name, or ``Claimant N`` when
    the name is missing.
    """
    name = claimant.get("name")
    label = name if isinstance(name, str) and name.strip() else f"Claimant {index + 1}"
    errors = []

    if not isinstance(name, str) or name.strip() == "":
        errors.append(f"{label}: Name is required")

    for key, field_name in (("requested", "Requested amount"), ("weight", "Weight")):
        problem = _check_amount(claimant.get(key), label, field_name)
        if problem:
            errors.append(problem)

    return errors


def validate_request(capacity: Any, claimants: Sequence[Dict[str, Any]]) -> ValidationReport:
    """Validate a whole form: capacity, each claimant, and cross-claimant rules."""
    errors: List[str] = []
    warnings: List[str] = []

    capacity_check = validate_capacity(capacity)
    if not capacity_check.valid:
        errors.append(capacity_check.error)
    if capacity_check.warning:
        warnings.append(capacity_check.warning)

    if not claimants:
        errors.append("At least one claimant is required")
        return ValidationReport(False, errors, warnings)

    for index, claimant in enumerate(claimants):
        errors.extend(validate_claimant(claimant, index))

    seen = set()
    for claimant in claimants:
        name = claimant.get("name")
        if isinstance(name, str) and name.strip():
            if name in seen:
                errors.append(f"{name}: Name must be unique")
            seen.add(name)

    if all(_parse_number(c.get("weight")) == ZERO for c in claimants):
        warnings.append("All claimants have zero weight - allocation will be split equally")

    return ValidationReport(not errors, errors, warnings)


# ---------------------------------------------------------------------------
# Engine backstop
# ---------------------------------------------------------------------------

def ensure_valid(request: AllocationRequest) -> None:
    """
    Raise :class:`InvalidInputError` if *request* breaks an engine precondition.

    An empty claimant list is allowed; the engine maps it to an empty result.
    """
    errors = []

    if not request.capacity.is_finite():
        errors.append(f"capacity must be finite (got {request.capacity})")
    elif request.capacity < ZERO:
        errors.append(f"capacity cannot be negative (got {request.capacity})")

    seen = set()
    for index, c in enumerate(request.claimants):
        if not isinstance(c.name, str) or c.name == "":
            errors.append(f"Claimant {index + 1}: name must be a non-empty string")
        elif c.name in seen:
            errors.append(f"{c.name}: duplicate claimant name")
        seen.add(c.name)

        label = c.name or f"Claimant {index + 1}"
        for field_name, value in (("requested", c.requested), ("weight", c.weight)):
            if not value.is_finite():
                errors.append(f"{label}: {field_name} must be finite (got {value})")
            elif value < ZERO:
                errors.append(f"{label}: {field_name} cannot be negative (got {value})")

    if errors:
        raise InvalidInputError(errors)
