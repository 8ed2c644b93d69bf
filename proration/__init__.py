"""Capped pro-rata allocation of a fixed capacity across weighted claimants."""

__version__ = "1.0.0"

from proration.engine import AllocationEngine, calculate_proration
from proration.errors import FixtureError, InvalidInputError
from proration.models import AllocationRequest, AllocationResult, Claimant

__all__ = [
    "AllocationEngine",
    "calculate_proration",
    "AllocationRequest",
    "AllocationResult",
    "Claimant",
    "InvalidInputError",
    "FixtureError",
]
