from enum import Enum


class AllocationPath(Enum):
    """Which branch of the engine produced a result."""
    ZERO_CAPACITY = "zero_capacity"
    NO_CLAIMANTS = "no_claimants"
    FULL_SATISFACTION = "full_satisfaction"
    EQUAL_WEIGHT = "equal_weight"
    PRO_RATA = "pro_rata"


class PassOutcome(Enum):
    """What happened to one claimant inside one distributor pass."""
    CAPPED = "capped"           # fixed at its requested amount for good
    TENTATIVE = "tentative"     # may be revised by a later pass
    EQUAL_SPLIT = "equal_split" # zero-weight remainder split evenly
