"""
proration/config.py
-------------------
Shared monetary and tooling constants.

The engine itself only reads the rounding parameters; the remaining values
configure the outer collaborators (formatter, exporter, fixture runner).
"""

from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path

# ---------------------------------------------------------------------------
# Currency unit
# ---------------------------------------------------------------------------
# Smallest distributable amount.  Every rounded allocation is a multiple of
# this quantum and dust is swept one quantum at a time.

CENT: Decimal = Decimal("0.01")

# Half a cent: the sweep stops once the outstanding dust drops below this.
HALF_CENT: Decimal = Decimal("0.005")

# Digits after the point in CENT.
CENT_PLACES: int = 2

# Extra significant digits kept below the cent while prorating, so very
# large amounts still resolve their shares to the cent before rounding.
GUARD_DIGITS: int = 12

# ROUND_HALF_UP on Decimal rounds ties away from zero (2.345 -> 2.35,
# -2.345 -> -2.35).
ROUNDING_MODE: str = ROUND_HALF_UP

CURRENCY_SYMBOL: str = "$"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
# Expected-output files are written by hand, so a one-cent tolerance is
# applied when comparing them against engine output.

COMPARE_TOLERANCE: float = 0.01

FIXTURE_INPUT_SUFFIX: str = "_input.json"
FIXTURE_OUTPUT_SUFFIX: str = "_output.json"

DEFAULT_FIXTURE_DIR: Path = Path(__file__).parent.parent / "data"

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

DEFAULT_EXPORT_STEM: str = "allocation_results"
EXPORT_TIMESTAMP_FORMAT: str = "%Y-%m-%d_%H-%M"
