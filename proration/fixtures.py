"""
proration/fixtures.py
---------------------
Load paired ``<case>_input.json`` / ``<case>_output.json`` fixtures, run
them through the engine and report differences.

Expected-output files map claimant names to amounts.  Keys starting with
``_`` carry metadata (e.g. ``_description``) and are ignored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from proration.config import (
    COMPARE_TOLERANCE,
    DEFAULT_FIXTURE_DIR,
    FIXTURE_INPUT_SUFFIX,
    FIXTURE_OUTPUT_SUFFIX,
)
from proration.engine import AllocationEngine
from proration.errors import FixtureError, InvalidInputError
from proration.models import AllocationRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

TEST_CASES: Dict[str, Tuple[str, str]] = {
    "simple_1":                            ("Simple Case 1", "Basic two-claimant proration"),
    "simple_2":                            ("Simple Case 2", "Undersubscribed allocation"),
    "complex_1":                           ("Complex Case 1", "Two-pass redistribution"),
    "edge_three_pass":                     ("Three Pass Cascading", "Three-pass redistribution"),
    "edge_simultaneous_multi_caps":        ("Simultaneous Multi Caps", "Multiple caps in same pass"),
    "edge_fractional_cents":               ("Fractional Cents", "Cent-rounding with dust distribution"),
    "edge_negative_dust":                  ("Negative Dust", "Rounding overshoot taken back"),
    "edge_all_zero_averages":              ("All Zero Averages", "All claimants have zero weight"),
    "edge_mixed_zero_averages":            ("Mixed Zero Averages", "Some claimants have zero weight"),
    "edge_zero_allocation":                ("Zero Allocation", "No capacity to distribute"),
    "edge_zero_request":                   ("Zero Request", "Claimant requests zero"),
    "edge_exact_match":                    ("Exact Match", "Capacity equals total requested"),
    "edge_inverse_whale":                  ("Inverse Whale", "Large claimant requests below its share"),
    "edge_single_investor_oversubscribed": ("Single Claimant Oversubscribed", "One claimant, limited capacity"),
    "edge_large_numbers":                  ("Large Numbers", "Billion-dollar amounts"),
    "edge_tiny_amounts_precision":         ("Tiny Amounts Precision", "Very small decimal amounts"),
}


@dataclass(frozen=True)
class Difference:
    name: str
    expected: Any
    actual: Any
    message: str


@dataclass(frozen=True)
class ComparisonReport:
    passed: bool
    differences: List[Difference] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Fixture file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FixtureError(f"{path.name} is not valid JSON: {exc}") from exc


def discover_cases(directory: Path = DEFAULT_FIXTURE_DIR) -> List[str]:
    """Case ids that have an input file in *directory*, sorted."""
    directory = Path(directory)
    if not directory.exists():
        return []
    return sorted(
        p.name[: -len(FIXTURE_INPUT_SUFFIX)]
        for p in directory.glob(f"*{FIXTURE_INPUT_SUFFIX}")
    )


def load_case(case_id: str, directory: Path = DEFAULT_FIXTURE_DIR) -> Tuple[AllocationRequest, Dict[str, Any]]:
    """
    Return ``(request, expected)`` for *case_id*.

    Raises
    ------
    FileNotFoundError
        If either file is missing.
    FixtureError
        If a file is not valid JSON or not in the fixture wire format.
    """
    directory = Path(directory)
    payload = _read_json(directory / f"{case_id}{FIXTURE_INPUT_SUFFIX}")
    expected = _read_json(directory / f"{case_id}{FIXTURE_OUTPUT_SUFFIX}")

    if not isinstance(expected, dict):
        raise FixtureError(f"{case_id}: expected output must be a JSON object")
    try:
        request = AllocationRequest.from_dict(payload)
    except InvalidInputError as exc:
        raise FixtureError(f"{case_id}: {exc}") from exc
    return request, expected


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def compare_results(
    actual: Mapping[str, Any],
    expected: Mapping[str, Any],
    tolerance: float = COMPARE_TOLERANCE,
) -> ComparisonReport:
    """
    Compare two ``{name: amount}`` mappings within *tolerance*.

    Reports missing names, unexpected names and out-of-tolerance amounts.
    """
    wanted = {k: v for k, v in expected.items() if not k.startswith("_")}
    differences: List[Difference] = []

    for name, value in wanted.items():
        if name not in actual:
            differences.append(Difference(name, value, None, f"Missing claimant: {name}"))

    shared = [name for name in wanted if name in actual]
    if shared:
        got = np.array([float(actual[n]) for n in shared])
        want = np.array([float(wanted[n]) for n in shared])
        gaps = np.abs(got - want)
        # small epsilon so a gap of exactly one cent survives float noise
        for name, g, w, gap in zip(shared, got, want, gaps):
            if gap > tolerance + 1e-9:
                differences.append(Difference(
                    name, w, g,
                    f"{name}: expected {w:.2f}, got {g:.2f} (diff: {gap:.2f})",
                ))

    for name in actual:
        if name not in wanted:
            differences.append(Difference(name, None, actual[name], f"Unexpected claimant: {name}"))

    return ComparisonReport(passed=not differences, differences=differences)


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------

def run_case(case_id: str, directory: Path = DEFAULT_FIXTURE_DIR) -> ComparisonReport:
    request, expected = load_case(case_id, directory)
    result = AllocationEngine.allocate(request, record_trace=False)
    return compare_results(result.allocations, expected)


def run_suite(
    directory: Path = DEFAULT_FIXTURE_DIR,
    case_ids: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Run every case (or just *case_ids*) and return one report row per case.

    Columns: ``case``, ``name``, ``passed``, ``differences``.  A case whose
    files cannot be loaded counts as failed with the error as its message.
    """
    ids = list(case_ids) if case_ids is not None else discover_cases(directory)
    rows = []
    for case_id in ids:
        title = TEST_CASES.get(case_id, (case_id, ""))[0]
        try:
            report = run_case(case_id, directory)
            messages = [d.message for d in report.differences]
            passed = report.passed
        except (FileNotFoundError, FixtureError, InvalidInputError) as exc:
            messages = [f"Error: {exc}"]
            passed = False
        rows.append({
            "case":        case_id,
            "name":        title,
            "passed":      passed,
            "differences": "; ".join(messages),
        })

    frame = pd.DataFrame(rows, columns=["case", "name", "passed", "differences"])
    logger.info("Fixture suite: %d/%d passed", int(frame["passed"].sum()), len(frame))
    return frame
