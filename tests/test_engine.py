"""
tests/test_engine.py
--------------------
Unit tests for AllocationEngine.

Test coverage:
    Concrete scenarios (full satisfaction, single pass, two pass, zero
    capacity, all-zero weights, cent dust)
    Branch selection and trace summaries
    Equal-weight fallback (non-redistributing)
    Residual dust surfaced in the trace
    Precondition backstop (InvalidInputError)
    Wire-format wrapper calculate_proration()
"""

import unittest
from decimal import Decimal, localcontext

from proration.engine import AllocationEngine, calculate_proration
from proration.enums import AllocationPath
from proration.errors import InvalidInputError
from proration.models import AllocationRequest, Claimant


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _request(capacity, *claimants) -> AllocationRequest:
    return AllocationRequest.create(capacity, claimants)


def _alloc(capacity, *claimants) -> dict:
    return AllocationEngine.allocate(_request(capacity, *claimants)).allocations


def D(value) -> Decimal:
    return Decimal(str(value))


# ===========================================================================
# 1. Concrete scenarios
# ===========================================================================

class TestScenarios(unittest.TestCase):

    def test_full_satisfaction_equal_demand(self):
        result = _alloc(200, ("A", 100, 50), ("B", 100, 50))
        self.assertEqual(result, {"A": D(100), "B": D(100)})

    def test_single_pass_pro_rata(self):
        result = _alloc(100, ("A", 150, 100), ("B", 50, 25))
        self.assertEqual(result, {"A": D("80.00"), "B": D("20.00")})

    def test_two_pass_redistribution(self):
        result = _alloc(100, ("A", 10, 90), ("B", 200, 10))
        self.assertEqual(result, {"A": D("10.00"), "B": D("90.00")})

    def test_zero_capacity_maps_everyone_to_zero(self):
        result = _alloc(0, ("A", 50, 10), ("B", 30, 0), ("C", 0, 0))
        self.assertEqual(result, {"A": D(0), "B": D(0), "C": D(0)})

    def test_all_zero_weights_fully_covered(self):
        result = _alloc(50, ("A", 25, 0), ("B", 25, 0))
        self.assertEqual(result, {"A": D(25), "B": D(25)})

    def test_dust_goes_to_last_claimant(self):
        result = _alloc(10, ("A", 10, 1), ("B", 10, 1), ("C", 10, 1))
        self.assertEqual(result, {"A": D("3.33"), "B": D("3.33"), "C": D("3.34")})
        self.assertEqual(sum(result.values()), D("10.00"))

    def test_negative_dust_taken_from_last_claimant(self):
        result = _alloc(20, ("A", 20, 1), ("B", 20, 1), ("C", 20, 1))
        self.assertEqual(result, {"A": D("6.67"), "B": D("6.67"), "C": D("6.66")})

    def test_three_pass_cascade(self):
        result = _alloc(100, ("A", 10, 50), ("B", 35, 30), ("C", 100, 20))
        self.assertEqual(result, {"A": D(10), "B": D(35), "C": D(55)})

    def test_amounts_beyond_default_precision(self):
        huge = D("1e27")
        result = _alloc(huge, ("A", huge, 1), ("B", huge, 1))
        self.assertEqual(result, {"A": D("5e26"), "B": D("5e26")})

    def test_dust_on_amounts_beyond_default_precision(self):
        huge = D("1e27")
        result = _alloc(huge, ("A", huge, 1), ("B", huge, 1), ("C", huge, 1))
        with localcontext() as ctx:
            ctx.prec = 40
            self.assertEqual(sum(result.values()), huge)
        self.assertEqual(result["A"], D("333333333333333333333333333.33"))
        self.assertEqual(result["C"] - result["A"], D("0.01"))


# ===========================================================================
# 2. Branch selection and trace
# ===========================================================================

class TestPaths(unittest.TestCase):

    def test_empty_claimants_returns_empty_mapping(self):
        result = AllocationEngine.allocate(_request(100))
        self.assertEqual(result.allocations, {})
        self.assertEqual(result.path, AllocationPath.NO_CLAIMANTS)

    def test_zero_capacity_with_no_claimants(self):
        result = AllocationEngine.allocate(_request(0))
        self.assertEqual(result.allocations, {})
        self.assertEqual(result.path, AllocationPath.ZERO_CAPACITY)

    def test_full_satisfaction_returns_requested_unrounded(self):
        result = AllocationEngine.allocate(_request(500, ("A", "10.125", 1), ("B", 20, 1)))
        self.assertEqual(result.path, AllocationPath.FULL_SATISFACTION)
        self.assertEqual(result.allocations["A"], D("10.125"))
        self.assertEqual(result.trace.passes, [])

    def test_exact_match_is_full_satisfaction(self):
        result = AllocationEngine.allocate(_request(150, ("A", 100, 1), ("B", 50, 5)))
        self.assertEqual(result.path, AllocationPath.FULL_SATISFACTION)
        self.assertIn("full request", result.trace.summary)

    def test_pro_rata_summary_counts_passes(self):
        result = AllocationEngine.allocate(_request(100, ("A", 10, 90), ("B", 200, 10)))
        self.assertEqual(result.path, AllocationPath.PRO_RATA)
        self.assertEqual(len(result.trace.passes), 2)
        self.assertIn("2 pass(es)", result.trace.summary)
        self.assertIn("$100.00", result.trace.summary)

    def test_summary_mentions_redistributed_dust(self):
        result = AllocationEngine.allocate(_request(10, ("A", 10, 1), ("B", 10, 1), ("C", 10, 1)))
        self.assertIn("Dust of 1 cent redistributed", result.trace.summary)
        self.assertEqual(result.trace.dust, D("0.01"))
        self.assertEqual(result.trace.residual_dust, D(0))

    def test_output_preserves_input_order(self):
        names = ["Zed", "Alpha", "Mid"]
        result = _alloc(10, *[(n, 10, 1) for n in names])
        self.assertEqual(list(result), names)

    def test_does_not_mutate_request(self):
        request = _request(100, ("A", 10, 90), ("B", 200, 10))
        snapshot = request.to_dict()
        AllocationEngine.allocate(request)
        self.assertEqual(request.to_dict(), snapshot)

    def test_trace_disabled_returns_none(self):
        result = AllocationEngine.allocate(_request(100, ("A", 150, 100)), record_trace=False)
        self.assertIsNone(result.trace)


# ===========================================================================
# 3. Equal-weight fallback and zero-weight remainder
# ===========================================================================

class TestZeroWeights(unittest.TestCase):

    def test_equal_split_under_capacity(self):
        result = AllocationEngine.allocate(_request(40, ("A", 25, 0), ("B", 25, 0)))
        self.assertEqual(result.path, AllocationPath.EQUAL_WEIGHT)
        self.assertEqual(result.allocations, {"A": D(20), "B": D(20)})

    def test_surplus_from_small_request_is_not_redistributed(self):
        result = AllocationEngine.allocate(
            _request(90, ("A", 10, 0), ("B", 100, 0), ("C", 100, 0))
        )
        self.assertEqual(result.allocations, {"A": D(10), "B": D(30), "C": D(30)})
        self.assertEqual(result.trace.residual_dust, D("20.00"))
        self.assertIn("$20.00 left undistributed", result.trace.summary)

    def test_equal_split_overshoot_is_taken_back(self):
        result = _alloc(20, ("A", 100, 0), ("B", 100, 0), ("C", 100, 0))
        self.assertEqual(result, {"A": D("6.67"), "B": D("6.67"), "C": D("6.66")})

    def test_mixed_zero_weights_split_remainder(self):
        result = AllocationEngine.allocate(
            _request(100, ("A", 30, 10), ("B", 100, 0), ("C", 100, 0))
        )
        self.assertEqual(result.allocations, {"A": D(30), "B": D(35), "C": D(35)})
        self.assertEqual(len(result.trace.passes), 2)
        self.assertTrue(result.trace.passes[-1].notes)

    def test_residual_dust_is_surfaced(self):
        # B is held to 20 of a 35 share; the sweep can only add one cent to C
        result = AllocationEngine.allocate(
            _request(100, ("A", 30, 10), ("B", 20, 0), ("C", 100, 0))
        )
        self.assertEqual(result.allocations, {"A": D(30), "B": D(20), "C": D("35.01")})
        self.assertEqual(result.trace.residual_dust, D("14.99"))
        self.assertIn("1499 cents left undistributed", result.trace.summary)


# ===========================================================================
# 4. Precondition backstop
# ===========================================================================

class TestInvalidInput(unittest.TestCase):

    def test_negative_capacity_raises(self):
        with self.assertRaises(InvalidInputError):
            AllocationEngine.allocate(_request(-1, ("A", 10, 1)))

    def test_nan_weight_raises(self):
        with self.assertRaises(InvalidInputError):
            AllocationEngine.allocate(_request(10, ("A", 10, float("nan")), ("B", 10, 1)))

    def test_infinite_requested_raises(self):
        with self.assertRaises(InvalidInputError):
            AllocationEngine.allocate(_request(10, ("A", float("inf"), 1)))

    def test_duplicate_names_raise(self):
        with self.assertRaises(InvalidInputError) as ctx:
            AllocationEngine.allocate(_request(10, ("A", 10, 1), ("A", 5, 1)))
        self.assertTrue(any("duplicate" in e for e in ctx.exception.errors))

    def test_empty_name_raises(self):
        request = AllocationRequest(D(10), (Claimant("", D(10), D(1)),))
        with self.assertRaises(InvalidInputError):
            AllocationEngine.allocate(request)

    def test_all_errors_reported_together(self):
        request = AllocationRequest(
            D(-5),
            (Claimant("A", D(-1), D(1)), Claimant("B", D(1), D(-1))),
        )
        with self.assertRaises(InvalidInputError) as ctx:
            AllocationEngine.allocate(request)
        self.assertEqual(len(ctx.exception.errors), 3)

    def test_invalid_input_error_is_value_error(self):
        self.assertTrue(issubclass(InvalidInputError, ValueError))


# ===========================================================================
# 5. Wire-format wrapper
# ===========================================================================

class TestCalculateProration(unittest.TestCase):

    PAYLOAD = {
        "allocation_amount": 100,
        "investor_amounts": [
            {"name": "Investor A", "requested_amount": 150, "average_amount": 100},
            {"name": "Investor B", "requested_amount": 50, "average_amount": 25},
        ],
    }

    def test_results_and_details(self):
        out = calculate_proration(self.PAYLOAD)
        self.assertEqual(out["results"], {"Investor A": D(80), "Investor B": D(20)})
        self.assertEqual(len(out["details"]["passes"]), 1)
        self.assertEqual(out["details"]["path"], "pro_rata")

    def test_details_none_without_trace(self):
        out = calculate_proration(self.PAYLOAD, record_trace=False)
        self.assertIsNone(out["details"])

    def test_missing_key_raises(self):
        with self.assertRaises(InvalidInputError):
            calculate_proration({"allocation_amount": 10})

    def test_non_numeric_amount_raises(self):
        payload = {
            "allocation_amount": "lots",
            "investor_amounts": [{"name": "A", "requested_amount": 1, "average_amount": 1}],
        }
        with self.assertRaises(InvalidInputError):
            calculate_proration(payload)


if __name__ == "__main__":
    unittest.main()
