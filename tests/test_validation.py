"""
tests/test_validation.py
------------------------
Unit tests for the form-level validator and the engine backstop.
"""

import unittest
from decimal import Decimal

from proration.errors import InvalidInputError
from proration.models import AllocationRequest, Claimant
from proration.validation import (
    ensure_valid,
    validate_capacity,
    validate_claimant,
    validate_request,
)


def _c(name="A", requested="10", weight="1") -> dict:
    return {"name": name, "requested": requested, "weight": weight}


class TestValidateCapacity(unittest.TestCase):

    def test_empty_is_required(self):
        check = validate_capacity("")
        self.assertFalse(check.valid)
        self.assertEqual(check.error, "Allocation amount is required")

    def test_not_a_number(self):
        self.assertFalse(validate_capacity("abc").valid)

    def test_nan_and_infinity_rejected(self):
        self.assertFalse(validate_capacity("NaN").valid)
        self.assertFalse(validate_capacity(float("inf")).valid)

    def test_negative(self):
        self.assertEqual(validate_capacity(-1).error, "Allocation amount cannot be negative")

    def test_zero_is_valid_with_warning(self):
        check = validate_capacity("0")
        self.assertTrue(check.valid)
        self.assertIsNotNone(check.warning)

    def test_positive(self):
        check = validate_capacity("1500.25")
        self.assertTrue(check.valid)
        self.assertIsNone(check.warning)


class TestValidateClaimant(unittest.TestCase):

    def test_valid(self):
        self.assertEqual(validate_claimant(_c(), 0), [])

    def test_missing_name_uses_index_label(self):
        errors = validate_claimant(_c(name=" "), 2)
        self.assertEqual(errors, ["Claimant 3: Name is required"])

    def test_each_field_reported(self):
        errors = validate_claimant(_c(requested="", weight="-2"), 0)
        self.assertIn("A: Requested amount is required", errors)
        self.assertIn("A: Weight cannot be negative", errors)

    def test_bool_is_not_a_number(self):
        errors = validate_claimant(_c(weight=True), 0)
        self.assertEqual(errors, ["A: Weight must be a valid number"])


class TestValidateRequest(unittest.TestCase):

    def test_valid_request(self):
        report = validate_request("100", [_c("A"), _c("B")])
        self.assertTrue(report.valid)
        self.assertEqual(report.errors, [])

    def test_requires_claimants(self):
        report = validate_request("100", [])
        self.assertFalse(report.valid)
        self.assertIn("At least one claimant is required", report.errors)

    def test_duplicate_names(self):
        report = validate_request("100", [_c("A"), _c("A")])
        self.assertFalse(report.valid)
        self.assertIn("A: Name must be unique", report.errors)

    def test_all_zero_weights_warns(self):
        report = validate_request("100", [_c("A", weight="0"), _c("B", weight=0)])
        self.assertTrue(report.valid)
        self.assertTrue(any("zero weight" in w for w in report.warnings))

    def test_errors_collected_across_fields(self):
        report = validate_request("-1", [_c("A", requested="x"), _c("")])
        self.assertEqual(len(report.errors), 3)


class TestEnsureValid(unittest.TestCase):

    def test_valid_request_passes(self):
        ensure_valid(AllocationRequest.create(10, [("A", 5, 1)]))

    def test_empty_claimants_allowed(self):
        ensure_valid(AllocationRequest.create(10, []))

    def test_nan_capacity(self):
        with self.assertRaises(InvalidInputError):
            ensure_valid(AllocationRequest(Decimal("NaN"), ()))

    def test_negative_weight(self):
        request = AllocationRequest(Decimal(10), (Claimant("A", Decimal(1), Decimal(-1)),))
        with self.assertRaises(InvalidInputError) as ctx:
            ensure_valid(request)
        self.assertEqual(ctx.exception.errors, ["A: weight cannot be negative (got -1)"])


if __name__ == "__main__":
    unittest.main()
