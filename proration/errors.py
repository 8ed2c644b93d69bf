"""
proration/errors.py
-------------------
Exceptions raised by the engine and its collaborators.
"""

from __future__ import annotations

from typing import Iterable, List


class InvalidInputError(ValueError):
    """
    A precondition on the allocation request does not hold.

    Raised before any arithmetic runs, so a caller never receives a partial
    result.  ``errors`` lists every individual violation that was found.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid allocation request")


class FixtureError(ValueError):
    """A fixture file exists but does not follow the fixture wire format."""
