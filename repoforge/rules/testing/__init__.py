"""Testing rules."""

from .missing_test import MissingTestRule

__all__ = ["MissingTestRule"]
