"""Maintainability rules."""

from .monolithic_file import MonolithicFileRule
from .swallowed_exceptions import SwallowedExceptionRule

__all__ = ["MonolithicFileRule", "SwallowedExceptionRule"]
