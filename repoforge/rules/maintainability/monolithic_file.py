"""
Monolithic file detection rule.

Flags source files whose line count exceeds a threshold chosen from the
kind of module the path suggests.
"""

import re

from ..base import Rule, RuleCategory, RuleContext, Severity, Violation
from ..testing.missing_test import MAIN_CODE_DIRECTORIES, is_code_file, is_test_file

# Line thresholds by module kind
THRESHOLDS = {
    "component": 400,
    "controller": 500,
    "service": 600,
    "model": 400,
    "config": 800,
    "default": 500,
}

_LINE_SPLIT = re.compile(r"\r?\n")


def threshold_for(file_path: str) -> int:
    """Pick the line threshold for a path."""
    lower = file_path.lower()
    if "/component" in lower or lower.endswith((".jsx", ".tsx")):
        return THRESHOLDS["component"]
    if "/controller" in lower or "/route" in lower:
        return THRESHOLDS["controller"]
    if "/service" in lower:
        return THRESHOLDS["service"]
    if "/model" in lower:
        return THRESHOLDS["model"]
    if "config" in lower:
        return THRESHOLDS["config"]
    return THRESHOLDS["default"]


def count_lines(content: str) -> int:
    return len(_LINE_SPLIT.split(content))


class MonolithicFileRule(Rule):
    """Detect overly large source files.

    Violations are reported at MEDIUM and escalated to HIGH through
    ``adjust_severity`` when a file is more than twice its threshold.
    """

    @property
    def rule_id(self) -> str:
        return "CURSE_MONOLITHIC_FILE"

    @property
    def name(self) -> str:
        return "Monolithic File"

    @property
    def category(self) -> RuleCategory:
        return RuleCategory.MAINTAINABILITY

    @property
    def severity(self) -> Severity:
        return Severity.MEDIUM

    @property
    def description(self) -> str:
        return "Files should not exceed reasonable line count thresholds"

    @property
    def tags(self) -> tuple[str, ...]:
        return ("maintainability", "size", "curse")

    def check(self, context: RuleContext) -> list[Violation]:
        path = context.file_path
        if is_test_file(path) or not is_code_file(path):
            return []
        if not path.startswith(MAIN_CODE_DIRECTORIES):
            return []

        threshold = threshold_for(path)
        line_count = count_lines(context.file_content)
        if line_count <= threshold:
            return []

        return [
            self._create_violation(
                context,
                message=(
                    f'File "{path}" is monstrously long '
                    f"({line_count} lines, threshold: {threshold})."
                ),
                fix_suggestion=(
                    "Split this file into smaller, focused modules. Extract "
                    "related functions into separate files or break large "
                    "classes into smaller components."
                ),
                explanation=(
                    "Large files are harder to understand, test, and maintain."
                ),
            )
        ]

    def adjust_severity(self, context: RuleContext, base: Severity) -> Severity:
        if count_lines(context.file_content) > threshold_for(context.file_path) * 2:
            return Severity.HIGH
        return base
