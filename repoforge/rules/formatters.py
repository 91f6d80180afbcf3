"""Output formatters for rule engine results.

This module renders a RuleEngineResult for terminal display (with optional
ANSI colors), as JSON for CI tooling, and as a reduced dictionary for
embedding in tool-call responses.
"""

import json
from typing import Any

from .base import SEVERITY_ORDER, RuleCategory, Severity, Violation
from .executor import RuleEngineResult


class ResultFormatter:
    """Formats rule engine results for CLI, JSON and tool-call output.

    Example CLI output (without colors):

        RepoForge Rule Engine Results
        ==================================================

        Summary
          Total violations: 1
          Files scanned: 12
          Rules executed: 5
          Execution time: 18ms

        By Severity:
          CRITICAL: 1

        By Category:
          Security: 1

        CRITICAL (1)
        --------------------------------------------------
          Hardcoded Credentials (SEC001_HARDCODED_CREDENTIALS) !! IMMEDIATE ATTENTION REQUIRED
          src/config.py:3:1
          Hardcoded API key detected
          Fix: Load the key from an environment variable
    """

    COLORS = {
        Severity.CRITICAL: "\033[91m",  # Bright red
        Severity.HIGH: "\033[31m",  # Red
        Severity.MEDIUM: "\033[33m",  # Yellow
        Severity.LOW: "\033[36m",  # Cyan
        Severity.SUGGESTION: "\033[90m",  # Gray
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"

    RULE = "=" * 50
    SEPARATOR = "-" * 50

    def __init__(self, use_color: bool = True):
        """Initialize the formatter.

        Args:
            use_color: Whether to emit ANSI color codes.
        """
        self.use_color = use_color

    def _c(self, code: str) -> str:
        return code if self.use_color else ""

    def format_cli(self, result: RuleEngineResult) -> str:
        """Format results for terminal output, grouped by severity.

        Args:
            result: Result to format.

        Returns:
            Multi-line string.
        """
        bold, reset = self._c(self.BOLD), self._c(self.RESET)
        lines = [
            "",
            f"{bold}{self._c(self.BLUE)}RepoForge Rule Engine Results{reset}",
            self.RULE,
            "",
            self.generate_summary(result),
            "",
        ]

        grouped = self.group_by_severity(result.violations)
        for severity in SEVERITY_ORDER:
            violations = grouped.get(severity)
            if not violations:
                continue
            color = self._c(self.COLORS[severity])
            lines.append(f"{bold}{color}{severity.value} ({len(violations)}){reset}")
            lines.append(self.SEPARATOR)
            for violation in violations:
                lines.append(self._format_violation(violation))
                lines.append("")

        if not result.violations:
            lines.append(f"{self._c(self.GREEN)}{bold}No violations found!{reset}")
            lines.append("")

        return "\n".join(lines)

    def _format_violation(self, violation: Violation) -> str:
        bold, dim, reset = self._c(self.BOLD), self._c(self.DIM), self._c(self.RESET)
        attention = " !! IMMEDIATE ATTENTION REQUIRED" if violation.immediate_attention else ""

        lines = [
            f"  {bold}{violation.rule_name}{reset} {dim}({violation.rule_id}){reset}{attention}",
            f"  {dim}{self._format_location(violation)}{reset}",
            f"  {violation.message}",
        ]
        if violation.code_snippet:
            lines.append(f"  {dim}Code:{reset}")
            for snippet_line in violation.code_snippet.split("\n"):
                lines.append(f"    {dim}{snippet_line}{reset}")
        lines.append(f"  {self._c(self.GREEN)}Fix:{reset} {violation.fix_suggestion}")
        return "\n".join(lines)

    @staticmethod
    def _format_location(violation: Violation) -> str:
        if not violation.line:
            return violation.file_path
        if violation.column:
            return f"{violation.file_path}:{violation.line}:{violation.column}"
        return f"{violation.file_path}:{violation.line}"

    def format_json(self, result: RuleEngineResult) -> str:
        """Format results as indented JSON.

        The output can be read back with ``parse_json``.
        """
        return json.dumps(result.to_dict(), indent=2)

    @staticmethod
    def parse_json(text: str) -> RuleEngineResult:
        """Parse the output of ``format_json`` back into a result."""
        return RuleEngineResult.from_dict(json.loads(text))

    def format_mcp(self, result: RuleEngineResult) -> dict[str, Any]:
        """Format results as a plain dictionary for tool-call responses."""
        return {
            "violations": [v.to_dict() for v in result.violations],
            "summary": result.summary.to_dict(),
            "execution_time_ms": result.execution_time_ms,
            "files_scanned": result.files_scanned,
            "rules_executed": result.rules_executed,
        }

    def format_tool_response(self, result: RuleEngineResult) -> dict[str, Any]:
        """Wrap ``format_mcp`` output in a single text content block."""
        return {
            "content": [
                {"type": "text", "text": json.dumps(self.format_mcp(result), indent=2)}
            ]
        }

    def generate_summary(self, result: RuleEngineResult) -> str:
        """Generate the summary block: totals, then severity and category counts.

        Args:
            result: Result to summarize.

        Returns:
            Multi-line summary string.
        """
        bold, reset = self._c(self.BOLD), self._c(self.RESET)
        lines = [
            f"{bold}Summary{reset}",
            f"  Total violations: {result.summary.total}",
            f"  Files scanned: {result.files_scanned}",
            f"  Rules executed: {result.rules_executed}",
            f"  Execution time: {result.execution_time_ms:.0f}ms",
            "",
        ]

        if result.summary.total > 0:
            lines.append(f"{bold}By Severity:{reset}")
            for severity in SEVERITY_ORDER:
                count = result.summary.by_severity.get(severity, 0)
                if count > 0:
                    color = self._c(self.COLORS[severity])
                    lines.append(f"  {color}{severity.value}:{reset} {count}")
            lines.append("")

            lines.append(f"{bold}By Category:{reset}")
            categories = sorted(
                ((c, n) for c, n in result.summary.by_category.items() if n > 0),
                key=lambda item: item[1],
                reverse=True,
            )
            for category, count in categories:
                lines.append(f"  {category.value}: {count}")

        return "\n".join(lines)

    @staticmethod
    def group_by_severity(violations: list[Violation]) -> dict[Severity, list[Violation]]:
        """Group violations by severity, in encounter order."""
        grouped: dict[Severity, list[Violation]] = {}
        for violation in violations:
            grouped.setdefault(violation.severity, []).append(violation)
        return grouped

    @staticmethod
    def group_by_category(
        violations: list[Violation],
    ) -> dict[RuleCategory, list[Violation]]:
        """Group violations by category, in encounter order."""
        grouped: dict[RuleCategory, list[Violation]] = {}
        for violation in violations:
            grouped.setdefault(violation.category, []).append(violation)
        return grouped

    @staticmethod
    def group_by_file(violations: list[Violation]) -> dict[str, list[Violation]]:
        """Group violations by file path, in encounter order."""
        grouped: dict[str, list[Violation]] = {}
        for violation in violations:
            grouped.setdefault(violation.file_path, []).append(violation)
        return grouped


__all__ = ["ResultFormatter"]
