"""Base classes and types for the rule engine.

This module provides the foundational abstractions shared by every rule:
the closed Severity and RuleCategory sets, the per-file RuleContext, the
Violation record, and the Rule contract that plugins implement.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..project import ProjectProfile


class Severity(str, Enum):
    """Severity levels, declared from highest to lowest priority."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    SUGGESTION = "SUGGESTION"

    @property
    def rank(self) -> int:
        """Position in priority order (0 is CRITICAL)."""
        return SEVERITY_ORDER.index(self)

    def is_at_least(self, threshold: "Severity") -> bool:
        """Check if this severity is at or above a threshold."""
        return self.rank <= threshold.rank


SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.SUGGESTION,
)


class RuleCategory(str, Enum):
    """Concern area a rule belongs to."""

    SECURITY = "Security"
    TESTING = "Testing"
    ARCHITECTURE = "Architecture"
    PERFORMANCE = "Performance"
    STYLE = "Style"
    MAINTAINABILITY = "Maintainability"


@dataclass(frozen=True)
class RuleContext:
    """Context passed to a rule for one file.

    Contains everything a rule needs to evaluate a single file, including
    the full list of repository paths for cross-file checks.
    """

    file_path: str
    file_content: str
    project_profile: ProjectProfile = field(default_factory=ProjectProfile)
    all_files: tuple[str, ...] = ()
    ast: Any = field(default=None, repr=False)

    @property
    def lines(self) -> list[str]:
        """File content split into lines."""
        return self.file_content.splitlines()

    def line_number_at(self, index: int) -> int:
        """Get the 1-indexed line number of a character offset."""
        return self.file_content.count("\n", 0, index) + 1

    def snippet_at(self, index: int, context_lines: int = 2) -> str:
        """Extract the lines around a character offset.

        Args:
            index: Character offset into the file content.
            context_lines: Lines to include before and after.

        Returns:
            The surrounding lines joined with newlines.
        """
        lines = self.file_content.split("\n")
        line_number = self.line_number_at(index)
        start = max(0, line_number - context_lines - 1)
        end = min(len(lines), line_number + context_lines)
        return "\n".join(lines[start:end])


@dataclass(frozen=True)
class Violation:
    """A single finding reported by a rule against a file.

    Rule identity fields are copied in so a violation stays readable even
    if its rule is later unregistered.
    """

    rule_id: str
    rule_name: str
    category: RuleCategory
    severity: Severity
    message: str
    file_path: str
    fix_suggestion: str
    explanation: str
    line: int | None = None
    column: int | None = None
    code_snippet: str | None = None
    immediate_attention: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "code_snippet": self.code_snippet,
            "fix_suggestion": self.fix_suggestion,
            "explanation": self.explanation,
            "immediate_attention": self.immediate_attention,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Violation":
        """Create Violation from dictionary."""
        return cls(
            rule_id=data["rule_id"],
            rule_name=data["rule_name"],
            category=RuleCategory(data["category"]),
            severity=Severity(data["severity"]),
            message=data.get("message", ""),
            file_path=data["file_path"],
            fix_suggestion=data["fix_suggestion"],
            explanation=data["explanation"],
            line=data.get("line"),
            column=data.get("column"),
            code_snippet=data.get("code_snippet"),
            immediate_attention=data.get("immediate_attention", False),
        )


CheckResult = list[Violation] | Awaitable[list[Violation]]


class Rule(ABC):
    """Abstract base class for rules.

    Rules must define their identity (id, name, category, severity) and
    implement ``check``, which may be a plain method or a coroutine.
    Optional hooks:

    - ``frameworks``: restrict the rule to projects using these frameworks
    - ``adjust_severity``: replace the severity of each produced violation
    """

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """Unique rule identifier (e.g. 'SEC001_HARDCODED_CREDENTIALS')."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable rule name."""

    @property
    @abstractmethod
    def category(self) -> RuleCategory:
        """Category of the rule."""

    @property
    @abstractmethod
    def severity(self) -> Severity:
        """Default severity for violations from this rule."""

    @property
    def description(self) -> str:
        """Detailed description of what this rule checks."""
        return f"Rule {self.rule_id}: {self.name}"

    @property
    def frameworks(self) -> tuple[str, ...]:
        """Frameworks this rule applies to. Empty means all projects."""
        return ()

    @property
    def tags(self) -> tuple[str, ...]:
        """Free-form tags for filtering and display."""
        return ()

    @property
    def has_severity_adjustment(self) -> bool:
        """Whether ``adjust_severity`` is overridden by this rule."""
        return type(self).adjust_severity is not Rule.adjust_severity

    @abstractmethod
    def check(self, context: RuleContext) -> CheckResult:
        """Evaluate the rule against one file.

        Args:
            context: RuleContext for the file being checked.

        Returns:
            List of violations, or an awaitable resolving to one.
        """

    def adjust_severity(self, context: RuleContext, base: Severity) -> Severity:
        """Adjust a violation's severity for the given context.

        The default implementation keeps the base severity.
        """
        return base

    def _create_violation(
        self,
        context: RuleContext,
        message: str,
        fix_suggestion: str,
        explanation: str,
        line: int | None = None,
        column: int | None = None,
        code_snippet: str | None = None,
        severity: Severity | None = None,
    ) -> Violation:
        """Helper to create a Violation with this rule's identity.

        Args:
            context: Context of the file being checked.
            message: Brief description of the issue.
            fix_suggestion: How to fix it.
            explanation: Why it matters.
            line: Optional 1-indexed line number.
            column: Optional 1-indexed column.
            code_snippet: Optional code excerpt.
            severity: Optional override of the rule's default severity.

        Returns:
            Populated Violation.
        """
        return Violation(
            rule_id=self.rule_id,
            rule_name=self.name,
            category=self.category,
            severity=severity or self.severity,
            message=message,
            file_path=context.file_path,
            fix_suggestion=fix_suggestion,
            explanation=explanation,
            line=line,
            column=column,
            code_snippet=code_snippet,
        )

    def __repr__(self) -> str:
        """String representation of the rule."""
        return f"<{self.__class__.__name__} {self.rule_id}>"


CheckFn = Callable[[RuleContext], CheckResult]
AdjustSeverityFn = Callable[[RuleContext, Severity], Severity]


def _coerce(enum_cls: type[Enum], value: Any) -> Any:
    # Unknown values are kept as-is so registry validation can report them
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return value


class FunctionRule(Rule):
    """A rule assembled from plain values and a check callable.

    Useful for custom rules and tests where a subclass would be overkill.
    Identity fields are stored as given; the registry validates them.
    """

    def __init__(
        self,
        rule_id: str,
        name: str,
        category: RuleCategory | str,
        severity: Severity | str,
        check: CheckFn,
        description: str = "",
        adjust_severity: AdjustSeverityFn | None = None,
        frameworks: Sequence[str] | None = None,
        tags: Sequence[str] | None = None,
    ):
        self._rule_id = rule_id
        self._name = name
        self._category = _coerce(RuleCategory, category)
        self._severity = _coerce(Severity, severity)
        self._check = check
        self._description = description
        self._adjust = adjust_severity
        self._frameworks = tuple(frameworks or ())
        self._tags = tuple(tags or ())

    @property
    def rule_id(self) -> str:
        return self._rule_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def category(self) -> RuleCategory:
        return self._category  # type: ignore[return-value]

    @property
    def severity(self) -> Severity:
        return self._severity  # type: ignore[return-value]

    @property
    def description(self) -> str:
        return self._description or super().description

    @property
    def frameworks(self) -> tuple[str, ...]:
        return self._frameworks

    @property
    def tags(self) -> tuple[str, ...]:
        return self._tags

    @property
    def check_fn(self) -> Any:
        """The wrapped check callable."""
        return self._check

    @property
    def has_severity_adjustment(self) -> bool:
        return self._adjust is not None

    def check(self, context: RuleContext) -> CheckResult:
        return self._check(context)

    def adjust_severity(self, context: RuleContext, base: Severity) -> Severity:
        if self._adjust is None:
            return base
        return self._adjust(context, base)


__all__ = [
    "SEVERITY_ORDER",
    "FunctionRule",
    "Rule",
    "RuleCategory",
    "RuleContext",
    "Severity",
    "Violation",
]
