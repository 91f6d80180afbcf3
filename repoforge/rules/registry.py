"""Rule registry for managing rule definitions.

The registry is an explicitly constructed catalog: callers create one,
register rules into it, and hand it to a RuleExecutor. Nothing here is
module-level state.
"""

from dataclasses import dataclass, field

from ..audit_logging import get_logger
from .base import FunctionRule, Rule, RuleCategory, Severity

logger = get_logger()

_VALID_CATEGORIES = ", ".join(c.value for c in RuleCategory)
_VALID_SEVERITIES = ", ".join(s.value for s in Severity)


class RuleValidationError(ValueError):
    """Raised when a rule definition is missing or has invalid fields."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid rule definition: {', '.join(errors)}")


class DuplicateRuleError(ValueError):
    """Raised when registering a rule whose ID is already taken."""

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule with ID '{rule_id}' already exists")


@dataclass
class RuleValidationResult:
    """Outcome of validating a rule definition."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RuleStatus:
    """A registered rule annotated with whether it is disabled."""

    rule: Rule
    disabled: bool

    @property
    def rule_id(self) -> str:
        return self.rule.rule_id


class RuleRegistry:
    """In-memory catalog of validated rules, keyed by rule ID.

    Rules are kept in registration order.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(self, rule: Rule) -> None:
        """Register a rule.

        Args:
            rule: Rule instance to register.

        Raises:
            RuleValidationError: If a required field is missing or invalid.
            DuplicateRuleError: If a rule with the same ID is registered.
        """
        validation = self.validate(rule)
        if not validation.valid:
            raise RuleValidationError(validation.errors)

        if rule.rule_id in self._rules:
            raise DuplicateRuleError(rule.rule_id)

        self._rules[rule.rule_id] = rule
        logger.debug(f"Registered rule {rule.rule_id}")

    def register_many(self, rules: list[Rule]) -> None:
        """Register several rules, stopping at the first failure.

        Rules before the failing one stay registered.
        """
        for rule in rules:
            self.register(rule)

    def unregister(self, rule_id: str) -> bool:
        """Unregister a rule by ID.

        Args:
            rule_id: ID of the rule to remove.

        Returns:
            True if a rule was removed, False if none was registered.
        """
        return self._rules.pop(rule_id, None) is not None

    def get(self, rule_id: str) -> Rule | None:
        """Get a rule by ID."""
        return self._rules.get(rule_id)

    def has(self, rule_id: str) -> bool:
        """Check if a rule is registered."""
        return rule_id in self._rules

    def get_all(self) -> list[Rule]:
        """Get all registered rules in registration order."""
        return list(self._rules.values())

    def get_by_category(self, category: RuleCategory | str) -> list[Rule]:
        """Get all rules in a category."""
        return [r for r in self._rules.values() if r.category == category]

    def get_by_framework(self, framework: str) -> list[Rule]:
        """Get rules applicable to a framework.

        Rules without a framework restriction apply to every framework.
        """
        return [
            r
            for r in self._rules.values()
            if not r.frameworks or framework in r.frameworks
        ]

    def get_all_with_status(
        self, disabled_rule_ids: list[str] | None = None
    ) -> list[RuleStatus]:
        """Get every rule paired with its disabled flag.

        Args:
            disabled_rule_ids: IDs considered disabled.

        Returns:
            List of RuleStatus in registration order.
        """
        disabled = set(disabled_rule_ids or [])
        return [
            RuleStatus(rule=rule, disabled=rule.rule_id in disabled)
            for rule in self._rules.values()
        ]

    def validate(self, rule: Rule) -> RuleValidationResult:
        """Validate a rule definition without registering it."""
        errors: list[str] = []

        rule_id = getattr(rule, "rule_id", None)
        if not isinstance(rule_id, str) or not rule_id.strip():
            errors.append("Rule must have a non-empty id")

        name = getattr(rule, "name", None)
        if not isinstance(name, str) or not name.strip():
            errors.append("Rule must have a non-empty name")

        category = getattr(rule, "category", None)
        if not category:
            errors.append("Rule must have a category")
        elif not isinstance(category, RuleCategory):
            errors.append(
                f"Invalid category '{category}'. Must be one of: {_VALID_CATEGORIES}"
            )

        severity = getattr(rule, "severity", None)
        if not severity:
            errors.append("Rule must have a severity")
        elif not isinstance(severity, Severity):
            errors.append(
                f"Invalid severity '{severity}'. Must be one of: {_VALID_SEVERITIES}"
            )

        if isinstance(rule, FunctionRule):
            check = rule.check_fn
        else:
            check = getattr(rule, "check", None)
        if not callable(check):
            errors.append("Rule must have a check function")

        return RuleValidationResult(valid=not errors, errors=errors)

    @property
    def rule_count(self) -> int:
        """Number of registered rules."""
        return len(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules


__all__ = [
    "DuplicateRuleError",
    "RuleRegistry",
    "RuleStatus",
    "RuleValidationError",
    "RuleValidationResult",
]
