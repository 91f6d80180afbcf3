"""Rule discovery for built-in and custom rules.

Built-in rules live in category subpackages of ``repoforge.rules`` and are
found by importing every module in them and collecting concrete Rule
subclasses. Custom rules come from configuration, either as Rule instances
(API callers) or as ``"package.module:attribute"`` references (JSON files).
"""

import importlib
import inspect
import pkgutil
from collections.abc import Iterable
from types import ModuleType
from typing import Any

from ..audit_logging import get_logger
from .base import Rule
from .registry import RuleRegistry

logger = get_logger()

BUILTIN_RULE_PACKAGES = (
    "repoforge.rules.security",
    "repoforge.rules.maintainability",
    "repoforge.rules.testing",
    "repoforge.rules.architecture",
)


class CustomRuleError(ValueError):
    """Raised when a custom rule reference cannot be resolved."""


def _rule_classes(module: ModuleType) -> list[type[Rule]]:
    """Concrete Rule subclasses defined in a module."""
    return [
        obj
        for _name, obj in inspect.getmembers(module, inspect.isclass)
        if issubclass(obj, Rule)
        and not inspect.isabstract(obj)
        and obj.__module__ == module.__name__
    ]


def load_builtin_rules(packages: Iterable[str] = BUILTIN_RULE_PACKAGES) -> list[Rule]:
    """Instantiate every built-in rule.

    Modules are visited in name order so the catalog order is stable.
    A module that fails to import is logged and skipped.

    Args:
        packages: Dotted names of the packages to scan.

    Returns:
        One instance per discovered rule class.
    """
    rules: list[Rule] = []

    for package_name in packages:
        package = importlib.import_module(package_name)
        module_names = sorted(
            info.name
            for info in pkgutil.iter_modules(package.__path__, f"{package_name}.")
            if not info.name.rsplit(".", 1)[-1].startswith("_")
        )

        for module_name in module_names:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                logger.warning(f"Failed to import rule module {module_name}: {e}")
                continue

            for rule_class in _rule_classes(module):
                rules.append(rule_class())

    logger.debug(f"Discovered {len(rules)} built-in rules")
    return rules


def resolve_custom_rule(reference: str) -> list[Rule]:
    """Resolve a ``"module:attribute"`` reference to rule instances.

    The attribute may be a Rule instance, a Rule subclass (instantiated
    with no arguments), or a list/tuple of either.

    Args:
        reference: Reference such as ``"my_rules.checks:NoPrintRule"``.

    Returns:
        Resolved rule instances.

    Raises:
        CustomRuleError: If the reference is malformed or does not name rules.
        ImportError: If the module cannot be imported.
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise CustomRuleError(
            f"Custom rule reference '{reference}' must look like 'module:attribute'"
        )

    target: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise CustomRuleError(f"'{reference}' does not exist: {e}") from e

    candidates = target if isinstance(target, list | tuple) else [target]
    rules: list[Rule] = []
    for candidate in candidates:
        if isinstance(candidate, Rule):
            rules.append(candidate)
        elif (
            inspect.isclass(candidate)
            and issubclass(candidate, Rule)
            and not inspect.isabstract(candidate)
        ):
            rules.append(candidate())
        else:
            raise CustomRuleError(f"'{reference}' does not resolve to a rule")
    return rules


def register_custom_rules(registry: RuleRegistry, custom_rules: Iterable[Any]) -> int:
    """Register custom rules from configuration.

    Entries that cannot be resolved or registered are logged and skipped.

    Args:
        registry: Registry to add rules to.
        custom_rules: Rule instances or ``"module:attribute"`` references.

    Returns:
        Number of rules registered.
    """
    registered = 0

    for entry in custom_rules:
        try:
            if isinstance(entry, str):
                rules = resolve_custom_rule(entry)
            elif isinstance(entry, Rule):
                rules = [entry]
            else:
                raise CustomRuleError(f"Unsupported custom rule entry: {entry!r}")

            for rule in rules:
                registry.register(rule)
                registered += 1

        except (ImportError, ValueError) as e:
            logger.warning(f"Skipping custom rule {entry!r}: {e}")

    return registered


__all__ = [
    "BUILTIN_RULE_PACKAGES",
    "CustomRuleError",
    "load_builtin_rules",
    "register_custom_rules",
    "resolve_custom_rule",
]
