"""
Rule engine for RepoForge repository audits.

This package provides a pluggable rule engine that runs a catalog of
independent checks against every eligible file of a repository and
aggregates the violations under a configurable severity/category policy.

Example usage:
    from repoforge.project import ProjectProfile, RepoMap
    from repoforge.rules import ResultFormatter, create_rule_engine

    # Create engine with built-in rules and layered config
    executor = create_rule_engine(".", overrides={"min_severity": "HIGH"})

    # Run rules against a directory listing
    repo = RepoMap.from_directory(".")
    result = executor.run(repo, ProjectProfile(frameworks=("react",)))

    # Report
    print(ResultFormatter(use_color=False).format_cli(result))
    if executor.should_fail(result):
        raise SystemExit(1)
"""

from .base import (
    SEVERITY_ORDER,
    FunctionRule,
    Rule,
    RuleCategory,
    RuleContext,
    Severity,
    Violation,
)
from .config import (
    ConfigSaveError,
    ConfigValidationResult,
    RuleEngineConfig,
    RuleEngineConfigLoader,
    get_default_config,
    load_config,
    save_config,
    validate_config_data,
)
from .discovery import load_builtin_rules, register_custom_rules, resolve_custom_rule
from .executor import (
    ResultSummary,
    RuleEngineResult,
    RuleExecutor,
    create_rule_engine,
)
from .file_filter import should_exclude_file
from .formatters import ResultFormatter
from .parallel import ParallelProcessingError, process_in_batches, process_in_parallel
from .registry import (
    DuplicateRuleError,
    RuleRegistry,
    RuleStatus,
    RuleValidationError,
    RuleValidationResult,
)

__all__ = [
    # Base types
    "Severity",
    "SEVERITY_ORDER",
    "RuleCategory",
    "RuleContext",
    "Violation",
    "Rule",
    "FunctionRule",
    # Registry
    "RuleRegistry",
    "RuleStatus",
    "RuleValidationResult",
    "RuleValidationError",
    "DuplicateRuleError",
    # Configuration
    "RuleEngineConfig",
    "RuleEngineConfigLoader",
    "ConfigValidationResult",
    "ConfigSaveError",
    "get_default_config",
    "load_config",
    "save_config",
    "validate_config_data",
    # Discovery
    "load_builtin_rules",
    "register_custom_rules",
    "resolve_custom_rule",
    # Execution
    "RuleExecutor",
    "RuleEngineResult",
    "ResultSummary",
    "create_rule_engine",
    "should_exclude_file",
    "process_in_parallel",
    "process_in_batches",
    "ParallelProcessingError",
    # Output
    "ResultFormatter",
]
