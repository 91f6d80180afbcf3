"""RepoForge - repository audit rule engine

Runs pluggable rules against a source tree and reports violations by
severity and category, for interactive use and CI gating.
"""

__version__ = "0.1.0"
__description__ = "Pluggable rule engine for auditing source repositories"

from .project import FileEntry, FileKind, ProjectProfile, RepoMap
from .rules import (
    ResultFormatter,
    Rule,
    RuleCategory,
    RuleEngineResult,
    RuleExecutor,
    RuleRegistry,
    Severity,
    Violation,
    create_rule_engine,
)

__all__ = [
    "FileEntry",
    "FileKind",
    "ProjectProfile",
    "RepoMap",
    "ResultFormatter",
    "Rule",
    "RuleCategory",
    "RuleEngineResult",
    "RuleExecutor",
    "RuleRegistry",
    "Severity",
    "Violation",
    "create_rule_engine",
]
