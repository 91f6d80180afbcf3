"""Rule executor for orchestrating rule evaluation across a repository.

This module provides the RuleExecutor class, which selects applicable
rules and eligible files, evaluates every rule against every file (either
sequentially or with bounded concurrency), normalizes severities and
applies the configured post-filters.
"""

import asyncio
import dataclasses
import inspect
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..audit_logging import get_logger
from ..project import FileKind, ProjectProfile, RepoMap
from .base import SEVERITY_ORDER, RuleCategory, Rule, RuleContext, Severity, Violation
from .config import RuleEngineConfig, load_config
from .discovery import load_builtin_rules, register_custom_rules
from .file_filter import should_exclude_file
from .parallel import DEFAULT_MAX_CONCURRENCY, process_in_parallel
from .registry import RuleRegistry

logger = get_logger()


@dataclass
class ResultSummary:
    """Violation counts, always derived from a violation list."""

    total: int = 0
    by_severity: dict[Severity, int] = field(
        default_factory=lambda: {s: 0 for s in SEVERITY_ORDER}
    )
    by_category: dict[RuleCategory, int] = field(default_factory=dict)

    @classmethod
    def from_violations(cls, violations: Sequence[Violation]) -> "ResultSummary":
        """Count violations by severity and category."""
        summary = cls()
        for violation in violations:
            summary.by_severity[violation.severity] += 1
            summary.by_category[violation.category] = (
                summary.by_category.get(violation.category, 0) + 1
            )
        summary.total = len(violations)
        return summary

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "by_severity": {s.value: n for s, n in self.by_severity.items()},
            "by_category": {c.value: n for c, n in self.by_category.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResultSummary":
        """Create ResultSummary from dictionary."""
        summary = cls(total=data.get("total", 0))
        for key, count in data.get("by_severity", {}).items():
            summary.by_severity[Severity(key)] = count
        summary.by_category = {
            RuleCategory(key): count for key, count in data.get("by_category", {}).items()
        }
        return summary


@dataclass
class RuleEngineResult:
    """Aggregated result of a rule engine run."""

    violations: list[Violation] = field(default_factory=list)
    summary: ResultSummary = field(default_factory=ResultSummary)
    execution_time_ms: float = 0.0
    files_scanned: int = 0
    rules_executed: int = 0

    @property
    def has_violations(self) -> bool:
        """Check if any violations were reported."""
        return len(self.violations) > 0

    @property
    def critical_violations(self) -> list[Violation]:
        """Violations flagged for immediate attention."""
        return [v for v in self.violations if v.immediate_attention]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary.to_dict(),
            "execution_time_ms": self.execution_time_ms,
            "files_scanned": self.files_scanned,
            "rules_executed": self.rules_executed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleEngineResult":
        """Create RuleEngineResult from dictionary."""
        return cls(
            violations=[Violation.from_dict(v) for v in data.get("violations", [])],
            summary=ResultSummary.from_dict(data.get("summary", {})),
            execution_time_ms=data.get("execution_time_ms", 0.0),
            files_scanned=data.get("files_scanned", 0),
            rules_executed=data.get("rules_executed", 0),
        )


class RuleExecutor:
    """Runs registered rules against the files of a repository.

    The registry is treated as read-only while a run is in progress.
    Serial and parallel runs over the same inputs produce the same
    violations in the same order.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        config: RuleEngineConfig | None = None,
    ):
        """Initialize the executor.

        Args:
            registry: Registry holding the rules to run.
            config: Merged engine configuration. Defaults to built-ins.
        """
        self.registry = registry
        self.config = config or RuleEngineConfig()

    async def execute(self, repo: RepoMap, profile: ProjectProfile) -> RuleEngineResult:
        """Execute all applicable rules against a repository.

        Args:
            repo: File-tree snapshot to audit.
            profile: Detected project profile.

        Returns:
            RuleEngineResult with filtered violations and statistics.
        """
        start_time = time.perf_counter()

        all_rules = self.registry.get_all()
        self._warn_unknown_disabled_rules(all_rules)
        enabled_rules = self._filter_disabled_rules(all_rules)
        applicable_rules = self._filter_by_framework(enabled_rules, profile)

        return await self._run(applicable_rules, repo, profile, start_time)

    async def execute_rules(
        self,
        rule_ids: list[str],
        repo: RepoMap,
        profile: ProjectProfile,
    ) -> RuleEngineResult:
        """Execute an explicit subset of rules.

        Unknown IDs are ignored and disabled IDs are still dropped.
        Framework restrictions are not applied.

        Args:
            rule_ids: IDs of the rules to run.
            repo: File-tree snapshot to audit.
            profile: Detected project profile.

        Returns:
            RuleEngineResult for the selected rules.
        """
        start_time = time.perf_counter()

        rules: list[Rule] = []
        for rule_id in dict.fromkeys(rule_ids):
            rule = self.registry.get(rule_id)
            if rule is None:
                logger.debug(f"Requested rule '{rule_id}' is not registered")
                continue
            rules.append(rule)

        enabled_rules = self._filter_disabled_rules(rules)
        return await self._run(enabled_rules, repo, profile, start_time)

    def run(self, repo: RepoMap, profile: ProjectProfile) -> RuleEngineResult:
        """Synchronous wrapper around ``execute``."""
        return asyncio.run(self.execute(repo, profile))

    def run_rules(
        self, rule_ids: list[str], repo: RepoMap, profile: ProjectProfile
    ) -> RuleEngineResult:
        """Synchronous wrapper around ``execute_rules``."""
        return asyncio.run(self.execute_rules(rule_ids, repo, profile))

    async def execute_rule(self, rule: Rule, context: RuleContext) -> list[Violation]:
        """Execute a single rule against one file.

        Failures are logged and yield no violations. Severity adjustment is
        applied when the rule defines it, and ``immediate_attention`` is
        always recomputed from the final severity. A severity or category
        outside the known values counts as a failure of the rule.

        Args:
            rule: Rule to execute.
            context: Context of the file being checked.

        Returns:
            Normalized violations.
        """
        try:
            outcome = rule.check(context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            violations = list(outcome or [])

            adjust = rule.has_severity_adjustment
            normalized: list[Violation] = []
            for violation in violations:
                # Raises ValueError for values outside the closed enums
                severity = Severity(
                    rule.adjust_severity(context, violation.severity)
                    if adjust
                    else violation.severity
                )
                normalized.append(
                    dataclasses.replace(
                        violation,
                        category=RuleCategory(violation.category),
                        severity=severity,
                        immediate_attention=severity == Severity.CRITICAL,
                    )
                )
            return normalized

        except Exception as e:
            logger.warning(f"Rule {rule.rule_id} failed on {context.file_path}: {e}")
            return []

    def filter_by_severity(
        self,
        violations: list[Violation],
        min_severity: Severity | None = None,
    ) -> list[Violation]:
        """Keep violations at or above a severity threshold.

        Args:
            violations: Violations to filter.
            min_severity: Threshold; None keeps everything.

        Returns:
            Filtered violations in their original order.
        """
        if min_severity is None:
            return list(violations)
        return [v for v in violations if v.severity.is_at_least(min_severity)]

    def filter_by_category(
        self,
        violations: list[Violation],
        categories: Sequence[RuleCategory] | None = None,
    ) -> list[Violation]:
        """Keep violations whose category is listed.

        An empty or missing category list disables the filter.
        """
        if not categories:
            return list(violations)
        allowed = set(categories)
        return [v for v in violations if v.category in allowed]

    def calculate_summary(self, violations: Sequence[Violation]) -> ResultSummary:
        """Calculate summary counts for a violation list."""
        return ResultSummary.from_violations(violations)

    def should_fail(self, result: RuleEngineResult) -> bool:
        """Check if the run should fail under ``fail_on_severity``.

        Args:
            result: Result of a previous run.

        Returns:
            True if any violation is at or above the fail threshold.
        """
        threshold = self.config.fail_on_severity
        if threshold is None:
            return False
        return any(v.severity.is_at_least(threshold) for v in result.violations)

    def get_files_to_scan(self, repo: RepoMap) -> list[str]:
        """Get eligible files in scan order, capped at ``max_files``.

        With ``content_sniffing`` enabled this reads the head of every
        candidate file and blocks; async callers run it in a worker thread.
        """
        root = Path(repo.root)
        files: list[str] = []

        for entry in repo.entries:
            if entry.kind != FileKind.FILE:
                continue
            full_path = root / entry.path if self.config.content_sniffing else None
            if should_exclude_file(entry.path, full_path):
                continue
            files.append(entry.path)

        if self.config.max_files is not None:
            files = files[: self.config.max_files]
        return files

    async def _run(
        self,
        rules: list[Rule],
        repo: RepoMap,
        profile: ProjectProfile,
        start_time: float,
    ) -> RuleEngineResult:
        if self.config.content_sniffing:
            # Sniffing reads file heads
            files = await asyncio.to_thread(self.get_files_to_scan, repo)
        else:
            files = self.get_files_to_scan(repo)
        all_files = tuple(repo.file_paths)

        per_file = await self._execute_rules_on_files(
            rules, files, Path(repo.root), profile, all_files
        )

        violations: list[Violation] = []
        files_scanned = 0
        for file_violations in per_file:
            if file_violations is None:
                continue
            files_scanned += 1
            violations.extend(file_violations)

        filtered = self.filter_by_severity(violations, self.config.min_severity)
        filtered = self.filter_by_category(filtered, self.config.categories)

        execution_time_ms = (time.perf_counter() - start_time) * 1000

        return RuleEngineResult(
            violations=filtered,
            summary=self.calculate_summary(filtered),
            execution_time_ms=execution_time_ms,
            files_scanned=files_scanned,
            rules_executed=len(rules),
        )

    async def _execute_rules_on_files(
        self,
        rules: list[Rule],
        files: list[str],
        root: Path,
        profile: ProjectProfile,
        all_files: tuple[str, ...],
    ) -> list[list[Violation] | None]:
        """Evaluate rules on every file; None marks an unreadable file."""

        async def evaluate(file_path: str) -> list[Violation] | None:
            return await self._execute_rules_on_file(
                rules, file_path, root, profile, all_files
            )

        if self.config.parallel:
            max_concurrency = self.config.max_concurrency or DEFAULT_MAX_CONCURRENCY
            return await process_in_parallel(files, evaluate, max_concurrency)

        results: list[list[Violation] | None] = []
        for file_path in files:
            results.append(await evaluate(file_path))
        return results

    async def _execute_rules_on_file(
        self,
        rules: list[Rule],
        file_path: str,
        root: Path,
        profile: ProjectProfile,
        all_files: tuple[str, ...],
    ) -> list[Violation] | None:
        full_path = root / file_path
        try:
            content = await asyncio.to_thread(full_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable file {file_path}: {e}")
            return None

        context = RuleContext(
            file_path=file_path,
            file_content=content,
            project_profile=profile,
            all_files=all_files,
        )

        violations: list[Violation] = []
        for rule in rules:
            violations.extend(await self.execute_rule(rule, context))
        return violations

    def _filter_disabled_rules(self, rules: list[Rule]) -> list[Rule]:
        if not self.config.disabled_rules:
            return list(rules)
        disabled = set(self.config.disabled_rules)
        return [r for r in rules if r.rule_id not in disabled]

    def _warn_unknown_disabled_rules(self, rules: list[Rule]) -> None:
        known = {r.rule_id for r in rules}
        for rule_id in self.config.disabled_rules:
            if rule_id not in known:
                logger.warning(
                    f"Disabled rule ID '{rule_id}' does not exist in registry"
                )

    def _filter_by_framework(
        self, rules: list[Rule], profile: ProjectProfile
    ) -> list[Rule]:
        project_frameworks = set(profile.frameworks)
        return [
            r
            for r in rules
            if not r.frameworks or project_frameworks.intersection(r.frameworks)
        ]


def create_rule_engine(
    project_root: Path | str,
    overrides: "RuleEngineConfig | dict[str, Any] | None" = None,
    include_builtin: bool = True,
    global_config_path: Path | None = None,
) -> RuleExecutor:
    """Create a RuleExecutor for a project.

    Loads the layered configuration, registers the built-in catalog and
    then the custom rules named in the configuration.

    Args:
        project_root: Project root directory.
        overrides: Caller overrides, highest precedence.
        include_builtin: Whether to register the built-in rules.
        global_config_path: Override for the user-level config file.

    Returns:
        Configured RuleExecutor.
    """
    config = load_config(project_root, overrides, global_config_path)

    registry = RuleRegistry()
    if include_builtin:
        registry.register_many(load_builtin_rules())
    if config.custom_rules:
        register_custom_rules(registry, config.custom_rules)

    logger.debug(f"Rule engine ready with {len(registry)} rules")
    return RuleExecutor(registry, config)


__all__ = [
    "ResultSummary",
    "RuleEngineResult",
    "RuleExecutor",
    "create_rule_engine",
]
