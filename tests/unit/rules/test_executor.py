"""
Unit tests for the RuleExecutor.

Tests for rule selection, file eligibility, serial/parallel equivalence,
severity normalization, post-filters, summaries and fail gating.
"""

import asyncio
import dataclasses
import logging
import threading

import pytest

from repoforge.project import FileEntry, FileKind, ProjectProfile, RepoMap
from repoforge.rules.base import FunctionRule, RuleCategory, RuleContext, Severity, Violation
from repoforge.rules.config import RuleEngineConfig
from repoforge.rules.executor import (
    ResultSummary,
    RuleEngineResult,
    RuleExecutor,
    create_rule_engine,
)
from repoforge.rules.registry import RuleRegistry


def make_violation(context, rule_id="TEST001", severity=Severity.MEDIUM, category=RuleCategory.STYLE):
    return Violation(
        rule_id=rule_id,
        rule_name=f"Rule {rule_id}",
        category=category,
        severity=severity,
        message="found",
        file_path=context.file_path,
        fix_suggestion="fix",
        explanation="why",
    )


def one_per_file_rule(rule_id="TEST001", severity=Severity.MEDIUM, category=RuleCategory.STYLE, **kwargs):
    """Rule that reports one violation for every file it sees."""
    return FunctionRule(
        rule_id=rule_id,
        name=f"Rule {rule_id}",
        category=category,
        severity=severity,
        check=lambda context: [make_violation(context, rule_id, severity, category)],
        **kwargs,
    )


def make_repo(tmp_path, files):
    """Write files under tmp_path and return a snapshot in the given order."""
    for name, content in files.items():
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return RepoMap.from_paths(tmp_path, list(files))


def make_executor(*rules, **config):
    registry = RuleRegistry()
    registry.register_many(list(rules))
    return RuleExecutor(registry, RuleEngineConfig(**config))


@pytest.fixture
def profile():
    return ProjectProfile()


@pytest.fixture
def ten_files(tmp_path):
    return make_repo(tmp_path, {f"file{i}.txt": f"content {i}\n" for i in range(10)})


class TestExecute:
    """Tests for execute()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parallel", [False, True])
    async def test_one_rule_ten_files(self, ten_files, profile, parallel):
        """Test ten files and one MEDIUM rule give ten violations."""
        executor = make_executor(
            one_per_file_rule(), parallel=parallel, max_concurrency=5
        )

        result = await executor.execute(ten_files, profile)

        assert len(result.violations) == 10
        assert result.files_scanned == 10
        assert result.rules_executed == 1
        assert result.summary.total == 10
        assert result.summary.by_severity[Severity.MEDIUM] == 10
        assert result.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_serial_and_parallel_identical(self, ten_files, profile):
        """Test both modes yield the same violations in the same order."""

        async def slow_check(context):
            # Earlier files take longer so parallel completion order differs
            index = int(context.file_path[4:-4])
            await asyncio.sleep(0.001 * (10 - index))
            return [make_violation(context)]

        rules = [
            FunctionRule("SLOW", "Slow", "Style", "LOW", check=slow_check),
            one_per_file_rule("FAST", Severity.HIGH),
        ]

        serial = await make_executor(*rules, parallel=False).execute(ten_files, profile)
        parallel = await make_executor(*rules, parallel=True, max_concurrency=5).execute(
            ten_files, profile
        )

        assert parallel.violations == serial.violations
        assert [v.file_path for v in serial.violations[:2]] == ["file0.txt", "file0.txt"]

    @pytest.mark.asyncio
    async def test_disabled_rules_skipped(self, ten_files, profile, caplog):
        """Test disabled rules do not run and unknown ids are warned about."""
        executor = make_executor(
            one_per_file_rule("A"),
            one_per_file_rule("B"),
            disabled_rules=("B", "GHOST"),
        )

        with caplog.at_level(logging.WARNING, logger="repoforge"):
            result = await executor.execute(ten_files, profile)

        assert {v.rule_id for v in result.violations} == {"A"}
        assert result.rules_executed == 1
        assert "GHOST" in caplog.text
        assert "'B'" not in caplog.text

    @pytest.mark.asyncio
    async def test_framework_filtering(self, ten_files):
        """Test framework-restricted rules only run for matching profiles."""
        executor = make_executor(
            one_per_file_rule("ANY"),
            one_per_file_rule("REACT", frameworks=["react", "next"]),
        )

        plain = await executor.execute(ten_files, ProjectProfile())
        react = await executor.execute(ten_files, ProjectProfile(frameworks=("next",)))

        assert plain.rules_executed == 1
        assert react.rules_executed == 2

    @pytest.mark.asyncio
    async def test_excluded_and_non_file_entries_skipped(self, tmp_path, profile):
        """Test binary, skipped-directory and non-file entries are not scanned."""
        repo = make_repo(
            tmp_path,
            {
                "src/app.py": "x = 1\n",
                "logo.png": b"\x89PNG",
                "node_modules/pkg/index.js": "module.exports = 1\n",
            },
        )
        repo.entries.append(FileEntry(path="src", kind=FileKind.DIRECTORY))
        repo.entries.append(FileEntry(path="link.py", kind=FileKind.SYMLINK))

        result = await make_executor(one_per_file_rule()).execute(repo, profile)

        assert result.files_scanned == 1
        assert [v.file_path for v in result.violations] == ["src/app.py"]

    @pytest.mark.asyncio
    async def test_content_sniffing(self, tmp_path, profile):
        """Test binary content is only excluded when sniffing is enabled."""
        repo = make_repo(tmp_path, {"a.txt": "text\n", "blob.dat": b"\x00\x01binary"})
        rule = one_per_file_rule()

        shallow = await make_executor(rule).execute(repo, profile)
        deep = await make_executor(rule, content_sniffing=True).execute(repo, profile)

        assert shallow.files_scanned == 2
        assert deep.files_scanned == 1

    @pytest.mark.asyncio
    async def test_content_sniffing_off_event_loop(self, tmp_path, profile, monkeypatch):
        """Test file sniffing runs in a worker thread, not the loop thread."""
        import repoforge.rules.executor as executor_module

        repo = make_repo(tmp_path, {"a.txt": "text\n"})
        threads = []
        real_exclude = executor_module.should_exclude_file

        def recording_exclude(path, full_path=None):
            threads.append(threading.get_ident())
            return real_exclude(path, full_path)

        monkeypatch.setattr(executor_module, "should_exclude_file", recording_exclude)
        executor = make_executor(one_per_file_rule(), content_sniffing=True)
        result = await executor.execute(repo, profile)

        assert result.files_scanned == 1
        assert threads
        assert threading.get_ident() not in threads

    @pytest.mark.asyncio
    async def test_max_files_caps_in_scan_order(self, ten_files, profile):
        executor = make_executor(one_per_file_rule(), max_files=3)
        result = await executor.execute(ten_files, profile)
        assert result.files_scanned == 3
        assert [v.file_path for v in result.violations] == [
            "file0.txt",
            "file1.txt",
            "file2.txt",
        ]

    @pytest.mark.asyncio
    async def test_unreadable_files_skipped(self, tmp_path, profile):
        """Test missing and undecodable files are skipped without counting."""
        repo = make_repo(tmp_path, {"ok.txt": "fine\n", "latin.txt": b"caf\xe9\n"})
        repo.entries.append(FileEntry(path="deleted.txt"))

        result = await make_executor(one_per_file_rule()).execute(repo, profile)

        assert result.files_scanned == 1
        assert [v.file_path for v in result.violations] == ["ok.txt"]

    @pytest.mark.asyncio
    async def test_context_contents(self, tmp_path):
        """Test rules receive content, profile and every snapshot path."""
        repo = make_repo(tmp_path, {"src/a.py": "alpha\n", "logo.png": b"\x89PNG"})
        profile = ProjectProfile(type="backend")
        seen: list[RuleContext] = []

        def check(context):
            seen.append(context)
            return []

        executor = make_executor(FunctionRule("CTX", "Ctx", "Style", "LOW", check=check))
        await executor.execute(repo, profile)

        (context,) = seen
        assert context.file_path == "src/a.py"
        assert context.file_content == "alpha\n"
        assert context.project_profile is profile
        assert context.all_files == ("src/a.py", "logo.png")

    @pytest.mark.asyncio
    async def test_empty_repo(self, tmp_path, profile):
        result = await make_executor(one_per_file_rule()).execute(
            RepoMap.from_paths(tmp_path, []), profile
        )
        assert result.violations == []
        assert result.files_scanned == 0
        assert result.summary.total == 0


class TestExecuteRule:
    """Tests for execute_rule()."""

    @pytest.fixture
    def context(self):
        return RuleContext(file_path="a.py", file_content="x")

    @pytest.mark.asyncio
    async def test_failing_rule_logged_and_ignored(self, context, caplog):
        def boom(ctx):
            raise RuntimeError("kaboom")

        rule = FunctionRule("BOOM", "Boom", "Style", "LOW", check=boom)
        executor = make_executor(rule)

        with caplog.at_level(logging.WARNING, logger="repoforge"):
            assert await executor.execute_rule(rule, context) == []
        assert "BOOM" in caplog.text
        assert "kaboom" in caplog.text

    @pytest.mark.asyncio
    async def test_async_check(self, context):
        async def check(ctx):
            await asyncio.sleep(0)
            return [make_violation(ctx)]

        rule = FunctionRule("ASYNC", "Async", "Style", "LOW", check=check)
        assert len(await make_executor(rule).execute_rule(rule, context)) == 1

    @pytest.mark.asyncio
    async def test_immediate_attention_recomputed(self, context):
        """Test the flag follows the final severity, whatever the rule set."""

        def check(ctx):
            return [
                make_violation(ctx, severity=Severity.CRITICAL),
                dataclasses.replace(
                    make_violation(ctx, severity=Severity.LOW), immediate_attention=True
                ),
            ]

        rule = FunctionRule("FLAG", "Flag", "Style", "LOW", check=check)
        violations = await make_executor(rule).execute_rule(rule, context)

        assert [v.immediate_attention for v in violations] == [True, False]

    @pytest.mark.asyncio
    async def test_adjust_severity_applied(self, context):
        rule = one_per_file_rule(
            "ADJ",
            Severity.MEDIUM,
            adjust_severity=lambda ctx, base: Severity.CRITICAL,
        )
        (violation,) = await make_executor(rule).execute_rule(rule, context)
        assert violation.severity == Severity.CRITICAL
        assert violation.immediate_attention is True

    @pytest.mark.asyncio
    async def test_adjust_severity_failure_contributes_nothing(self, context):
        def bad_adjust(ctx, base):
            raise ValueError("nope")

        rule = one_per_file_rule("ADJ", adjust_severity=bad_adjust)
        assert await make_executor(rule).execute_rule(rule, context) == []

    @pytest.mark.asyncio
    async def test_severity_name_coerced_to_enum(self, context):
        """Test a plain severity string from a hook becomes a Severity."""
        rule = one_per_file_rule("ADJ", adjust_severity=lambda ctx, base: "CRITICAL")
        (violation,) = await make_executor(rule).execute_rule(rule, context)
        assert violation.severity is Severity.CRITICAL
        assert violation.immediate_attention is True

    @pytest.mark.asyncio
    async def test_category_name_coerced_to_enum(self, context):
        rule = FunctionRule(
            "CAT",
            "Cat",
            "Style",
            "LOW",
            check=lambda ctx: [make_violation(ctx, "CAT", category="Security")],
        )
        (violation,) = await make_executor(rule).execute_rule(rule, context)
        assert violation.category is RuleCategory.SECURITY

    @pytest.mark.asyncio
    async def test_unknown_adjusted_severity_logged_and_ignored(self, context, caplog):
        rule = one_per_file_rule("ADJ", adjust_severity=lambda ctx, base: "BOGUS")

        with caplog.at_level(logging.WARNING, logger="repoforge"):
            assert await make_executor(rule).execute_rule(rule, context) == []
        assert "ADJ" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_violation_category_ignored(self, context):
        rule = FunctionRule(
            "CAT",
            "Cat",
            "Style",
            "LOW",
            check=lambda ctx: [make_violation(ctx, "CAT", category="Docs")],
        )
        assert await make_executor(rule).execute_rule(rule, context) == []

    @pytest.mark.parametrize("adjusted", ["CRITICAL", "BOGUS"])
    def test_bad_severity_does_not_abort_run(self, tmp_path, profile, adjusted):
        """Test one rule's bad severity leaves the other rules' results intact."""
        repo = make_repo(tmp_path, {"a.py": "x\n"})
        good = one_per_file_rule("GOOD", Severity.HIGH)
        bad = one_per_file_rule("BAD", adjust_severity=lambda ctx, base: adjusted)
        executor = make_executor(good, bad, min_severity=Severity.HIGH)

        result = executor.run(repo, profile)

        ids = sorted(v.rule_id for v in result.violations)
        expected = ["BAD", "GOOD"] if adjusted == "CRITICAL" else ["GOOD"]
        assert ids == expected
        assert result.summary.total == len(expected)


class TestFilters:
    """Tests for post-filters and summaries."""

    @pytest.fixture
    def context(self):
        return RuleContext(file_path="a.py", file_content="")

    @pytest.fixture
    def violations(self, context):
        return [
            make_violation(context, "C", Severity.CRITICAL, RuleCategory.SECURITY),
            make_violation(context, "H", Severity.HIGH, RuleCategory.TESTING),
            make_violation(context, "M", Severity.MEDIUM, RuleCategory.SECURITY),
        ]

    def test_min_severity_critical(self, violations):
        """Test CRITICAL threshold keeps only the CRITICAL violation."""
        executor = make_executor()
        kept = executor.filter_by_severity(violations, Severity.CRITICAL)
        assert [v.rule_id for v in kept] == ["C"]

    def test_no_min_severity_keeps_all(self, violations):
        assert make_executor().filter_by_severity(violations) == violations

    def test_filter_by_category(self, violations):
        kept = make_executor().filter_by_category(violations, [RuleCategory.SECURITY])
        assert [v.rule_id for v in kept] == ["C", "M"]

    def test_empty_category_filter_is_noop(self, violations):
        assert make_executor().filter_by_category(violations, []) == violations

    def test_calculate_summary(self, violations):
        summary = make_executor().calculate_summary(violations)
        assert summary.total == 3
        assert summary.by_severity == {
            Severity.CRITICAL: 1,
            Severity.HIGH: 1,
            Severity.MEDIUM: 1,
            Severity.LOW: 0,
            Severity.SUGGESTION: 0,
        }
        assert summary.by_category == {RuleCategory.SECURITY: 2, RuleCategory.TESTING: 1}

    @pytest.mark.asyncio
    async def test_filters_applied_before_summary(self, ten_files, profile):
        """Test the summary always matches the filtered violations."""
        executor = make_executor(
            one_per_file_rule("LOW", Severity.LOW),
            one_per_file_rule("SEC", Severity.HIGH, RuleCategory.SECURITY),
            one_per_file_rule("TST", Severity.HIGH, RuleCategory.TESTING),
            min_severity=Severity.HIGH,
            categories=(RuleCategory.SECURITY,),
        )

        result = await executor.execute(ten_files, profile)

        assert {v.rule_id for v in result.violations} == {"SEC"}
        assert result.summary.total == 10
        assert result.summary.by_category == {RuleCategory.SECURITY: 10}
        assert result.summary.by_severity[Severity.LOW] == 0


class TestShouldFail:
    """Tests for should_fail()."""

    @pytest.fixture
    def context(self):
        return RuleContext(file_path="a.py", file_content="")

    def result_with(self, context, *severities):
        violations = [make_violation(context, severity=s) for s in severities]
        return RuleEngineResult(
            violations=violations, summary=ResultSummary.from_violations(violations)
        )

    def test_below_threshold(self, context):
        executor = make_executor(fail_on_severity=Severity.HIGH)
        assert executor.should_fail(self.result_with(context, Severity.MEDIUM, Severity.LOW)) is False

    def test_at_threshold(self, context):
        executor = make_executor(fail_on_severity=Severity.HIGH)
        assert executor.should_fail(self.result_with(context, Severity.MEDIUM, Severity.HIGH)) is True

    def test_no_threshold_never_fails(self, context):
        executor = make_executor()
        assert executor.should_fail(self.result_with(context, Severity.CRITICAL)) is False


class TestExecuteRules:
    """Tests for execute_rules()."""

    @pytest.mark.asyncio
    async def test_subset_ignores_unknown_and_disabled(self, ten_files, profile):
        executor = make_executor(
            one_per_file_rule("A"),
            one_per_file_rule("B"),
            one_per_file_rule("C", frameworks=["vue"]),
            disabled_rules=("B",),
        )

        result = await executor.execute_rules(["A", "B", "C", "MISSING"], ten_files, profile)

        assert result.rules_executed == 2
        assert {v.rule_id for v in result.violations} == {"A", "C"}


class TestSyncWrappers:
    """Tests for run() and run_rules()."""

    def test_run(self, ten_files, profile):
        result = make_executor(one_per_file_rule()).run(ten_files, profile)
        assert result.summary.total == 10

    def test_run_rules(self, ten_files, profile):
        executor = make_executor(one_per_file_rule("A"), one_per_file_rule("B"))
        result = executor.run_rules(["B"], ten_files, profile)
        assert {v.rule_id for v in result.violations} == {"B"}


class TestRuleEngineResult:
    """Tests for result serialization."""

    def test_to_dict_from_dict(self, ten_files, profile):
        result = make_executor(one_per_file_rule()).run(ten_files, profile)
        restored = RuleEngineResult.from_dict(result.to_dict())
        assert restored == result
        assert restored.has_violations is True

    def test_summary_has_all_severities(self):
        data = ResultSummary().to_dict()
        assert data["by_severity"] == {
            "CRITICAL": 0,
            "HIGH": 0,
            "MEDIUM": 0,
            "LOW": 0,
            "SUGGESTION": 0,
        }


class TestCreateRuleEngine:
    """Tests for the create_rule_engine factory."""

    def test_builtin_rules_registered(self, tmp_path):
        executor = create_rule_engine(tmp_path, global_config_path=tmp_path / "none.json")
        assert executor.registry.has("SEC001_HARDCODED_CREDENTIALS")
        assert executor.registry.has("CURSE_MONOLITHIC_FILE")

    def test_without_builtins(self, tmp_path):
        executor = create_rule_engine(
            tmp_path, include_builtin=False, global_config_path=tmp_path / "none.json"
        )
        assert len(executor.registry) == 0

    def test_custom_rule_instances_registered(self, tmp_path):
        custom = one_per_file_rule("CUSTOM")
        executor = create_rule_engine(
            tmp_path,
            overrides={"custom_rules": [custom]},
            include_builtin=False,
            global_config_path=tmp_path / "none.json",
        )
        assert executor.registry.get("CUSTOM") is custom

    def test_overrides_reach_config(self, tmp_path):
        executor = create_rule_engine(
            tmp_path,
            overrides={"fail_on_severity": "HIGH"},
            global_config_path=tmp_path / "none.json",
        )
        assert executor.config.fail_on_severity == Severity.HIGH
