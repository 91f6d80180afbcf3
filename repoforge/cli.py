"""CLI entry point for the RepoForge rule engine."""

import argparse
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from . import __version__
from .audit_logging import get_logger, setup_logging
from .project import ProjectProfile, RepoMap
from .rules.base import RuleCategory, Severity
from .rules.executor import create_rule_engine
from .rules.formatters import ResultFormatter

logger = get_logger()

SEVERITY_CHOICES = [s.value for s in Severity]
CATEGORY_CHOICES = [c.value for c in RuleCategory]


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Translate audit flags into config overrides.

    Only flags the user actually passed become overrides, so file
    configuration still applies for everything else.
    """
    overrides: dict[str, Any] = {}
    if args.min_severity:
        overrides["min_severity"] = args.min_severity
    if args.fail_on_severity:
        overrides["fail_on_severity"] = args.fail_on_severity
    if args.disable_rule:
        overrides["disabled_rules"] = list(args.disable_rule)
    if args.category:
        overrides["categories"] = list(args.category)
    if args.sequential:
        overrides["parallel"] = False
    if args.max_files is not None:
        overrides["max_files"] = args.max_files
    if args.max_concurrency is not None:
        overrides["max_concurrency"] = args.max_concurrency
    if args.deep:
        overrides["content_sniffing"] = True
    return overrides


def _cmd_audit(args: argparse.Namespace) -> int:
    root = Path(args.path)
    if not root.is_dir():
        print(f"Error: not a directory: {root}", file=sys.stderr)
        return 2

    try:
        executor = create_rule_engine(root, build_overrides(args))
    except ValidationError as e:
        print(f"Error: invalid options: {e}", file=sys.stderr)
        return 2

    repo = RepoMap.from_directory(root)
    profile = ProjectProfile(frameworks=tuple(args.framework or ()))
    result = executor.run(repo, profile)

    formatter = ResultFormatter(use_color=not args.no_color and sys.stdout.isatty())
    if args.format == "json":
        print(formatter.format_json(result))
    else:
        print(formatter.format_cli(result))

    if executor.should_fail(result):
        logger.debug("Failing: violations at or above the fail threshold")
        return 1
    return 0


def _cmd_rules(args: argparse.Namespace) -> int:
    root = Path(args.path)
    executor = create_rule_engine(root)
    statuses = executor.registry.get_all_with_status(list(executor.config.disabled_rules))

    for category in RuleCategory:
        in_category = [s for s in statuses if s.rule.category == category]
        if not in_category:
            continue
        print(f"{category.value} ({len(in_category)})")
        for status in in_category:
            rule = status.rule
            marker = " [disabled]" if status.disabled else ""
            frameworks = f" [{', '.join(rule.frameworks)}]" if rule.frameworks else ""
            print(f"  {rule.rule_id:<32} {rule.severity.value:<10} {rule.name}{frameworks}{marker}")
        print()

    print(f"{len(statuses)} rule(s) registered")
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoforge",
        description="Audit a repository with the RepoForge rule engine",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"repoforge {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    # audit subcommand
    audit_p = subparsers.add_parser("audit", help="Run rules against a directory")
    audit_p.add_argument("path", nargs="?", default=".", help="Project root (default: .)")
    audit_p.add_argument(
        "--min-severity", choices=SEVERITY_CHOICES, help="Only report at or above this severity"
    )
    audit_p.add_argument(
        "--fail-on-severity",
        choices=SEVERITY_CHOICES,
        help="Exit with status 1 if violations reach this severity",
    )
    audit_p.add_argument(
        "--disable-rule", action="append", metavar="RULE_ID", help="Skip a rule (repeatable)"
    )
    audit_p.add_argument(
        "--category",
        action="append",
        choices=CATEGORY_CHOICES,
        help="Only report this category (repeatable)",
    )
    audit_p.add_argument(
        "--framework",
        action="append",
        metavar="NAME",
        help="Framework used by the project, e.g. react (repeatable)",
    )
    audit_p.add_argument(
        "--deep", action="store_true", help="Also skip files whose content looks binary"
    )
    audit_p.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    audit_p.add_argument(
        "--sequential", action="store_true", help="Evaluate files one at a time"
    )
    audit_p.add_argument("--max-files", type=_positive_int, help="Evaluate at most N files")
    audit_p.add_argument(
        "--max-concurrency", type=_positive_int, help="Concurrent file evaluations"
    )
    audit_p.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    audit_p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable debug logging",
    )

    # rules subcommand
    rules_p = subparsers.add_parser("rules", help="List registered rules")
    rules_p.add_argument("path", nargs="?", default=".", help="Project root (default: .)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    dispatch = {
        "audit": _cmd_audit,
        "rules": _cmd_rules,
    }
    handler = dispatch.get(args.command) if args.command else None
    if handler is None:
        parser.print_help()
        return 2
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
