"""
Swallowed exception detection rule.

Detects exception handlers that silently ignore the error without
logging, re-raising, or any other handling.
"""

import re

from ..base import Rule, RuleCategory, RuleContext, Severity, Violation

PYTHON_EXTENSIONS = (".py",)
SCRIPT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")


class SwallowedExceptionRule(Rule):
    """Detect silently swallowed exceptions.

    Single-line handlers (``except: pass``, ``catch (e) {}``) are matched
    directly. A handler header on its own line is flagged when its body is
    nothing but ``pass`` or ``...``.
    """

    # Format: (regex, description)
    PYTHON_PATTERNS = [
        (r"except\s*:\s*pass\s*$", "Bare except clause with pass"),
        (r"except\s+[\w.,() ]+\s*:\s*pass\s*$", "Exception caught and ignored with pass"),
        (
            r"except\s+[\w.,() ]+\s+as\s+\w+\s*:\s*pass\s*$",
            "Exception caught with alias but ignored",
        ),
        (r"except\s*[\w.,() ]*:\s*\.\.\.\s*$", "Exception block with ellipsis"),
    ]

    SCRIPT_PATTERNS = [
        (r"catch\s*\(\s*\w*\s*(?::\s*\w+)?\s*\)\s*\{\s*\}", "Empty catch block"),
        (r"catch\s*\{\s*\}", "Empty catch block without binding"),
        (r"\.catch\s*\(\s*\(\s*\w*(?::\s*\w+)?\s*\)\s*=>\s*\{\s*\}\s*\)", "Empty promise catch handler"),
        (r"\.catch\s*\(\s*function\s*\(\s*\w*\s*\)\s*\{\s*\}\s*\)", "Empty promise catch function"),
    ]

    # Comments that mark an ignore as intentional
    SAFE_MARKERS = re.compile(r"(#|//)\s*(intentional|ignore|expected)", re.IGNORECASE)

    _HANDLER_HEADER = re.compile(r"^(\s*)except\b[^:]*:\s*(#.*)?$")
    _EMPTY_BODY = re.compile(r"^\s*(pass|\.\.\.)\s*(#.*)?$")

    @property
    def rule_id(self) -> str:
        return "MAINT001_SWALLOWED_EXCEPTION"

    @property
    def name(self) -> str:
        return "Swallowed Exception"

    @property
    def category(self) -> RuleCategory:
        return RuleCategory.MAINTAINABILITY

    @property
    def severity(self) -> Severity:
        return Severity.HIGH

    @property
    def description(self) -> str:
        return (
            "Detects catch blocks that silently ignore exceptions without "
            "logging, re-throwing, or proper error handling. Swallowed "
            "exceptions can hide bugs and make debugging difficult."
        )

    @property
    def tags(self) -> tuple[str, ...]:
        return ("resilience", "exceptions")

    def check(self, context: RuleContext) -> list[Violation]:
        if context.file_path.endswith(PYTHON_EXTENSIONS):
            patterns = self.PYTHON_PATTERNS
        elif context.file_path.endswith(SCRIPT_EXTENSIONS):
            patterns = self.SCRIPT_PATTERNS
        else:
            return []

        compiled = [(re.compile(p), desc) for p, desc in patterns]
        lines = context.lines
        violations = []
        flagged: set[int] = set()

        for line_num, line in enumerate(lines, start=1):
            if self.SAFE_MARKERS.search(line):
                continue
            for pattern, desc in compiled:
                match = pattern.search(line)
                if match:
                    violations.append(self._violation(context, lines, line_num, match.start() + 1, desc))
                    flagged.add(line_num)
                    break

        if patterns is self.PYTHON_PATTERNS:
            for line_num in self._find_empty_python_handlers(lines):
                if line_num not in flagged:
                    violations.append(
                        self._violation(context, lines, line_num, 1, "Empty exception handler")
                    )

        violations.sort(key=lambda v: v.line or 0)
        return violations

    def _find_empty_python_handlers(self, lines: list[str]) -> list[int]:
        """Line numbers of ``except ...:`` headers whose whole body is pass/ellipsis."""
        found = []
        for index, line in enumerate(lines):
            header = self._HANDLER_HEADER.match(line)
            if not header or self.SAFE_MARKERS.search(line):
                continue
            indent = len(header.group(1))

            body = []
            for following in lines[index + 1 :]:
                if not following.strip():
                    continue
                if len(following) - len(following.lstrip()) <= indent:
                    break
                body.append(following)

            if (
                body
                and all(self._EMPTY_BODY.match(b) for b in body)
                and not any(self.SAFE_MARKERS.search(b) for b in body)
            ):
                found.append(index + 1)
        return found

    def _violation(
        self,
        context: RuleContext,
        lines: list[str],
        line_num: int,
        column: int,
        description: str,
    ) -> Violation:
        start = max(0, line_num - 2)
        end = min(len(lines), line_num + 2)
        return self._create_violation(
            context,
            message=f"{description}: exception silently ignored",
            fix_suggestion=(
                "Log the exception, re-raise it, or handle it explicitly. "
                "Mark intentional ignores with a comment."
            ),
            explanation=(
                "Silently ignored exceptions hide bugs and make failures "
                "impossible to diagnose."
            ),
            line=line_num,
            column=column,
            code_snippet="\n".join(lines[start:end]),
        )
