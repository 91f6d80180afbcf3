"""
Async useEffect detection rule.

Only runs for projects that use React or Next.js.
"""

import re

from ..base import Rule, RuleCategory, RuleContext, Severity, Violation

ASYNC_USE_EFFECT = re.compile(r"useEffect\s*\(\s*async\s*(?:\([^)]*\))?\s*=>")


class AsyncUseEffectRule(Rule):
    """Detect async callbacks passed directly to useEffect."""

    @property
    def rule_id(self) -> str:
        return "REACT001_ASYNC_USEEFFECT"

    @property
    def name(self) -> str:
        return "Async useEffect"

    @property
    def category(self) -> RuleCategory:
        return RuleCategory.ARCHITECTURE

    @property
    def severity(self) -> Severity:
        return Severity.HIGH

    @property
    def description(self) -> str:
        return (
            "Detects async functions directly in useEffect which can cause "
            "race conditions and cleanup issues"
        )

    @property
    def frameworks(self) -> tuple[str, ...]:
        return ("react", "next")

    @property
    def tags(self) -> tuple[str, ...]:
        return ("react", "hooks", "async")

    def check(self, context: RuleContext) -> list[Violation]:
        if not context.file_path.endswith((".jsx", ".tsx")):
            return []

        return [
            self._create_violation(
                context,
                message="Async function used directly in useEffect",
                fix_suggestion=(
                    "Define an async function inside the effect and call it, "
                    "e.g. useEffect(() => { const load = async () => {...}; load(); }, [])"
                ),
                explanation=(
                    "useEffect treats the callback's return value as a cleanup "
                    "function. An async callback returns a Promise instead, which "
                    "breaks cleanup and invites race conditions."
                ),
                line=context.line_number_at(match.start()),
                code_snippet=context.snippet_at(match.start()),
            )
            for match in ASYNC_USE_EFFECT.finditer(context.file_content)
        ]
