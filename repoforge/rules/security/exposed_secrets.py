"""
Exposed secrets detection rule.

Detects well-known token formats (cloud keys, VCS tokens, private key
headers) regardless of the variable they are assigned to.
"""

import re

from ..base import Rule, RuleCategory, RuleContext, Severity, Violation


class ExposedSecretsRule(Rule):
    """Detect provider tokens and key material in source files."""

    PATTERNS = [
        (r"AKIA[0-9A-Z]{16}", "AWS Access Key", 0),
        (r"[\"'](?:sk|pk)_(?:live|test)_[0-9a-zA-Z]{24,}[\"']", "API Key (Stripe-like)", 0),
        (r"gh[pousr]_[0-9a-zA-Z]{36}", "GitHub Token", 0),
        (r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", "Bearer Token", re.IGNORECASE),
        (r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*", "JWT Token", 0),
        (r"-----BEGIN (?:RSA |EC |DSA )?PRIVATE KEY-----", "Private Key", 0),
        (r"xox[baprs]-[0-9a-zA-Z]{10,}", "Slack Token", 0),
        (r"AIza[0-9A-Za-z\-_]{35}", "Google API Key", 0),
    ]

    _COMPILED = [(re.compile(p, flags), kind) for p, kind, flags in PATTERNS]

    @property
    def rule_id(self) -> str:
        return "SEC003_EXPOSED_SECRETS"

    @property
    def name(self) -> str:
        return "Exposed Secrets"

    @property
    def category(self) -> RuleCategory:
        return RuleCategory.SECURITY

    @property
    def severity(self) -> Severity:
        return Severity.CRITICAL

    @property
    def tags(self) -> tuple[str, ...]:
        return ("security", "secrets", "tokens")

    def check(self, context: RuleContext) -> list[Violation]:
        violations = []

        for pattern, kind in self._COMPILED:
            for match in pattern.finditer(context.file_content):
                violations.append(
                    self._create_violation(
                        context,
                        message=f"Exposed {kind} detected in code",
                        fix_suggestion=(
                            f"Remove the {kind} and rotate it if it was ever "
                            "committed. Load it from the environment or a secrets "
                            "manager instead."
                        ),
                        explanation=(
                            "Secrets stay in git history after removal, and public "
                            "repositories are scanned for them continuously."
                        ),
                        line=context.line_number_at(match.start()),
                        code_snippet=context.snippet_at(match.start()),
                    )
                )

        return violations
