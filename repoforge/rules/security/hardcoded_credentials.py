"""
Hardcoded credentials detection rule.

Detects passwords, API keys, tokens and other secrets assigned to string
literals in source code.
"""

import re

from ..base import Rule, RuleCategory, RuleContext, Severity, Violation


class HardcodedCredentialsRule(Rule):
    """Detect credentials assigned to string literals."""

    # Format: (regex, credential type)
    PATTERNS = [
        (r"password\s*[=:]\s*[\"'][^\"'\s]{3,}[\"']", "password"),
        (r"passwd\s*[=:]\s*[\"'][^\"'\s]{3,}[\"']", "password"),
        (r"pwd\s*[=:]\s*[\"'][^\"'\s]{3,}[\"']", "password"),
        (r"api[_-]?key\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "API key"),
        (r"apikey\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "API key"),
        (r"secret\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "secret"),
        (r"token\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "token"),
        (r"access[_-]?key\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "access key"),
        (r"private[_-]?key\s*[=:]\s*[\"'][^\"'\s]{10,}[\"']", "private key"),
    ]

    _COMPILED = [(re.compile(p, re.IGNORECASE), kind) for p, kind in PATTERNS]

    @property
    def rule_id(self) -> str:
        return "SEC001_HARDCODED_CREDENTIALS"

    @property
    def name(self) -> str:
        return "Hardcoded Credentials"

    @property
    def category(self) -> RuleCategory:
        return RuleCategory.SECURITY

    @property
    def severity(self) -> Severity:
        return Severity.CRITICAL

    @property
    def description(self) -> str:
        return "Detects hardcoded passwords, API keys, and secrets in source code"

    @property
    def tags(self) -> tuple[str, ...]:
        return ("security", "credentials", "secrets")

    def check(self, context: RuleContext) -> list[Violation]:
        violations = []
        content = context.file_content

        for pattern, kind in self._COMPILED:
            for match in pattern.finditer(content):
                env_name = kind.upper().replace(" ", "_")
                violations.append(
                    self._create_violation(
                        context,
                        message=f"Hardcoded {kind} detected",
                        fix_suggestion=(
                            f"Move the {kind} to an environment variable "
                            f"(e.g. {env_name}) or a secrets manager."
                        ),
                        explanation=(
                            "Credentials in source code end up in version control "
                            "history, logs and error messages, where anyone with "
                            "access to the code can read them."
                        ),
                        line=context.line_number_at(match.start()),
                        code_snippet=context.snippet_at(match.start()),
                    )
                )

        return violations
