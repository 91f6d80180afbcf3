"""Security rules: credentials and secrets committed to source."""

from .exposed_secrets import ExposedSecretsRule
from .hardcoded_credentials import HardcodedCredentialsRule

__all__ = ["ExposedSecretsRule", "HardcodedCredentialsRule"]
