"""Architecture rules, including framework-specific ones."""

from .async_use_effect import AsyncUseEffectRule

__all__ = ["AsyncUseEffectRule"]
