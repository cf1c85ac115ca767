"""AI provider token helpers."""

from devkit.ai.store import run_add_ai_tokens
from devkit.ai.tokens import (
    PROVIDERS,
    get_ai_token,
    get_configured_ai_providers,
    is_ai_provider_configured,
    mask_ai_token,
    validate_ai_token,
)

__all__ = [
    "PROVIDERS",
    "get_ai_token",
    "get_configured_ai_providers",
    "is_ai_provider_configured",
    "mask_ai_token",
    "run_add_ai_tokens",
    "validate_ai_token",
]
