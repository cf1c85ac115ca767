"""AI provider API tokens: lookup, format checks and masking."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from devkit.errors import FileError
from devkit.utils.files import read_json

DEFAULT_TOKEN_FILE = Path.home() / ".devkit" / "ai-tokens.json"


@dataclass(frozen=True)
class AIProvider:
    """Provider metadata.

    Attributes:
        key: Identifier used in the token file and on the command line
        name: Display name
        env_vars: Environment variables checked in order
        pattern: Expected token shape
        help: Where to create a token
    """

    key: str
    name: str
    env_vars: tuple[str, ...]
    pattern: str
    help: str


PROVIDERS: dict[str, AIProvider] = {
    p.key: p
    for p in (
        AIProvider(
            "openai",
            "OpenAI",
            ("OPENAI_API_KEY",),
            r"^sk-[a-zA-Z0-9]{48,}$",
            'Create a secret key at https://platform.openai.com/api-keys (starts with "sk-").',
        ),
        AIProvider(
            "anthropic",
            "Anthropic Claude",
            ("ANTHROPIC_API_KEY",),
            r"^sk-ant-[a-zA-Z0-9-]{95,}$",
            "Create an API key at https://console.anthropic.com/settings/keys "
            '(starts with "sk-ant-").',
        ),
        AIProvider(
            "google",
            "Google Gemini",
            ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
            r"^[a-zA-Z0-9_-]{39}$",
            "Create an API key at https://aistudio.google.com/app/apikey.",
        ),
        AIProvider(
            "deepseek",
            "DeepSeek",
            ("DEEPSEEK_API_KEY",),
            r"^sk-[a-zA-Z0-9]{32,}$",
            "Create an API key at https://platform.deepseek.com/api_keys.",
        ),
    )
}


def get_provider(provider: str) -> AIProvider:
    if provider not in PROVIDERS:
        raise ValueError(f"Invalid AI provider: {provider}. Valid: {set(PROVIDERS)}")
    return PROVIDERS[provider]


def validate_ai_token(provider: str, token: str | None) -> bool:
    """Check a token against the provider's known key format."""
    if not token or not token.strip():
        return False
    entry = PROVIDERS.get(provider)
    return entry is not None and re.match(entry.pattern, token) is not None


def load_stored_tokens(path: str | Path | None = None) -> dict[str, str]:
    """Tokens saved by ``devkit ai add-tokens``. Missing or corrupt files read as empty."""
    token_file = Path(path or DEFAULT_TOKEN_FILE)
    if not token_file.exists():
        return {}
    try:
        data = read_json(token_file)
    except FileError:
        return {}
    return {k: v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}


def get_ai_token(provider: str, token_file: str | Path | None = None) -> str | None:
    """Token for a provider from the environment, then the token file.

    Args:
        provider: Provider key
        token_file: Stored token file (default: ~/.devkit/ai-tokens.json)
    """
    entry = get_provider(provider)
    for name in entry.env_vars:
        value = os.environ.get(name)
        if value:
            return value
    return load_stored_tokens(token_file).get(provider)


def is_ai_provider_configured(provider: str, token_file: str | Path | None = None) -> bool:
    return validate_ai_token(provider, get_ai_token(provider, token_file))


def get_configured_ai_providers(token_file: str | Path | None = None) -> list[str]:
    return [key for key in PROVIDERS if is_ai_provider_configured(key, token_file)]


def mask_ai_token(token: str | None) -> str:
    """Show the first and last four characters only."""
    if not token or len(token) < 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"
