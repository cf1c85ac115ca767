"""Interactive capture of AI provider tokens into a private JSON file."""

import os
from collections.abc import Callable
from pathlib import Path

import typer

from devkit.ai.tokens import DEFAULT_TOKEN_FILE, PROVIDERS, load_stored_tokens
from devkit.errors import FileError
from devkit.utils.files import write_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_FILE_MODE = 0o600

PromptFn = Callable[[str], str]


def prompt_hidden(question: str) -> str:
    """Ask on the terminal without echoing the answer."""
    return typer.prompt(question, default="", show_default=False, hide_input=True)


def save_tokens(tokens: dict[str, str], path: str | Path) -> Path:
    """Write tokens as JSON readable by the owner only."""
    token_file = Path(path)
    try:
        token_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        raise FileError(f"Could not create {token_file.parent}: {e}", str(token_file), "write") from e
    write_json(token_file, tokens)
    os.chmod(token_file, TOKEN_FILE_MODE)
    return token_file


def run_add_ai_tokens(
    config_path: str | Path | None = None, prompt: PromptFn | None = None
) -> dict[str, str] | None:
    """Collect a token per provider and merge them into the token file.

    A provider's environment variable wins over prompting. Blank answers
    skip the provider. Existing entries are kept.

    Args:
        config_path: Token file (default: ~/.devkit/ai-tokens.json)
        prompt: Function used to ask for a token (default: hidden terminal prompt)

    Returns:
        The saved tokens, or None when nothing was provided
    """
    token_file = Path(config_path or DEFAULT_TOKEN_FILE)
    ask = prompt or prompt_hidden

    logger.info("This will store AI API tokens in %s", token_file)
    logger.info("Leave input empty to skip a provider.")

    updated = load_stored_tokens(token_file)
    changed = False

    for provider in PROVIDERS.values():
        env_name = next((name for name in provider.env_vars if os.environ.get(name)), None)
        if env_name:
            logger.info("%s token detected in %s; using that value.", provider.name, env_name)
            updated[provider.key] = os.environ[env_name]
            changed = True
            continue

        logger.info("%s: %s", provider.name, provider.help)
        token = ask(f"Enter {provider.name} API key (leave blank to skip)").strip()
        if not token:
            logger.warning("Skipped %s", provider.name)
            continue
        updated[provider.key] = token
        changed = True
        logger.success(f"{provider.name} token captured.")

    if not changed:
        logger.warning("No tokens provided; exiting without changes.")
        return None

    save_tokens(updated, token_file)
    logger.success(f"Saved tokens to {token_file}")
    return updated
