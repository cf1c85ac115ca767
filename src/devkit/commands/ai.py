"""AI provider token subcommands."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import handle_errors

app = typer.Typer(help="AI provider tokens", no_args_is_help=True)

TokenFileOption = Annotated[
    Path | None,
    typer.Option("--file", help="Token file (default: ~/.devkit/ai-tokens.json)", dir_okay=False),
]


@app.command("add-tokens")
def add_tokens(token_file: TokenFileOption = None) -> None:
    """Prompt for provider tokens and store them in the token file."""
    from devkit.ai import run_add_ai_tokens

    with handle_errors():
        saved = run_add_ai_tokens(config_path=token_file)
    if saved is None:
        raise typer.Exit(2)


@app.command()
def providers(token_file: TokenFileOption = None) -> None:
    """Show which providers have a token, masked."""
    from devkit.ai import PROVIDERS, get_ai_token, mask_ai_token, validate_ai_token

    typer.echo("\n🤖 AI Providers\n")
    for key, provider in PROVIDERS.items():
        token = get_ai_token(key, token_file)
        if not token:
            typer.echo(f"  ❌ {provider.name}")
            continue
        suffix = "" if validate_ai_token(key, token) else " (unexpected format)"
        typer.echo(f"  ✅ {provider.name}: {mask_ai_token(token)}{suffix}")
    typer.echo()
