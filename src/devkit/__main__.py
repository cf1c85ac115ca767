"""Entry point for running devkit as a module.

Usage:
    python -m devkit [command] [options]

Example:
    python -m devkit security secrets --scanner gitleaks
    python -m devkit check
"""

from devkit.cli import app

if __name__ == "__main__":
    app()
