"""Template renderer for generated files.

Renders git hooks, .env examples, docker-compose files and the logging
quickstart from Jinja2 templates shipped in this package. Output is
deterministic: the same context always produces the same text.
"""

import json
import logging
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateNotFound

logger = logging.getLogger(__name__)


def yaml_quote(value: Any) -> str:
    """Quote a scalar for YAML using single quotes."""
    return "'" + str(value).replace("'", "''") + "'"


def to_json(value: Any) -> str:
    return json.dumps(value)


class TemplateRenderer:
    """Renders package templates.

    Usage:
        renderer = TemplateRenderer()
        text = renderer.render("git_hook.sh.j2", scanner="gitleaks", args=[...])
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("devkit", "templates"),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._env.filters["yaml_quote"] = yaml_quote
        self._env.filters["to_json"] = to_json

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template with the given context.

        Raises:
            ValueError: If the template does not exist
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e
        return template.render(**context)


_renderer: TemplateRenderer | None = None


def render_template(template_name: str, **context: Any) -> str:
    """Render with a shared TemplateRenderer instance."""
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer.render(template_name, **context)
