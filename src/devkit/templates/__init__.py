"""Jinja2 templates for files devkit generates."""

from devkit.templates.renderer import TemplateRenderer, render_template

__all__ = ["TemplateRenderer", "render_template"]
