"""Jinja2 template loader for the site pages."""

from importlib.resources import files
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from spacetraveling.core.utils import slugify
from spacetraveling.engine import filters
from spacetraveling.engine.article import render_block_html


class TemplateLoader:
    """Loads and renders the HTML page templates.

    Supports:
    - Template inheritance (``base.html.jinja2``)
    - Custom filters (pt-BR dates, slugify, rich text)
    - Site-wide globals (site title, timezone)
    """

    def __init__(self, template_dir: Path | None = None, **globals_: Any) -> None:
        """Initialize TemplateLoader.

        Args:
            template_dir: Path to template directory. Defaults to the packaged templates.
            **globals_: Values made available to every template

        """
        if template_dir is None:
            template_dir = Path(str(files("spacetraveling.engine").joinpath("templates")))

        self.template_dir = template_dir

        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(enabled_extensions=("html", "jinja2"), default=True),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals.update(globals_)

        self._register_filters()

    def _register_filters(self) -> None:
        self.env.filters["format_date"] = filters.format_date
        self.env.filters["isoformat"] = filters.isoformat
        self.env.filters["slugify"] = slugify
        self.env.filters["rich_text"] = render_block_html

    def load_template(self, template_name: str) -> Template:
        """Load a template by name.

        Raises:
            TemplateNotFound: If template does not exist

        """
        return self.env.get_template(template_name)

    def render_template(self, template_name: str, **context: Any) -> str:
        """Load and render a template with context."""
        template = self.load_template(template_name)
        return template.render(**context)
