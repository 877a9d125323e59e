from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

import nh3
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markdown import Markdown

from sitegen.errors import RenderError, TemplateSetError
from sitegen.paths import DEFAULT_TEMPLATE

if TYPE_CHECKING:
    from sitegen.config import SiteConfig
    from sitegen.content import ContentUnit

MARKDOWN_EXTENSIONS = [
    "tables",
    "footnotes",
    "fenced_code",
    "pymdownx.tilde",
    "pymdownx.tasklist",
]

# Task list checkboxes and the ids/classes used by footnotes and code blocks
# survive sanitizing; scripts, event handlers and unknown tags do not.
SANITIZE_TAGS = nh3.ALLOWED_TAGS | {"input"}
SANITIZE_ATTRIBUTES = {
    **{tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()},
    "*": {"class", "id", "lang", "title"},
    "input": {"type", "checked", "disabled"},
}

# Markdown instances keep parser state between calls, so each worker thread
# gets its own.
_local = threading.local()


def build_markdown_renderer() -> Markdown:
    """Create a Markdown renderer with site extensions."""
    return Markdown(extensions=MARKDOWN_EXTENSIONS, output_format="html")


def sanitize_html(html: str) -> str:
    return nh3.clean(html, tags=SANITIZE_TAGS, attributes=SANITIZE_ATTRIBUTES)


def render_markdown(content: str) -> str:
    """Render Markdown content into sanitized HTML."""
    renderer = getattr(_local, "renderer", None)
    if renderer is None:
        renderer = _local.renderer = build_markdown_renderer()
    renderer.reset()
    return sanitize_html(renderer.convert(content))


class TemplateSet:
    """Jinja templates loaded from a site's templates directory."""

    def __init__(self, env: Environment, names: list[str]):
        self.env = env
        self.names = names

    @classmethod
    def load(cls, templates_dir: Path) -> TemplateSet:
        """Load and compile every template up front.

        Raises TemplateSetError if the directory is missing or any template
        fails to compile.
        """
        if not templates_dir.is_dir():
            raise TemplateSetError(f"templates directory not found: {templates_dir}")

        env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )
        names = [
            name
            for name in env.list_templates()
            if not any(part.startswith(".") for part in name.split("/"))
        ]
        for name in names:
            try:
                env.get_template(name)
            except TemplateError as exc:
                raise TemplateSetError(f"{name}: {exc}") from exc
            except (OSError, UnicodeDecodeError) as exc:
                raise TemplateSetError(f"{name}: {exc}") from exc
        return cls(env, names)

    def has(self, name: str) -> bool:
        return name in self.names

    def render_page(self, config: SiteConfig, unit: ContentUnit) -> str:
        """Render a content unit through its page template."""
        rel = Path(unit.rel)
        page = {
            "title": unit.title,
            "slug": unit.meta.slug or rel.stem,
            "tags": list(unit.meta.tags),
            "date": unit.meta.date,
            "draft": unit.meta.draft,
            "content": render_markdown(unit.body),
        }
        template = unit.meta.template or DEFAULT_TEMPLATE
        return self.render_with(template, config, page=page)

    def render_with(self, template: str, config: SiteConfig, **context) -> str:
        """Render ``template`` with ``site`` plus the given context."""
        try:
            return self.env.get_template(template).render(
                site=config.as_context(), **context
            )
        except TemplateError as exc:
            raise RenderError(f"{template}: {exc}") from exc
        except Exception as exc:
            # Template expressions run arbitrary Python operations.
            raise RenderError(f"{template}: {type(exc).__name__}: {exc}") from exc
