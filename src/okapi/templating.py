"""Kida template rendering.

Handlers return ``Template("person.html", model=model)``; the kida
``Environment`` that renders it is created once from ``AppConfig`` when
the app freezes and is reached through ``ctx.app.templates``.
"""

from dataclasses import dataclass, field
from typing import Any

from kida import Environment, FileSystemLoader

from okapi.config import AppConfig
from okapi.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class Template:
    """Render a kida template from the app's template directory.

    Usage::

        return Template("person.html", model=Person("Html Node"))
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)


def create_environment(config: AppConfig) -> Environment | None:
    """Create the kida Environment for *config*.

    Returns ``None`` when no ``template_dir`` is configured.  In debug
    mode templates are reloaded when their files change.
    """
    if config.template_dir is None:
        return None
    return Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )


def render_template(env: Environment | None, tpl: Template) -> str:
    """Render a full template to string."""
    if env is None:
        msg = (
            f"Cannot render {tpl.name!r}: no template environment. "
            "Set template_dir in AppConfig."
        )
        raise ConfigurationError(msg)
    template = env.get_template(tpl.name)
    return template.render(tpl.context)
