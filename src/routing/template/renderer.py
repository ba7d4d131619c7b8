"""Jinja2 rendering for message templates.

Variables missing from the payload render as empty strings (including
attribute access on them, e.g. ``{{ client.name }}``). HTML bodies are
rendered with autoescaping; subjects and plain text are not.
"""

from jinja2 import ChainableUndefined, TemplateSyntaxError, meta
from jinja2.sandbox import SandboxedEnvironment
from protean.exceptions import ValidationError

_text_env = SandboxedEnvironment(undefined=ChainableUndefined, autoescape=False, keep_trailing_newline=True)
_html_env = SandboxedEnvironment(undefined=ChainableUndefined, autoescape=True, keep_trailing_newline=True)


def _env(html: bool):
    return _html_env if html else _text_env


def render(template_text: str | None, data: dict | None = None, html: bool = False) -> str:
    """Render ``template_text`` against ``data``. Empty templates render to ''."""
    if not template_text:
        return ""
    try:
        template = _env(html).from_string(template_text)
    except TemplateSyntaxError as exc:
        raise ValidationError({"template": [f"Invalid template syntax at line {exc.lineno}: {exc.message}"]}) from exc
    return template.render(**(data or {}))


def extract_variables(template_text: str | None) -> set[str]:
    """Top-level variable names referenced by a template."""
    if not template_text:
        return set()
    try:
        ast = _text_env.parse(template_text)
    except TemplateSyntaxError as exc:
        raise ValidationError({"template": [f"Invalid template syntax at line {exc.lineno}: {exc.message}"]}) from exc
    return set(meta.find_undeclared_variables(ast))


def validate(template_text: str | None) -> None:
    """Raise ValidationError when the template does not parse."""
    extract_variables(template_text)
