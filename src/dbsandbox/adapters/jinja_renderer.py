"""Jinja2-backed template renderer over the packaged templates."""

from __future__ import annotations

from typing import Any, Mapping

from jinja2 import BaseLoader, Environment, PackageLoader, StrictUndefined, TemplateError

from dbsandbox.domain.errors import TemplateRenderError
from dbsandbox.ports.template_renderer import TemplateRenderer


class JinjaTemplateRenderer(TemplateRenderer):
    def __init__(self, loader: BaseLoader | None = None) -> None:
        self._env = Environment(
            loader=loader or PackageLoader("dbsandbox", "resources/templates"),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )

    @property
    def environment(self) -> Environment:
        return self._env

    def render(self, template: str, context: Mapping[str, Any]) -> str:
        try:
            return self._env.get_template(template).render(**context)
        except TemplateError as exc:
            raise TemplateRenderError(template, str(exc) or type(exc).__name__) from exc
