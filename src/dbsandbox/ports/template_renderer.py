"""Port definition for template rendering."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping


class TemplateRenderer(ABC):
    @abstractmethod
    def render(self, template: str, context: Mapping[str, Any]) -> str:
        """Render ``template`` against ``context`` and return the text."""

    def write(self, template: str, target: Path, context: Mapping[str, Any]) -> Path:
        """Render ``template`` into ``target``, creating parent directories."""
        text = self.render(template, context)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return target
