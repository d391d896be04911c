"""Base canvas store protocol."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from blockcanvas.types import Canvas


class CanvasFormatError(ValueError):
    """A canvas document could not be parsed or failed validation."""


class CanvasStore(Protocol):
    """Protocol that all canvas stores must implement."""

    def load(self, path: str | Path) -> Canvas:
        """Read a canvas document. Raises CanvasFormatError on bad input."""
        ...

    def save(self, canvas: Canvas, path: str | Path) -> None:
        """Write a canvas document, replacing any existing file."""
        ...
