"""Terminal display for a running analysis session."""

from vgce.tui.keys import KeyReader
from vgce.tui.renderer import Renderer

__all__ = ["KeyReader", "Renderer"]
