from __future__ import annotations

from pingheat.ui.app import HeatmapApp, TextualProgram, build_program
from pingheat.ui.view import HeatmapView

__all__ = ["HeatmapApp", "HeatmapView", "TextualProgram", "build_program"]
