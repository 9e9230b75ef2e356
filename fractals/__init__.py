"""Public API for escape-time and Newton-basin fractal rendering."""

from .evaluators import Classification, Escaped, RootMatch, evaluate
from .formulas import FractalKind, is_newton
from .palettes import Palette, quantize_color, quantize_glyph
from .renderer import LiveSurface, render_export, render_live
from .storage import load_store, save_store
from .viewport import ViewParams, Viewport, ViewportStore, export_viewport, map_cell

__all__ = [
    "Classification",
    "Escaped",
    "FractalKind",
    "LiveSurface",
    "Palette",
    "RootMatch",
    "ViewParams",
    "Viewport",
    "ViewportStore",
    "evaluate",
    "export_viewport",
    "is_newton",
    "load_store",
    "map_cell",
    "quantize_color",
    "quantize_glyph",
    "render_export",
    "render_live",
    "save_store",
]
