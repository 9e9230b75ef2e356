"""Quantisation of classifications into glyphs and RGB colours."""

from __future__ import annotations

import functools
import math
from enum import Enum

import numpy as np

from .evaluators import Classification, Escaped, RootMatch
from .formulas import FractalKind, family_for, is_newton
from .settings import GAMMA, GLYPH_RAMP, NEWTON_GLYPH

BLACK = (0, 0, 0)


class Palette(Enum):
    GRAYSCALE = "grayscale"
    FIRE = "fire"
    OCEAN = "ocean"
    FOREST = "forest"


# Per-channel multipliers applied to the gamma-corrected value.
PALETTE_MULTIPLIERS: dict[Palette, tuple[float, float, float]] = {
    Palette.GRAYSCALE: (255.0, 255.0, 255.0),
    Palette.FIRE: (382.0, 204.0, 51.0),
    Palette.OCEAN: (51.0, 178.0, 382.0),
    Palette.FOREST: (76.0, 330.0, 102.0),
}

NEWTON_COLORS: dict[FractalKind, tuple[tuple[int, int, int], ...]] = {
    FractalKind.NEWTON_Z3: ((230, 57, 70), (69, 123, 157), (241, 196, 15)),
    FractalKind.NEWTON_Z3_2Z: ((46, 204, 113), (155, 89, 182), (52, 152, 219)),
    FractalKind.NEWTON_Z5: (
        (231, 76, 60),
        (241, 196, 15),
        (46, 204, 113),
        (52, 152, 219),
        (155, 89, 182),
    ),
}


def gamma_correct(iterations: int, max_iterations: int) -> float:
    """Normalise an iteration count to ``[0, 1]`` and apply display gamma."""

    t = iterations / max_iterations
    return t ** (1.0 / GAMMA)


def _channel(value: float, multiplier: float) -> int:
    return max(0, min(255, int(value * multiplier)))


def _escaped(classification: Classification, kind: FractalKind) -> Escaped:
    if is_newton(kind) or not isinstance(classification, Escaped):
        raise TypeError(f"{kind.value} does not produce {type(classification).__name__} values.")
    return classification


def _root_match(classification: Classification, kind: FractalKind) -> RootMatch:
    if not is_newton(kind) or not isinstance(classification, RootMatch):
        raise TypeError(f"{kind.value} does not produce {type(classification).__name__} values.")
    return classification


def quantize_glyph(classification: Classification, kind: FractalKind) -> str:
    """Glyph for the live view; Newton kinds share one glyph and differ by colour pair."""

    if is_newton(kind):
        _root_match(classification, kind)
        return NEWTON_GLYPH
    escaped = _escaped(classification, kind)
    if escaped.interior:
        return GLYPH_RAMP[-1]
    t = gamma_correct(escaped.iterations, escaped.max_iterations)
    return GLYPH_RAMP[math.floor(t * (len(GLYPH_RAMP) - 1))]


def color_pair(classification: Classification, kind: FractalKind) -> int:
    """Terminal colour-pair number: the root index for Newton kinds, else 0."""

    if is_newton(kind):
        return _root_match(classification, kind).root
    _escaped(classification, kind)
    return 0


def escape_color(iterations: int, max_iterations: int, palette: Palette) -> tuple[int, int, int]:
    if iterations >= max_iterations:
        return BLACK
    t = gamma_correct(iterations, max_iterations)
    r, g, b = PALETTE_MULTIPLIERS[palette]
    return _channel(t, r), _channel(t, g), _channel(t, b)


def root_color(root: int, kind: FractalKind) -> tuple[int, int, int]:
    if root == 0:
        return BLACK
    return NEWTON_COLORS[kind][root - 1]


def quantize_color(
    classification: Classification,
    kind: FractalKind,
    palette: Palette = Palette.FIRE,
) -> tuple[int, int, int]:
    """RGB triple for the export surface, every channel in ``[0, 255]``."""

    if is_newton(kind):
        return root_color(_root_match(classification, kind).root, kind)
    escaped = _escaped(classification, kind)
    return escape_color(escaped.iterations, escaped.max_iterations, palette)


@functools.lru_cache(maxsize=64)
def glyph_table(max_iterations: int) -> np.ndarray:
    """Glyph for every possible escape count, indexable by a count array."""

    return np.array(
        [quantize_glyph(Escaped(n, max_iterations), FractalKind.MANDELBROT) for n in range(max_iterations + 1)],
        dtype="<U1",
    )


@functools.lru_cache(maxsize=64)
def color_table(kind: FractalKind, max_iterations: int, palette: Palette) -> np.ndarray:
    """RGB for every possible classification value of ``kind``, as ``uint8``."""

    if is_newton(kind):
        count = family_for(kind).root_count
        colors = [root_color(root, kind) for root in range(count + 1)]
    else:
        colors = [escape_color(n, max_iterations, palette) for n in range(max_iterations + 1)]
    return np.array(colors, dtype=np.uint8)
