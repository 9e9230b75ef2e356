"""Raster drivers for the live character grid and the exported pixel buffer."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

import numpy as np

from .formulas import FractalKind, NewtonFamily, family_for
from .kernels import escape_counts, newton_roots
from .palettes import Palette, color_table, glyph_table
from .settings import (
    DEFAULT_ASPECT,
    DEFAULT_BAND_ROWS,
    MAX_ITERATIONS,
    MAX_WORKERS,
    NEWTON_GLYPH,
    NEWTON_ITERATIONS,
)
from .viewport import ViewParams, Viewport, export_viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplingGrid:
    """Plane coordinates of every column and row of a raster."""

    xs: np.ndarray
    ys: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.ys), len(self.xs)


@dataclass(frozen=True)
class LiveSurface:
    """Glyph grid plus the colour pair of every cell (0 is the default pair)."""

    glyphs: np.ndarray
    color_pairs: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.glyphs.shape

    def lines(self) -> list[str]:
        return ["".join(row) for row in self.glyphs]


def default_workers() -> int:
    return max(1, min(MAX_WORKERS, os.cpu_count() or 1))


def sampling_grid(viewport: Viewport, width: int, height: int, aspect_ratio: float) -> SamplingGrid:
    """Vectorised :func:`fractals.viewport.map_cell` over a whole raster."""

    if width <= 0 or height <= 0:
        raise ValueError(f"Raster size must be positive, got {width}x{height}.")
    cols = np.arange(width, dtype=np.float64)
    rows = np.arange(height, dtype=np.float64)
    xs = (cols - width / 2) * viewport.scale + viewport.center_x
    ys = (rows - height / 2) * viewport.scale * aspect_ratio + viewport.center_y
    return SamplingGrid(xs=xs, ys=ys)


def _row_bands(height: int, band_rows: int) -> list[tuple[int, int]]:
    band_rows = max(1, int(band_rows))
    return [(start, min(start + band_rows, height)) for start in range(0, height, band_rows)]


def classify_grid(
    kind: FractalKind,
    params: ViewParams,
    grid: SamplingGrid,
    *,
    workers: Optional[int] = None,
    band_rows: int = DEFAULT_BAND_ROWS,
    device: Optional[str] = None,
) -> np.ndarray:
    """Classification value of every cell of ``grid``.

    Rows are split into contiguous bands evaluated concurrently. Each band
    writes a disjoint slice of the output; nothing else is shared.
    """

    family = family_for(kind)
    height, width = grid.shape
    values = np.empty((height, width), dtype=np.int32)
    bands = _row_bands(height, band_rows)

    def work(band: tuple[int, int]) -> None:
        start, stop = band
        X, Y = np.meshgrid(grid.xs, grid.ys[start:stop])
        if isinstance(family, NewtonFamily):
            values[start:stop] = newton_roots(family, X, Y, params.newton_iterations, device=device)
        else:
            values[start:stop] = escape_counts(
                family, X, Y, params.max_iterations, params.julia, device=device
            )

    workers = workers or default_workers()
    start_time = perf_counter()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(work, bands))
    logger.debug(
        "Classified %s %dx%d in %d bands on %d workers (%.3fs)",
        kind.value, width, height, len(bands), workers, perf_counter() - start_time,
    )
    return values


def render_live(
    kind: FractalKind,
    viewport: Viewport,
    width: int,
    height: int,
    aspect_ratio: float = DEFAULT_ASPECT,
    *,
    max_iterations: int = MAX_ITERATIONS,
    newton_iterations: int = NEWTON_ITERATIONS,
    workers: Optional[int] = None,
    band_rows: int = DEFAULT_BAND_ROWS,
    device: Optional[str] = None,
) -> LiveSurface:
    """Render ``kind`` onto a ``height`` x ``width`` character grid."""

    params = ViewParams(viewport, max_iterations, newton_iterations)
    grid = sampling_grid(params.viewport, width, height, aspect_ratio)
    values = classify_grid(kind, params, grid, workers=workers, band_rows=band_rows, device=device)

    if isinstance(family_for(kind), NewtonFamily):
        glyphs = np.full(values.shape, NEWTON_GLYPH, dtype="<U1")
        return LiveSurface(glyphs=glyphs, color_pairs=values)
    glyphs = glyph_table(max_iterations)[values]
    return LiveSurface(glyphs=glyphs, color_pairs=np.zeros_like(values))


def render_export(
    kind: FractalKind,
    viewport: Viewport,
    image_width: int,
    image_height: int,
    palette: Palette = Palette.FIRE,
    *,
    live_width: int,
    aspect_ratio: float = DEFAULT_ASPECT,
    max_iterations: int = MAX_ITERATIONS,
    newton_iterations: int = NEWTON_ITERATIONS,
    workers: Optional[int] = None,
    band_rows: int = DEFAULT_BAND_ROWS,
    device: Optional[str] = None,
) -> np.ndarray:
    """Render ``kind`` into an ``(image_height, image_width, 3)`` ``uint8`` RGB buffer.

    ``live_width`` is the width of the live raster the viewport was framed
    on. The scale is always stretched by ``live_width / image_width`` so the
    export covers the same field of view; pass ``image_width`` to keep the
    scale unchanged.
    """

    viewport = export_viewport(viewport, live_width, image_width)
    params = ViewParams(viewport, max_iterations, newton_iterations)
    grid = sampling_grid(params.viewport, image_width, image_height, aspect_ratio)
    values = classify_grid(kind, params, grid, workers=workers, band_rows=band_rows, device=device)
    return color_table(kind, max_iterations, palette)[values]
