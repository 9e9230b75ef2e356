"""Viewport values, the cell-to-plane mapping and the per-kind viewport store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .formulas import FractalKind
from .settings import (
    COARSE_PAN_STEP,
    DEFAULT_JULIA,
    MAX_ITERATIONS,
    NEWTON_ITERATIONS,
    PAN_STEP,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    """The region of the complex plane mapped onto a raster.

    ``scale`` is the horizontal plane distance covered by one cell.
    """

    center_x: float
    center_y: float
    scale: float
    julia: Optional[tuple[float, float]] = None

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise ValueError(f"Viewport scale must be positive, got {self.scale!r}.")


@dataclass(frozen=True)
class ViewParams:
    """Immutable snapshot of everything a render pass reads."""

    viewport: Viewport
    max_iterations: int = MAX_ITERATIONS
    newton_iterations: int = NEWTON_ITERATIONS

    @property
    def julia(self) -> tuple[float, float]:
        if self.viewport.julia is None:
            return DEFAULT_JULIA
        return self.viewport.julia


def map_cell(
    col: int,
    row: int,
    raster_width: int,
    raster_height: int,
    viewport: Viewport,
    aspect_ratio: float,
) -> tuple[float, float]:
    """Return the plane point sampled by cell ``(col, row)``.

    The horizontal step is exactly ``scale``; the vertical step also carries
    ``aspect_ratio`` to compensate for non-square cells.
    """

    cx = (col - raster_width / 2) * viewport.scale + viewport.center_x
    cy = (row - raster_height / 2) * viewport.scale * aspect_ratio + viewport.center_y
    return cx, cy


def export_viewport(viewport: Viewport, live_width: int, image_width: int) -> Viewport:
    """Rescale ``viewport`` so an export of ``image_width`` pixels spans the live field of view."""

    if image_width <= 0 or live_width <= 0:
        raise ValueError("Raster widths must be positive.")
    return replace(viewport, scale=viewport.scale * (live_width / image_width))


DEFAULT_VIEWPORTS: dict[FractalKind, Viewport] = {
    FractalKind.MANDELBROT: Viewport(-1.0, 0.0, 0.03),
    FractalKind.MANDELBROT_SIN: Viewport(0.0, 0.0, 0.05),
    FractalKind.INVERTED_MANDELBROT: Viewport(1.5, 0.0, 0.1),
    FractalKind.TRICORN: Viewport(-0.3, 0.0, 0.03),
    FractalKind.JULIA: Viewport(0.0, 0.0, 0.03, julia=DEFAULT_JULIA),
    FractalKind.BURNING_SHIP: Viewport(-0.4, -0.5, 0.035),
    FractalKind.CELTIC: Viewport(-0.5, 0.0, 0.03),
    FractalKind.BUFFALO: Viewport(-0.5, -0.4, 0.035),
    FractalKind.NEWTON_Z3: Viewport(0.0, 0.0, 0.025),
    FractalKind.NEWTON_Z3_2Z: Viewport(0.0, 0.0, 0.03),
    FractalKind.NEWTON_Z5: Viewport(0.0, 0.0, 0.025),
}


class ViewportStore:
    """Caller-owned mapping of fractal kind to its current viewport.

    Viewports are replaced, never mutated, so a snapshot handed to a render
    pass is unaffected by navigation that happens afterwards.
    """

    def __init__(self, viewports: Optional[dict[FractalKind, Viewport]] = None):
        self._viewports = dict(DEFAULT_VIEWPORTS)
        if viewports:
            self._viewports.update(viewports)

    def __contains__(self, kind: FractalKind) -> bool:
        return kind in self._viewports

    def items(self):
        return self._viewports.items()

    def get(self, kind: FractalKind) -> Viewport:
        return self._viewports[kind]

    def set(self, kind: FractalKind, viewport: Viewport) -> Viewport:
        self._viewports[kind] = viewport
        return viewport

    def reset(self, kind: FractalKind) -> Viewport:
        return self.set(kind, DEFAULT_VIEWPORTS[kind])

    def pan(self, kind: FractalKind, dx: float, dy: float, *, coarse: bool = False) -> Viewport:
        viewport = self.get(kind)
        step = (COARSE_PAN_STEP if coarse else PAN_STEP) * viewport.scale
        return self.set(
            kind,
            replace(
                viewport,
                center_x=viewport.center_x + dx * step,
                center_y=viewport.center_y + dy * step,
            ),
        )

    def zoom(self, kind: FractalKind, factor: float) -> Viewport:
        viewport = self.get(kind)
        return self.set(kind, replace(viewport, scale=viewport.scale * factor))

    def zoom_in(self, kind: FractalKind) -> Viewport:
        return self.zoom(kind, ZOOM_IN_FACTOR)

    def zoom_out(self, kind: FractalKind) -> Viewport:
        return self.zoom(kind, ZOOM_OUT_FACTOR)

    def set_julia(self, kind: FractalKind, re: float, im: float) -> Viewport:
        return self.set(kind, replace(self.get(kind), julia=(float(re), float(im))))

    def snapshot(
        self,
        kind: FractalKind,
        max_iterations: int = MAX_ITERATIONS,
        newton_iterations: int = NEWTON_ITERATIONS,
    ) -> ViewParams:
        params = ViewParams(self.get(kind), max_iterations, newton_iterations)
        logger.debug("Snapshot for %s: %s", kind.value, params)
        return params
