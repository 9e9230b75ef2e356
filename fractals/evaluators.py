"""Scalar evaluators that classify a single point of the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from .formulas import EscapeFamily, FractalKind, NewtonFamily, family_for
from .settings import INVERSION_EPSILON
from .viewport import ViewParams


@dataclass(frozen=True)
class Escaped:
    """Iteration count at which an escape-time orbit left the radius."""

    iterations: int
    max_iterations: int

    @property
    def interior(self) -> bool:
        return self.iterations >= self.max_iterations


@dataclass(frozen=True)
class RootMatch:
    """1-based index of the root a Newton seed converged to; 0 if none."""

    root: int
    root_count: int

    @property
    def converged(self) -> bool:
        return self.root > 0


Classification = Union[Escaped, RootMatch]


def escape_iterations(
    family: EscapeFamily,
    cx: float,
    cy: float,
    max_iterations: int,
    julia: tuple[float, float],
) -> int:
    if family.inverted:
        r_sq = cx * cx + cy * cy
        if math.sqrt(r_sq) < INVERSION_EPSILON:
            return max_iterations
        cx, cy = cx / r_sq, -cy / r_sq

    if family.seed_from_pixel:
        zx, zy = cx, cy
        cx, cy = julia
    else:
        zx, zy = 0.0, 0.0

    radius_sq = family.escape_radius_sq
    iteration = 0
    while zx * zx + zy * zy < radius_sq and iteration < max_iterations:
        zx, zy = family.step(zx, zy, cx, cy, math)
        iteration += 1
    return iteration


def newton_root(family: NewtonFamily, zx: float, zy: float, max_iterations: int) -> int:
    for _ in range(max_iterations):
        fx, fy, dfx, dfy = family.polynomial(zx, zy)
        denom = dfx * dfx + dfy * dfy
        if denom == 0:
            # critical point of f: the step is undefined
            return 0
        zx = zx - (fx * dfx + fy * dfy) / denom
        zy = zy - (fy * dfx - fx * dfy) / denom
        for index, (rx, ry) in enumerate(family.roots, start=1):
            dx = zx - rx
            dy = zy - ry
            if dx * dx + dy * dy < family.tolerance:
                return index
    return 0


def evaluate(kind: FractalKind, cx: float, cy: float, params: ViewParams) -> Classification:
    """Classify the plane point ``(cx, cy)`` for ``kind``.

    Total over finite reals: degenerate inputs resolve to the interior
    (escape-time) or to ``RootMatch(0)`` (Newton) instead of raising.
    """

    family = family_for(kind)
    if isinstance(family, NewtonFamily):
        root = newton_root(family, float(cx), float(cy), params.newton_iterations)
        return RootMatch(root, family.root_count)
    iterations = escape_iterations(family, float(cx), float(cy), params.max_iterations, params.julia)
    return Escaped(iterations, params.max_iterations)
