"""Per-family recurrences for every supported fractal kind.

Each recurrence is written once with plain arithmetic operators and the
builtin ``abs`` so the same function drives both the scalar evaluator
(Python floats, ``math``) and the vectorised kernel (tensors,
``tf.math``). Only the trigonometric family reaches into the ``ops``
namespace it is handed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import TYPE_CHECKING, Callable, Union

import numpy as np

from .settings import ESCAPE_RADIUS_SQ, TRIG_ESCAPE_RADIUS_SQ

if TYPE_CHECKING:
    import tensorflow as tf

    # a Python float in the scalar evaluator, a float64 tensor in the kernels
    Component = Union[float, tf.Tensor]
    Pair = tuple[Component, Component]
    Derivative = tuple[Component, Component, Component, Component]


class FractalKind(Enum):
    MANDELBROT = "mandelbrot"
    MANDELBROT_SIN = "mandelbrot-sin"
    INVERTED_MANDELBROT = "inverted-mandelbrot"
    TRICORN = "tricorn"
    JULIA = "julia"
    BURNING_SHIP = "burning-ship"
    CELTIC = "celtic"
    BUFFALO = "buffalo"
    NEWTON_Z3 = "newton-z3"
    NEWTON_Z3_2Z = "newton-z3-2z"
    NEWTON_Z5 = "newton-z5"


@dataclass(frozen=True)
class EscapeFamily:
    """An escape-time recurrence ``z <- step(z, c)`` and how it is seeded."""

    step: Callable
    seed_from_pixel: bool = False
    escape_radius_sq: float = ESCAPE_RADIUS_SQ
    inverted: bool = False


@dataclass(frozen=True)
class NewtonFamily:
    """A polynomial solved by Newton's method, with its known roots.

    ``polynomial(zx, zy)`` returns ``(fx, fy, dfx, dfy)``: the real and
    imaginary parts of ``f(z)`` followed by those of ``f'(z)``.
    """

    polynomial: Callable
    roots: tuple[tuple[float, float], ...]
    tolerance: float

    @property
    def root_count(self) -> int:
        return len(self.roots)


def _mul(ax: Component, ay: Component, bx: Component, by: Component) -> Pair:
    """Complex product of ``(ax, ay)`` and ``(bx, by)``."""
    return ax * bx - ay * by, ax * by + ay * bx


def _mandelbrot_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """z^2 + c."""
    return zx * zx - zy * zy + cx, 2 * zx * zy + cy


def _tricorn_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """conj(z)^2 + c."""
    return zx * zx - zy * zy + cx, -2 * zx * zy + cy


def _burning_ship_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """z^2 + c with the imaginary cross term folded to its absolute value."""
    return zx * zx - zy * zy + cx, 2 * abs(zx * zy) + cy


def _celtic_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """z^2 + c with the real part folded to its absolute value."""
    return abs(zx * zx - zy * zy) + cx, 2 * zx * zy + cy


def _buffalo_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """z^2 + c with both components folded to their absolute values."""
    return abs(zx * zx - zy * zy) + cx, 2 * abs(zx * zy) + cy


def _sin_step(zx: Component, zy: Component, cx: Component, cy: Component, ops: ModuleType) -> Pair:
    """sin(z) + c, expanded into components."""
    return ops.sin(zx) * ops.cosh(zy) + cx, ops.cos(zx) * ops.sinh(zy) + cy


def _cube_minus_one(zx: Component, zy: Component) -> Derivative:
    """Value and derivative of z^3 - 1."""
    z2x, z2y = _mul(zx, zy, zx, zy)
    z3x, z3y = _mul(z2x, z2y, zx, zy)
    return z3x - 1, z3y, 3 * z2x, 3 * z2y


def _cube_minus_2z_plus_2(zx: Component, zy: Component) -> Derivative:
    """Value and derivative of z^3 - 2z + 2."""
    z2x, z2y = _mul(zx, zy, zx, zy)
    z3x, z3y = _mul(z2x, z2y, zx, zy)
    return z3x - 2 * zx + 2, z3y - 2 * zy, 3 * z2x - 2, 3 * z2y


def _quintic(zx: Component, zy: Component) -> Derivative:
    """Value and derivative of z^5 + z^2 - 1."""
    z2x, z2y = _mul(zx, zy, zx, zy)
    z4x, z4y = _mul(z2x, z2y, z2x, z2y)
    z5x, z5y = _mul(z4x, z4y, zx, zy)
    return z5x + z2x - 1, z5y + z2y, 5 * z4x + 2 * zx, 5 * z4y + 2 * zy


def _polynomial_roots(coefficients) -> tuple[tuple[float, float], ...]:
    roots = sorted(np.roots(coefficients), key=lambda r: (-r.real, -r.imag))
    return tuple((float(r.real), float(r.imag)) for r in roots)


CUBE_ROOTS_OF_UNITY = (
    (1.0, 0.0),
    (-0.5, math.sqrt(3.0) / 2.0),
    (-0.5, -math.sqrt(3.0) / 2.0),
)

# z^3 - 2z + 2 has one real root and a conjugate pair; 0 <-> 1 is an
# attracting 2-cycle that never reaches any of them.
CUBE_MINUS_2Z_PLUS_2_ROOTS = (
    (-1.7692923542386314, 0.0),
    (0.8846461771193157, 0.5897428050222054),
    (0.8846461771193157, -0.5897428050222054),
)

QUINTIC_ROOTS = _polynomial_roots([1.0, 0.0, 0.0, 1.0, 0.0, -1.0])


FAMILIES: dict[FractalKind, EscapeFamily | NewtonFamily] = {
    FractalKind.MANDELBROT: EscapeFamily(_mandelbrot_step),
    FractalKind.MANDELBROT_SIN: EscapeFamily(_sin_step, escape_radius_sq=TRIG_ESCAPE_RADIUS_SQ),
    FractalKind.INVERTED_MANDELBROT: EscapeFamily(_mandelbrot_step, inverted=True),
    FractalKind.TRICORN: EscapeFamily(_tricorn_step),
    FractalKind.JULIA: EscapeFamily(_mandelbrot_step, seed_from_pixel=True),
    FractalKind.BURNING_SHIP: EscapeFamily(_burning_ship_step),
    FractalKind.CELTIC: EscapeFamily(_celtic_step),
    FractalKind.BUFFALO: EscapeFamily(_buffalo_step),
    FractalKind.NEWTON_Z3: NewtonFamily(_cube_minus_one, CUBE_ROOTS_OF_UNITY, 1e-6),
    FractalKind.NEWTON_Z3_2Z: NewtonFamily(_cube_minus_2z_plus_2, CUBE_MINUS_2Z_PLUS_2_ROOTS, 1e-6),
    FractalKind.NEWTON_Z5: NewtonFamily(_quintic, QUINTIC_ROOTS, 1e-5),
}


def family_for(kind: FractalKind) -> EscapeFamily | NewtonFamily:
    return FAMILIES[kind]


def is_newton(kind: FractalKind) -> bool:
    return isinstance(FAMILIES[kind], NewtonFamily)
