"""Vectorised TensorFlow kernels that classify a whole block of plane points.

The kernels run the same recurrences as :mod:`fractals.evaluators` over a
tensor of points. Points that have escaped (or converged) are frozen with
``tf.where`` so their counts stop advancing while the rest keep iterating.
"""

from __future__ import annotations

import functools
from typing import Callable, Optional

import numpy as np
import tensorflow as tf

from .formulas import EscapeFamily, NewtonFamily
from .settings import INVERSION_EPSILON

_GRID = tf.TensorSpec(shape=[None, None], dtype=tf.float64)
_SCALAR_F = tf.TensorSpec(shape=[], dtype=tf.float64)
_SCALAR_I = tf.TensorSpec(shape=[], dtype=tf.int32)


@functools.lru_cache(maxsize=None)
def _escape_kernel(family: EscapeFamily) -> Callable[..., tf.Tensor]:
    """Build the compiled escape-time kernel for ``family``."""
    radius_sq = family.escape_radius_sq

    @tf.function(input_signature=[_GRID, _GRID, _SCALAR_F, _SCALAR_F, _SCALAR_I])
    def run(
        cx: tf.Tensor, cy: tf.Tensor, julia_x: tf.Tensor, julia_y: tf.Tensor, max_iterations: tf.Tensor
    ) -> tf.Tensor:
        """Escape counts for the grid ``cx + i cy``; degenerate inverted points count as interior."""
        if family.inverted:
            r_sq = cx * cx + cy * cy
            degenerate = tf.sqrt(r_sq) < INVERSION_EPSILON
            safe = tf.where(degenerate, tf.ones_like(r_sq), r_sq)
            cx, cy = cx / safe, -cy / safe
        else:
            degenerate = tf.zeros_like(cx, dtype=tf.bool)

        if family.seed_from_pixel:
            zx, zy = cx, cy
            cx, cy = julia_x, julia_y
        else:
            zx = tf.zeros_like(cx)
            zy = tf.zeros_like(cy)

        ns = tf.zeros(tf.shape(zx), tf.int32)
        active = tf.logical_and(zx * zx + zy * zy < radius_sq, tf.logical_not(degenerate))

        def cond(i: tf.Tensor, zx: tf.Tensor, zy: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
            return tf.logical_and(i < max_iterations, tf.reduce_any(active))

        def body(
            i: tf.Tensor, zx: tf.Tensor, zy: tf.Tensor, ns: tf.Tensor, active: tf.Tensor
        ) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
            nx, ny = family.step(zx, zy, cx, cy, tf.math)
            zx = tf.where(active, nx, zx)
            zy = tf.where(active, ny, zy)
            ns = ns + tf.cast(active, tf.int32)
            active = tf.logical_and(active, zx * zx + zy * zy < radius_sq)
            return i + 1, zx, zy, ns, active

        i = tf.constant(0, dtype=tf.int32)
        _, _, _, ns, _ = tf.while_loop(cond, body, (i, zx, zy, ns, active))
        return tf.where(degenerate, max_iterations, ns)

    return run


@functools.lru_cache(maxsize=None)
def _newton_kernel(family: NewtonFamily) -> Callable[..., tf.Tensor]:
    """Build the compiled Newton basin kernel for ``family``."""
    roots = family.roots
    tolerance = family.tolerance

    @tf.function(input_signature=[_GRID, _GRID, _SCALAR_I])
    def run(zx: tf.Tensor, zy: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
        """1-based root indices reached from the seeds ``zx + i zy``; 0 where none was."""
        result = tf.zeros(tf.shape(zx), tf.int32)
        active = tf.ones(tf.shape(zx), tf.bool)

        def cond(i: tf.Tensor, zx: tf.Tensor, zy: tf.Tensor, result: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
            return tf.logical_and(i < max_iterations, tf.reduce_any(active))

        def body(
            i: tf.Tensor, zx: tf.Tensor, zy: tf.Tensor, result: tf.Tensor, active: tf.Tensor
        ) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
            fx, fy, dfx, dfy = family.polynomial(zx, zy)
            denom = dfx * dfx + dfy * dfy
            singular = tf.equal(denom, 0.0)
            active = tf.logical_and(active, tf.logical_not(singular))
            safe = tf.where(singular, tf.ones_like(denom), denom)
            nx = zx - (fx * dfx + fy * dfy) / safe
            ny = zy - (fy * dfx - fx * dfy) / safe
            zx = tf.where(active, nx, zx)
            zy = tf.where(active, ny, zy)
            for index, (rx, ry) in enumerate(roots, start=1):
                dx = zx - rx
                dy = zy - ry
                hit = tf.logical_and(active, dx * dx + dy * dy < tolerance)
                result = tf.where(hit, index, result)
                active = tf.logical_and(active, tf.logical_not(hit))
            return i + 1, zx, zy, result, active

        i = tf.constant(0, dtype=tf.int32)
        _, _, _, result, _ = tf.while_loop(cond, body, (i, zx, zy, result, active))
        return result

    return run


def escape_counts(
    family: EscapeFamily,
    cx: np.ndarray,
    cy: np.ndarray,
    max_iterations: int,
    julia: tuple[float, float],
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Escape iteration counts for the 2-D grids of plane points ``cx``/``cy``."""

    kernel = _escape_kernel(family)
    with tf.device(device if device is not None else "/CPU:0"):
        ns = kernel(
            tf.convert_to_tensor(cx, dtype=tf.float64),
            tf.convert_to_tensor(cy, dtype=tf.float64),
            tf.constant(julia[0], dtype=tf.float64),
            tf.constant(julia[1], dtype=tf.float64),
            tf.constant(max_iterations, dtype=tf.int32),
        )
    return ns.numpy()


def newton_roots(
    family: NewtonFamily,
    zx: np.ndarray,
    zy: np.ndarray,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """1-based matched-root indices (0 for no convergence) for a grid of seeds."""

    kernel = _newton_kernel(family)
    with tf.device(device if device is not None else "/CPU:0"):
        result = kernel(
            tf.convert_to_tensor(zx, dtype=tf.float64),
            tf.convert_to_tensor(zy, dtype=tf.float64),
            tf.constant(max_iterations, dtype=tf.int32),
        )
    return result.numpy()
