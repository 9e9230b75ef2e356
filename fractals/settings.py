"""Static configuration shared by the evaluators, quantizers and drivers."""

from __future__ import annotations

MAX_ITERATIONS = 100
NEWTON_ITERATIONS = 50

ESCAPE_RADIUS_SQ = 4.0
TRIG_ESCAPE_RADIUS_SQ = 400.0
INVERSION_EPSILON = 1e-10

GAMMA = 2.2
GLYPH_RAMP = " .:-=+*#%@"
NEWTON_GLYPH = "#"

DEFAULT_JULIA = (-0.7, 0.27015)

# Terminal cells are roughly twice as tall as they are wide.
DEFAULT_ASPECT = 2.0
ASPECT_RANGE = (0.5, 3.0)

PAN_STEP = 0.1
COARSE_PAN_STEP = 10.0
ZOOM_IN_FACTOR = 0.8
ZOOM_OUT_FACTOR = 1.2

DEFAULT_BAND_ROWS = 32
MAX_WORKERS = 8
