import numpy as np
import pytest

from fractals import Escaped, FractalKind, Palette, RootMatch, quantize_color, quantize_glyph
from fractals.palettes import NEWTON_COLORS, color_pair, color_table, gamma_correct, glyph_table
from fractals.settings import GLYPH_RAMP, NEWTON_GLYPH

MAX = 100


def test_interior_gets_densest_glyph():
    assert quantize_glyph(Escaped(MAX, MAX), FractalKind.MANDELBROT) == GLYPH_RAMP[-1]


def test_immediate_escape_gets_sparsest_glyph():
    assert quantize_glyph(Escaped(0, MAX), FractalKind.BURNING_SHIP) == GLYPH_RAMP[0]


def test_glyph_index_is_gamma_corrected():
    # linear indexing would give floor(0.1 * 9) == 0
    assert quantize_glyph(Escaped(10, MAX), FractalKind.MANDELBROT) == GLYPH_RAMP[3]


def test_glyphs_never_get_sparser_with_more_iterations():
    indices = [GLYPH_RAMP.index(quantize_glyph(Escaped(n, MAX), FractalKind.TRICORN)) for n in range(MAX + 1)]
    assert indices == sorted(indices)


def test_gamma_correct_endpoints():
    assert gamma_correct(0, MAX) == 0.0
    assert gamma_correct(MAX, MAX) == 1.0


@pytest.mark.parametrize("palette", list(Palette))
def test_colors_are_monotonic_and_clamped(palette):
    colors = np.array([quantize_color(Escaped(n, MAX), FractalKind.MANDELBROT, palette) for n in range(MAX)])
    assert colors.min() >= 0
    assert colors.max() <= 255
    assert np.all(np.diff(colors, axis=0) >= 0)


def test_fire_red_channel_saturates():
    r, g, b = quantize_color(Escaped(MAX - 1, MAX), FractalKind.MANDELBROT, Palette.FIRE)
    assert r == 255
    assert r > g > b


def test_interior_is_black_in_every_palette():
    for palette in Palette:
        assert quantize_color(Escaped(MAX, MAX), FractalKind.CELTIC, palette) == (0, 0, 0)


def test_newton_colors_come_from_root_table():
    kind = FractalKind.NEWTON_Z5
    assert quantize_color(RootMatch(0, 5), kind) == (0, 0, 0)
    for root in range(1, 6):
        assert quantize_color(RootMatch(root, 5), kind, Palette.OCEAN) == NEWTON_COLORS[kind][root - 1]


def test_newton_live_cells_share_a_glyph_and_differ_by_pair():
    kind = FractalKind.NEWTON_Z3
    assert {quantize_glyph(RootMatch(root, 3), kind) for root in range(4)} == {NEWTON_GLYPH}
    assert [color_pair(RootMatch(root, 3), kind) for root in range(4)] == [0, 1, 2, 3]
    assert color_pair(Escaped(5, MAX), FractalKind.MANDELBROT) == 0


def test_newton_color_tables_cover_every_root():
    for kind, colors in NEWTON_COLORS.items():
        assert len(colors) == len(color_table(kind, MAX, Palette.FIRE)) - 1


def test_mismatched_classification_is_rejected():
    with pytest.raises(TypeError):
        quantize_glyph(RootMatch(1, 3), FractalKind.MANDELBROT)
    with pytest.raises(TypeError):
        quantize_color(Escaped(3, MAX), FractalKind.NEWTON_Z3)


def test_lookup_tables_agree_with_scalar_quantizers():
    glyphs = glyph_table(MAX)
    colors = color_table(FractalKind.BUFFALO, MAX, Palette.FOREST)
    for n in range(MAX + 1):
        assert glyphs[n] == quantize_glyph(Escaped(n, MAX), FractalKind.BUFFALO)
        assert tuple(colors[n]) == quantize_color(Escaped(n, MAX), FractalKind.BUFFALO, Palette.FOREST)
    assert colors.dtype == np.uint8
