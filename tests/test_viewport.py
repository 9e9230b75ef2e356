import pytest

from fractals import FractalKind, ViewParams, Viewport, ViewportStore, export_viewport, map_cell
from fractals.settings import DEFAULT_JULIA
from fractals.viewport import DEFAULT_VIEWPORTS


@pytest.mark.parametrize("size", [(80, 24), (81, 25), (1920, 1080)])
@pytest.mark.parametrize("scale", [0.03, 1e-9, 7.5])
@pytest.mark.parametrize("aspect", [0.5, 2.0, 3.0])
def test_center_cell_maps_to_center(size, scale, aspect):
    width, height = size
    viewport = Viewport(-0.743643887, 0.131825904, scale)
    assert map_cell(width / 2, height / 2, width, height, viewport, aspect) == (viewport.center_x, viewport.center_y)


def test_vertical_step_carries_aspect_ratio():
    viewport = Viewport(0.0, 0.0, 0.5)
    x0, y0 = map_cell(0, 0, 10, 10, viewport, 2.0)
    x1, y1 = map_cell(1, 1, 10, 10, viewport, 2.0)
    assert x1 - x0 == pytest.approx(0.5)
    assert y1 - y0 == pytest.approx(1.0)


def test_export_viewport_matches_live_field_of_view():
    viewport = Viewport(-0.5, 0.25, 0.03)
    exported = export_viewport(viewport, 80, 800)
    assert exported.scale == pytest.approx(0.003)
    # left edge of the live raster and of the export land on the same x
    assert map_cell(0, 0, 800, 400, exported, 2.0)[0] == pytest.approx(map_cell(0, 0, 80, 40, viewport, 2.0)[0])


def test_export_viewport_at_live_width_is_identity():
    viewport = Viewport(-0.5, 0.25, 0.1)
    assert export_viewport(viewport, 77, 77) == viewport


def test_export_viewport_rejects_empty_raster():
    with pytest.raises(ValueError):
        export_viewport(Viewport(0.0, 0.0, 0.1), 80, 0)


@pytest.mark.parametrize("scale", [0.0, -1.0, float("nan")])
def test_viewport_requires_positive_scale(scale):
    with pytest.raises(ValueError):
        Viewport(0.0, 0.0, scale)


def test_view_params_fall_back_to_default_julia():
    assert ViewParams(Viewport(0.0, 0.0, 0.1)).julia == DEFAULT_JULIA
    assert ViewParams(Viewport(0.0, 0.0, 0.1, julia=(0.3, 0.5))).julia == (0.3, 0.5)


def test_store_starts_with_defaults_for_every_kind():
    store = ViewportStore()
    for kind in FractalKind:
        assert store.get(kind) == DEFAULT_VIEWPORTS[kind]


def test_store_pan_moves_by_a_fraction_of_scale():
    store = ViewportStore({FractalKind.MANDELBROT: Viewport(0.0, 0.0, 0.5)})
    fine = store.pan(FractalKind.MANDELBROT, 1, -1)
    assert (fine.center_x, fine.center_y) == pytest.approx((0.05, -0.05))
    coarse = store.pan(FractalKind.MANDELBROT, -1, 0, coarse=True)
    assert (coarse.center_x, coarse.center_y) == pytest.approx((-4.95, -0.05))


def test_store_zoom_and_reset():
    store = ViewportStore()
    original = store.get(FractalKind.CELTIC)
    assert store.zoom_in(FractalKind.CELTIC).scale == pytest.approx(original.scale * 0.8)
    assert store.zoom_out(FractalKind.CELTIC).scale == pytest.approx(original.scale * 0.8 * 1.2)
    assert store.reset(FractalKind.CELTIC) == original


def test_store_kinds_are_independent():
    store = ViewportStore()
    store.zoom_in(FractalKind.MANDELBROT)
    assert store.get(FractalKind.TRICORN) == DEFAULT_VIEWPORTS[FractalKind.TRICORN]


def test_snapshot_is_unaffected_by_later_navigation():
    store = ViewportStore()
    params = store.snapshot(FractalKind.JULIA, max_iterations=250)
    store.pan(FractalKind.JULIA, 3, 3)
    store.set_julia(FractalKind.JULIA, 0.1, 0.2)
    assert params.viewport == DEFAULT_VIEWPORTS[FractalKind.JULIA]
    assert params.max_iterations == 250
    assert store.get(FractalKind.JULIA).julia == (0.1, 0.2)
