import numpy as np
import PIL.Image
import pytest

import render
from fractals import FractalKind, ViewportStore, save_store
from fractals.renderer import LiveSurface


def _parse(*args):
    parser = render.build_parser()
    opt = parser.parse_args(list(args))
    render.validate_options(opt, parser)
    return opt, parser


def test_defaults():
    opt, _ = _parse()
    assert opt.kind == "mandelbrot"
    assert opt.aspect == 2.0
    assert opt.palette == "fire"
    assert opt.export is None


@pytest.mark.parametrize(
    "args",
    [
        ["--aspect", "0.2"],
        ["--aspect", "3.5"],
        ["--scale", "0"],
        ["--width", "0"],
        ["--workers", "0"],
        ["--kind", "mandelbulb"],
        ["--julia", "0.1", "0.2"],
        ["--center-x", "abc"],
    ],
)
def test_invalid_input_is_rejected(args):
    with pytest.raises(SystemExit) as excinfo:
        _parse(*args)
    assert excinfo.value.code == 2


def test_build_store_applies_overrides():
    opt, parser = _parse("--kind", "julia", "--center-x", "0.25", "--scale", "0.01", "--julia", "-0.4", "0.6")
    viewport = render.build_store(opt, parser).get(FractalKind.JULIA)
    assert viewport.center_x == 0.25
    assert viewport.center_y == 0.0
    assert viewport.scale == 0.01
    assert viewport.julia == (-0.4, 0.6)


def test_build_store_loads_saved_viewports(tmp_path):
    store = ViewportStore()
    store.zoom_in(FractalKind.TRICORN)
    path = save_store(store, tmp_path / "views.yaml")
    opt, parser = _parse("--kind", "tricorn", "--load", str(path))
    assert render.build_store(opt, parser).get(FractalKind.TRICORN) == store.get(FractalKind.TRICORN)


def test_missing_save_file_is_a_usage_error(tmp_path):
    opt, parser = _parse("--load", str(tmp_path / "missing.yaml"))
    with pytest.raises(SystemExit):
        render.build_store(opt, parser)


def test_export_path_gets_format_suffix(tmp_path):
    opt, parser = _parse("--export", str(tmp_path / "out"), "--format", "JPG")
    path, image_format = render.resolve_export_path(opt, parser)
    assert path.name == "out.jpg"
    assert image_format == "jpg"
    assert render._pil_format_name(image_format) == "JPEG"


def test_export_path_format_mismatch_is_rejected(tmp_path):
    opt, parser = _parse("--export", str(tmp_path / "out.png"), "--format", "webp")
    with pytest.raises(SystemExit):
        render.resolve_export_path(opt, parser)


def test_main_prints_live_view(capsys):
    assert render.main(["--width", "30", "--height", "8", "--scale", "0.1"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 8
    assert all(len(line) == 30 for line in lines)


def test_main_exports_image(tmp_path):
    output = tmp_path / "images" / "ship.png"
    args = [
        "--kind", "burning-ship", "--width", "40", "--height", "10",
        "--export", str(output), "--export-width", "80", "--palette", "ocean",
    ]
    assert render.main(args) == 0
    with PIL.Image.open(output) as image:
        assert image.size == (80, 20)
        assert image.mode == "RGB"


def test_main_saves_viewports(tmp_path):
    path = tmp_path / "views.yaml"
    render.main(["--width", "10", "--height", "4", "--center-x", "-0.5", "--save", str(path)])
    assert "-0.5" in path.read_text()


def test_format_surface_colors_newton_roots():
    glyphs = [["#", "#"], ["#", "#"]]
    surface = LiveSurface(glyphs=np.array(glyphs), color_pairs=np.array([[0, 1], [2, 3]]))
    text = render.format_surface(surface, FractalKind.NEWTON_Z3, color=True)
    assert "\033[38;2;" in text
    assert text.splitlines()[0].startswith(" ")
    assert render.format_surface(surface, FractalKind.NEWTON_Z3, color=False) == "##\n##"
