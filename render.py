import logging
import os
import shutil
import sys
import warnings
from argparse import ArgumentParser
from dataclasses import replace
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

import numpy as np
import PIL.Image
import tensorflow as tf

from fractals import (
    FractalKind,
    Palette,
    ViewportStore,
    is_newton,
    load_store,
    render_export,
    render_live,
    save_store,
)
from fractals.palettes import root_color
from fractals.renderer import LiveSurface
from fractals.settings import ASPECT_RANGE, DEFAULT_ASPECT, MAX_ITERATIONS, NEWTON_ITERATIONS

logger = logging.getLogger("render")

ANSI_RESET = "\033[0m"


def select_device() -> str:
    # Place the kernels on the first visible GPU, falling back to the CPU.
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        logger.info("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        logger.warning("Could not configure GPU memory growth: %s", e)
        return '/CPU:0'
    logger.info("GPU found, using %s", gpus[0].name)
    return '/GPU:0'


def build_parser():
    terminal = shutil.get_terminal_size()
    parser = ArgumentParser(description='Render escape-time and Newton-basin fractals to the terminal or an image.')

    parser.add_argument('--kind', type=str, dest='kind', metavar='KIND', default=FractalKind.MANDELBROT.value,
                        choices=[kind.value for kind in FractalKind],
                        help='fractal to render: %(choices)s')

    parser.add_argument('--width', type=int, dest='width', metavar='COLS', default=terminal.columns,
                        help='live raster width in character cells (default: terminal width)')

    parser.add_argument('--height', type=int, dest='height', metavar='ROWS', default=max(terminal.lines - 1, 1),
                        help='live raster height in character cells (default: terminal height minus one)')

    parser.add_argument('--center-x', type=float, dest='center_x', metavar='X',
                        help='real coordinate of the view center (default: saved or built-in view)')

    parser.add_argument('--center-y', type=float, dest='center_y', metavar='Y',
                        help='imaginary coordinate of the view center (default: saved or built-in view)')

    parser.add_argument('--scale', type=float, dest='scale', metavar='SCALE',
                        help='plane width of a single character cell')

    parser.add_argument('--julia', type=float, nargs=2, dest='julia', metavar=('RE', 'IM'),
                        help='Julia constant (julia kind only)')

    parser.add_argument('--aspect', type=float, dest='aspect', metavar='RATIO', default=DEFAULT_ASPECT,
                        help='height/width ratio of a character cell, between %.1f and %.1f' % ASPECT_RANGE)

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='N', default=MAX_ITERATIONS,
                        help='iteration budget for escape-time fractals')

    parser.add_argument('--newton-iterations', type=int, dest='newton_iterations', metavar='N',
                        default=NEWTON_ITERATIONS, help='iteration budget for Newton fractals')

    parser.add_argument('--workers', type=int, dest='workers', metavar='N',
                        help='number of threads evaluating row bands concurrently')

    parser.add_argument('--load', type=str, dest='load', metavar='PATH',
                        help='YAML file with saved viewports')

    parser.add_argument('--save', type=str, dest='save', metavar='PATH',
                        help='write the viewports, including this view, to a YAML file')

    parser.add_argument('--export', type=str, dest='export', metavar='PATH',
                        help='write an image instead of printing to the terminal')

    parser.add_argument('--export-width', type=int, dest='export_width', metavar='PIXELS', default=1200,
                        help='width of the exported image')

    parser.add_argument('--export-height', type=int, dest='export_height', metavar='PIXELS',
                        help='height of the exported image (default: keeps the live field of view)')

    parser.add_argument('--palette', type=str, dest='palette', metavar='PALETTE', default=Palette.FIRE.value,
                        choices=[palette.value for palette in Palette],
                        help='color palette for exports: %(choices)s')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT',
                        help='image format for --export. Any extension supported by Pillow. '
                             'Default: the extension of PATH, or "png".')

    parser.add_argument('--no-color', dest='no_color', action='store_true',
                        help='print Newton fractals without ANSI colors')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def resolve_export_path(opt, parser: ArgumentParser) -> tuple[Path, str]:
    output_path = Path(opt.export).expanduser()
    if str(opt.export).endswith("/") or (output_path.exists() and output_path.is_dir()):
        parser.error("--export must point to a file, not a directory.")

    image_format = (opt.format or output_path.suffix or "png").lower().lstrip(".")
    if output_path.suffix:
        if opt.format and output_path.suffix.lower().lstrip(".") != image_format:
            parser.error(f"--export extension {output_path.suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(f".{image_format}")
    return output_path.resolve(), image_format


def validate_options(opt, parser: ArgumentParser) -> None:
    low, high = ASPECT_RANGE
    if not low <= opt.aspect <= high:
        parser.error(f"--aspect must be between {low} and {high}.")
    if opt.scale is not None and not opt.scale > 0:
        parser.error("--scale must be positive.")
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.export_width <= 0 or (opt.export_height is not None and opt.export_height <= 0):
        parser.error("--export-width and --export-height must be positive.")
    if opt.max_iterations <= 0 or opt.newton_iterations <= 0:
        parser.error("iteration budgets must be positive.")
    if opt.workers is not None and opt.workers <= 0:
        parser.error("--workers must be positive.")
    if opt.julia is not None and opt.kind != FractalKind.JULIA.value:
        parser.error("--julia is only valid with --kind julia.")


def build_store(opt, parser: ArgumentParser) -> ViewportStore:
    if opt.load:
        try:
            store = load_store(opt.load)
        except (OSError, ValueError) as exc:
            parser.error(f"Could not load viewports from {opt.load}: {exc}")
    else:
        store = ViewportStore()

    kind = FractalKind(opt.kind)
    viewport = store.get(kind)
    if opt.center_x is not None or opt.center_y is not None or opt.scale is not None:
        viewport = replace(
            viewport,
            center_x=viewport.center_x if opt.center_x is None else opt.center_x,
            center_y=viewport.center_y if opt.center_y is None else opt.center_y,
            scale=viewport.scale if opt.scale is None else opt.scale,
        )
        store.set(kind, viewport)
    if opt.julia is not None:
        store.set_julia(kind, *opt.julia)
    return store


def format_surface(surface: LiveSurface, kind: FractalKind, color: bool) -> str:
    """Join a live surface into printable text, coloring Newton root pairs with ANSI escapes."""

    if not (color and is_newton(kind)):
        return "\n".join(surface.lines())

    lines = []
    for glyph_row, pair_row in zip(surface.glyphs, surface.color_pairs):
        cells = []
        for glyph, pair in zip(glyph_row, pair_row):
            if pair == 0:
                cells.append(" ")
            else:
                r, g, b = root_color(int(pair), kind)
                cells.append(f"\033[38;2;{r};{g};{b}m{glyph}")
        lines.append("".join(cells) + ANSI_RESET)
    return "\n".join(lines)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)
    validate_options(opt, parser)

    logging.basicConfig(
        level=logging.INFO if opt.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if not opt.verbose:
        tf.get_logger().setLevel("ERROR")
    logger.info("TensorFlow version: %s", tf.__version__)

    kind = FractalKind(opt.kind)
    store = build_store(opt, parser)
    viewport = store.get(kind)
    device = select_device()

    if opt.save:
        save_store(store, opt.save)

    if opt.export:
        output_path, image_format = resolve_export_path(opt, parser)
        export_height = opt.export_height
        if export_height is None:
            export_height = max(1, int(round(opt.export_width * opt.height / opt.width)))
        rgb = render_export(
            kind,
            viewport,
            opt.export_width,
            export_height,
            Palette(opt.palette),
            live_width=opt.width,
            aspect_ratio=opt.aspect,
            max_iterations=opt.max_iterations,
            newton_iterations=opt.newton_iterations,
            workers=opt.workers,
            device=device,
        )
        image = PIL.Image.fromarray(np.ascontiguousarray(rgb))
        write_single_image(image, output_path, image_format)
        logger.info("Wrote %dx%d %s image to %s", opt.export_width, export_height, kind.value, output_path)
        return 0

    surface = render_live(
        kind,
        viewport,
        opt.width,
        opt.height,
        opt.aspect,
        max_iterations=opt.max_iterations,
        newton_iterations=opt.newton_iterations,
        workers=opt.workers,
        device=device,
    )
    print(format_surface(surface, kind, color=not opt.no_color))
    return 0


if __name__ == '__main__':
    sys.exit(main())
