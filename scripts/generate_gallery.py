from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from fractals import FractalKind, Palette

GALLERY_ROOT = Path("examples/gallery")
BASE_ARGS = ["--width", "120", "--height", "40", "--export-width", "480"]

KINDS = [kind.value for kind in FractalKind]
PALETTES = [palette.value for palette in Palette]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", *self.args, "--export", str(self.output)]


def build_examples() -> list[Example]:
    examples = [
        Example(name=kind, args=[*BASE_ARGS, "--kind", kind], output=GALLERY_ROOT / "kinds" / f"{kind}.png")
        for kind in KINDS
    ]
    examples.extend(
        Example(
            name=f"palette-{palette}",
            args=[*BASE_ARGS, "--palette", palette],
            output=GALLERY_ROOT / "palettes" / f"{palette}.png",
        )
        for palette in PALETTES
    )
    examples.append(
        Example(
            name="julia-dendrite",
            args=[*BASE_ARGS, "--kind", "julia", "--julia", "-0.4", "0.6"],
            output=GALLERY_ROOT / "julia" / "dendrite.png",
        )
    )
    return examples


def _prepare(example: Example) -> None:
    if example.output.exists():
        example.output.unlink()
    example.output.parent.mkdir(parents=True, exist_ok=True)


def main() -> None:
    for example in build_examples():
        print(f"\n[gallery] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        if not example.output.is_file():
            raise RuntimeError(f"Expected file {example.output} was not created")
    print("\nGallery generated successfully.")


if __name__ == "__main__":
    main()
