"""YAML persistence for the viewport store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import yaml

from .formulas import FractalKind
from .viewport import Viewport, ViewportStore

logger = logging.getLogger(__name__)


def viewport_to_dict(viewport: Viewport) -> dict:
    data = {
        "center": {"x": viewport.center_x, "y": viewport.center_y},
        "scale": viewport.scale,
    }
    if viewport.julia is not None:
        data["julia"] = {"re": viewport.julia[0], "im": viewport.julia[1]}
    return data


def dict_to_viewport(data: dict) -> Viewport:
    try:
        center = data["center"]
        julia = data.get("julia")
        return Viewport(
            center_x=float(center["x"]),
            center_y=float(center["y"]),
            scale=float(data["scale"]),
            julia=(float(julia["re"]), float(julia["im"])) if julia is not None else None,
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed viewport entry: {data!r}") from exc


def store_to_dict(store: ViewportStore) -> dict:
    """Convert the store to plain data for YAML serialisation."""
    return {"viewports": {kind.value: viewport_to_dict(viewport) for kind, viewport in store.items()}}


def dict_to_store(data: dict) -> ViewportStore:
    """Build a store from plain data; kinds missing from ``data`` keep their defaults."""
    entries = (data or {}).get("viewports") or {}
    viewports = {}
    for name, entry in entries.items():
        try:
            kind = FractalKind(name)
        except ValueError:
            logger.warning("Skipping unknown fractal kind %r in saved viewports", name)
            continue
        viewports[kind] = dict_to_viewport(entry)
    return ViewportStore(viewports)


def save_store(store: ViewportStore, path: Union[str, Path]) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as file:
        yaml.safe_dump(store_to_dict(store), file, sort_keys=False)
    logger.info("Saved viewports to %s", path)
    return path


def load_store(path: Union[str, Path]) -> ViewportStore:
    path = Path(path).expanduser()
    with open(path, "r") as file:
        data = yaml.safe_load(file)
    logger.info("Loaded viewports from %s", path)
    return dict_to_store(data)
