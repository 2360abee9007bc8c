from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np
from PIL import Image

from .chunk import Chunk, ChunkError, Coord, TileType


Palette = Dict[str, TileType]  # "#rrggbb" -> atlas coordinates


def _load_rgba(path: Path | str) -> np.ndarray:
    img = Image.open(path).convert("RGBA")
    return np.asarray(img)


def _hex_color(rgb: Iterable[int]) -> str:
    r, g, b = (int(v) for v in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def _opaque_colors(image: np.ndarray) -> set[str]:
    opaque = image[..., 3] > 0
    if not opaque.any():
        return set()
    unique = np.unique(image[opaque][:, :3], axis=0)
    return {_hex_color(rgb) for rgb in unique}


def build_palette(image_paths: Iterable[Path | str], atlas_columns: int = 8) -> Palette:
    """Assign atlas coordinates to every distinct opaque color, in sorted color order."""
    if atlas_columns <= 0:
        raise ValueError("atlas_columns must be positive.")
    colors: set[str] = set()
    for path in image_paths:
        colors |= _opaque_colors(_load_rgba(path))
    if not colors:
        raise ValueError("No opaque pixels found in the given images.")
    return {color: (i % atlas_columns, i // atlas_columns) for i, color in enumerate(sorted(colors))}


def save_palette(palette: Palette, path: Path | str) -> None:
    data = {color: list(tile_type) for color, tile_type in sorted(palette.items())}
    Path(path).write_text(json.dumps(data, indent=2))


def _load_default_palette_text() -> str:
    try:
        return resources.files("tileset_analyzer").joinpath("data/default_palette.json").read_text()
    except FileNotFoundError as exc:
        raise FileNotFoundError(
            "Default palette not found; pass --palette PATH or reinstall the package."
        ) from exc


def load_palette(path: Path | str | None = None) -> Palette:
    if path is None:
        data_text = _load_default_palette_text()
    else:
        data_text = Path(path).read_text()
    data = json.loads(data_text)
    return {color.lower(): (int(v[0]), int(v[1])) for color, v in data.items()}


def load_chunk_image(path: Path | str, palette: Palette) -> Chunk:
    """Read a painted chunk: one pixel per cell, transparent pixels are empty."""
    path = Path(path)
    image = _load_rgba(path)
    height, width = image.shape[:2]

    cells: Dict[Coord, TileType] = {}
    unknown: List[Tuple[Coord, str]] = []
    for y, x in zip(*np.nonzero(image[..., 3] > 0)):
        color = _hex_color(image[y, x, :3])
        tile_type = palette.get(color)
        if tile_type is None:
            unknown.append(((int(x), int(y)), color))
            continue
        cells[(int(x), int(y))] = tile_type

    if unknown:
        coord, color = unknown[0]
        raise ChunkError(
            f"Color {color} at {coord} in '{path.name}' is not in the palette ({len(unknown)} unknown pixels)."
        )
    return Chunk(name=path.stem, width=width, height=height, cells=cells)


def load_chunk_images(directory: Path | str, palette: Palette, pattern: str = "*.png") -> List[Chunk]:
    paths = sorted(Path(directory).glob(pattern))
    if not paths:
        raise ChunkError(f"No chunk images matching '{pattern}' in {directory}.")
    return [load_chunk_image(path, palette) for path in paths]
