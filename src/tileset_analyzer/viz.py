from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import colormaps
from matplotlib import colors as mcolors

from .chunk import Chunk, TileType
from .image_loader import Palette


EMPTY_COLOR = "#ffffff00"


def _tile_colors(chunk: Chunk, palette: Optional[Palette]) -> Dict[TileType, str]:
    tile_types = sorted(set(chunk.cells.values()))
    if palette:
        by_type = {tile_type: color for color, tile_type in palette.items()}
        if all(t in by_type for t in tile_types):
            return {t: by_type[t] for t in tile_types}
    cmap = colormaps["tab20"]
    return {t: mcolors.to_hex(cmap(i % cmap.N)) for i, t in enumerate(tile_types)}


def render_chunk(chunk: Chunk, palette: Optional[Palette] = None) -> Tuple[plt.Figure, plt.Axes]:
    colors_by_type = _tile_colors(chunk, palette)
    color_grid = np.zeros((chunk.height, chunk.width, 4), dtype=float)
    color_grid[:] = mcolors.to_rgba(EMPTY_COLOR)
    for x, y, tile_type in chunk.tiles():
        color_grid[y, x] = mcolors.to_rgba(colors_by_type[tile_type])

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(color_grid, origin="upper")

    ax.set_xticks(np.arange(-0.5, chunk.width, 1), minor=True)
    ax.set_yticks(np.arange(-0.5, chunk.height, 1), minor=True)
    ax.grid(which="minor", color="black", linewidth=0.5, alpha=0.4)
    ax.set_xticklabels([])
    ax.set_yticklabels([])
    ax.set_title(chunk.name)
    return fig, ax


def save_chunk_plot(chunk: Chunk, output_path: str | None, palette: Optional[Palette] = None) -> None:
    fig, ax = render_chunk(chunk, palette)
    if output_path:
        fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)


def display_chunk(chunk: Chunk, palette: Optional[Palette] = None) -> None:
    fig, ax = render_chunk(chunk, palette)
    plt.show()
    plt.close(fig)
