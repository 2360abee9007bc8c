from dataclasses import dataclass, field
from numbers import Integral
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np


Coord = Tuple[int, int]
TileType = Tuple[int, int]  # atlas coordinates of the tile in the tileset

EMPTY = "."


class ChunkError(ValueError):
    """Malformed or inconsistent chunk data."""


@dataclass(frozen=True)
class Chunk:
    name: str
    width: int
    height: int
    cells: Dict[Coord, TileType] = field(default_factory=dict)

    def used_cells(self) -> List[Coord]:
        return list(self.cells)

    def in_bounds(self, coord: Coord) -> bool:
        x, y = coord
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, coord: Coord) -> bool:
        return coord in self.cells and self.in_bounds(coord)

    def tile_type_at(self, coord: Coord) -> TileType:
        if coord not in self.cells:
            raise ChunkError(f"No tile at {coord} in chunk '{self.name}'")
        if not self.in_bounds(coord):
            raise ChunkError(f"Tile at {coord} lies outside the {self.width}x{self.height} chunk '{self.name}'")
        tile_type = self.cells[coord]
        if (
            not isinstance(tile_type, tuple)
            or len(tile_type) != 2
            or not all(isinstance(v, Integral) and not isinstance(v, bool) and v >= 0 for v in tile_type)
        ):
            raise ChunkError(f"Malformed tile type {tile_type!r} at {coord} in chunk '{self.name}'")
        return int(tile_type[0]), int(tile_type[1])

    def surrounding_cells(self, coord: Coord) -> List[Coord]:
        # Right, down, left, up; occupancy and bounds are not checked.
        x, y = coord
        return [(x + 1, y), (x, y + 1), (x - 1, y), (x, y - 1)]

    def tiles(self) -> Iterable[Tuple[int, int, TileType]]:
        for y in range(self.height):
            for x in range(self.width):
                if (x, y) in self.cells:
                    yield x, y, self.cells[(x, y)]


def _parse_token(token: str, coord: Coord) -> TileType | None:
    if token == EMPTY:
        return None
    parts = token.split(",")
    if len(parts) != 2:
        raise ChunkError(f"Unexpected token '{token}' at {coord}")
    try:
        atlas_x, atlas_y = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ChunkError(f"Unexpected token '{token}' at {coord}") from exc
    if atlas_x < 0 or atlas_y < 0:
        raise ChunkError(f"Negative atlas coordinates '{token}' at {coord}")
    return atlas_x, atlas_y


def parse_chunk_text(text: str, name: str = "chunk") -> Chunk:
    rows = [
        line.split()
        for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if not rows:
        raise ChunkError(f"Chunk '{name}' is empty.")

    width = len(rows[0])
    cells: Dict[Coord, TileType] = {}
    for y, tokens in enumerate(rows):
        if len(tokens) != width:
            raise ChunkError(
                f"Inconsistent row width in chunk '{name}' at row {y}: expected {width}, got {len(tokens)}"
            )
        for x, token in enumerate(tokens):
            tile_type = _parse_token(token, (x, y))
            if tile_type is not None:
                cells[(x, y)] = tile_type

    return Chunk(name=name, width=width, height=len(rows), cells=cells)


def parse_chunk_file(path: Path | str) -> Chunk:
    path = Path(path)
    return parse_chunk_text(path.read_text(), name=path.stem)


def chunk_to_string(chunk: Chunk) -> str:
    lines: List[str] = []
    for y in range(chunk.height):
        tokens: List[str] = []
        for x in range(chunk.width):
            tile_type = chunk.cells.get((x, y))
            tokens.append(EMPTY if tile_type is None else f"{tile_type[0]},{tile_type[1]}")
        lines.append(" ".join(tokens))
    return "\n".join(lines)


def load_chunk_dir(directory: Path | str, pattern: str = "*.txt") -> List[Chunk]:
    """Parse every chunk file in a directory, sorted by file name."""
    paths = sorted(Path(directory).glob(pattern))
    if not paths:
        raise ChunkError(f"No chunk files matching '{pattern}' in {directory}.")
    return [parse_chunk_file(path) for path in paths]


def chunk_from_atlas_array(name: str, atlas: np.ndarray) -> Chunk:
    """Build a chunk from a (height, width, 2) array of atlas coordinates; negative entries are empty."""
    atlas = np.asarray(atlas)
    if atlas.ndim != 3 or atlas.shape[2] != 2:
        raise ChunkError(f"Expected atlas array of shape (height, width, 2), got {atlas.shape}")
    height, width = atlas.shape[:2]
    occupied = np.all(atlas >= 0, axis=2)
    cells: Dict[Coord, TileType] = {}
    for y, x in zip(*np.nonzero(occupied)):
        cells[(int(x), int(y))] = (int(atlas[y, x, 0]), int(atlas[y, x, 1]))
    return Chunk(name=name, width=width, height=height, cells=cells)
