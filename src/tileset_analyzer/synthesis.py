"""Shared pieces for generating tile grids that respect an adjacency map."""

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .adjacency import AdjacencyMap
from .chunk import Chunk, Coord, TileType


@dataclass(frozen=True)
class SynthesisConfig:
    width: int
    height: int
    seed: Optional[int] = None
    periodic: bool = False
    time_limit_s: float = 10.0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Output size must be positive, got {self.width}x{self.height}")


@dataclass
class SynthesisResult:
    status: str
    grid: Dict[Coord, TileType] = field(default_factory=dict)

    def succeeded(self) -> bool:
        return self.status.lower() in {"optimal", "feasible"}

    def to_chunk(self, name: str, config: SynthesisConfig) -> Chunk:
        return Chunk(name=name, width=config.width, height=config.height, cells=dict(self.grid))


def tile_domain(adjacency: AdjacencyMap) -> List[TileType]:
    if not adjacency:
        raise ValueError("Adjacency map is empty; nothing to synthesize from.")
    return sorted(adjacency)


def grid_cells(config: SynthesisConfig) -> List[Coord]:
    return [(x, y) for y in range(config.height) for x in range(config.width)]


def neighbor_pairs(config: SynthesisConfig) -> Iterable[Tuple[Coord, Coord]]:
    """Yield (cell, neighbor) for every orthogonal neighbor inside the grid, wrapping when periodic."""
    for x, y in grid_cells(config):
        for dx, dy in ((1, 0), (0, 1), (-1, 0), (0, -1)):
            nx, ny = x + dx, y + dy
            if config.periodic:
                nx, ny = nx % config.width, ny % config.height
                if (nx, ny) == (x, y):
                    continue
            elif not (0 <= nx < config.width and 0 <= ny < config.height):
                continue
            yield (x, y), (nx, ny)


def allowed_neighbors(adjacency: AdjacencyMap, domain: List[TileType]) -> Dict[TileType, List[TileType]]:
    # Neighbor types never seen as a cell cannot be placed, so they are dropped.
    known = set(domain)
    return {t: sorted(n for n in adjacency[t] if n in known) for t in domain}


def objective_weights(config: SynthesisConfig, domain: List[TileType]) -> Dict[Tuple[Coord, TileType], int]:
    rng = random.Random(config.seed)
    return {(cell, t): rng.randint(0, 100) for cell in grid_cells(config) for t in domain}


def is_legal(grid: Dict[Coord, TileType], adjacency: AdjacencyMap, config: SynthesisConfig) -> bool:
    if set(grid) != set(grid_cells(config)):
        return False
    if any(t not in adjacency for t in grid.values()):
        return False
    return all(grid[d] in adjacency[grid[c]] for c, d in neighbor_pairs(config))
