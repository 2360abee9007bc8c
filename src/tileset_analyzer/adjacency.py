import json
from pathlib import Path
from typing import Dict, List, Set, Tuple

from .chunk import TileType


AdjacencyMap = Dict[TileType, Set[TileType]]


def maps_equal(a: AdjacencyMap, b: AdjacencyMap) -> bool:
    if a.keys() != b.keys():
        return False
    return all(set(a[key]) == set(b[key]) for key in a)


def diff_maps(a: AdjacencyMap, b: AdjacencyMap) -> Dict[TileType, Set[TileType]]:
    """Neighbor types found in only one of the two maps, per tile type."""
    diff: Dict[TileType, Set[TileType]] = {}
    for key in set(a) | set(b):
        only = set(a.get(key, set())) ^ set(b.get(key, set()))
        if only or (key in a) != (key in b):
            diff[key] = only
    return diff


def asymmetric_pairs(adjacency: AdjacencyMap) -> List[Tuple[TileType, TileType]]:
    pairs: List[Tuple[TileType, TileType]] = []
    for tile_type, neighbors in adjacency.items():
        for neighbor in neighbors:
            if tile_type not in adjacency.get(neighbor, set()):
                pairs.append((tile_type, neighbor))
    return sorted(pairs)


def _key(tile_type: TileType) -> str:
    return f"{tile_type[0]},{tile_type[1]}"


def _parse_key(key: str) -> TileType:
    parts = key.split(",")
    if len(parts) != 2:
        raise ValueError(f"Malformed tile type key '{key}'")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Malformed tile type key '{key}'") from exc


def adjacency_to_json(adjacency: AdjacencyMap) -> Dict[str, List[List[int]]]:
    return {
        _key(tile_type): [list(neighbor) for neighbor in sorted(adjacency[tile_type])]
        for tile_type in sorted(adjacency)
    }


def save_adjacency(adjacency: AdjacencyMap, path: Path | str) -> None:
    Path(path).write_text(json.dumps(adjacency_to_json(adjacency), indent=2))


def load_adjacency(path: Path | str) -> AdjacencyMap:
    data = json.loads(Path(path).read_text())
    adjacency: AdjacencyMap = {}
    for key, neighbors in data.items():
        adjacency[_parse_key(key)] = {(int(x), int(y)) for x, y in neighbors}
    return adjacency
