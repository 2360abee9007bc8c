"""Adjacency extraction over a set of chunks, sequentially or with a worker pool."""

from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .adjacency import AdjacencyMap
from .chunk import Chunk, ChunkError, Coord, TileType


class ChunkScanError(RuntimeError):
    def __init__(self, chunk_name: str) -> None:
        super().__init__(f"Failed to scan chunk '{chunk_name}'")
        self.chunk_name = chunk_name


EXECUTORS = {
    "thread": ThreadPoolExecutor,
    "process": ProcessPoolExecutor,
}


def neighbor_types(chunk: Chunk, coord: Coord) -> Set[TileType]:
    """Tile types of the occupied cells orthogonally adjacent to `coord`."""
    valid_neighbors = [n for n in chunk.surrounding_cells(coord) if chunk.is_occupied(n)]
    return {chunk.tile_type_at(n) for n in valid_neighbors}


def scan_chunk(chunk: Chunk) -> AdjacencyMap:
    possibilities: AdjacencyMap = {}
    for coord in chunk.used_cells():
        tile_type = chunk.tile_type_at(coord)
        possibilities.setdefault(tile_type, set()).update(neighbor_types(chunk, coord))
    return possibilities


def union_into(target: AdjacencyMap, partial: AdjacencyMap) -> AdjacencyMap:
    for tile_type, neighbors in partial.items():
        target.setdefault(tile_type, set()).update(neighbors)
    return target


def _scan_or_raise(chunk: Chunk) -> AdjacencyMap:
    try:
        return scan_chunk(chunk)
    except ChunkError as exc:
        raise ChunkScanError(chunk.name) from exc


def aggregate_sequential(chunks: Sequence[Chunk]) -> AdjacencyMap:
    result: AdjacencyMap = {}
    for chunk in chunks:
        union_into(result, _scan_or_raise(chunk))
    return result


def merge_partial_maps(partials: Iterable[AdjacencyMap]) -> AdjacencyMap:
    """Group every (tile type, neighbor set) entry by tile type and union each group."""
    grouped: Dict[TileType, List[Set[TileType]]] = {}
    for partial in partials:
        for tile_type, neighbors in partial.items():
            grouped.setdefault(tile_type, []).append(neighbors)
    return {tile_type: set().union(*groups) for tile_type, groups in grouped.items()}


def _make_executor(kind: str, max_workers: Optional[int]) -> Executor:
    try:
        executor_cls = EXECUTORS[kind]
    except KeyError:
        raise ValueError(f"Unknown executor '{kind}', expected one of {sorted(EXECUTORS)}") from None
    return executor_cls(max_workers=max_workers)


def aggregate_concurrent(
    chunks: Iterable[Chunk], max_workers: Optional[int] = None, executor: str = "thread"
) -> AdjacencyMap:
    """Scan every chunk in its own task, join on all of them, then merge the partial maps.

    The first failing task aborts the join with a `ChunkScanError`. Tasks that are
    already running are left to finish and their results are dropped.
    """
    chunk_list = list(chunks)
    if not chunk_list:
        return {}

    pool = _make_executor(executor, max_workers)
    try:
        futures = {pool.submit(scan_chunk, chunk): chunk.name for chunk in chunk_list}
        partials: List[AdjacencyMap] = []
        for future in as_completed(futures):
            try:
                partials.append(future.result())
            except ChunkError as exc:
                raise ChunkScanError(futures[future]) from exc
    finally:
        pool.shutdown(wait=False)

    return merge_partial_maps(partials)
