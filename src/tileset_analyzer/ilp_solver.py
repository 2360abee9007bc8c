from typing import Dict, Tuple

import pulp

from .adjacency import AdjacencyMap
from .chunk import Coord, TileType
from .synthesis import (
    SynthesisConfig,
    SynthesisResult,
    allowed_neighbors,
    grid_cells,
    neighbor_pairs,
    objective_weights,
    tile_domain,
)


def solve_ilp(adjacency: AdjacencyMap, config: SynthesisConfig) -> SynthesisResult:
    domain = tile_domain(adjacency)
    allowed = allowed_neighbors(adjacency, domain)
    cells = grid_cells(config)

    problem = pulp.LpProblem("tile_synthesis", pulp.LpMaximize)

    tile_vars: Dict[Tuple[Coord, TileType], pulp.LpVariable] = {}
    for x, y in cells:
        for t in domain:
            tile_vars[(x, y), t] = pulp.LpVariable(f"b_{x}_{y}_{t[0]}_{t[1]}", lowBound=0, upBound=1, cat="Binary")

        # Each cell must pick exactly one tile type.
        problem += pulp.lpSum(tile_vars[(x, y), t] for t in domain) == 1

    # Objective: random weights so the seed selects among legal grids.
    weights = objective_weights(config, domain)
    problem += pulp.lpSum(weights[key] * var for key, var in tile_vars.items())

    # Neighbor consistency: type t at a cell needs an allowed type next to it.
    for cell, neighbor in neighbor_pairs(config):
        for t in domain:
            problem += tile_vars[cell, t] <= pulp.lpSum(tile_vars[neighbor, u] for u in allowed[t])

    solver = pulp.PULP_CBC_CMD(msg=False, timeLimit=config.time_limit_s)
    problem.solve(solver)

    status = pulp.LpStatus.get(problem.status, "Unknown")
    grid: Dict[Coord, TileType] = {}
    if status == "Optimal":
        for cell in cells:
            grid[cell] = max(domain, key=lambda t: tile_vars[cell, t].value() or 0.0)
    return SynthesisResult(status=status, grid=grid)
