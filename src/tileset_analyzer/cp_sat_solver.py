from typing import Dict, Tuple

from ortools.sat.python import cp_model

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


def _status_string(status: int) -> str:
    status_map = {
        cp_model.OPTIMAL: "Optimal",
        cp_model.FEASIBLE: "Feasible",
        cp_model.INFEASIBLE: "Infeasible",
        cp_model.MODEL_INVALID: "ModelInvalid",
        cp_model.UNKNOWN: "Unknown",
    }
    return status_map.get(status, "Unknown")


def solve_cp_sat(adjacency: AdjacencyMap, config: SynthesisConfig) -> SynthesisResult:
    """Fill a width x height grid so every neighbor pair is allowed by the adjacency map."""
    domain = tile_domain(adjacency)
    allowed = allowed_neighbors(adjacency, domain)
    cells = grid_cells(config)

    model = cp_model.CpModel()
    tile_vars: Dict[Tuple[Coord, TileType], cp_model.IntVar] = {}
    for x, y in cells:
        for t in domain:
            tile_vars[(x, y), t] = model.NewBoolVar(f"t_{x}_{y}_{t[0]}_{t[1]}")
        model.AddExactlyOne([tile_vars[(x, y), t] for t in domain])

    # A cell of type t forces each neighbor to take one of t's allowed neighbor types.
    for cell, neighbor in neighbor_pairs(config):
        for t in domain:
            options = [tile_vars[neighbor, u] for u in allowed[t]]
            if options:
                model.Add(sum(options) >= 1).OnlyEnforceIf(tile_vars[cell, t])
            else:
                model.Add(tile_vars[cell, t] == 0)

    weights = objective_weights(config, domain)
    model.Maximize(sum(weights[key] * var for key, var in tile_vars.items()))

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = config.time_limit_s
    if config.seed is not None:
        solver.parameters.random_seed = config.seed
    status = solver.Solve(model)

    grid: Dict[Coord, TileType] = {}
    if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        for cell in cells:
            for t in domain:
                if solver.Value(tile_vars[cell, t]) >= 1:
                    grid[cell] = t
                    break
    return SynthesisResult(status=_status_string(status), grid=grid)
