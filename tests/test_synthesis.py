from pathlib import Path

import pytest

from tileset_analyzer.analyzer import aggregate_sequential
from tileset_analyzer.chunk import load_chunk_dir
from tileset_analyzer.cp_sat_solver import solve_cp_sat
from tileset_analyzer.ilp_solver import solve_ilp
from tileset_analyzer.synthesis import SynthesisConfig, is_legal, neighbor_pairs

ROOT = Path(__file__).resolve().parents[1]
CHUNK_ROOT = ROOT / "chunks"
SOLVERS = [solve_cp_sat, solve_ilp]


@pytest.fixture(scope="module")
def sample_adjacency():
    return aggregate_sequential(load_chunk_dir(CHUNK_ROOT))


@pytest.mark.parametrize("solver_fn", SOLVERS)
def test_solver_output_respects_adjacency(solver_fn, sample_adjacency):
    config = SynthesisConfig(width=6, height=5, seed=7)
    result = solver_fn(sample_adjacency, config)

    assert result.succeeded()
    assert is_legal(result.grid, sample_adjacency, config)
    chunk = result.to_chunk("out", config)
    assert (chunk.width, chunk.height) == (6, 5)


@pytest.mark.parametrize("solver_fn", SOLVERS)
def test_periodic_output_respects_adjacency(solver_fn, sample_adjacency):
    config = SynthesisConfig(width=4, height=4, seed=3, periodic=True)
    result = solver_fn(sample_adjacency, config)

    assert result.succeeded()
    assert is_legal(result.grid, sample_adjacency, config)


@pytest.mark.parametrize("solver_fn", SOLVERS)
def test_isolated_tile_cannot_have_neighbours(solver_fn):
    adjacency = {(0, 0): set()}

    single = solver_fn(adjacency, SynthesisConfig(width=1, height=1, seed=1))
    assert single.succeeded()
    assert single.grid == {(0, 0): (0, 0)}

    pair = solver_fn(adjacency, SynthesisConfig(width=2, height=1, seed=1))
    assert not pair.succeeded()
    assert pair.grid == {}


@pytest.mark.parametrize("solver_fn", SOLVERS)
def test_empty_adjacency_is_rejected(solver_fn):
    with pytest.raises(ValueError):
        solver_fn({}, SynthesisConfig(width=2, height=2))


def test_config_rejects_non_positive_size():
    with pytest.raises(ValueError):
        SynthesisConfig(width=0, height=3)


def test_neighbor_pairs_wrap_when_periodic():
    flat = set(neighbor_pairs(SynthesisConfig(width=3, height=1)))
    wrapped = set(neighbor_pairs(SynthesisConfig(width=3, height=1, periodic=True)))

    assert ((0, 0), (2, 0)) not in flat
    assert ((0, 0), (2, 0)) in wrapped
    assert len(flat) == 4


def test_is_legal_detects_forbidden_pair():
    adjacency = {(0, 0): {(0, 0)}, (1, 0): {(1, 0)}}
    config = SynthesisConfig(width=2, height=1)

    assert is_legal({(0, 0): (0, 0), (1, 0): (0, 0)}, adjacency, config)
    assert not is_legal({(0, 0): (0, 0), (1, 0): (1, 0)}, adjacency, config)
    assert not is_legal({(0, 0): (0, 0)}, adjacency, config)
