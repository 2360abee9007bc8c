import json

import pytest

from tileset_analyzer.adjacency import (
    adjacency_to_json,
    asymmetric_pairs,
    diff_maps,
    load_adjacency,
    maps_equal,
    save_adjacency,
)

X, Y, Z = (1, 1), (2, 2), (3, 3)


def test_maps_equal_compares_keys_and_sets():
    assert maps_equal({X: {Y, Z}}, {X: {Z, Y}})
    assert not maps_equal({X: {Y}}, {X: {Y, Z}})
    assert not maps_equal({X: set()}, {X: set(), Y: set()})


def test_diff_maps_reports_first_wins_loss():
    full = {X: {Y, Z}, Y: {X}}
    first_only = {X: {Y}, Y: {X}}
    assert diff_maps(full, first_only) == {X: {Z}}
    assert diff_maps(full, full) == {}


def test_diff_maps_reports_missing_key():
    assert diff_maps({X: set()}, {}) == {X: set()}


def test_asymmetric_pairs():
    adjacency = {X: {Y, Z}, Y: {X}}
    assert asymmetric_pairs(adjacency) == [(X, Z)]


def test_save_and_load_adjacency(tmp_path):
    adjacency = {X: {Z, Y}, Y: set(), (0, 10): {X}}
    path = tmp_path / "adjacency.json"
    save_adjacency(adjacency, path)

    data = json.loads(path.read_text())
    assert data["1,1"] == [[2, 2], [3, 3]]
    assert data["2,2"] == []
    assert load_adjacency(path) == adjacency


def test_adjacency_json_keys_are_sorted():
    assert list(adjacency_to_json({Z: set(), X: set()})) == ["1,1", "3,3"]


def test_load_adjacency_rejects_bad_key(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"water": [[0, 0]]}))
    with pytest.raises(ValueError):
        load_adjacency(path)
