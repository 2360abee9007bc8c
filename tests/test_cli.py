import json
from pathlib import Path

import numpy as np
from PIL import Image

from tileset_analyzer.adjacency import load_adjacency
from tileset_analyzer.analyzer import aggregate_sequential
from tileset_analyzer.chunk import load_chunk_dir, parse_chunk_file
from tileset_analyzer.cli import main, parse_args
from tileset_analyzer.synthesis import SynthesisConfig, is_legal

ROOT = Path(__file__).resolve().parents[1]
CHUNK_ROOT = ROOT / "chunks"


def test_parse_args_defaults_to_analyze():
    ns = parse_args(["--chunks", str(CHUNK_ROOT)])
    assert ns.command == "analyze"
    assert ns.mode == "both"
    assert ns.executor == "thread"


def test_analyze_writes_adjacency(tmp_path, capsys):
    output = tmp_path / "adjacency.json"
    code = main(parse_args(["analyze", "--chunks", str(CHUNK_ROOT), "--output", str(output)]))

    assert code == 0
    out = capsys.readouterr().out
    assert "Sequential: 8 tile types" in out
    assert "Concurrent: 8 tile types" in out
    assert load_adjacency(output) == aggregate_sequential(load_chunk_dir(CHUNK_ROOT))


def test_palette_then_analyze_images(tmp_path, capsys):
    images_dir = tmp_path / "images"
    images_dir.mkdir()
    pixels = np.array([[[10, 20, 30, 255], [200, 100, 0, 255]]], dtype=np.uint8)
    Image.fromarray(pixels).save(images_dir / "strip.png")
    palette_path = tmp_path / "palette.json"

    assert main(parse_args(["palette", "--images-dir", str(images_dir), "--output", str(palette_path)])) == 0
    assert json.loads(palette_path.read_text()) == {"#0a141e": [0, 0], "#c86400": [1, 0]}

    code = main(
        parse_args(
            ["analyze", "--images", str(images_dir), "--palette", str(palette_path), "--mode", "concurrent"]
        )
    )
    assert code == 0
    assert "Concurrent: 2 tile types" in capsys.readouterr().out


def test_synthesize_from_chunks(tmp_path):
    output = tmp_path / "out.txt"
    plot = tmp_path / "out.png"
    code = main(
        parse_args(
            [
                "synthesize",
                "--chunks",
                str(CHUNK_ROOT),
                "--width",
                "5",
                "--height",
                "4",
                "--seed",
                "11",
                "--output",
                str(output),
                "--plot",
                str(plot),
            ]
        )
    )

    assert code == 0
    assert plot.exists()
    chunk = parse_chunk_file(output)
    adjacency = aggregate_sequential(load_chunk_dir(CHUNK_ROOT))
    assert is_legal(chunk.cells, adjacency, SynthesisConfig(width=5, height=4))


def test_synthesize_reports_contradiction(tmp_path, capsys):
    adjacency_path = tmp_path / "adjacency.json"
    adjacency_path.write_text(json.dumps({"0,0": []}))

    code = main(
        parse_args(["synthesize", "--adjacency", str(adjacency_path), "--width", "2", "--height", "1", "--solver", "ilp"])
    )

    assert code == 1
    assert "CONTRADICTION" in capsys.readouterr().out


def test_synthesize_show_uses_palette(tmp_path, monkeypatch):
    import tileset_analyzer.cli as cli

    shown = []
    monkeypatch.setattr(cli, "display_chunk", lambda chunk, palette=None: shown.append((chunk, palette)))
    palette_path = tmp_path / "palette.json"
    palette_path.write_text(json.dumps({"#5fa84f": [3, 0]}))

    code = main(
        parse_args(
            [
                "synthesize",
                "--chunks",
                str(CHUNK_ROOT),
                "--width",
                "3",
                "--height",
                "3",
                "--seed",
                "2",
                "--show",
                "--palette",
                str(palette_path),
            ]
        )
    )

    assert code == 0
    assert len(shown) == 1
    chunk, palette = shown[0]
    assert (chunk.width, chunk.height) == (3, 3)
    assert palette == {"#5fa84f": (3, 0)}
