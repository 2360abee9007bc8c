import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .adjacency import AdjacencyMap, asymmetric_pairs, diff_maps, load_adjacency, maps_equal, save_adjacency
from .analyzer import EXECUTORS, aggregate_concurrent, aggregate_sequential
from .chunk import Chunk, chunk_to_string, load_chunk_dir
from .cp_sat_solver import solve_cp_sat
from .ilp_solver import solve_ilp
from .image_loader import build_palette, load_chunk_images, load_palette, save_palette
from .synthesis import SynthesisConfig
from .viz import display_chunk, save_chunk_plot

COMMANDS = ("analyze", "palette", "synthesize")


def _add_chunk_source(parser: argparse.ArgumentParser, required: bool = True) -> None:
    src_group = parser.add_mutually_exclusive_group(required=required)
    src_group.add_argument("--chunks", dest="chunks_dir", help="Directory of text chunk files (*.txt).")
    src_group.add_argument("--images", dest="images_dir", help="Directory of painted chunk images (*.png).")
    parser.add_argument(
        "--palette",
        dest="palette_path",
        default=None,
        help="Palette JSON mapping colors to atlas coordinates (default: bundled palette).",
    )


def _build_analyze_parser(parser: argparse.ArgumentParser) -> None:
    _add_chunk_source(parser)
    parser.add_argument(
        "--mode",
        choices=["sequential", "concurrent", "both"],
        default="both",
        help="Aggregation strategy (default: both, which also checks the two agree).",
    )
    parser.add_argument(
        "--executor",
        choices=sorted(EXECUTORS),
        default="thread",
        help="Worker pool used by the concurrent aggregation (default: thread).",
    )
    parser.add_argument("--workers", type=int, default=None, help="Maximum concurrent scan workers.")
    parser.add_argument("--output", dest="output_path", help="Optional path to write the adjacency map JSON.")


def _build_palette_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--images-dir",
        default="chunks",
        help="Directory containing painted chunk images (default: chunks).",
    )
    parser.add_argument(
        "--output",
        default="palette.json",
        help="Output path for the palette JSON (default: palette.json).",
    )
    parser.add_argument(
        "--atlas-columns",
        type=int,
        default=8,
        help="Number of columns in the tile atlas (default: 8).",
    )


def _build_synthesize_parser(parser: argparse.ArgumentParser) -> None:
    src_group = parser.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--adjacency", dest="adjacency_path", help="Adjacency map JSON written by 'analyze'.")
    src_group.add_argument("--chunks", dest="chunks_dir", help="Directory of text chunk files to analyze first.")
    parser.add_argument("--width", type=int, default=16, help="Output grid width (default: 16).")
    parser.add_argument("--height", type=int, default=16, help="Output grid height (default: 16).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: random).")
    parser.add_argument("--periodic", action="store_true", help="Wrap neighbors around the output edges.")
    parser.add_argument(
        "--solver",
        choices=["cp-sat", "ilp"],
        default="cp-sat",
        help="Solver backend (default: cp-sat).",
    )
    parser.add_argument("--time-limit", type=float, default=10.0, help="Solver time limit in seconds.")
    parser.add_argument("--output", dest="output_path", help="Optional path to write the generated chunk text.")
    parser.add_argument("--plot", dest="plot_path", help="Optional path to save a rendered PNG of the output.")
    parser.add_argument("--show", action="store_true", help="Display the generated grid in a window.")
    parser.add_argument(
        "--palette",
        dest="palette_path",
        default=None,
        help="Palette JSON used to color the rendered output (default: qualitative colormap).",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    args = list(argv) if argv is not None else sys.argv[1:]
    builders = {
        "analyze": (_build_analyze_parser, "Extract tile adjacency from chunks."),
        "palette": (_build_palette_parser, "Build a color palette from chunk images."),
        "synthesize": (_build_synthesize_parser, "Generate a tile grid from an adjacency map."),
    }
    command = args[0] if args[:1] and args[0] in COMMANDS else None
    build, description = builders[command or "analyze"]
    parser = argparse.ArgumentParser(description=description)
    build(parser)
    ns = parser.parse_args(args[1:] if command else args)
    ns.command = command or "analyze"
    return ns


def _load_chunks(ns: argparse.Namespace) -> List[Chunk]:
    if getattr(ns, "images_dir", None):
        return load_chunk_images(ns.images_dir, load_palette(ns.palette_path))
    return load_chunk_dir(ns.chunks_dir)


def _report_mismatch(sequential: AdjacencyMap, concurrent: AdjacencyMap) -> None:
    for tile_type, only in sorted(diff_maps(sequential, concurrent).items()):
        print(f"  {tile_type}: differs by {sorted(only)}")


def _run_analyze(ns: argparse.Namespace) -> int:
    chunks = _load_chunks(ns)
    print(f"Loaded {len(chunks)} chunks.")

    sequential: AdjacencyMap | None = None
    concurrent: AdjacencyMap | None = None
    if ns.mode in ("sequential", "both"):
        start_time = time.time()
        sequential = aggregate_sequential(chunks)
        print(f"Sequential: {len(sequential)} tile types in {time.time() - start_time:.3f} seconds.")
    if ns.mode in ("concurrent", "both"):
        start_time = time.time()
        concurrent = aggregate_concurrent(chunks, max_workers=ns.workers, executor=ns.executor)
        print(f"Concurrent: {len(concurrent)} tile types in {time.time() - start_time:.3f} seconds.")

    if sequential is not None and concurrent is not None and not maps_equal(sequential, concurrent):
        print("Sequential and concurrent adjacency maps differ:")
        _report_mismatch(sequential, concurrent)
        return 1

    adjacency = sequential if sequential is not None else concurrent
    asymmetric = asymmetric_pairs(adjacency)
    if asymmetric:
        print(f"Note: {len(asymmetric)} one-directional adjacency pairs.")
    if ns.output_path:
        save_adjacency(adjacency, ns.output_path)
        print(f"Wrote adjacency map to {ns.output_path}")
    return 0


def _run_palette(ns: argparse.Namespace) -> int:
    image_paths = sorted(Path(ns.images_dir).glob("*.png"))
    if not image_paths:
        raise ValueError(f"No chunk images found in {ns.images_dir}.")
    palette = build_palette(image_paths, atlas_columns=ns.atlas_columns)
    output_path = Path(ns.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_palette(palette, output_path)
    print(f"Wrote {len(palette)} palette colors to {output_path}")
    return 0


def _run_synthesize(ns: argparse.Namespace) -> int:
    if ns.adjacency_path:
        adjacency = load_adjacency(ns.adjacency_path)
    else:
        adjacency = aggregate_sequential(load_chunk_dir(ns.chunks_dir))

    config = SynthesisConfig(
        width=ns.width, height=ns.height, seed=ns.seed, periodic=ns.periodic, time_limit_s=ns.time_limit
    )
    start_time = time.time()
    if ns.solver == "ilp":
        result = solve_ilp(adjacency, config)
    else:
        result = solve_cp_sat(adjacency, config)
    print(f"Solved in {time.time() - start_time:.2f} seconds.")
    print(f"Status: {result.status}")
    if not result.succeeded():
        print("CONTRADICTION: no grid satisfies the adjacency constraints.")
        return 1

    chunk = result.to_chunk(f"synthesized_{ns.seed}", config)
    if ns.output_path:
        Path(ns.output_path).write_text(chunk_to_string(chunk) + "\n")
        print(f"Wrote generated chunk to {ns.output_path}")
    else:
        print(chunk_to_string(chunk))
    palette = load_palette(ns.palette_path) if ns.palette_path else None
    if ns.plot_path:
        save_chunk_plot(chunk, ns.plot_path, palette)
        print(f"Saved plot to {ns.plot_path}")
    if ns.show:
        display_chunk(chunk, palette)
    return 0


def main(args: Optional[argparse.Namespace] = None) -> int:
    ns = args or parse_args()
    if ns.command == "palette":
        return _run_palette(ns)
    if ns.command == "synthesize":
        return _run_synthesize(ns)
    return _run_analyze(ns)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
