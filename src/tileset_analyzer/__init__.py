"""Tile adjacency extraction for chunked tile maps."""

__all__ = [
    "chunk",
    "image_loader",
    "adjacency",
    "analyzer",
    "synthesis",
    "cp_sat_solver",
    "ilp_solver",
    "viz",
    "cli",
]
