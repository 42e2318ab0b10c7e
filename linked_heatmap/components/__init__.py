"""Visualization components."""

from .heatmap import Heatmap

__all__ = [
    "Heatmap",
]
