"""Core infrastructure for linked_heatmap."""

from .base import BaseComponent
from .binding import DataBinding, Dimension, Measure, parse_metadata
from .state import Selection, SelectionSource, SelectionState

__all__ = [
    "BaseComponent",
    "DataBinding",
    "Dimension",
    "Measure",
    "parse_metadata",
    "Selection",
    "SelectionSource",
    "SelectionState",
]
