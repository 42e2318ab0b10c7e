"""
Linked Heatmap - Category heatmap component for Streamlit.

This package aggregates two-dimensional categorical result sets into a
normalized heatmap matrix and keeps a linked-analysis filter in sync with
clicks on the heatmap's labels and cells.
"""

from .components.heatmap import Heatmap
from .core.base import BaseComponent
from .core.binding import NO_ID, NO_LABEL, DataBinding, Dimension, Measure, parse_metadata
from .core.state import Selection, SelectionSource, SelectionState
from .interactions.linked_analysis import LinkedAnalysis, SessionLinkedAnalysis
from .interactions.selection import LabelClickEvent, PointClickEvent, SelectionSynchronizer
from .preprocessing.aggregation import Category, HeatmapMatrix, aggregate, process_series_data

__version__ = "0.1.0"

__all__ = [
    # Core
    "BaseComponent",
    "DataBinding",
    "Dimension",
    "Measure",
    "parse_metadata",
    "NO_ID",
    "NO_LABEL",
    "Selection",
    "SelectionSource",
    "SelectionState",
    # Aggregation
    "Category",
    "HeatmapMatrix",
    "aggregate",
    "process_series_data",
    # Interactions
    "LinkedAnalysis",
    "SessionLinkedAnalysis",
    "SelectionSynchronizer",
    "LabelClickEvent",
    "PointClickEvent",
    # Components
    "Heatmap",
]
