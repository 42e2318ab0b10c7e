"""Preprocessing utilities for aggregation and payload preparation."""

from .aggregation import (
    Category,
    HeatmapMatrix,
    aggregate,
    compute_category_totals,
    parse_top_n,
    process_series_data,
    rank_top_n,
    rows_to_frame,
)
from .filtering import compute_dataframe_hash, optimize_for_transfer

__all__ = [
    "Category",
    "HeatmapMatrix",
    "aggregate",
    "process_series_data",
    "rows_to_frame",
    "compute_category_totals",
    "parse_top_n",
    "rank_top_n",
    "compute_dataframe_hash",
    "optimize_for_transfer",
]
