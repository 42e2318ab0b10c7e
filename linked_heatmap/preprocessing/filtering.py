"""Payload helpers: transfer-friendly dtypes and change-detection hashes."""

import hashlib
from typing import Iterable

import polars as pl

_NUMERIC_DTYPES = (
    pl.Int8,
    pl.Int16,
    pl.Int32,
    pl.Int64,
    pl.UInt8,
    pl.UInt16,
    pl.UInt32,
    pl.UInt64,
    pl.Float32,
    pl.Float64,
)

_INT32_MIN = -2147483648
_INT32_MAX = 2147483647


def optimize_for_transfer(df: pl.DataFrame) -> pl.DataFrame:
    """
    Downcast cell columns for the Arrow transfer to the frontend.

    - Int64 → Int32 when every value fits (avoids BigInt in JavaScript)
    - Float64 is kept: proportions are shown with user-chosen precision

    Args:
        df: Polars DataFrame to optimize

    Returns:
        DataFrame with optimized types
    """
    if len(df) == 0:
        return df

    casts = []
    for col in df.columns:
        if df[col].dtype != pl.Int64:
            continue
        col_min, col_max = df.select(
            pl.col(col).min().alias("min"), pl.col(col).max().alias("max")
        ).row(0)
        if col_min is None or col_max is None:
            continue
        if col_min >= _INT32_MIN and col_max <= _INT32_MAX:
            casts.append(pl.col(col).cast(pl.Int32))

    if casts:
        df = df.with_columns(casts)
    return df


def compute_dataframe_hash(df: pl.DataFrame) -> str:
    """
    Compute a fast change-detection hash for a DataFrame.

    Combines shape, column names, first/last rows and per-column sums.
    String columns contribute their full content since category labels are
    short and a relabel must be detected.

    Args:
        df: Polars DataFrame to hash

    Returns:
        SHA256 hash string
    """
    hash_parts = [str(df.shape), str(df.columns)]

    if len(df) > 0:
        hash_parts.append(str(df.head(1).to_dicts()[0]))
        hash_parts.append(str(df.tail(1).to_dicts()[0]))

        for col in df.columns:
            dtype = df[col].dtype
            if dtype in _NUMERIC_DTYPES:
                hash_parts.append(f"{col}:{df[col].sum()}")
            elif dtype == pl.Utf8:
                hash_parts.append(f"{col}_str:{'|'.join(df[col].fill_null('').to_list())}")

    return hashlib.sha256("|".join(hash_parts).encode()).hexdigest()


def compute_labels_hash(labels: Iterable[str]) -> str:
    """Hash an ordered list of category labels."""
    return hashlib.sha256("\x1f".join(labels).encode()).hexdigest()
