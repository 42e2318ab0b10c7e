"""Category aggregation, top-N ranking and proportion normalization."""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import polars as pl

from ..core.binding import (
    Dimension,
    Measure,
    category_id,
    category_label,
    measure_value,
)

CELL_SCHEMA = {
    "x": pl.Int64,
    "y": pl.Int64,
    "value": pl.Float64,
    "rawValue": pl.Float64,
}

_ROW_SCHEMA = {
    "row": pl.Int64,
    "x_id": pl.Utf8,
    "x_label": pl.Utf8,
    "y_id": pl.Utf8,
    "y_label": pl.Utf8,
    "raw": pl.Float64,
}

# Leading integer, mirroring how free-form rank inputs are read
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Category:
    """A distinct axis value, identified by id and displayed by label."""

    id: str
    label: str


def _empty_cells() -> pl.DataFrame:
    return pl.DataFrame(schema=CELL_SCHEMA)


@dataclass
class HeatmapMatrix:
    """
    Output of the aggregation engine.

    Attributes:
        x_categories: Visible X categories in first-seen order
        y_categories: Visible Y categories in first-seen order
        cells: DataFrame with columns (x, y, value, rawValue). x and y index
            into the visible category lists; value is the share of the
            visible column total.
    """

    x_categories: List[Category] = field(default_factory=list)
    y_categories: List[Category] = field(default_factory=list)
    cells: pl.DataFrame = field(default_factory=_empty_cells)

    @property
    def x_labels(self) -> List[str]:
        return [c.label for c in self.x_categories]

    @property
    def y_labels(self) -> List[str]:
        return [c.label for c in self.y_categories]

    def is_empty(self) -> bool:
        return not self.x_categories and not self.y_categories and len(self.cells) == 0

    def to_records(self) -> List[Dict[str, Any]]:
        """Return cells as a list of dicts."""
        return self.cells.to_dicts()


def rows_to_frame(
    rows: Sequence[Mapping[str, Any]],
    x_dimension: Dimension,
    y_dimension: Dimension,
    measure_key: str,
) -> pl.DataFrame:
    """
    Flatten bound rows into a DataFrame.

    Missing ids and labels are replaced by "No ID" / "No Label", missing raw
    values by 0.

    Args:
        rows: Rows from the data binding
        x_dimension: Dimension bound to the X axis
        y_dimension: Dimension bound to the Y axis
        measure_key: Key of the measure cell in each row

    Returns:
        DataFrame with columns (row, x_id, x_label, y_id, y_label, raw)
    """
    columns: Dict[str, list] = {name: [] for name in _ROW_SCHEMA}
    for index, row in enumerate(rows):
        columns["row"].append(index)
        columns["x_id"].append(category_id(row, x_dimension.key))
        columns["x_label"].append(category_label(row, x_dimension.key))
        columns["y_id"].append(category_id(row, y_dimension.key))
        columns["y_label"].append(category_label(row, y_dimension.key))
        columns["raw"].append(measure_value(row, measure_key))
    return pl.DataFrame(columns, schema=_ROW_SCHEMA)


def compute_category_totals(frame: pl.DataFrame, axis: str) -> pl.DataFrame:
    """
    Sum absolute measure values per category of one axis.

    Categories are keyed by id; the first label seen for an id is kept.

    Args:
        frame: DataFrame from rows_to_frame()
        axis: "x" or "y"

    Returns:
        DataFrame with columns (id, label, total) in first-seen order
    """
    if axis not in ("x", "y"):
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")

    return (
        frame.group_by(f"{axis}_id", maintain_order=True)
        .agg(
            pl.col(f"{axis}_label").first().alias("label"),
            pl.col("raw").abs().sum().alias("total"),
        )
        .rename({f"{axis}_id": "id"})
    )


def parse_top_n(value: Any) -> Optional[int]:
    """
    Parse a free-form ranking parameter.

    Reads the leading integer of the value ("5", " 5", "5.9" and "5px" all
    give 5). Returns None for absent, non-numeric, zero or negative values,
    which means the axis is not limited.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        n = int(value)
    else:
        match = _INT_PREFIX.match(str(value))
        if match is None:
            return None
        n = int(match.group(1))
    return n if n > 0 else None


def rank_top_n(totals: pl.DataFrame, top_n: Any) -> pl.DataFrame:
    """
    Keep the top-N categories by total.

    Ties are broken by first-seen order. Survivors keep their original
    (first-seen) order, not rank order.

    Args:
        totals: DataFrame from compute_category_totals()
        top_n: Ranking parameter, parsed with parse_top_n()

    Returns:
        Filtered totals DataFrame
    """
    n = parse_top_n(top_n)
    if n is None or len(totals) <= n:
        return totals

    top_ids = (
        totals.sort("total", descending=True, maintain_order=True)
        .head(n)
        .get_column("id")
        .to_list()
    )
    return totals.filter(pl.col("id").is_in(top_ids))


def _to_categories(totals: pl.DataFrame) -> List[Category]:
    return [
        Category(id=row["id"], label=row["label"])
        for row in totals.iter_rows(named=True)
    ]


def aggregate(
    rows: Sequence[Mapping[str, Any]],
    x_dimension: Dimension,
    y_dimension: Dimension,
    measure_key: str,
    x_top_n: Any = None,
    y_top_n: Any = None,
) -> HeatmapMatrix:
    """
    Build the normalized heatmap matrix.

    Ranking is total-based over all rows; cell emission only uses rows whose
    X and Y categories both survived ranking. A category that survives the
    cut stays in the category list even when none of its rows produce a
    cell.

    The column denominator is recomputed over visible rows only, so rows
    dropped because of the other axis's cut do not contribute to it.

    Args:
        rows: Rows from the data binding
        x_dimension: Dimension bound to the X axis
        y_dimension: Dimension bound to the Y axis
        measure_key: Key of the measure cell in each row
        x_top_n: Optional top-N limit for X categories
        y_top_n: Optional top-N limit for Y categories

    Returns:
        HeatmapMatrix with visible categories and cells in input row order
    """
    frame = rows_to_frame(rows, x_dimension, y_dimension, measure_key)

    x_visible = rank_top_n(compute_category_totals(frame, "x"), x_top_n)
    y_visible = rank_top_n(compute_category_totals(frame, "y"), y_top_n)

    x_index = x_visible.select(pl.col("id").alias("x_id")).with_row_index("x")
    y_index = y_visible.select(pl.col("id").alias("y_id")).with_row_index("y")

    visible_rows = frame.join(x_index, on="x_id", how="inner").join(
        y_index, on="y_id", how="inner"
    )

    # Second pass: denominators from visible rows only
    column_totals = visible_rows.group_by("x").agg(
        pl.col("raw").abs().sum().alias("column_total")
    )

    cells = (
        visible_rows.join(column_totals, on="x", how="left")
        .sort("row")
        .select(
            pl.col("x").cast(pl.Int64),
            pl.col("y").cast(pl.Int64),
            pl.when(pl.col("column_total") == 0)
            .then(pl.lit(0.0))
            .otherwise(pl.col("raw") / pl.col("column_total"))
            .alias("value"),
            pl.col("raw").alias("rawValue"),
        )
    )

    return HeatmapMatrix(
        x_categories=_to_categories(x_visible),
        y_categories=_to_categories(y_visible),
        cells=cells,
    )


def process_series_data(
    rows: Sequence[Mapping[str, Any]],
    dimensions: Sequence[Dimension],
    measures: Sequence[Measure],
    x_top_n: Any = None,
    y_top_n: Any = None,
) -> HeatmapMatrix:
    """
    Aggregate rows using the first two dimensions and the first measure.

    Returns an empty matrix when fewer than 2 dimensions or no measure are
    bound.
    """
    if len(dimensions) < 2 or len(measures) < 1:
        return HeatmapMatrix()

    return aggregate(
        rows,
        dimensions[0],
        dimensions[1],
        measures[0].key,
        x_top_n=x_top_n,
        y_top_n=y_top_n,
    )
