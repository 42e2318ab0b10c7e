"""Tests for category aggregation, top-N ranking and normalization."""

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from linked_heatmap.core.binding import Dimension, Measure
from linked_heatmap.preprocessing.aggregation import (
    Category,
    HeatmapMatrix,
    aggregate,
    compute_category_totals,
    parse_top_n,
    process_series_data,
    rank_top_n,
    rows_to_frame,
)

X = Dimension(key="X", id="dimX", description="X dimension")
Y = Dimension(key="Y", id="dimY", description="Y dimension")


def _row(x_id, x_label, y_id, y_label, raw):
    return {
        "X": {"id": x_id, "label": x_label},
        "Y": {"id": y_id, "label": y_label},
        "M": {"raw": raw},
    }


def _cells(matrix: HeatmapMatrix):
    return [
        (c["x"], c["y"], pytest.approx(c["value"]), c["rawValue"])
        for c in matrix.to_records()
    ]


class TestParseTopN:
    """Tests for free-form ranking parameters."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, 3),
            ("3", 3),
            (" 3 ", 3),
            ("3.9", 3),
            ("3abc", 3),
            ("+4", 4),
            (2.7, 2),
        ],
    )
    def test_positive_values(self, value, expected):
        assert parse_top_n(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "abc", 0, "0", -1, "-2", 0.4, float("nan"), float("inf"), True],
    )
    def test_values_that_disable_ranking(self, value):
        assert parse_top_n(value) is None


class TestCategoryTotals:
    """Tests for per-category absolute totals."""

    def test_totals_use_absolute_values(self, sample_rows, x_dimension, y_dimension):
        frame = rows_to_frame(
            sample_rows + [{
                "dimensions_0": {"id": "r_east", "label": "East"},
                "dimensions_1": {"id": "p_tea", "label": "Tea"},
                "measures_0": {"raw": -8.0},
            }],
            x_dimension,
            y_dimension,
            "measures_0",
        )
        totals = compute_category_totals(frame, "x")

        assert totals.get_column("id").to_list() == ["r_north", "r_south", "r_east"]
        assert totals.get_column("total").to_list() == [40.0, 20.0, 10.0]

    def test_first_label_wins_for_repeated_id(self):
        rows = [
            _row("a1", "Alpha", "y1", "Y1", 1),
            _row("a1", "Alpha (renamed)", "y1", "Y1", 1),
        ]
        frame = rows_to_frame(rows, X, Y, "M")
        totals = compute_category_totals(frame, "x")

        assert totals.get_column("label").to_list() == ["Alpha"]
        assert totals.get_column("total").to_list() == [2.0]

    def test_missing_fields_use_sentinels(self):
        rows = [
            {"X": {"label": "A"}, "Y": {"id": "y1"}, "M": {}},
            {"X": {"id": "", "label": None}, "M": {"raw": None}},
        ]
        frame = rows_to_frame(rows, X, Y, "M")

        assert frame.get_column("x_id").to_list() == ["No ID", "No ID"]
        assert frame.get_column("x_label").to_list() == ["A", "No Label"]
        assert frame.get_column("y_id").to_list() == ["y1", "No ID"]
        assert frame.get_column("y_label").to_list() == ["No Label", "No Label"]
        assert frame.get_column("raw").to_list() == [0.0, 0.0]

    def test_invalid_axis_raises(self, sample_rows, x_dimension, y_dimension):
        frame = rows_to_frame(sample_rows, x_dimension, y_dimension, "measures_0")
        with pytest.raises(ValueError, match="axis"):
            compute_category_totals(frame, "z")


class TestRankTopN:
    """Tests for top-N ranking."""

    def _totals(self, pairs):
        rows = [_row(cid, cid.upper(), "y", "Y", raw) for cid, raw in pairs]
        return compute_category_totals(rows_to_frame(rows, X, Y, "M"), "x")

    def test_keeps_highest_totals_in_first_seen_order(self):
        totals = self._totals([("b", 1), ("a", 9), ("c", 5)])
        ranked = rank_top_n(totals, 2)

        assert ranked.get_column("id").to_list() == ["a", "c"]

    def test_ties_broken_by_first_seen_order(self):
        totals = self._totals([("a", 5), ("b", 5), ("c", 5)])
        ranked = rank_top_n(totals, 2)

        assert ranked.get_column("id").to_list() == ["a", "b"]

    def test_no_limit_when_top_n_invalid(self):
        totals = self._totals([("a", 1), ("b", 2)])

        for value in (None, 0, -3, "abc"):
            assert rank_top_n(totals, value).get_column("id").to_list() == ["a", "b"]

    def test_top_n_larger_than_categories(self):
        totals = self._totals([("a", 1), ("b", 2)])

        assert rank_top_n(totals, 10).get_column("id").to_list() == ["a", "b"]

    def test_size_bound_and_total_ordering(self):
        pairs = [(f"c{i}", (i * 7) % 11) for i in range(12)]
        totals = self._totals(pairs)
        all_totals = dict(zip(totals["id"].to_list(), totals["total"].to_list()))

        for n in range(1, 13):
            kept = rank_top_n(totals, n).get_column("id").to_list()
            excluded = [cid for cid in all_totals if cid not in kept]
            assert len(kept) <= n
            if excluded:
                assert min(all_totals[c] for c in kept) >= max(
                    all_totals[c] for c in excluded
                )


class TestAggregate:
    """Tests for the full aggregation pipeline."""

    def test_without_ranking(self, sample_rows, x_dimension, y_dimension):
        matrix = aggregate(sample_rows, x_dimension, y_dimension, "measures_0")

        assert matrix.x_labels == ["North", "South", "East"]
        assert matrix.y_labels == ["Tea", "Coffee"]
        assert _cells(matrix) == [
            (0, 0, 0.25, 10.0),
            (0, 1, 0.75, 30.0),
            (1, 0, 0.25, 5.0),
            (1, 1, 0.75, 15.0),
            (2, 0, 1.0, 2.0),
        ]

    def test_cell_schema(self, sample_rows, x_dimension, y_dimension):
        matrix = aggregate(sample_rows, x_dimension, y_dimension, "measures_0")

        assert matrix.cells.columns == ["x", "y", "value", "rawValue"]
        assert matrix.cells.schema["x"] == pl.Int64
        assert matrix.cells.schema["value"] == pl.Float64

    def test_column_total_recomputed_over_visible_rows(
        self, sample_rows, x_dimension, y_dimension
    ):
        matrix = aggregate(
            sample_rows, x_dimension, y_dimension, "measures_0", x_top_n=2, y_top_n=1
        )

        assert matrix.x_categories == [
            Category("r_north", "North"),
            Category("r_south", "South"),
        ]
        assert matrix.y_categories == [Category("p_coffee", "Coffee")]
        # North's denominator is 30 (Coffee only), not 40
        assert _cells(matrix) == [(0, 0, 1.0, 30.0), (1, 0, 1.0, 15.0)]

    def test_ranked_category_without_cells_is_kept(
        self, sample_rows, x_dimension, y_dimension
    ):
        matrix = aggregate(
            sample_rows, x_dimension, y_dimension, "measures_0", y_top_n=1
        )

        # East only has Tea, which was cut, but East itself survives
        assert matrix.x_labels == ["North", "South", "East"]
        assert 2 not in matrix.cells.get_column("x").to_list()

    def test_example_dropped_x_category(self):
        rows = [
            _row("a1", "A", "y1", "Y1", 10),
            _row("b1", "B", "y1", "Y1", 30),
        ]
        matrix = aggregate(rows, X, Y, "M", x_top_n=1)

        assert matrix.x_categories == [Category("b1", "B")]
        assert _cells(matrix) == [(0, 0, 1.0, 30.0)]

    def test_example_shared_column_proportions(self):
        rows = [
            _row("a1", "A", "y1", "Y1", 10),
            _row("a1", "A", "y1", "Y1", 30),
        ]
        matrix = aggregate(rows, X, Y, "M")

        assert matrix.cells.get_column("value").to_list() == pytest.approx([0.25, 0.75])

    def test_mixed_sign_values(self):
        rows = [
            _row("a1", "A", "y1", "Y1", -10),
            _row("a1", "A", "y2", "Y2", 30),
        ]
        matrix = aggregate(rows, X, Y, "M")

        assert matrix.cells.get_column("value").to_list() == pytest.approx([-0.25, 0.75])

    def test_zero_denominator_gives_zero(self):
        rows = [
            _row("a1", "A", "y1", "Y1", 0),
            _row("a1", "A", "y2", "Y2", None),
        ]
        matrix = aggregate(rows, X, Y, "M")

        assert matrix.cells.get_column("value").to_list() == [0.0, 0.0]

    def test_denominator_property(self, sample_rows, x_dimension, y_dimension):
        matrix = aggregate(
            sample_rows, x_dimension, y_dimension, "measures_0", x_top_n=2, y_top_n=2
        )
        records = matrix.to_records()

        visible_totals = {}
        for cell in records:
            visible_totals[cell["x"]] = visible_totals.get(cell["x"], 0.0) + abs(
                cell["rawValue"]
            )
        for cell in records:
            assert cell["value"] * visible_totals[cell["x"]] == pytest.approx(
                cell["rawValue"]
            )

    def test_output_follows_input_row_order(self):
        rows = [
            _row("b1", "B", "y2", "Y2", 1),
            _row("a1", "A", "y1", "Y1", 1),
            _row("b1", "B", "y1", "Y1", 1),
        ]
        matrix = aggregate(rows, X, Y, "M")

        assert [(c["x"], c["y"]) for c in matrix.to_records()] == [(0, 0), (1, 1), (0, 1)]

    def test_idempotent(self, sample_rows, x_dimension, y_dimension):
        first = aggregate(sample_rows, x_dimension, y_dimension, "measures_0", 2, 1)
        second = aggregate(sample_rows, x_dimension, y_dimension, "measures_0", 2, 1)

        assert first.x_categories == second.x_categories
        assert first.y_categories == second.y_categories
        assert_frame_equal(first.cells, second.cells)

    def test_empty_rows(self):
        matrix = aggregate([], X, Y, "M", x_top_n=3)

        assert matrix.is_empty()
        assert matrix.cells.columns == ["x", "y", "value", "rawValue"]


class TestProcessSeriesData:
    """Tests for the dimension/measure precondition."""

    def test_uses_first_two_dimensions_and_first_measure(self, sample_rows):
        dimensions = [
            Dimension("dimensions_0", "Region"),
            Dimension("dimensions_1", "Product"),
            Dimension("dimensions_2", "Unused"),
        ]
        measures = [Measure("measures_0", "Revenue"), Measure("measures_1")]
        matrix = process_series_data(sample_rows, dimensions, measures)

        assert matrix.x_labels == ["North", "South", "East"]
        assert matrix.y_labels == ["Tea", "Coffee"]

    def test_too_few_dimensions_gives_empty_matrix(self, sample_rows):
        matrix = process_series_data(
            sample_rows, [Dimension("dimensions_0", "Region")], [Measure("measures_0")]
        )

        assert matrix.is_empty()
        assert matrix.x_categories == []
        assert len(matrix.cells) == 0

    def test_no_measure_gives_empty_matrix(self, sample_rows):
        dimensions = [Dimension("dimensions_0", "Region"), Dimension("dimensions_1", "Product")]

        assert process_series_data(sample_rows, dimensions, []).is_empty()
