"""Category heatmap component with linked-analysis selection."""

import sys
from typing import Any, Dict, List, Optional

import polars as pl

from ..core.base import BaseComponent
from ..core.binding import DataBinding, Dimension, Measure, parse_metadata
from ..core.state import Selection, SelectionState
from ..formatting.numbers import (
    SCALE_FORMATS,
    FormatContext,
    format_data_label,
    format_tooltip,
)
from ..formatting.titles import axis_title, update_subtitle, update_title
from ..interactions.linked_analysis import LinkedAnalysis, SessionLinkedAnalysis
from ..interactions.selection import (
    SELECT,
    UNSELECT,
    LabelClickEvent,
    PointClickEvent,
    SelectionSynchronizer,
)
from ..preprocessing.aggregation import HeatmapMatrix, process_series_data
from ..preprocessing.filtering import (
    compute_dataframe_hash,
    compute_labels_hash,
    optimize_for_transfer,
)

# Vue event kinds
X_LABEL_EVENT = "xLabel"
Y_LABEL_EVENT = "yLabel"
POINT_EVENT = "point"


def _as_index(value: Any, size: int) -> Optional[int]:
    """Convert a JS index (may arrive as float) into a valid list index."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not 0 <= value < size:
        return None
    return value


class Heatmap(BaseComponent):
    """
    Category-by-category heatmap driven by a host data binding.

    Rows are aggregated into a matrix of proportions: each cell holds its
    share of the visible column total. Each axis can be limited to its top-N
    categories by absolute total.

    Clicking an axis label filters the linked analysis on that category;
    clicking a cell filters on both categories. Only one selection is active
    at a time and clicking the active label again removes the filter.

    Example:
        heatmap = Heatmap(
            component_id="sales_heatmap",
            data_binding=DataBinding(data=rows, metadata=metadata),
            linked_analysis=SessionLinkedAnalysis(),
            x_top_n=10,
            title="Revenue share",
        )
        heatmap()
    """

    _component_type: str = "heatmap"

    def __init__(
        self,
        component_id: str,
        data_binding: Optional[DataBinding] = None,
        linked_analysis: Optional[LinkedAnalysis] = None,
        selection_state: Optional[SelectionState] = None,
        x_top_n: Any = None,
        y_top_n: Any = None,
        title: Optional[str] = None,
        subtitle: Optional[str] = None,
        show_axis_titles: bool = True,
        scale_format: str = "unformatted",
        decimal_places: Optional[int] = 2,
        show_data_labels: bool = True,
        allow_overlap: bool = False,
        min_color: str = "#99CFFF",
        max_color: str = "#004B8D",
        clear_on_rerender: bool = False,
        **kwargs,
    ):
        """
        Initialize the Heatmap component.

        Args:
            component_id: Unique identifier for this widget
            data_binding: Rows and metadata from the host. The first two
                dimensions become the X and Y axes, the first measure fills
                the cells.
            linked_analysis: Filter collaborator. Defaults to a
                SessionLinkedAnalysis keyed by component_id.
            selection_state: Selection store. Defaults to a SelectionState
                keyed by component_id.
            x_top_n: Keep only the N X categories with the largest absolute
                totals. Free-form; invalid or non-positive values disable
                the limit.
            y_top_n: Same for the Y axis
            title: Chart title (defaults to a generated title)
            subtitle: Chart subtitle (defaults to the scale, e.g. "in k")
            show_axis_titles: Show dimension descriptions as axis titles
            scale_format: "unformatted", "k", "m" or "b"
            decimal_places: Decimals for data labels and tooltips
            show_data_labels: Draw formatted values inside the cells
            allow_overlap: Let data labels overlap
            min_color: Color for the smallest proportion
            max_color: Color for the largest proportion
            clear_on_rerender: Remove the active selection and its filters
                whenever a new binding changes the matrix
            **kwargs: Additional configuration forwarded to Vue
        """
        if scale_format not in SCALE_FORMATS:
            raise ValueError(
                f"Unknown scale format '{scale_format}'. "
                f"Available formats: {list(SCALE_FORMATS)}"
            )

        self._x_top_n = x_top_n
        self._y_top_n = y_top_n
        self._title = title
        self._subtitle = subtitle
        self._show_axis_titles = show_axis_titles
        self._scale_format = scale_format
        self._decimal_places = decimal_places
        self._show_data_labels = show_data_labels
        self._allow_overlap = allow_overlap
        self._min_color = min_color
        self._max_color = max_color
        self._clear_on_rerender = clear_on_rerender

        self._linked_analysis = linked_analysis or SessionLinkedAnalysis(
            session_key=f"lh_filters_{component_id}"
        )
        self._selection_state = selection_state or SelectionState(
            session_key=f"lh_selection_{component_id}"
        )
        self._synchronizer = SelectionSynchronizer(
            self._selection_state, self._linked_analysis
        )

        super().__init__(component_id=component_id, data_binding=data_binding, **kwargs)

    @property
    def synchronizer(self) -> SelectionSynchronizer:
        return self._synchronizer

    @property
    def selection(self) -> Optional[Selection]:
        """The active selection, or None."""
        return self._selection_state.active

    @property
    def matrix(self) -> HeatmapMatrix:
        return self._preprocessed_data.get("matrix") or HeatmapMatrix()

    @property
    def dimensions(self) -> List[Dimension]:
        return self._preprocessed_data.get("dimensions", [])

    @property
    def measures(self) -> List[Measure]:
        return self._preprocessed_data.get("measures", [])

    @property
    def interactive(self) -> bool:
        """Clicks are only handled when two dimensions and a measure are bound."""
        return len(self.dimensions) >= 2 and len(self.measures) >= 1

    def _on_binding_unavailable(self) -> None:
        self._synchronizer.reset()
        self._selection_state.matrix_hash = None

    def _preprocess(self) -> None:
        """
        Aggregate the bound rows into the heatmap matrix.

        With fewer than two dimensions or no measure the matrix is empty and
        the selection is dropped.
        """
        dimensions, measures = parse_metadata(self._binding.metadata)
        self._preprocessed_data["dimensions"] = dimensions
        self._preprocessed_data["measures"] = measures

        if len(dimensions) < 2 or len(measures) < 1:
            print(
                f"[HEATMAP] {len(dimensions)} dimension(s), {len(measures)} measure(s) "
                f"bound; need 2 and 1",
                file=sys.stderr,
            )
            self._preprocessed_data["matrix"] = HeatmapMatrix()
            self._synchronizer.reset()
            self._selection_state.matrix_hash = None
            return

        matrix = process_series_data(
            self._binding.data,
            dimensions,
            measures,
            x_top_n=self._x_top_n,
            y_top_n=self._y_top_n,
        )
        self._preprocessed_data["matrix"] = matrix

        print(
            f"[HEATMAP] {len(self._binding.data):,} rows → "
            f"{len(matrix.x_categories)}x{len(matrix.y_categories)} categories, "
            f"{len(matrix.cells):,} cells "
            f"(top N: x={self._x_top_n}, y={self._y_top_n})",
            file=sys.stderr,
        )

        # The previous hash lives in session_state: the widget is rebuilt on every run
        previous_hash = self._selection_state.matrix_hash
        matrix_hash = self._hash_matrix(matrix)
        if (
            self._clear_on_rerender
            and previous_hash is not None
            and matrix_hash != previous_hash
        ):
            if self._synchronizer.clear():
                print("[HEATMAP] Matrix changed, selection cleared", file=sys.stderr)
        self._selection_state.matrix_hash = matrix_hash

    @staticmethod
    def _hash_matrix(matrix: HeatmapMatrix) -> str:
        ids = [c.id for c in matrix.x_categories] + ["\x1e"]
        ids += [c.id for c in matrix.y_categories]
        return compute_labels_hash([compute_dataframe_hash(matrix.cells)] + ids)

    def _format_context(self, x_label: str = "", y_label: str = "") -> FormatContext:
        dimensions = self.dimensions
        measures = self.measures
        return FormatContext(
            scale_format=self._scale_format,
            decimal_places=self._decimal_places,
            series_name=(measures[0].label if measures else None) or "Measure",
            x_label=x_label,
            y_label=y_label,
            x_description=(dimensions[0].description if dimensions else None)
            or "X Axis",
            y_description=(dimensions[1].description if len(dimensions) > 1 else None)
            or "Y Axis",
        )

    def _get_vue_component_name(self) -> str:
        """Return the Vue component name."""
        return "CategoryHeatmap"

    def _get_data_key(self) -> str:
        """Return the key used to send primary data to Vue."""
        return "heatmapData"

    def _prepare_vue_data(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Prepare the matrix for the Vue component.

        Cells get a formatted data label and tooltip so the frontend only
        draws. The active selection travels separately in selection_store.

        Args:
            state: Current selection state

        Returns:
            Dict with heatmapData (pandas DataFrame) plus category labels and ids
        """
        matrix = self.matrix
        x_labels = matrix.x_labels
        y_labels = matrix.y_labels

        labels = []
        tooltips = []
        for cell in matrix.cells.iter_rows(named=True):
            context = self._format_context(x_labels[cell["x"]], y_labels[cell["y"]])
            labels.append(format_data_label(cell["rawValue"], context))
            tooltips.append(format_tooltip(cell["rawValue"], context))

        cells = matrix.cells.with_columns(
            pl.Series("label", labels, dtype=pl.Utf8),
            pl.Series("tooltip", tooltips, dtype=pl.Utf8),
        )

        return {
            self._get_data_key(): optimize_for_transfer(cells).to_pandas(),
            "xCategories": x_labels,
            "yCategories": y_labels,
            "xCategoryIds": [c.id for c in matrix.x_categories],
            "yCategoryIds": [c.id for c in matrix.y_categories],
        }

    def _get_component_args(self) -> Dict[str, Any]:
        """
        Get component arguments to send to Vue.

        Returns:
            Dict with all heatmap configuration for Vue
        """
        dimensions = self.dimensions
        measures = self.measures
        series_name = (measures[0].label if measures else None) or "Measure"

        if len(dimensions) >= 2:
            auto_title = (
                f"{series_name} per {dimensions[0].description or dimensions[0].id} "
                f"and {dimensions[1].description or dimensions[1].id}"
            )
            x_axis_title = axis_title(self._show_axis_titles, dimensions[0])
            y_axis_title = axis_title(self._show_axis_titles, dimensions[1])
        else:
            auto_title = series_name
            x_axis_title = ""
            y_axis_title = ""

        args: Dict[str, Any] = {
            "componentType": self._get_vue_component_name(),
            "title": update_title(auto_title, self._title),
            "subtitle": update_subtitle(self._subtitle, self._scale_format),
            "seriesName": series_name,
            "xAxisTitle": x_axis_title,
            "yAxisTitle": y_axis_title,
            "showDataLabels": self._show_data_labels,
            "allowOverlap": self._allow_overlap,
            "minColor": self._min_color,
            "maxColor": self._max_color,
            "interactive": self.interactive,
        }

        # Add any extra config options
        args.update(self._config)

        return args

    def get_state_for_vue(self) -> Dict[str, Any]:
        return self._selection_state.get_state_for_vue()

    def handle_event(self, event: Dict[str, Any]) -> bool:
        """
        Dispatch a click event from the Vue component.

        Label events carry ``text`` or ``textParts`` and optionally a
        ``categoryIndex`` into the visible categories. Point events carry
        ``x``/``y`` indices and ``type`` ('select' or 'unselect').

        Args:
            event: Event dict from the frontend

        Returns:
            True if the selection or the filters changed
        """
        if not self.interactive or self._binding is None:
            return False

        kind = event.get("kind")
        matrix = self.matrix

        if kind in (X_LABEL_EVENT, Y_LABEL_EVENT):
            axis = 0 if kind == X_LABEL_EVENT else 1
            categories = matrix.x_categories if axis == 0 else matrix.y_categories
            index = _as_index(event.get("categoryIndex"), len(categories))
            cat_id = None
            if index is not None:
                cat_id = categories[index].id
            text = event.get("textParts") or event.get("text") or ""
            label_event = LabelClickEvent.from_text(text, category_id=cat_id)
            return self._synchronizer.handle_label_click(axis, label_event, self._binding)

        if kind == POINT_EVENT:
            x_index = _as_index(event.get("x"), len(matrix.x_categories))
            y_index = _as_index(event.get("y"), len(matrix.y_categories))
            event_type = event.get("type")
            if event_type not in (SELECT, UNSELECT):
                return False
            if x_index is None or y_index is None:
                return False
            x_category = matrix.x_categories[x_index]
            y_category = matrix.y_categories[y_index]
            point_event = PointClickEvent(
                type=event_type,
                x_label=x_category.label,
                y_label=y_category.label,
                x_id=x_category.id,
                y_id=y_category.id,
            )
            return self._synchronizer.handle_point_click(point_event, self._binding)

        print(f"[HEATMAP] Ignoring unknown event kind {kind!r}", file=sys.stderr)
        return False

    def with_styling(
        self,
        min_color: Optional[str] = None,
        max_color: Optional[str] = None,
        scale_format: Optional[str] = None,
        decimal_places: Optional[int] = None,
    ) -> "Heatmap":
        """
        Update heatmap styling.

        Args:
            min_color: Color for the smallest proportion
            max_color: Color for the largest proportion
            scale_format: "unformatted", "k", "m" or "b"
            decimal_places: Decimals for data labels and tooltips

        Returns:
            Self for method chaining
        """
        if scale_format is not None:
            if scale_format not in SCALE_FORMATS:
                raise ValueError(
                    f"Unknown scale format '{scale_format}'. "
                    f"Available formats: {list(SCALE_FORMATS)}"
                )
            self._scale_format = scale_format
        if min_color is not None:
            self._min_color = min_color
        if max_color is not None:
            self._max_color = max_color
        if decimal_places is not None:
            self._decimal_places = decimal_places
        return self
