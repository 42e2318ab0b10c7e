"""Cross-axis selection synchronization for heatmap clicks.

Label clicks filter the linked analysis on one dimension, cell clicks on
both. At most one selection source is active at a time: activating one
removes the filters of any other before the new filter is applied, and
clicking the active label again toggles it off.
"""

import sys
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from ..core.binding import DataBinding, category_id, category_label
from ..core.state import Selection, SelectionSource, SelectionState
from .linked_analysis import LinkedAnalysis

SELECT = "select"
UNSELECT = "unselect"

# Zero-width and non-breaking spaces injected by label wrapping
_INVISIBLE_CHARS = ("\u200b", "\u00a0")

_LABEL_SOURCES = (SelectionSource.X_LABEL, SelectionSource.Y_LABEL)


@dataclass(frozen=True)
class LabelClickEvent:
    """
    Click on an axis label.

    Attributes:
        text_parts: Text of the label element's child nodes (multi-line
            labels arrive as several parts)
        category_id: Category id of the clicked label, when the frontend
            can supply it
    """

    text_parts: Tuple[str, ...] = ()
    category_id: Optional[str] = None

    @classmethod
    def from_text(
        cls, text: Union[str, Sequence[str]], category_id: Optional[str] = None
    ) -> "LabelClickEvent":
        parts = (text,) if isinstance(text, str) else tuple(text)
        return cls(text_parts=parts, category_id=category_id)


@dataclass(frozen=True)
class PointClickEvent:
    """
    Select/unselect of a heatmap cell.

    Ids take precedence over labels when resolving the clicked row.
    """

    type: str
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    x_id: Optional[str] = None
    y_id: Optional[str] = None

    def __post_init__(self):
        if self.type not in (SELECT, UNSELECT):
            raise ValueError(
                f"Point event type must be '{SELECT}' or '{UNSELECT}', got {self.type!r}"
            )


def resolve_label_text(parts: Union[str, Sequence[str]]) -> str:
    """
    Join a label element's text parts into the rendered label.

    Zero-width and non-breaking spaces are removed, each part is trimmed,
    empty parts are dropped and the rest joined with single spaces.
    """
    if isinstance(parts, str):
        parts = [parts]

    cleaned = []
    for part in parts:
        text = str(part)
        for char in _INVISIBLE_CHARS:
            text = text.replace(char, "")
        text = text.strip()
        if text:
            cleaned.append(text)
    return " ".join(cleaned)


def _matches(
    row: Mapping[str, Any], key: str, cat_id: Optional[str], label: Optional[str]
) -> bool:
    if cat_id is not None:
        return category_id(row, key) == cat_id
    return category_label(row, key) == label


def find_row(
    rows: Sequence[Mapping[str, Any]],
    key: str,
    cat_id: Optional[str] = None,
    label: Optional[str] = None,
) -> Optional[Mapping[str, Any]]:
    """
    Find the first row whose dimension cell matches.

    Matches on id when ``cat_id`` is given, otherwise on label. Labels may
    collide across ids; the first match wins.
    """
    for row in rows:
        if _matches(row, key, cat_id, label):
            return row
    return None


def find_point_row(
    rows: Sequence[Mapping[str, Any]],
    x_key: str,
    y_key: str,
    event: PointClickEvent,
) -> Optional[Mapping[str, Any]]:
    """Find the first row matching both axes of a cell click."""
    for row in rows:
        if _matches(row, x_key, event.x_id, event.x_label) and _matches(
            row, y_key, event.y_id, event.y_label
        ):
            return row
    return None


class SelectionSynchronizer:
    """
    Click-handling state machine between the heatmap and linked analysis.

    Owns the SelectionState it is given. Every handler completes its
    clear-then-set sequence before returning.

    Example:
        sync = SelectionSynchronizer(SelectionState(), SessionLinkedAnalysis())
        sync.handle_x_label_click(LabelClickEvent.from_text("Berlin"), binding)
    """

    def __init__(self, state: SelectionState, linked_analysis: LinkedAnalysis):
        self._state = state
        self._linked_analysis = linked_analysis

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def linked_analysis(self) -> LinkedAnalysis:
        return self._linked_analysis

    @property
    def active(self) -> Optional[Selection]:
        return self._state.active

    def _deactivate(self) -> None:
        """Remove filters of the active selection and drop it."""
        if self._state.active is None:
            return
        self._linked_analysis.remove_filters()
        self._state.clear()

    def handle_x_label_click(self, event: LabelClickEvent, binding: DataBinding) -> bool:
        return self.handle_label_click(0, event, binding)

    def handle_y_label_click(self, event: LabelClickEvent, binding: DataBinding) -> bool:
        return self.handle_label_click(1, event, binding)

    def handle_label_click(
        self, axis: int, event: LabelClickEvent, binding: DataBinding
    ) -> bool:
        """
        Handle a click on an X (axis 0) or Y (axis 1) label.

        Args:
            axis: 0 for the X axis, 1 for the Y axis
            event: The label click
            binding: Current data binding

        Returns:
            True if the selection or the filters changed
        """
        if axis not in (0, 1):
            raise ValueError(f"axis must be 0 or 1, got {axis}")

        dimensions = binding.dimensions
        if len(dimensions) < 2:
            return False
        dimension = dimensions[axis]

        label = resolve_label_text(event.text_parts)
        row = find_row(binding.data, dimension.key, event.category_id, label)
        if row is None:
            print(
                f"[SELECTION] No row for {dimension.key} label '{label}'",
                file=sys.stderr,
            )
            return False

        member_id = category_id(row, dimension.key)
        token = Selection(source=_LABEL_SOURCES[axis], category_ids=(member_id,))

        if self._state.is_active(token):
            # Same label again: toggle off
            self._linked_analysis.remove_filters()
            self._state.clear()
            print(f"[SELECTION] Filters removed for '{label}'", file=sys.stderr)
            return True

        self._deactivate()

        selection = {dimension.id: member_id}
        self._linked_analysis.set_filters(selection)
        self._state.set(token)
        print(f"[SELECTION] Filters set: {selection}", file=sys.stderr)
        return True

    def handle_point_click(self, event: PointClickEvent, binding: DataBinding) -> bool:
        """
        Handle select/unselect of a heatmap cell.

        Args:
            event: The point event
            binding: Current data binding

        Returns:
            True if the selection or the filters changed
        """
        dimensions = binding.dimensions
        if len(dimensions) < 2:
            return False
        dim_x, dim_y = dimensions[0], dimensions[1]

        row = find_point_row(binding.data, dim_x.key, dim_y.key, event)
        if row is None:
            print(
                f"[SELECTION] No row for cell ({event.x_label}, {event.y_label})",
                file=sys.stderr,
            )
            return False

        had_selection = self._state.active is not None
        self._deactivate()

        if event.type == UNSELECT:
            return had_selection

        x_id = category_id(row, dim_x.key)
        y_id = category_id(row, dim_y.key)
        selection: Dict[str, Any] = {dim_x.id: x_id, dim_y.id: y_id}
        self._linked_analysis.set_filters(selection)
        self._state.set(Selection(source=SelectionSource.POINT, category_ids=(x_id, y_id)))
        print(f"[SELECTION] Filters set: {selection}", file=sys.stderr)
        return True

    def clear(self) -> bool:
        """
        Remove the active selection and its filters.

        Returns:
            True if a selection was active
        """
        if self._state.active is None:
            return False
        self._deactivate()
        return True

    def reset(self) -> None:
        """Drop the active selection without touching the linked analysis."""
        self._state.clear()
