"""Selection state for label and cell clicks on the heatmap."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, MutableMapping, Optional, Tuple

import numpy as np


class SelectionSource(str, Enum):
    """Where a user-initiated filter selection came from."""

    X_LABEL = "x_label"
    Y_LABEL = "y_label"
    POINT = "point"


@dataclass(frozen=True)
class Selection:
    """
    Stable selection token, compared by value.

    Attributes:
        source: Selection source (x-label, y-label or point)
        category_ids: Category id for label selections, (x id, y id) for
            point selections
    """

    source: SelectionSource
    category_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source.value, "categoryIds": list(self.category_ids)}


class SelectionState:
    """
    Holds at most one active selection.

    The state lives in Streamlit's session_state (or an explicit mapping)
    under ``session_key`` so it survives reruns. A counter is bumped on every
    change and a random session id guards against events coming from another
    browser tab.

    The hash of the last rendered matrix is kept alongside, so a widget
    rebuilt on the next script run can tell whether its data changed.

    Only the SelectionSynchronizer mutates the selection.
    """

    def __init__(
        self,
        session_key: str = "lh_selection",
        store: Optional[MutableMapping[str, Any]] = None,
    ):
        """
        Initialize the SelectionState.

        Args:
            session_key: Key used in session_state. Use different keys for
                independent heatmaps.
            store: Mapping to hold the state instead of st.session_state.
        """
        self._session_key = session_key
        self._store = store
        self._ensure_session_state()

    def _session(self) -> MutableMapping[str, Any]:
        if self._store is not None:
            return self._store
        import streamlit as st

        return st.session_state

    def _ensure_session_state(self) -> None:
        session = self._session()
        if self._session_key not in session:
            session[self._session_key] = {
                "counter": 0,
                "id": float(np.random.random()),
                "selection": None,
                "matrix_hash": None,
            }

    @property
    def _state(self) -> Dict[str, Any]:
        self._ensure_session_state()
        return self._session()[self._session_key]

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def session_id(self) -> float:
        """Get the unique session ID."""
        return self._state["id"]

    @property
    def counter(self) -> int:
        """Get the current state counter."""
        return self._state["counter"]

    @property
    def active(self) -> Optional[Selection]:
        """The active selection, or None."""
        return self._state["selection"]

    def is_active(self, selection: Selection) -> bool:
        """Check whether ``selection`` equals the active selection."""
        return self._state["selection"] == selection

    @property
    def matrix_hash(self) -> Optional[str]:
        """Hash of the matrix rendered last, or None before the first render."""
        return self._state.get("matrix_hash")

    @matrix_hash.setter
    def matrix_hash(self, value: Optional[str]) -> None:
        self._state["matrix_hash"] = value

    def set(self, selection: Selection) -> bool:
        """
        Replace the active selection.

        Returns:
            True if the value changed, False otherwise
        """
        if self._state["selection"] == selection:
            return False
        self._state["selection"] = selection
        self._state["counter"] += 1
        return True

    def clear(self) -> bool:
        """
        Drop the active selection.

        Returns:
            True if a selection was cleared, False if none was set
        """
        if self._state["selection"] is None:
            return False
        self._state["selection"] = None
        self._state["counter"] += 1
        return True

    def get_state_for_vue(self) -> Dict[str, Any]:
        """
        Get state dict formatted for sending to the Vue component.

        Returns:
            Dict with counter, id and the active selection (or None)
        """
        selection = self._state["selection"]
        return {
            "counter": self._state["counter"],
            "id": self._state["id"],
            "selection": selection.to_dict() if selection is not None else None,
        }

    def __repr__(self) -> str:
        return (
            f"SelectionState(session_key='{self._session_key}', "
            f"counter={self.counter}, "
            f"active={self.active})"
        )
