"""Linked-analysis filter API used by the selection synchronizer."""

from abc import ABC, abstractmethod
from typing import Any, Dict, MutableMapping, Optional


class LinkedAnalysis(ABC):
    """
    External collaborator that applies cross-widget filters.

    Calls are fire-and-forget: the synchronizer never reads filters back.
    """

    @abstractmethod
    def set_filters(self, selection: Dict[str, Any]) -> None:
        """
        Apply filters.

        Args:
            selection: Mapping of dimension id to member id
        """
        pass

    @abstractmethod
    def remove_filters(self) -> None:
        """Remove every filter this widget applied."""
        pass


class SessionLinkedAnalysis(LinkedAnalysis):
    """
    Linked analysis backed by Streamlit's session_state.

    Filters are kept under ``session_key`` so other components on the page
    can read them with get_filters() and restrict their own data.

    Example:
        linked = SessionLinkedAnalysis()
        heatmap = Heatmap("sales", binding, linked_analysis=linked)
        heatmap()
        table_rows = [r for r in rows if matches(r, linked.get_filters())]
    """

    def __init__(
        self,
        session_key: str = "lh_linked_filters",
        store: Optional[MutableMapping[str, Any]] = None,
    ):
        self._session_key = session_key
        self._store = store

    def _session(self) -> MutableMapping[str, Any]:
        if self._store is not None:
            return self._store
        import streamlit as st

        return st.session_state

    def set_filters(self, selection: Dict[str, Any]) -> None:
        # New filters replace the previous ones
        self._session()[self._session_key] = dict(selection)

    def remove_filters(self) -> None:
        self._session().pop(self._session_key, None)

    def get_filters(self) -> Dict[str, Any]:
        """Return a copy of the active filter mapping (empty when none)."""
        return dict(self._session().get(self._session_key) or {})

    def __repr__(self) -> str:
        return (
            f"SessionLinkedAnalysis(session_key='{self._session_key}', "
            f"filters={self.get_filters()})"
        )
