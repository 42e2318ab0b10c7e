"""Pytest configuration and shared fixtures for linked-heatmap tests."""

from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest

from linked_heatmap.core.binding import DataBinding, Dimension
from linked_heatmap.core.state import SelectionState
from linked_heatmap.interactions.linked_analysis import LinkedAnalysis
from linked_heatmap.interactions.selection import SelectionSynchronizer


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


def make_row(x_id, x_label, y_id, y_label, raw) -> Dict[str, Any]:
    """Build a bound row keyed like the sample metadata."""
    return {
        "dimensions_0": {"id": x_id, "label": x_label},
        "dimensions_1": {"id": y_id, "label": y_label},
        "measures_0": {"raw": raw},
    }


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing components.

    This fixture patches st.session_state to allow testing components
    without running a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch('streamlit.session_state', mock_session_state):
        yield mock_session_state


@pytest.fixture
def sample_metadata() -> Dict[str, Any]:
    """Metadata with Region on X, Product on Y and Revenue as measure."""
    return {
        "dimensions": {
            "dimensions_0": {"id": "Region", "description": "Region"},
            "dimensions_1": {"id": "Product", "description": "Product"},
        },
        "mainStructureMembers": {
            "measures_0": {"label": "Revenue"},
        },
    }


@pytest.fixture
def sample_rows() -> List[Dict[str, Any]]:
    """Three regions by two products."""
    return [
        make_row("r_north", "North", "p_tea", "Tea", 10.0),
        make_row("r_north", "North", "p_coffee", "Coffee", 30.0),
        make_row("r_south", "South", "p_tea", "Tea", 5.0),
        make_row("r_south", "South", "p_coffee", "Coffee", 15.0),
        make_row("r_east", "East", "p_tea", "Tea", 2.0),
    ]


@pytest.fixture
def sample_binding(sample_rows, sample_metadata) -> DataBinding:
    return DataBinding(data=sample_rows, metadata=sample_metadata)


@pytest.fixture
def x_dimension() -> Dimension:
    return Dimension(key="dimensions_0", id="Region", description="Region")


@pytest.fixture
def y_dimension() -> Dimension:
    return Dimension(key="dimensions_1", id="Product", description="Product")


@pytest.fixture
def linked_analysis() -> MagicMock:
    """Linked analysis double recording set_filters/remove_filters calls."""
    return MagicMock(spec=LinkedAnalysis)


@pytest.fixture
def selection_state() -> SelectionState:
    """Selection state held in a plain dict instead of session_state."""
    return SelectionState(store={})


@pytest.fixture
def synchronizer(selection_state, linked_analysis) -> SelectionSynchronizer:
    return SelectionSynchronizer(selection_state, linked_analysis)
