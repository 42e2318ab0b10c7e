"""Bridge between Python components and the Vue frontend."""

import functools
import hashlib
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

import pandas as pd
import polars as pl
import streamlit as st

from ..preprocessing.filtering import compute_dataframe_hash, compute_labels_hash

if TYPE_CHECKING:
    from ..core.base import BaseComponent

_COMPONENT_NAME = "linked_heatmap_component"
_DEV_URL = "http://localhost:5173"
_BUILD_DIR = Path(__file__).resolve().parent.parent / "js-component" / "dist"

# Session state key for Vue's echoed hash (what Vue currently has)
# Data is only sent when Vue's echoed hash differs from the current hash
_VUE_ECHOED_HASH_KEY = "_lh_vue_echoed_hashes"

# Session state key for the last processed event sequence number per component
# Streamlit returns the component's last value on every rerun, so events
# must be deduplicated
_LAST_EVENT_SEQ_KEY = "_lh_last_event_seq"


def _frontend_source() -> Dict[str, str]:
    """
    Locate the frontend for declare_component().

    With LH_DEV_MODE=true the widget is served by the Vite dev server at
    LH_DEV_URL, otherwise from the bundled build.

    Returns:
        Either {"url": ...} or {"path": ...}
    """
    if os.environ.get("LH_DEV_MODE", "false").lower() == "true":
        return {"url": os.environ.get("LH_DEV_URL", _DEV_URL)}

    if not _BUILD_DIR.is_dir():
        raise RuntimeError(
            f"No heatmap frontend build in {_BUILD_DIR}; "
            "build js-component or run with LH_DEV_MODE=true"
        )
    return {"path": str(_BUILD_DIR)}


@functools.lru_cache(maxsize=None)
def get_vue_component_function():
    """Declare the Streamlit component once per process."""
    import streamlit.components.v1 as st_components

    return st_components.declare_component(_COMPONENT_NAME, **_frontend_source())


def process_vue_event(
    component: "BaseComponent",
    key: str,
    result: Optional[Dict[str, Any]],
    session_id: Any,
) -> bool:
    """
    Hand a new click event from the Vue result to the component.

    The event is ignored when it comes from another session (browser tab)
    or when its sequence number was already processed.

    Args:
        component: The component that rendered the Vue widget
        key: Streamlit key of the widget
        result: Value returned by the Vue component
        session_id: Session id of the component's selection state

    Returns:
        True if the component's state changed
    """
    if not result:
        return False

    event = result.get("_event")
    if not event:
        return False

    # Verify same session (prevents cross-tab interference)
    if result.get("id") != session_id:
        return False

    seq = event.get("seq")
    if seq is None:
        return False

    if _LAST_EVENT_SEQ_KEY not in st.session_state:
        st.session_state[_LAST_EVENT_SEQ_KEY] = {}
    last_seq = st.session_state[_LAST_EVENT_SEQ_KEY].get(key)
    if last_seq is not None and seq <= last_seq:
        return False
    st.session_state[_LAST_EVENT_SEQ_KEY][key] = seq

    return component.handle_event(event)


def render_component(
    component: "BaseComponent",
    key: Optional[str] = None,
    height: Optional[int] = None,
) -> Any:
    """
    Render a component in Streamlit.

    This function:
    1. Gets the interaction state from the component
    2. Calls component._prepare_vue_data() and hashes the payload
    3. Only sends data if the hash differs from what Vue echoed last time
    4. Calls the Vue component
    5. Hands any new click event to the component
    6. Triggers st.rerun() if the component's state changed

    Args:
        component: The component to render
        key: Optional unique key for the Streamlit component
        height: Optional height in pixels

    Returns:
        The value returned by the Vue component
    """
    state = component.get_state_for_vue()

    if key is None:
        key = f"lh_{component.component_id}"

    vue_data = component._prepare_vue_data(state)
    data_hash = _hash_data(vue_data)
    component_args = component._get_component_args()

    if _VUE_ECHOED_HASH_KEY not in st.session_state:
        st.session_state[_VUE_ECHOED_HASH_KEY] = {}

    # Vue echoes None when it has no data (first render, page navigation)
    vue_echoed_hash = st.session_state[_VUE_ECHOED_HASH_KEY].get(key)
    data_changed = (vue_echoed_hash is None) or (vue_echoed_hash != data_hash)

    if data_changed:
        converted_data = {}
        for data_key, value in vue_data.items():
            if isinstance(value, pl.LazyFrame):
                converted_data[data_key] = value.collect().to_pandas()
            elif isinstance(value, pl.DataFrame):
                converted_data[data_key] = value.to_pandas()
            else:
                converted_data[data_key] = value
        data_payload = {
            **converted_data,
            "selection_store": state,
            "hash": data_hash,
            "dataChanged": True,
        }
    else:
        # Data unchanged - only send hash and state, Vue will use cached data
        data_payload = {
            "selection_store": state,
            "hash": data_hash,
            "dataChanged": False,
        }

    if height is not None:
        component_args["height"] = height

    # Component layout: [[{componentArgs: {...}}]]
    components = [[{"componentArgs": component_args}]]

    vue_func = get_vue_component_function()

    kwargs = {
        "components": components,
        "key": key,
        **data_payload,
    }
    if height is not None:
        kwargs["height"] = height

    result = vue_func(**kwargs)

    if result is not None:
        # ALWAYS update from Vue's echo - if Vue lost its data it echoes None
        st.session_state[_VUE_ECHOED_HASH_KEY][key] = result.get("_vueDataHash")

        if process_vue_event(component, key, result, state.get("id")):
            st.rerun()

    return result


def _hash_data(data: Dict[str, Any]) -> str:
    """
    Compute hash of data payload for change detection.

    Args:
        data: The data dict to hash

    Returns:
        SHA256 hash string
    """
    hash_parts = []
    for key, value in sorted(data.items()):
        if isinstance(value, pd.DataFrame):
            hash_parts.append(f"{key}:{compute_dataframe_hash(pl.from_pandas(value))}")
        elif isinstance(value, pl.DataFrame):
            hash_parts.append(f"{key}:{compute_dataframe_hash(value)}")
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            hash_parts.append(f"{key}:{compute_labels_hash(value)}")
        else:
            hash_parts.append(f"{key}:{value!r}")

    return hashlib.sha256("|".join(hash_parts).encode()).hexdigest()
