"""Base component class for linked visualization widgets."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .binding import DataBinding


class BaseComponent(ABC):
    """
    Abstract base class for widgets rendered through the Vue bridge.

    A component is created with an id and, optionally, a data binding. Every
    call to update_binding() is a render trigger: the binding is stored and,
    when the host reports success, preprocessing runs synchronously to
    completion. Bindings in any other state tear down the preprocessed data.

    Attributes:
        _component_id: Unique identifier of this widget
        _binding: Current DataBinding (None before the first trigger)
        _preprocessed_data: Dict of preprocessed data structures
        _config: Extra configuration forwarded to Vue
        _component_type: Class-level component type identifier
    """

    _component_type: str = ""

    def __init__(
        self,
        component_id: str,
        data_binding: Optional[DataBinding] = None,
        **kwargs,
    ):
        """
        Initialize the component.

        Args:
            component_id: Unique identifier for this widget. Used for the
                Streamlit key and session_state keys.
            data_binding: Initial data binding. May be supplied later with
                update_binding().
            **kwargs: Extra configuration forwarded to the Vue component
        """
        if not component_id:
            raise ValueError("component_id must be a non-empty string")

        self._component_id = component_id
        self._binding: Optional[DataBinding] = None
        self._preprocessed_data: Dict[str, Any] = {}
        self._config = kwargs

        if data_binding is not None:
            self.update_binding(data_binding)

    @property
    def component_id(self) -> str:
        return self._component_id

    @property
    def binding(self) -> Optional[DataBinding]:
        return self._binding

    def update_binding(self, binding: Optional[DataBinding]) -> None:
        """
        Render trigger: store a new binding and preprocess it.

        Args:
            binding: New data binding from the host (None clears the widget)
        """
        self._binding = binding
        self._preprocessed_data = {}

        if binding is None or not binding.is_success:
            self._on_binding_unavailable()
            return

        self._preprocess()

    def _on_binding_unavailable(self) -> None:
        """
        Hook for bindings that are missing or not successful.

        Override to tear down interaction state.
        """
        pass

    def destroy(self) -> None:
        """Release data and interaction state when the widget is removed."""
        self._binding = None
        self._preprocessed_data = {}
        self._on_binding_unavailable()

    @abstractmethod
    def _preprocess(self) -> None:
        """
        Run component-specific preprocessing.

        This method should populate self._preprocessed_data with the
        structures needed for rendering.
        """
        pass

    @abstractmethod
    def _get_vue_component_name(self) -> str:
        """Return the Vue component name to render (e.g., 'CategoryHeatmap')."""
        pass

    @abstractmethod
    def _get_data_key(self) -> str:
        """Return the key used to send primary data to Vue."""
        pass

    @abstractmethod
    def _prepare_vue_data(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Prepare data payload for Vue component.

        Args:
            state: Current selection state (see get_state_for_vue())

        Returns:
            Dict with data to send to Vue component
        """
        pass

    @abstractmethod
    def _get_component_args(self) -> Dict[str, Any]:
        """
        Get component arguments to send to Vue.

        Returns:
            Dict with component configuration for Vue
        """
        pass

    @abstractmethod
    def handle_event(self, event: Dict[str, Any]) -> bool:
        """
        Handle an interaction event returned by the Vue component.

        Args:
            event: Event dict from the frontend

        Returns:
            True if state changed and the app should rerun
        """
        pass

    def get_state_for_vue(self) -> Dict[str, Any]:
        """
        Get the interaction state to echo to Vue.

        Override in subclasses that hold selection state.
        """
        return {}

    def __call__(
        self,
        key: Optional[str] = None,
        height: Optional[int] = None,
    ) -> Any:
        """
        Render the component in Streamlit.

        Args:
            key: Optional unique key for the Streamlit component
            height: Optional height in pixels for the component

        Returns:
            The value returned by the Vue component
        """
        from ..rendering.bridge import render_component

        return render_component(component=self, key=key, height=height)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"component_id='{self._component_id}', "
            f"config={self._config})"
        )
