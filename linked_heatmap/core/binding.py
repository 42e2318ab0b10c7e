"""Data binding and metadata descriptors supplied by the host."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Binding state reported by the host when rows and metadata are usable
SUCCESS_STATE = "success"

# Sentinels substituted for missing dimension fields
NO_ID = "No ID"
NO_LABEL = "No Label"


def _cell_field(row: Mapping[str, Any], key: str, name: str, default: str) -> str:
    cell = row.get(key) or {}
    value = cell.get(name)
    if value is None or value == "":
        return default
    return str(value)


def category_id(row: Mapping[str, Any], key: str) -> str:
    """Return the category id of a row's dimension cell ("No ID" if missing)."""
    return _cell_field(row, key, "id", NO_ID)


def category_label(row: Mapping[str, Any], key: str) -> str:
    """Return the category label of a row's dimension cell ("No Label" if missing)."""
    return _cell_field(row, key, "label", NO_LABEL)


def measure_value(row: Mapping[str, Any], key: str) -> float:
    """Return the raw measure value of a row, 0 when missing or not numeric."""
    cell = row.get(key) or {}
    raw = cell.get("raw")
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Dimension:
    """
    A categorical dimension bound to one heatmap axis.

    Attributes:
        key: Key used to index into a row
        id: Stable identifier used as the filter target
        description: Display label (used for axis titles and tooltips)
    """

    key: str
    id: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Measure:
    """The numeric measure whose raw values fill the heatmap."""

    key: str
    label: Optional[str] = None


def parse_metadata(
    metadata: Optional[Mapping[str, Any]],
) -> Tuple[List[Dimension], List[Measure]]:
    """
    Parse host metadata into ordered dimension and measure descriptors.

    The metadata is a map-of-maps:
        {
            "dimensions": {"dimensions_0": {"id": "Region", "description": ...}},
            "mainStructureMembers": {"measures_0": {"label": "Revenue"}},
        }

    Insertion order of the inner maps establishes axis assignment: the first
    dimension is the X axis, the second the Y axis.

    Args:
        metadata: Metadata mapping from the data binding (may be None)

    Returns:
        Tuple of (dimensions, measures)
    """
    if not metadata:
        return [], []

    dimensions = []
    for key, dimension in (metadata.get("dimensions") or {}).items():
        dimension = dimension or {}
        dimensions.append(
            Dimension(
                key=key,
                # Fall back to the key so filters always have a target
                id=dimension.get("id", key),
                description=dimension.get("description"),
            )
        )

    measures = []
    for key, measure in (metadata.get("mainStructureMembers") or {}).items():
        measure = measure or {}
        measures.append(Measure(key=key, label=measure.get("label")))

    return dimensions, measures


@dataclass
class DataBinding:
    """
    Result set delivered by the host on each render trigger.

    Attributes:
        data: List of rows. Each row maps dimension/measure keys to
            {"id": ..., "label": ..., "raw": ...} cells.
        metadata: Host metadata (see parse_metadata)
        state: Binding state; only "success" bindings are rendered
    """

    data: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    state: str = SUCCESS_STATE

    @property
    def is_success(self) -> bool:
        """True when the host reports a usable binding."""
        return self.state == SUCCESS_STATE

    @property
    def dimensions(self) -> List[Dimension]:
        return parse_metadata(self.metadata)[0]

    @property
    def measures(self) -> List[Measure]:
        return parse_metadata(self.metadata)[1]

    @property
    def has_axes(self) -> bool:
        """True when at least two dimensions and one measure are bound."""
        dimensions, measures = parse_metadata(self.metadata)
        return len(dimensions) >= 2 and len(measures) >= 1
