"""Number scaling and cell text formatting."""

from dataclasses import dataclass
from typing import Optional, Tuple

# Scale format -> (divisor, suffix)
SCALE_FORMATS = {
    "unformatted": (1.0, ""),
    "k": (1e3, "k"),
    "m": (1e6, "m"),
    "b": (1e9, "b"),
}


@dataclass(frozen=True)
class FormatContext:
    """
    Everything a cell formatter needs besides the raw value.

    Attributes:
        scale_format: One of SCALE_FORMATS
        decimal_places: Fixed decimals, or None to keep the value's own
        series_name: Measure label shown as the tooltip header
        x_label: Category label on the X axis
        y_label: Category label on the Y axis
        x_description: X dimension description
        y_description: Y dimension description
    """

    scale_format: str = "unformatted"
    decimal_places: Optional[int] = 2
    series_name: str = "Series"
    x_label: str = ""
    y_label: str = ""
    x_description: str = "X Axis"
    y_description: str = "Y Axis"


def scale_value(raw_value: Optional[float], scale_format: str) -> Tuple[float, str]:
    """
    Scale a raw value for display.

    Args:
        raw_value: Raw measure value (None is treated as 0)
        scale_format: "unformatted", "k", "m" or "b"

    Returns:
        Tuple of (scaled value, suffix)
    """
    if scale_format not in SCALE_FORMATS:
        raise ValueError(
            f"Unknown scale format '{scale_format}'. "
            f"Available formats: {list(SCALE_FORMATS)}"
        )
    divisor, suffix = SCALE_FORMATS[scale_format]
    return (raw_value or 0.0) / divisor, suffix


def format_number(value: float, decimal_places: Optional[int] = None) -> str:
    """Format with a ',' thousands separator and optional fixed decimals."""
    if decimal_places is None:
        return f"{value:,}"
    return f"{value:,.{int(decimal_places)}f}"


def format_data_label(raw_value: Optional[float], context: FormatContext) -> str:
    """Text drawn inside a heatmap cell."""
    scaled, _ = scale_value(raw_value, context.scale_format)
    return format_number(scaled, context.decimal_places)


def format_tooltip(raw_value: Optional[float], context: FormatContext) -> str:
    """
    Tooltip text for a heatmap cell.

    Lines: series name, scaled value with suffix, then one
    "description: label" line per axis.
    """
    scaled, suffix = scale_value(raw_value, context.scale_format)
    value = format_number(scaled, context.decimal_places)
    value_line = f"{value} {suffix}".rstrip()
    return "\n".join(
        [
            context.series_name or "Series",
            value_line,
            f"{context.x_description or 'X Axis'}: {context.x_label}",
            f"{context.y_description or 'Y Axis'}: {context.y_label}",
        ]
    )
