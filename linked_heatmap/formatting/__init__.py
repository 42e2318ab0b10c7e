"""Display formatting for heatmap values and titles."""

from .numbers import FormatContext, format_data_label, format_number, format_tooltip, scale_value
from .titles import axis_title, update_subtitle, update_title

__all__ = [
    "FormatContext",
    "scale_value",
    "format_number",
    "format_data_label",
    "format_tooltip",
    "update_title",
    "update_subtitle",
    "axis_title",
]
