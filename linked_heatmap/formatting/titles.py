"""Chart title, subtitle and axis title text."""

from typing import Optional

from ..core.binding import Dimension

_SCALE_SUBTITLES = {"k": "in k", "m": "in m", "b": "in b"}


def update_title(auto_title: str, chart_title: Optional[str]) -> str:
    """Use the user title when set, the generated one otherwise."""
    if not chart_title:
        return auto_title
    return chart_title


def update_subtitle(chart_subtitle: Optional[str], scale_format: str) -> str:
    """
    Subtitle text.

    A user subtitle wins; without one the subtitle names the scale
    ("in k", "in m", "in b"), or is empty when values are unscaled.
    """
    if chart_subtitle:
        return chart_subtitle
    return _SCALE_SUBTITLES.get(scale_format, "")


def axis_title(show_axis_titles: bool, dimension: Dimension) -> str:
    if not show_axis_titles:
        return ""
    return dimension.description or "Axis"
