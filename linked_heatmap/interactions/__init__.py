"""Click handling and linked-analysis synchronization."""

from .linked_analysis import LinkedAnalysis, SessionLinkedAnalysis
from .selection import (
    LabelClickEvent,
    PointClickEvent,
    SelectionSynchronizer,
    resolve_label_text,
)

__all__ = [
    "LinkedAnalysis",
    "SessionLinkedAnalysis",
    "LabelClickEvent",
    "PointClickEvent",
    "SelectionSynchronizer",
    "resolve_label_text",
]
