"""Rendering bridge between Python and Vue."""

from .bridge import render_component

__all__ = ["render_component"]
