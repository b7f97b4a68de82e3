"""Developer diagnostics."""

from placement.debug.overlay import render_debug_overlay

__all__ = ["render_debug_overlay"]
