"""Interaction controller - applies solver results to the editor canvas."""

from placement.controller.interaction import (
    DragUpdate,
    EditState,
    PlacementController,
    ReleaseResult,
    RenderingSurface,
    SkipEnforcementToken,
)

__all__ = [
    "DragUpdate",
    "EditState",
    "PlacementController",
    "ReleaseResult",
    "RenderingSurface",
    "SkipEnforcementToken",
]
