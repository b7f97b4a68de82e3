"""Geometry value types shared by the solver and its callers."""

from placement.geometry.schema import (
    LayoutSnapshot,
    MaskPayload,
    Point,
    PositionUpdate,
    Rect,
    Size,
    TextItem,
)

__all__ = [
    "LayoutSnapshot",
    "MaskPayload",
    "Point",
    "PositionUpdate",
    "Rect",
    "Size",
    "TextItem",
]
