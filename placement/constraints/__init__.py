"""Constraint module - keeps text legible over the slide background."""

from placement.constraints.engine import (
    EnforceResult,
    LayoutReport,
    Violation,
    enforce_text_invariants,
    enforce_text_invariants_sequential,
    validate_layout,
)
from placement.constraints.mask import Mask
from placement.constraints.nearest_valid import (
    PushOutSide,
    find_nearest_valid_top_left,
    push_out_of_rect,
)
from placement.constraints.predicates import (
    PlacementConstraints,
    ViolationKind,
    aabb_intersects_mask,
    is_blocked_by_image,
    rect_contains,
    rects_overlap_aabb,
)
from placement.constraints.snapping import (
    AnchorKind,
    HorizontalGuide,
    find_horizontal_guide,
    snap_to_guide,
)

__all__ = [
    # Engine
    "EnforceResult",
    "LayoutReport",
    "Violation",
    "enforce_text_invariants",
    "enforce_text_invariants_sequential",
    "validate_layout",
    # Mask
    "Mask",
    # Search
    "PushOutSide",
    "find_nearest_valid_top_left",
    "push_out_of_rect",
    # Predicates
    "PlacementConstraints",
    "ViolationKind",
    "aabb_intersects_mask",
    "is_blocked_by_image",
    "rect_contains",
    "rects_overlap_aabb",
    # Snapping
    "AnchorKind",
    "HorizontalGuide",
    "find_horizontal_guide",
    "snap_to_guide",
]
