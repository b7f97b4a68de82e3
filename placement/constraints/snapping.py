"""Smart horizontal alignment guides for dragged text."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from placement.geometry.schema import Rect


DEFAULT_GUIDE_THRESHOLD_PX = 8.0


class AnchorKind(str, Enum):
    """Horizontal anchor of a box."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass
class HorizontalGuide:
    """A vertical guide line the dragged box lines up with.

    Attributes:
        x: Guide position on the canvas.
        kind: Anchor of the other box the guide comes from.
        moving_anchor: Anchor of the dragged box that matched.
        distance: Distance between the two anchors before snapping.
    """

    x: float
    kind: AnchorKind
    moving_anchor: AnchorKind
    distance: float


def anchors_for_rect(rect: Rect) -> dict[AnchorKind, float]:
    """Left, center and right x positions of a rect."""
    return {
        AnchorKind.LEFT: rect.x,
        AnchorKind.CENTER: rect.center_x,
        AnchorKind.RIGHT: rect.right,
    }


def find_horizontal_guide(
    moving: Rect,
    others: Sequence[Rect],
    threshold_px: float = DEFAULT_GUIDE_THRESHOLD_PX,
) -> Optional[HorizontalGuide]:
    """Find the closest alignment between a dragged box and its neighbours.

    Every anchor of the moving box is compared with every anchor of every
    other box. The first strictly closer match wins, so equal distances keep
    the earlier box and anchor.

    Args:
        moving: Box being dragged.
        others: Other text boxes.
        threshold_px: Largest distance that still shows a guide.

    Returns:
        The guide, or None when nothing is within the threshold.
    """
    moving_anchors = anchors_for_rect(moving)
    best: Optional[HorizontalGuide] = None

    for other in others:
        if other.is_empty:
            continue
        for kind, target_x in anchors_for_rect(other).items():
            for moving_kind, moving_x in moving_anchors.items():
                distance = abs(moving_x - target_x)
                if distance <= threshold_px and (best is None or distance < best.distance):
                    best = HorizontalGuide(
                        x=target_x,
                        kind=kind,
                        moving_anchor=moving_kind,
                        distance=distance,
                    )

    return best


def snap_to_guide(rect: Rect, guide: HorizontalGuide) -> Rect:
    """Move ``rect`` so its matching anchor sits on the guide."""
    offset = guide.x - anchors_for_rect(rect)[guide.moving_anchor]
    return rect.translated_to(rect.x + offset, rect.y)
