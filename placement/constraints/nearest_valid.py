"""Corrective placement for a single text box.

``find_nearest_valid_top_left`` searches outward from the current position
in Euclidean rings on a ``step_px`` grid and returns the closest position
where the box satisfies every placement rule. ``push_out_of_rect`` is the
cheaper four-slot heuristic used while dragging without a mask.
"""

import logging
import math
from enum import Enum
from typing import Iterator, Optional, Sequence

import numpy as np

from placement.constraints.mask import Mask
from placement.constraints.predicates import (
    DEFAULT_MASK_STRIDE_PX,
    PlacementConstraints,
    rect_contains,
)
from placement.geometry.schema import Point, Rect, Size

logger = logging.getLogger(__name__)

DEFAULT_STEP_PX = 4
DEFAULT_MAX_RADIUS_PX = 640
MIN_STEP_PX = 1
MAX_STEP_PX = 64
MAX_RADIUS_LIMIT_PX = 4096
MIN_BOX_PX = 1.0


class PushOutSide(str, Enum):
    """Slot adjacent to an obstacle's side."""

    ABOVE = "above"
    BELOW = "below"
    LEFT = "left"
    RIGHT = "right"


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def search_box(aabb: Rect) -> Rect:
    """``aabb`` with each side raised to at least one pixel, as the search sees it."""
    return Rect(
        x=aabb.x,
        y=aabb.y,
        width=max(MIN_BOX_PX, aabb.width),
        height=max(MIN_BOX_PX, aabb.height),
    )


def ring_offsets(k: int) -> Iterator[tuple[int, int]]:
    """Grid offsets on the k-th ring, in grid units.

    The ring is the annulus ``(k-1)^2 < i^2 + j^2 <= k^2``. Offsets are
    generated by ascending ``i``, then ascending ``|j|`` with the positive
    ``j`` first. Every grid point of the disc of radius ``k`` belongs to
    exactly one ring.

    Args:
        k: Ring index, starting at 1.

    Yields:
        ``(i, j)`` offsets.
    """
    inner = (k - 1) * (k - 1)
    outer = k * k
    for i in range(-k, k + 1):
        hi = outer - i * i
        lo = inner - i * i
        j_max = math.isqrt(hi)
        j_min = 0 if lo < 0 else math.isqrt(lo) + 1
        for j in range(j_min, j_max + 1):
            yield i, j
            if j:
                yield i, -j


def find_nearest_valid_top_left(
    cur_top_left: Point,
    box_size: Size,
    allowed_rect: Rect,
    image_rect: Optional[Rect] = None,
    mask: Optional[Mask] = None,
    obstacles: Optional[Sequence[Rect]] = None,
    step_px: int = DEFAULT_STEP_PX,
    max_radius_px: int = DEFAULT_MAX_RADIUS_PX,
    mask_stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> Optional[Point]:
    """Find the nearest top-left where a box satisfies every placement rule.

    Candidates are grid positions around ``cur_top_left``, visited ring by
    ring. Each candidate is clamped into ``allowed_rect`` before it is
    tested. Within a ring the closest valid candidate wins; ties go to the
    smaller ``|dx|``, then the smaller ``|dy|``, then generation order.

    Args:
        cur_top_left: Current top-left of the box.
        box_size: Box width/height; sizes below 1px are raised to 1px.
        allowed_rect: Region the box must stay inside.
        image_rect: Background image rect.
        mask: Silhouette mask over ``image_rect``.
        obstacles: Boxes to avoid, already padded.
        step_px: Grid resolution, clamped to 1..64.
        max_radius_px: Search bound, clamped to step..4096.
        mask_stride_px: Mask sampling stride.

    Returns:
        The current position if it is already valid, the nearest valid
        position, or None when nothing valid exists within the bound.
    """
    w = max(MIN_BOX_PX, box_size.width)
    h = max(MIN_BOX_PX, box_size.height)

    if allowed_rect.is_empty:
        return None
    if w > allowed_rect.width or h > allowed_rect.height:
        logger.warning(
            f"Box {w:g}x{h:g} cannot fit allowed rect "
            f"{allowed_rect.width:g}x{allowed_rect.height:g}"
        )
        return None

    constraints = PlacementConstraints(
        allowed_rect=allowed_rect,
        image_rect=image_rect,
        mask=mask,
        obstacles=tuple(obstacles or ()),
        mask_stride_px=mask_stride_px,
    )

    cur = cur_top_left
    if constraints.is_valid_at(cur.x, cur.y, w, h):
        return cur

    step = int(_clamp(math.floor(step_px), MIN_STEP_PX, MAX_STEP_PX))
    max_radius = int(_clamp(math.floor(max_radius_px), step, MAX_RADIUS_LIMIT_PX))

    max_x = allowed_rect.right - w
    max_y = allowed_rect.bottom - h
    mask_tested: set[tuple[float, float]] = set()

    for k in range(1, max_radius // step + 1):
        offsets = np.array(list(ring_offsets(k)), dtype=float)
        xs = np.clip(cur.x + offsets[:, 0] * step, allowed_rect.x, max_x)
        ys = np.clip(cur.y + offsets[:, 1] * step, allowed_rect.y, max_y)

        candidates = np.flatnonzero(constraints.geometry_ok(xs, ys, w, h))
        if not len(candidates):
            continue

        dx = xs[candidates] - cur.x
        dy = ys[candidates] - cur.y
        # Generation order breaks full ties.
        ranked = candidates[np.lexsort((candidates, np.abs(dy), np.abs(dx), dx * dx + dy * dy))]

        for c in ranked:
            x = float(xs[c])
            y = float(ys[c])
            if (x, y) in mask_tested:
                continue
            mask_tested.add((x, y))
            if not constraints.touches_mask_at(x, y, w, h):
                return Point(x=x, y=y)

    logger.debug(
        f"No valid position within {max_radius}px of ({cur.x:g}, {cur.y:g}) for {w:g}x{h:g} box"
    )
    return None


def push_out_of_rect(
    aabb: Rect,
    obstacle: Rect,
    allowed_rect: Optional[Rect] = None,
    prefer: PushOutSide = PushOutSide.RIGHT,
) -> Point:
    """Move a box to the nearest slot beside an obstacle.

    The four slots sit flush against the obstacle's top, bottom, left and
    right sides. Slots that fit ``allowed_rect`` are preferred when any do.
    The nearest slot by Euclidean distance wins; on a tie the ``prefer``
    side wins.

    Args:
        aabb: Box to move.
        obstacle: Rect to clear.
        allowed_rect: Optional region the slot should fit in.
        prefer: Side that wins distance ties.

    Returns:
        New top-left for the box.
    """
    slots = {
        PushOutSide.ABOVE: Point(x=aabb.x, y=obstacle.y - aabb.height),
        PushOutSide.BELOW: Point(x=aabb.x, y=obstacle.bottom),
        PushOutSide.LEFT: Point(x=obstacle.x - aabb.width, y=aabb.y),
        PushOutSide.RIGHT: Point(x=obstacle.right, y=aabb.y),
    }

    candidates = list(slots.items())
    if allowed_rect is not None:
        fitting = [
            (side, p)
            for side, p in candidates
            if rect_contains(allowed_rect, aabb.translated_to(p.x, p.y))
        ]
        if fitting:
            candidates = fitting

    origin = aabb.top_left
    side, point = min(
        candidates,
        key=lambda item: (origin.distance_to(item[1]), item[0] != prefer),
    )
    logger.debug(f"Pushed box out {side.value} to ({point.x:g}, {point.y:g})")
    return point
