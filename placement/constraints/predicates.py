"""Validity predicates for text placement.

Three rules decide whether a text box may sit at a position:

1. it lies inside the allowed content rect;
2. it does not touch the background subject's silhouette (or, without a
   mask, the image rect itself);
3. it does not overlap any other text box.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Optional, Sequence

import numpy as np

from placement.constraints.mask import Mask
from placement.geometry.schema import Rect


DEFAULT_MASK_STRIDE_PX = 4


class ViolationKind(str, Enum):
    """Which placement rule a box breaks."""

    BOUNDS = "bounds"
    SILHOUETTE = "silhouette"
    OVERLAP = "overlap"


def rects_overlap_aabb(a: Rect, b: Rect) -> bool:
    """Check if two rects overlap on half-open intervals.

    Touching edges and empty rects never count as overlap.

    Args:
        a: First rect.
        b: Second rect.

    Returns:
        True if they overlap.
    """
    if a.is_empty or b.is_empty:
        return False
    return a.x < b.right and a.right > b.x and a.y < b.bottom and a.bottom > b.y


def rect_contains(outer: Rect, inner: Rect) -> bool:
    """Check that ``inner`` lies fully inside ``outer``."""
    if outer.is_empty:
        return False
    return (
        inner.x >= outer.x
        and inner.y >= outer.y
        and inner.right <= outer.right
        and inner.bottom <= outer.bottom
    )


def _sample_indices(start: int, stop: int, stride: int) -> np.ndarray:
    """Stride samples over [start, stop), always including the last index."""
    indices = np.arange(start, stop, stride)
    if indices[-1] != stop - 1:
        indices = np.append(indices, stop - 1)
    return indices


def mask_region_is_solid(
    left: float,
    top: float,
    right: float,
    bottom: float,
    image_rect: Rect,
    mask: Mask,
    stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> bool:
    """Check a canvas region given by its edges against the mask.

    The region is clipped to ``image_rect`` and mapped into mask space by
    linear scaling. ``stride_px`` is a canvas distance; it is converted to
    mask pixels and never drops below one, so a coarse mask stretched over a
    large image is scanned pixel by pixel. The last row and column of the
    region are always sampled.
    """
    if image_rect.is_empty:
        return False
    left = max(left, image_rect.x)
    top = max(top, image_rect.y)
    right = min(right, image_rect.right)
    bottom = min(bottom, image_rect.bottom)
    if right <= left or bottom <= top:
        return False

    scale_x = mask.width / image_rect.width
    scale_y = mask.height / image_rect.height

    col0 = min(mask.width - 1, max(0, math.floor((left - image_rect.x) * scale_x)))
    col1 = min(mask.width, max(0, math.ceil((right - image_rect.x) * scale_x)))
    row0 = min(mask.height - 1, max(0, math.floor((top - image_rect.y) * scale_y)))
    row1 = min(mask.height, max(0, math.ceil((bottom - image_rect.y) * scale_y)))
    if col1 <= col0 or row1 <= row0:
        return False

    stride = max(1, int(stride_px * min(scale_x, scale_y)))
    rows = _sample_indices(row0, row1, stride)
    cols = _sample_indices(col0, col1, stride)
    return bool(mask.pixels[np.ix_(rows, cols)].any())


def aabb_intersects_mask(
    aabb: Rect,
    image_rect: Rect,
    mask: Mask,
    stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> bool:
    """Check whether a box touches solid mask pixels.

    The box is clipped to ``image_rect`` and the clipped region is mapped
    into mask space by linear scaling. Samples are taken every ``stride_px``
    canvas pixels (at least every mask pixel), plus the last row and column
    of the region.

    Args:
        aabb: Box in canvas coordinates.
        image_rect: Canvas rect the mask is stretched over.
        mask: Silhouette mask.
        stride_px: Sampling stride in canvas pixels.

    Returns:
        True if any sampled pixel is solid.
    """
    if aabb.is_empty:
        return False
    return mask_region_is_solid(
        aabb.x, aabb.y, aabb.right, aabb.bottom, image_rect, mask, stride_px
    )


def is_blocked_by_image(
    aabb: Rect,
    image_rect: Optional[Rect],
    mask: Optional[Mask],
    stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> bool:
    """Silhouette rule with rect fallback.

    Without a mask the whole image rect is treated as solid.
    """
    if image_rect is None:
        return False
    if mask is not None:
        return aabb_intersects_mask(aabb, image_rect, mask, stride_px)
    return rects_overlap_aabb(aabb, image_rect)


@dataclass(frozen=True, eq=False)
class PlacementConstraints:
    """Immutable bundle of everything a text box must respect.

    Attributes:
        allowed_rect: Content region, already inset by padding.
        image_rect: Background image rect in canvas coordinates.
        mask: Silhouette mask stretched over ``image_rect``.
        obstacles: Other text boxes, already inflated by the text padding.
        mask_stride_px: Mask sampling stride in canvas pixels.
    """

    allowed_rect: Rect
    image_rect: Optional[Rect] = None
    mask: Optional[Mask] = None
    obstacles: Sequence[Rect] = field(default_factory=tuple)
    mask_stride_px: int = DEFAULT_MASK_STRIDE_PX

    @cached_property
    def obstacle_edges(self) -> np.ndarray:
        """Non-empty obstacles as an ``(n, 4)`` array of left, top, right, bottom."""
        edges = [(r.x, r.y, r.right, r.bottom) for r in self.obstacles if not r.is_empty]
        return np.array(edges, dtype=float).reshape(-1, 4)

    def violations_at(self, box: Rect) -> list[ViolationKind]:
        """List every rule ``box`` breaks, in rule order."""
        violations = []
        if not rect_contains(self.allowed_rect, box):
            violations.append(ViolationKind.BOUNDS)
        if is_blocked_by_image(box, self.image_rect, self.mask, self.mask_stride_px):
            violations.append(ViolationKind.SILHOUETTE)
        if self.overlaps_obstacle(box):
            violations.append(ViolationKind.OVERLAP)
        return violations

    def overlaps_obstacle(self, box: Rect) -> bool:
        return any(rects_overlap_aabb(box, other) for other in self.obstacles)

    def geometry_ok(
        self, xs: np.ndarray, ys: np.ndarray, width: float, height: float
    ) -> np.ndarray:
        """Bounds, obstacle and rect-fallback checks for many top-lefts at once.

        The silhouette mask is not sampled here; see ``touches_mask_at``.

        Args:
            xs: Candidate left positions.
            ys: Candidate top positions.
            width: Box width.
            height: Box height.

        Returns:
            Boolean array, True where the box passes every non-mask rule.
        """
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        allowed = self.allowed_rect
        if allowed.is_empty:
            return np.zeros(xs.shape, dtype=bool)

        rights = xs + width
        bottoms = ys + height
        ok = (xs >= allowed.x) & (ys >= allowed.y) & (rights <= allowed.right) & (bottoms <= allowed.bottom)
        if width <= 0 or height <= 0:
            return ok

        edges = self.obstacle_edges
        if len(edges):
            hit = (
                (xs[:, None] < edges[:, 2])
                & (rights[:, None] > edges[:, 0])
                & (ys[:, None] < edges[:, 3])
                & (bottoms[:, None] > edges[:, 1])
            ).any(axis=1)
            ok &= ~hit

        image = self.image_rect
        if self.mask is None and image is not None and not image.is_empty:
            ok &= ~((xs < image.right) & (rights > image.x) & (ys < image.bottom) & (bottoms > image.y))
        return ok

    def touches_mask_at(self, x: float, y: float, width: float, height: float) -> bool:
        """Silhouette mask test for a single box; False without a mask."""
        if self.mask is None or self.image_rect is None or width <= 0 or height <= 0:
            return False
        return mask_region_is_solid(
            x, y, x + width, y + height, self.image_rect, self.mask, self.mask_stride_px
        )

    def is_valid_at(self, x: float, y: float, width: float, height: float) -> bool:
        """True when a box with this top-left and size satisfies all three rules."""
        if not self.geometry_ok(np.array([x]), np.array([y]), width, height)[0]:
            return False
        return not self.touches_mask_at(x, y, width, height)

    def is_valid(self, box: Rect) -> bool:
        """True when ``box`` satisfies all three rules."""
        return self.is_valid_at(box.x, box.y, box.width, box.height)
