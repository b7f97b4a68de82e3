"""
overlay.py — Debug overlay for placement diagnostics.

Draws the allowed rect, the image rect, the silhouette mask and every text
box onto a transparent canvas so developers can see why a line was moved.
It never computes positions; it only paints what the solver was given.
"""

from typing import Iterable, Optional

import numpy as np
from PIL import Image, ImageDraw

from placement.constraints.mask import Mask
from placement.geometry.schema import Rect, TextItem


# =============================================================================
# COLORS
# =============================================================================

ALLOWED_COLOR = (34, 197, 94, 255)
IMAGE_COLOR = (59, 130, 246, 255)
MASK_TINT = (239, 68, 68, 96)
TEXT_COLOR = (250, 204, 21, 255)
INVALID_COLOR = (220, 38, 38, 255)


def _box(rect: Rect) -> list[float]:
    return [rect.x, rect.y, rect.right - 1, rect.bottom - 1]


def render_mask_layer(
    canvas_size: tuple[int, int],
    image_rect: Rect,
    mask: Mask,
    tint: tuple[int, int, int, int] = MASK_TINT,
) -> Image.Image:
    """Paint solid mask pixels, stretched over ``image_rect``, in ``tint``."""
    layer = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
    width = int(round(image_rect.width))
    height = int(round(image_rect.height))
    if width <= 0 or height <= 0:
        return layer

    alpha = Image.fromarray(np.where(mask.pixels > 0, tint[3], 0).astype(np.uint8))
    alpha = alpha.resize((width, height), Image.Resampling.NEAREST)
    tinted = Image.new("RGBA", (width, height), tint[:3] + (0,))
    tinted.putalpha(alpha)
    layer.paste(tinted, (int(round(image_rect.x)), int(round(image_rect.y))))
    return layer


def render_debug_overlay(
    canvas_size: tuple[int, int],
    allowed_rect: Rect,
    image_rect: Optional[Rect] = None,
    mask: Optional[Mask] = None,
    items: Iterable[TextItem] = (),
    invalid_ids: Iterable[str] = (),
) -> Image.Image:
    """Render the solver inputs as an RGBA image.

    Args:
        canvas_size: ``(width, height)`` of the slide canvas.
        allowed_rect: Content region.
        image_rect: Background image rect.
        mask: Silhouette mask over ``image_rect``.
        items: Text boxes to outline.
        invalid_ids: Items to outline in the invalid color.

    Returns:
        Transparent RGBA image with the overlay.
    """
    overlay = Image.new("RGBA", canvas_size, (0, 0, 0, 0))

    if image_rect is not None and mask is not None:
        overlay = Image.alpha_composite(overlay, render_mask_layer(canvas_size, image_rect, mask))

    draw = ImageDraw.Draw(overlay)
    if not allowed_rect.is_empty:
        draw.rectangle(_box(allowed_rect), outline=ALLOWED_COLOR, width=1)
    if image_rect is not None and not image_rect.is_empty:
        draw.rectangle(_box(image_rect), outline=IMAGE_COLOR, width=1)

    invalid = set(invalid_ids)
    for item in items:
        if item.aabb.is_empty:
            continue
        color = INVALID_COLOR if item.id in invalid else TEXT_COLOR
        draw.rectangle(_box(item.aabb), outline=color, width=2 if item.id in invalid else 1)

    return overlay
