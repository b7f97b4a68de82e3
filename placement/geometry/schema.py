"""Pydantic v2 models for slide geometry.

This module defines the value types shared by the placement solver and its
callers. All measurements are in canvas pixels with a top-left origin. Values
are floats because live canvas objects report near-integer positions after
scaling; the solver itself works on an integer step grid.
"""

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from placement.constraints.mask import Mask


# ============================================================================
# Geometry Models
# ============================================================================


class Point(BaseModel):
    """A top-left position on the canvas."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(description="Left position in pixels")
    y: float = Field(description="Top position in pixels")

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


class Rect(BaseModel):
    """Axis-aligned rectangle (AABB) in canvas pixels.

    Zero or negative sizes are accepted and describe an empty rectangle.
    Empty rectangles never block anything and contain nothing.
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(description="Left position in pixels")
    y: float = Field(description="Top position in pixels")
    width: float = Field(description="Width in pixels")
    height: float = Field(description="Height in pixels")

    @property
    def right(self) -> float:
        """Right edge position."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge position."""
        return self.y + self.height

    @property
    def center_x(self) -> float:
        """Horizontal center."""
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        """Vertical center."""
        return self.y + self.height / 2

    @property
    def is_empty(self) -> bool:
        """True when the rect has no area."""
        return self.width <= 0 or self.height <= 0

    @property
    def top_left(self) -> Point:
        return Point(x=self.x, y=self.y)

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rect":
        """Build a rect from its four edges."""
        return cls(x=left, y=top, width=right - left, height=bottom - top)

    def translated_to(self, x: float, y: float) -> "Rect":
        """Same size, new top-left."""
        return Rect(x=x, y=y, width=self.width, height=self.height)

    def inflated(self, pad: float) -> "Rect":
        """Grow the rect by ``pad`` on every side."""
        if self.is_empty:
            return self
        return Rect(
            x=self.x - pad,
            y=self.y - pad,
            width=self.width + 2 * pad,
            height=self.height + 2 * pad,
        )

    def inset(self, pad: float) -> "Rect":
        """Shrink the rect by ``pad`` on every side."""
        return Rect(
            x=self.x + pad,
            y=self.y + pad,
            width=self.width - 2 * pad,
            height=self.height - 2 * pad,
        )

    def intersection(self, other: "Rect") -> Optional["Rect"]:
        """Overlapping region of two rects, or None when they do not overlap."""
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return Rect.from_edges(left, top, right, bottom)


class Size(BaseModel):
    """Box dimensions."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(description="Width in pixels")
    height: float = Field(description="Height in pixels")


# ============================================================================
# Text Models
# ============================================================================


class TextItem(BaseModel):
    """A user text line as seen by the solver."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier, stable across renders")
    aabb: Rect = Field(description="Current bounding box")
    is_editing: bool = Field(
        default=False,
        description="Receiving direct text input; never auto-moved but still blocks others",
    )


class PositionUpdate(BaseModel):
    """Accepted move/resize, emitted for downstream saving."""

    model_config = ConfigDict(frozen=True)

    id: str
    x: float
    y: float
    max_width: float = Field(ge=0, description="Wrapping width of the text box")


# ============================================================================
# Wire Models
# ============================================================================


class MaskPayload(BaseModel):
    """Silhouette mask as delivered by the mask producer.

    ``data`` is base64 of ``width * height`` bytes, row-major,
    0 = walkable, non-zero = blocked.
    """

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    data: str = Field(description="Base64 encoded mask bytes")

    def decode(self) -> Optional["Mask"]:
        """Decode into a Mask, or None when the payload is malformed."""
        # Imported here: the constraints package imports this module.
        from placement.constraints.mask import Mask

        return Mask.from_base64(self.width, self.height, self.data)


class LayoutSnapshot(BaseModel):
    """Everything the solver needs for one slide, as loaded from JSON."""

    model_config = ConfigDict(frozen=True)

    allowed_rect: Rect
    image_rect: Optional[Rect] = None
    mask: Optional[MaskPayload] = None
    items: list[TextItem] = Field(default_factory=list)
