"""Pytest configuration and fixtures."""

from typing import Optional

import numpy as np
import pytest

from placement.config import PlacementSettings
from placement.constraints.mask import Mask
from placement.geometry.schema import Point, PositionUpdate, Rect, TextItem


class FakeSurface:
    """In-memory rendering surface recording every write."""

    def __init__(
        self,
        items: list[TextItem],
        image_rect: Optional[Rect] = None,
        mask: Optional[Mask] = None,
    ) -> None:
        self.items = {item.id: item for item in items}
        self.order = [item.id for item in items]
        self.image_rect = image_rect
        self.mask = mask
        self.invalid: dict[str, bool] = {}
        self.moves: list[tuple[str, Point]] = []

    def get_text_items(self) -> list[TextItem]:
        return [self.items[item_id] for item_id in self.order]

    def get_image_rect(self) -> Optional[Rect]:
        return self.image_rect

    def get_mask(self) -> Optional[Mask]:
        return self.mask

    def set_top_left(self, item_id: str, top_left: Point) -> None:
        item = self.items[item_id]
        self.items[item_id] = item.model_copy(
            update={"aabb": item.aabb.translated_to(top_left.x, top_left.y)}
        )
        self.moves.append((item_id, top_left))

    def set_invalid(self, item_id: str, invalid: bool) -> None:
        self.invalid[item_id] = invalid

    def place(self, item_id: str, x: float, y: float) -> None:
        """Move an item without recording it, as a user resize would."""
        item = self.items[item_id]
        self.items[item_id] = item.model_copy(update={"aabb": item.aabb.translated_to(x, y)})


@pytest.fixture
def allowed_rect() -> Rect:
    """A 1000x1000 content region at the origin."""
    return Rect(x=0, y=0, width=1000, height=1000)


@pytest.fixture
def block_mask() -> Mask:
    """50x50 mask with a solid 20x20 block in the middle."""
    pixels = np.zeros((50, 50), dtype=np.uint8)
    pixels[15:35, 15:35] = 255
    return Mask.from_bytes(50, 50, pixels.tobytes())


@pytest.fixture
def settings() -> PlacementSettings:
    """Default settings, independent of the environment."""
    return PlacementSettings(_env_file=None)


@pytest.fixture
def committed() -> list[PositionUpdate]:
    """Collects position updates sent to persistence."""
    return []


@pytest.fixture
def make_surface():
    """Factory for FakeSurface instances."""
    return FakeSurface
