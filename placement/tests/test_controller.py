"""Tests for the interaction controller."""

import pytest

from placement.config import PlacementSettings
from placement.constraints.mask import Mask
from placement.constraints.nearest_valid import PushOutSide
from placement.constraints.predicates import aabb_intersects_mask
from placement.controller.interaction import (
    EditState,
    PlacementController,
    SkipEnforcementToken,
)
from placement.geometry.schema import Point, PositionUpdate, Rect, TextItem


IMAGE_RECT = Rect(x=50, y=50, width=200, height=200)
MASKED_IMAGE_RECT = Rect(x=0, y=0, width=500, height=500)


def _item(item_id: str, x: float, y: float, w: float = 100, h: float = 30) -> TextItem:
    return TextItem(id=item_id, aabb=Rect(x=x, y=y, width=w, height=h))


@pytest.fixture
def controller_for(allowed_rect, settings, committed):
    """Build a controller around a surface."""

    def build(surface, **kwargs) -> PlacementController:
        return PlacementController(
            surface,
            allowed_rect,
            settings=settings,
            on_position_committed=committed.append,
            **kwargs,
        )

    return build


# ============================================================================
# Token Tests
# ============================================================================

class TestSkipEnforcementToken:
    """Tests for the one-shot skip token."""

    def test_consumed_once(self) -> None:
        """Test the token grants exactly one skip."""
        token = SkipEnforcementToken()
        assert not token.used
        assert token.consume()
        assert token.used
        assert not token.consume()


# ============================================================================
# Drag Tests
# ============================================================================

class TestDrag:
    """Tests for live drag handling."""

    def test_clamped_into_allowed(self, make_surface, controller_for) -> None:
        """Test a drag past the edge is held inside the allowed rect."""
        surface = make_surface([_item("a", 10, 10, w=40, h=40)])
        controller = controller_for(surface)
        controller.begin_drag("a")

        update = controller.drag_to("a", Point(x=-50, y=2000))

        assert update.top_left == Point(x=0, y=960)
        assert surface.items["a"].aabb.top_left == Point(x=0, y=960)
        assert controller.state_of("a") == EditState.DRAGGING

    def test_mask_allows_transient_overlap(self, make_surface, controller_for, block_mask: Mask) -> None:
        """Test a drag onto the silhouette is flagged but not moved."""
        surface = make_surface([_item("a", 0, 0, w=40, h=20)], MASKED_IMAGE_RECT, block_mask)
        controller = controller_for(surface)
        controller.begin_drag("a")

        update = controller.drag_to("a", Point(x=200, y=200))

        assert update.top_left == Point(x=200, y=200)
        assert update.invalid
        assert surface.invalid["a"] is True

    def test_push_out_without_mask(self, make_surface, controller_for) -> None:
        """Test a drag onto the image is pushed out, favouring the right side."""
        surface = make_surface([_item("a", 0, 0, w=100, h=40)], IMAGE_RECT)
        controller = controller_for(surface)
        controller.begin_drag("a")

        update = controller.drag_to("a", Point(x=150, y=150))

        assert update.top_left == Point(x=250, y=150)
        assert not update.invalid

    def test_push_out_preference(self, make_surface, controller_for) -> None:
        """Test the push-out tie-break is configurable."""
        surface = make_surface([_item("a", 0, 0, w=100, h=40)], IMAGE_RECT)
        controller = controller_for(surface, push_out_preference=PushOutSide.BELOW)

        update = controller.drag_to("a", Point(x=150, y=150))

        assert update.top_left == Point(x=150, y=250)

    def test_locked_layout_does_not_push(self, make_surface, controller_for) -> None:
        """Test layout lock disables push-out."""
        surface = make_surface([_item("a", 0, 0, w=100, h=40)], IMAGE_RECT)
        controller = controller_for(surface, layout_locked=True)

        update = controller.drag_to("a", Point(x=150, y=150))

        assert update.top_left == Point(x=150, y=150)
        assert update.invalid

    def test_reports_alignment_guide(self, make_surface, controller_for) -> None:
        """Test a guide is reported when edges line up."""
        surface = make_surface([_item("a", 0, 0), _item("b", 100, 500)])
        controller = controller_for(surface)

        update = controller.drag_to("a", Point(x=104, y=300))

        assert update.guide is not None
        assert update.guide.x == 100

    def test_unknown_item(self, make_surface, controller_for) -> None:
        """Test dragging an unknown id fails loudly."""
        controller = controller_for(make_surface([]))
        with pytest.raises(KeyError):
            controller.drag_to("missing", Point(x=0, y=0))


# ============================================================================
# Release Tests
# ============================================================================

class TestRelease:
    """Tests for pointer release."""

    def test_invalid_release_snaps(
        self, make_surface, controller_for, block_mask: Mask, committed: list[PositionUpdate]
    ) -> None:
        """Test releasing on the silhouette snaps to a valid spot."""
        surface = make_surface([_item("a", 0, 0, w=40, h=20)], MASKED_IMAGE_RECT, block_mask)
        controller = controller_for(surface)
        controller.begin_drag("a")
        controller.drag_to("a", Point(x=200, y=200))

        result = controller.release("a")

        assert result.snapped
        assert not result.still_invalid
        box = surface.items["a"].aabb
        assert box.top_left == result.top_left
        assert not aabb_intersects_mask(box, MASKED_IMAGE_RECT, block_mask)
        assert surface.invalid["a"] is False
        assert committed == [PositionUpdate(id="a", x=box.x, y=box.y, max_width=40)]
        assert controller.state_of("a") == EditState.IDLE

    def test_valid_release_keeps_position(
        self, make_surface, controller_for, committed: list[PositionUpdate]
    ) -> None:
        """Test a valid release is committed unchanged."""
        surface = make_surface([_item("a", 10, 10)])
        controller = controller_for(surface)

        result = controller.release("a")

        assert not result.snapped
        assert result.top_left == Point(x=10, y=10)
        assert surface.moves == []
        assert committed == [PositionUpdate(id="a", x=10, y=10, max_width=100)]

    def test_release_overlapping_text_snaps_clear(self, make_surface, controller_for) -> None:
        """Test a release on top of another line moves clear of it."""
        surface = make_surface([_item("a", 10, 10), _item("b", 10, 10)])
        controller = controller_for(surface)

        result = controller.release("b")

        assert result.top_left == Point(x=10, y=42)

    def test_locked_release_left_invalid(self, make_surface, controller_for) -> None:
        """Test layout lock leaves an invalid release flagged in place."""
        surface = make_surface([_item("a", 150, 150)], IMAGE_RECT)
        controller = controller_for(surface, layout_locked=True)

        result = controller.release("a")

        assert result.still_invalid
        assert not result.snapped
        assert surface.invalid["a"] is True


# ============================================================================
# Reflow Tests
# ============================================================================

class TestReflow:
    """Tests for reflow enforcement."""

    def test_reflow_applies_moves(
        self, make_surface, controller_for, committed: list[PositionUpdate]
    ) -> None:
        """Test reflow moves overlapping lines and reports them."""
        surface = make_surface([_item("a", 10, 10), _item("b", 10, 10)])
        controller = controller_for(surface)

        results = controller.reflow()

        assert [r.moved for r in results] == [False, True]
        assert surface.moves == [("b", Point(x=10, y=42))]
        assert committed == [PositionUpdate(id="b", x=10, y=42, max_width=100)]
        assert surface.invalid == {"a": False, "b": False}

    def test_skip_token_suppresses_one_reflow(self, make_surface, controller_for) -> None:
        """Test a committed edit skips exactly the next enforcement."""
        surface = make_surface([_item("a", 10, 10), _item("b", 10, 10), _item("c", 500, 500)])
        controller = controller_for(surface)
        token = controller.release("c").skip_token

        assert controller.reflow(skip_token=token) == []
        assert surface.moves == []

        results = controller.reflow(skip_token=token)
        assert any(r.moved for r in results)

    def test_skip_token_spent_while_locked(self, make_surface, controller_for) -> None:
        """Test a token handed to a locked reflow does not skip a later one."""
        surface = make_surface([_item("a", 10, 10), _item("b", 10, 10), _item("c", 500, 500)])
        controller = controller_for(surface, layout_locked=True)
        token = controller.release("c").skip_token

        assert controller.reflow(skip_token=token) == []
        assert token.used

        controller.layout_locked = False
        results = controller.reflow(skip_token=token)
        assert results[1].moved
        assert surface.moves == [("b", Point(x=10, y=42))]

    def test_editing_item_untouched(self, make_surface, controller_for) -> None:
        """Test an item being edited is never moved but blocks others."""
        surface = make_surface([_item("b", 10, 10), _item("a", 10, 10)])
        controller = controller_for(surface)
        controller.begin_editing("a")

        controller.reflow()

        assert surface.moves == [("b", Point(x=10, y=42))]
        assert "a" not in surface.invalid

        controller.end_editing("a")
        assert controller.state_of("a") == EditState.IDLE

    def test_still_invalid_flagged(self, make_surface, settings: PlacementSettings) -> None:
        """Test items with no valid position are highlighted."""
        surface = make_surface([_item("a", 0, 0, w=50, h=50)])
        controller = PlacementController(surface, Rect(x=0, y=0, width=40, height=40), settings=settings)

        results = controller.reflow()

        assert results[0].still_invalid
        assert surface.invalid["a"] is True
        assert surface.moves == []

    def test_locked_layout_skips_reflow_but_realigns(self, make_surface, controller_for) -> None:
        """Test layout lock disables reflow while realign still runs."""
        surface = make_surface([_item("a", 10, 10), _item("b", 10, 10)])
        controller = controller_for(surface, layout_locked=True)

        assert controller.reflow() == []
        assert surface.moves == []

        results = controller.realign()
        assert results[1].moved
        assert surface.moves == [("b", Point(x=10, y=42))]


class TestContentRegion:
    """Tests for building the allowed rect from the content region."""

    def test_padding_applied(self, make_surface, settings: PlacementSettings) -> None:
        """Test the allowed rect is the content rect inset by the padding."""
        controller = PlacementController.for_content_region(
            make_surface([]), Rect(x=0, y=0, width=1080, height=1350), settings=settings
        )
        assert controller.allowed_rect == Rect(x=40, y=40, width=1000, height=1270)
