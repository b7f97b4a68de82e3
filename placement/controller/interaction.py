"""
interaction.py — Maps editor events onto the placement solver.

The controller is the only place where solver results are written back to
the rendering surface:

1. While dragging, the live position is clamped into the allowed rect.
   With a silhouette mask the box may cross the subject and is only flagged
   invalid; without one it is pushed out of the image rect immediately.
2. On release, an invalid box is snapped once to the nearest valid spot.
3. On every reflow the sequential enforcer runs over all idle items, unless
   the caller hands back the one-shot token from the last release or the
   layout is locked.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol

from placement.config import PlacementSettings, get_settings
from placement.constraints.engine import EnforceResult, enforce_text_invariants
from placement.constraints.mask import Mask
from placement.constraints.nearest_valid import (
    PushOutSide,
    find_nearest_valid_top_left,
    push_out_of_rect,
    search_box,
)
from placement.constraints.predicates import (
    PlacementConstraints,
    is_blocked_by_image,
    rects_overlap_aabb,
)
from placement.constraints.snapping import HorizontalGuide, find_horizontal_guide
from placement.geometry.schema import Point, PositionUpdate, Rect, Size, TextItem

logger = logging.getLogger(__name__)


class EditState(str, Enum):
    """Interaction state of a text item."""

    IDLE = "idle"
    DRAGGING = "dragging"
    EDITING = "editing"


class RenderingSurface(Protocol):
    """What the controller needs from the canvas."""

    def get_text_items(self) -> list[TextItem]:
        """Current text boxes, in enforcement order."""
        ...

    def get_image_rect(self) -> Optional[Rect]:
        """Axis-aligned bounds of the background image."""
        ...

    def get_mask(self) -> Optional[Mask]:
        """Silhouette mask anchored to the image rect."""
        ...

    def set_top_left(self, item_id: str, top_left: Point) -> None:
        ...

    def set_invalid(self, item_id: str, invalid: bool) -> None:
        """Show or clear the invalid highlight."""
        ...


@dataclass
class SkipEnforcementToken:
    """One-shot permission to skip the next reflow enforcement."""

    _used: bool = field(default=False, repr=False)

    @property
    def used(self) -> bool:
        return self._used

    def consume(self) -> bool:
        """Return True the first time only."""
        if self._used:
            return False
        self._used = True
        return True


@dataclass
class DragUpdate:
    """Result of a pointer move."""

    top_left: Point
    invalid: bool
    guide: Optional[HorizontalGuide] = None


@dataclass
class ReleaseResult:
    """Result of a pointer release."""

    top_left: Point
    snapped: bool
    still_invalid: bool
    skip_token: SkipEnforcementToken


class PlacementController:
    """Applies placement rules to a rendering surface."""

    def __init__(
        self,
        surface: RenderingSurface,
        allowed_rect: Rect,
        settings: Optional[PlacementSettings] = None,
        on_position_committed: Optional[Callable[[PositionUpdate], None]] = None,
        layout_locked: bool = False,
        max_passes: int = 1,
        push_out_preference: PushOutSide = PushOutSide.RIGHT,
    ) -> None:
        """Initialize the controller.

        Args:
            surface: Canvas adapter.
            allowed_rect: Content region text must stay inside.
            settings: Solver settings; defaults to the cached environment settings.
            on_position_committed: Receives every accepted move/resize.
            layout_locked: Start with automatic repositioning disabled.
            max_passes: Sweeps per reflow.
            push_out_preference: Side that wins push-out ties.
        """
        self.surface = surface
        self.allowed_rect = allowed_rect
        self.settings = settings or get_settings()
        self.on_position_committed = on_position_committed
        self.layout_locked = layout_locked
        self.max_passes = max_passes
        self.push_out_preference = push_out_preference
        self._states: dict[str, EditState] = {}

    @classmethod
    def for_content_region(
        cls,
        surface: RenderingSurface,
        content_rect: Rect,
        settings: Optional[PlacementSettings] = None,
        **kwargs,
    ) -> "PlacementController":
        """Build a controller whose allowed rect is the padded content region."""
        settings = settings or get_settings()
        allowed = content_rect.inset(settings.content_padding_px)
        return cls(surface, allowed, settings=settings, **kwargs)

    # ------------------------------------------------------------------
    # Edit state
    # ------------------------------------------------------------------

    def state_of(self, item_id: str) -> EditState:
        return self._states.get(item_id, EditState.IDLE)

    def begin_editing(self, item_id: str) -> None:
        """Mark an item as receiving text input; it will not be auto-moved."""
        self._states[item_id] = EditState.EDITING

    def end_editing(self, item_id: str) -> None:
        self._states.pop(item_id, None)

    def begin_drag(self, item_id: str) -> None:
        self._states[item_id] = EditState.DRAGGING

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def drag_to(self, item_id: str, top_left: Point) -> DragUpdate:
        """Apply a live drag position.

        Args:
            item_id: Item being dragged.
            top_left: Proposed top-left from the pointer.

        Returns:
            The applied position, invalid flag and any alignment guide.
        """
        items = self._snapshot_items()
        item = self._find(items, item_id)
        box = self._clamp_into_allowed(item.aabb.translated_to(top_left.x, top_left.y))

        image_rect = self.surface.get_image_rect()
        mask = self.surface.get_mask()
        stride = self.settings.mask_sample_stride_px

        if mask is not None or image_rect is None:
            invalid = is_blocked_by_image(box, image_rect, mask, stride)
        elif self.layout_locked or not rects_overlap_aabb(box, image_rect):
            invalid = rects_overlap_aabb(box, image_rect)
        else:
            pushed = push_out_of_rect(
                box, image_rect, self.allowed_rect, prefer=self.push_out_preference
            )
            box = self._clamp_into_allowed(box.translated_to(pushed.x, pushed.y))
            invalid = rects_overlap_aabb(box, image_rect)

        others = [other.aabb for other in items if other.id != item_id]
        guide = find_horizontal_guide(box, others, self.settings.guide_threshold_px)

        self.surface.set_top_left(item_id, box.top_left)
        self.surface.set_invalid(item_id, invalid)
        return DragUpdate(top_left=box.top_left, invalid=invalid, guide=guide)

    def release(self, item_id: str) -> ReleaseResult:
        """Commit a drag or resize.

        An invalid box is snapped once to the nearest valid position. The
        returned token suppresses the enforcement of the next reflow so the
        deliberate edit does not shift the rest of the layout.

        Args:
            item_id: Released item.

        Returns:
            ReleaseResult with the final position.
        """
        self._states.pop(item_id, None)
        items = self._snapshot_items()
        item = self._find(items, item_id)
        box = item.aabb

        image_rect = self.surface.get_image_rect()
        mask = self.surface.get_mask()
        pad = self.settings.text_padding_px
        obstacles = [other.aabb.inflated(pad) for other in items if other.id != item_id]
        constraints = PlacementConstraints(
            allowed_rect=self.allowed_rect,
            image_rect=image_rect,
            mask=mask,
            obstacles=tuple(obstacles),
            mask_stride_px=self.settings.mask_sample_stride_px,
        )

        snapped = False
        still_invalid = False
        if not constraints.is_valid(search_box(box)):
            target = None
            if not self.layout_locked:
                target = find_nearest_valid_top_left(
                    cur_top_left=box.top_left,
                    box_size=Size(width=box.width, height=box.height),
                    allowed_rect=self.allowed_rect,
                    image_rect=image_rect,
                    mask=mask,
                    obstacles=obstacles,
                    step_px=self.settings.step_px,
                    max_radius_px=self.settings.max_radius_px,
                    mask_stride_px=self.settings.mask_sample_stride_px,
                )
            if target is None:
                still_invalid = True
            else:
                box = box.translated_to(target.x, target.y)
                snapped = True
                self.surface.set_top_left(item_id, target)

        self.surface.set_invalid(item_id, still_invalid)
        self._emit(item_id, box)
        return ReleaseResult(
            top_left=box.top_left,
            snapped=snapped,
            still_invalid=still_invalid,
            skip_token=SkipEnforcementToken(),
        )

    # ------------------------------------------------------------------
    # Reflow
    # ------------------------------------------------------------------

    def reflow(self, skip_token: Optional[SkipEnforcementToken] = None) -> list[EnforceResult]:
        """Run enforcement after fonts, images or templates change.

        Args:
            skip_token: Token from the last release; an unused token skips
                this enforcement pass once. It is spent even while the
                layout is locked.

        Returns:
            Enforcement results, empty when the pass was skipped.
        """
        skip = skip_token is not None and skip_token.consume()
        if self.layout_locked:
            logger.debug("Layout locked, skipping reflow enforcement")
            return []
        if skip:
            logger.debug("Skipping reflow enforcement after a committed edit")
            return []
        return self._enforce()

    def realign(self) -> list[EnforceResult]:
        """User-triggered realign; runs even while the layout is locked."""
        return self._enforce()

    def _enforce(self) -> list[EnforceResult]:
        items = self._snapshot_items()
        results = enforce_text_invariants(
            items,
            self.allowed_rect,
            self.surface.get_image_rect(),
            self.surface.get_mask(),
            max_passes=self.max_passes,
            step_px=self.settings.step_px,
            max_radius_px=self.settings.max_radius_px,
            text_padding_px=self.settings.text_padding_px,
            move_epsilon_px=self.settings.move_epsilon_px,
            mask_stride_px=self.settings.mask_sample_stride_px,
        )

        by_id = {item.id: item for item in items}
        for result in results:
            item = by_id[result.id]
            if item.is_editing:
                continue
            if result.moved:
                self.surface.set_top_left(result.id, result.new_top_left)
                self._emit(result.id, item.aabb.translated_to(result.new_top_left.x, result.new_top_left.y))
            self.surface.set_invalid(result.id, result.still_invalid)

        moved = [r.id for r in results if r.moved]
        if moved:
            logger.info(f"Repositioned {len(moved)} text item(s): {', '.join(moved)}")
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot_items(self) -> list[TextItem]:
        """Surface items with controller edit state folded into ``is_editing``."""
        items = []
        for item in self.surface.get_text_items():
            held = self.state_of(item.id) != EditState.IDLE
            if held and not item.is_editing:
                item = item.model_copy(update={"is_editing": True})
            items.append(item)
        return items

    def _find(self, items: list[TextItem], item_id: str) -> TextItem:
        for item in items:
            if item.id == item_id:
                return item
        raise KeyError(f"Unknown text item: {item_id}")

    def _clamp_into_allowed(self, box: Rect) -> Rect:
        allowed = self.allowed_rect
        x = max(allowed.x, min(box.x, allowed.right - box.width))
        y = max(allowed.y, min(box.y, allowed.bottom - box.height))
        return box.translated_to(x, y)

    def _emit(self, item_id: str, box: Rect) -> None:
        if self.on_position_committed is None:
            return
        self.on_position_committed(
            PositionUpdate(id=item_id, x=box.x, y=box.y, max_width=max(0.0, box.width))
        )
