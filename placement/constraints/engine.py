"""Constraint engine for enforcing text placement rules across a slide."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from placement.constraints.mask import Mask
from placement.constraints.nearest_valid import (
    DEFAULT_MAX_RADIUS_PX,
    DEFAULT_STEP_PX,
    find_nearest_valid_top_left,
    search_box,
)
from placement.constraints.predicates import (
    DEFAULT_MASK_STRIDE_PX,
    PlacementConstraints,
    ViolationKind,
    rects_overlap_aabb,
)
from placement.geometry.schema import Point, Rect, Size, TextItem

logger = logging.getLogger(__name__)

DEFAULT_TEXT_PADDING_PX = 2.0
DEFAULT_MOVE_EPSILON_PX = 0.5


@dataclass
class EnforceResult:
    """Outcome of enforcement for one text item."""

    id: str
    moved: bool = False
    new_top_left: Optional[Point] = None
    still_invalid: bool = False


@dataclass
class Violation:
    """Represents a placement rule violation."""

    rule: ViolationKind
    message: str
    item_ids: list[str]


@dataclass
class LayoutReport:
    """Result of layout validation."""

    violations: list[Violation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def invalid_ids(self) -> set[str]:
        """Ids of every item involved in a violation."""
        return {item_id for v in self.violations for item_id in v.item_ids}


def _is_settled(index: int, current: int, items: Sequence[TextItem]) -> bool:
    """Earlier items and editing items no longer move in this sweep."""
    return index < current or items[index].is_editing


def enforce_text_invariants_sequential(
    items: Sequence[TextItem],
    allowed_rect: Rect,
    image_rect: Optional[Rect] = None,
    mask: Optional[Mask] = None,
    step_px: int = DEFAULT_STEP_PX,
    max_radius_px: int = DEFAULT_MAX_RADIUS_PX,
    text_padding_px: float = DEFAULT_TEXT_PADDING_PX,
    move_epsilon_px: float = DEFAULT_MOVE_EPSILON_PX,
    mask_stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> list[EnforceResult]:
    """Resolve placement violations with a single ordered sweep.

    Items are visited in list order and never revisited. While item ``i``
    is processed, items before it are seen at their corrected position and
    items after it at their original position, so two items cannot keep
    chasing each other.

    An item is corrected when it leaves ``allowed_rect``, touches the
    silhouette, or overlaps a settled item (an earlier one, or one being
    edited). Overlap with a later movable item is left for that later item
    to resolve. Wherever an item is moved to, it clears every other item.

    Args:
        items: Text items in enforcement order.
        allowed_rect: Content region.
        image_rect: Background image rect.
        mask: Silhouette mask over ``image_rect``.
        step_px: Search grid resolution.
        max_radius_px: Search bound.
        text_padding_px: Gap kept between text boxes.
        move_epsilon_px: Smallest change reported as a move.
        mask_stride_px: Mask sampling stride.

    Returns:
        One result per item, in input order.
    """
    current = [item.aabb for item in items]
    results: list[EnforceResult] = []

    for i, item in enumerate(items):
        if item.is_editing:
            results.append(EnforceResult(id=item.id))
            continue

        aabb = current[i]
        padded = [
            (j, other.inflated(text_padding_px))
            for j, other in enumerate(current)
            if j != i
        ]
        settled = PlacementConstraints(
            allowed_rect=allowed_rect,
            image_rect=image_rect,
            mask=mask,
            obstacles=tuple(r for j, r in padded if _is_settled(j, i, items)),
            mask_stride_px=mask_stride_px,
        )
        if settled.is_valid(search_box(aabb)):
            results.append(EnforceResult(id=item.id))
            continue

        next_top_left = find_nearest_valid_top_left(
            cur_top_left=aabb.top_left,
            box_size=Size(width=aabb.width, height=aabb.height),
            allowed_rect=allowed_rect,
            image_rect=image_rect,
            mask=mask,
            obstacles=[r for _, r in padded],
            step_px=step_px,
            max_radius_px=max_radius_px,
            mask_stride_px=mask_stride_px,
        )

        if next_top_left is None:
            logger.info(f"Text item {item.id} has no valid position nearby")
            results.append(EnforceResult(id=item.id, still_invalid=True))
            continue

        dx = abs(next_top_left.x - aabb.x)
        dy = abs(next_top_left.y - aabb.y)
        if dx > move_epsilon_px or dy > move_epsilon_px:
            current[i] = aabb.translated_to(next_top_left.x, next_top_left.y)
            results.append(EnforceResult(id=item.id, moved=True, new_top_left=next_top_left))
        else:
            results.append(EnforceResult(id=item.id))

    moved = sum(1 for r in results if r.moved)
    invalid = sum(1 for r in results if r.still_invalid)
    if moved or invalid:
        logger.debug(f"Enforcement sweep over {len(items)} items: {moved} moved, {invalid} still invalid")

    return results


def enforce_text_invariants(
    items: Sequence[TextItem],
    allowed_rect: Rect,
    image_rect: Optional[Rect] = None,
    mask: Optional[Mask] = None,
    max_passes: int = 1,
    **kwargs,
) -> list[EnforceResult]:
    """Repeat the sequential sweep a bounded number of times.

    A further pass runs only while the previous one both moved something
    and left an item still invalid. With ``max_passes=1`` this is exactly
    ``enforce_text_invariants_sequential``. Results are merged by position, so
    items sharing an id stay independent.

    Args:
        items: Text items in enforcement order.
        allowed_rect: Content region.
        image_rect: Background image rect.
        mask: Silhouette mask over ``image_rect``.
        max_passes: Upper bound on sweeps.
        **kwargs: Forwarded to ``enforce_text_invariants_sequential``.

    Returns:
        One merged result per item, in input order.
    """
    originals = [item.aabb for item in items]
    merged = [EnforceResult(id=item.id) for item in items]
    working = list(items)

    for pass_index in range(max(1, max_passes)):
        results = enforce_text_invariants_sequential(
            working, allowed_rect, image_rect, mask, **kwargs
        )

        for k, result in enumerate(results):
            entry = merged[k]
            entry.still_invalid = result.still_invalid
            if result.moved:
                original = originals[k]
                entry.moved = True
                entry.new_top_left = result.new_top_left
                working[k] = working[k].model_copy(
                    update={"aabb": original.translated_to(result.new_top_left.x, result.new_top_left.y)}
                )

        any_moved = any(r.moved for r in results)
        any_invalid = any(r.still_invalid for r in results)
        if not (any_moved and any_invalid):
            break
        logger.debug(f"Enforcement pass {pass_index + 1} left items invalid, sweeping again")

    return merged


def validate_layout(
    items: Sequence[TextItem],
    allowed_rect: Rect,
    image_rect: Optional[Rect] = None,
    mask: Optional[Mask] = None,
    text_padding_px: float = DEFAULT_TEXT_PADDING_PX,
    mask_stride_px: int = DEFAULT_MASK_STRIDE_PX,
) -> LayoutReport:
    """Report every placement rule the current layout breaks.

    Editing items are checked as obstacles only; their own position is not
    reported.

    Args:
        items: Text items.
        allowed_rect: Content region.
        image_rect: Background image rect.
        mask: Silhouette mask over ``image_rect``.
        text_padding_px: Gap kept between text boxes.
        mask_stride_px: Mask sampling stride.

    Returns:
        LayoutReport with violations.
    """
    report = LayoutReport()
    bounds = PlacementConstraints(
        allowed_rect=allowed_rect,
        image_rect=image_rect,
        mask=mask,
        mask_stride_px=mask_stride_px,
    )

    for item in items:
        if item.is_editing:
            continue
        for kind in bounds.violations_at(item.aabb):
            if kind == ViolationKind.BOUNDS:
                message = f"Text {item.id} extends outside the content region"
            else:
                message = f"Text {item.id} sits on the background subject"
            report.violations.append(Violation(rule=kind, message=message, item_ids=[item.id]))

    # Check overlaps
    for i, first in enumerate(items):
        for second in items[i + 1:]:
            if first.is_editing and second.is_editing:
                continue
            if rects_overlap_aabb(first.aabb, second.aabb.inflated(text_padding_px)):
                report.violations.append(
                    Violation(
                        rule=ViolationKind.OVERLAP,
                        message=f"Text {first.id} and {second.id} overlap",
                        item_ids=[it.id for it in (first, second) if not it.is_editing],
                    )
                )

    return report
