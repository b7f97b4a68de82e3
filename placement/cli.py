"""Command line checks for saved slide layouts.

Usage:
    python -m placement.cli enforce layout.json [--passes N]
    python -m placement.cli validate layout.json
    python -m placement.cli overlay layout.json out.png --size 1080x1350
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from placement.config import configure_logging, get_settings
from placement.constraints.engine import enforce_text_invariants, validate_layout
from placement.constraints.mask import Mask
from placement.debug.overlay import render_debug_overlay
from placement.exceptions import InvalidLayoutError, PlacementError
from placement.geometry.schema import LayoutSnapshot

logger = logging.getLogger("placement.cli")


def load_snapshot(path: Path) -> tuple[LayoutSnapshot, Optional[Mask]]:
    """Load a layout file and decode its mask.

    Args:
        path: JSON file holding a LayoutSnapshot.

    Returns:
        Tuple of (snapshot, decoded mask or None).

    Raises:
        InvalidLayoutError: If the file is missing or does not validate.
    """
    try:
        snapshot = LayoutSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidLayoutError(f"Cannot read layout: {e}", source=str(path)) from e
    except ValidationError as e:
        raise InvalidLayoutError(f"Invalid layout: {e}", source=str(path)) from e

    mask = snapshot.mask.decode() if snapshot.mask is not None else None
    if snapshot.mask is not None and mask is None:
        logger.warning(f"Mask in {path} is malformed, falling back to image rect collision")
    return snapshot, mask


def _parse_size(value: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    return width, height


def cmd_enforce(args: argparse.Namespace) -> int:
    settings = get_settings()
    snapshot, mask = load_snapshot(args.layout)
    results = enforce_text_invariants(
        snapshot.items,
        snapshot.allowed_rect,
        snapshot.image_rect,
        mask,
        max_passes=args.passes,
        step_px=settings.step_px,
        max_radius_px=settings.max_radius_px,
        text_padding_px=settings.text_padding_px,
        move_epsilon_px=settings.move_epsilon_px,
        mask_stride_px=settings.mask_sample_stride_px,
    )
    payload = [
        {
            "id": r.id,
            "moved": r.moved,
            "new_top_left": r.new_top_left.model_dump() if r.new_top_left else None,
            "still_invalid": r.still_invalid,
        }
        for r in results
    ]
    print(json.dumps(payload, indent=2))
    return 1 if any(r.still_invalid for r in results) else 0


def cmd_validate(args: argparse.Namespace) -> int:
    settings = get_settings()
    snapshot, mask = load_snapshot(args.layout)
    report = validate_layout(
        snapshot.items,
        snapshot.allowed_rect,
        snapshot.image_rect,
        mask,
        text_padding_px=settings.text_padding_px,
        mask_stride_px=settings.mask_sample_stride_px,
    )
    payload = {
        "is_valid": report.is_valid,
        "violations": [
            {"rule": v.rule.value, "message": v.message, "item_ids": v.item_ids}
            for v in report.violations
        ],
    }
    print(json.dumps(payload, indent=2))
    return 0 if report.is_valid else 1


def cmd_overlay(args: argparse.Namespace) -> int:
    settings = get_settings()
    snapshot, mask = load_snapshot(args.layout)
    report = validate_layout(
        snapshot.items,
        snapshot.allowed_rect,
        snapshot.image_rect,
        mask,
        text_padding_px=settings.text_padding_px,
        mask_stride_px=settings.mask_sample_stride_px,
    )
    image = render_debug_overlay(
        args.size,
        snapshot.allowed_rect,
        snapshot.image_rect,
        mask,
        snapshot.items,
        invalid_ids=report.invalid_ids,
    )
    image.save(args.output)
    logger.info(f"Wrote overlay to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Text placement checks for slide layouts")
    parser.add_argument("--log-level", help="Override PLACEMENT_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    enforce = sub.add_parser("enforce", help="Print corrected positions")
    enforce.add_argument("layout", type=Path, help="Layout JSON file")
    enforce.add_argument("--passes", type=int, default=1, help="Maximum enforcement sweeps")
    enforce.set_defaults(func=cmd_enforce)

    validate = sub.add_parser("validate", help="List placement violations")
    validate.add_argument("layout", type=Path, help="Layout JSON file")
    validate.set_defaults(func=cmd_validate)

    overlay = sub.add_parser("overlay", help="Render a debug overlay PNG")
    overlay.add_argument("layout", type=Path, help="Layout JSON file")
    overlay.add_argument("output", type=Path, help="Output PNG path")
    overlay.add_argument("--size", type=_parse_size, default=(1080, 1350), help="Canvas WIDTHxHEIGHT")
    overlay.set_defaults(func=cmd_overlay)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.func(args)
    except PlacementError as e:
        logger.error(e.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())
