"""Tests for the placement command line."""

import json
from pathlib import Path

import pytest
from PIL import Image

from placement.cli import load_snapshot, main
from placement.exceptions import InvalidLayoutError


def _write_layout(path: Path, items: list[dict], **extra) -> Path:
    layout = {
        "allowed_rect": {"x": 0, "y": 0, "width": 1000, "height": 1000},
        "items": items,
        **extra,
    }
    path.write_text(json.dumps(layout), encoding="utf-8")
    return path


def _text(item_id: str, x: float, y: float) -> dict:
    return {"id": item_id, "aabb": {"x": x, "y": y, "width": 100, "height": 30}}


@pytest.fixture
def stacked_layout(tmp_path: Path) -> Path:
    """Two text lines at the same position."""
    return _write_layout(tmp_path / "stacked.json", [_text("a", 10, 10), _text("b", 10, 10)])


@pytest.fixture
def clean_layout(tmp_path: Path) -> Path:
    """Two well separated text lines."""
    return _write_layout(tmp_path / "clean.json", [_text("a", 10, 10), _text("b", 10, 200)])


class TestLoadSnapshot:
    """Tests for load_snapshot."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is reported as an invalid layout."""
        with pytest.raises(InvalidLayoutError) as exc_info:
            load_snapshot(tmp_path / "nope.json")
        assert exc_info.value.source.endswith("nope.json")

    def test_bad_schema(self, tmp_path: Path) -> None:
        """Test a file that does not validate is rejected."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")
        with pytest.raises(InvalidLayoutError):
            load_snapshot(path)

    def test_malformed_mask_ignored(self, tmp_path: Path) -> None:
        """Test a broken mask loads as no mask."""
        path = _write_layout(
            tmp_path / "mask.json",
            [],
            image_rect={"x": 0, "y": 0, "width": 10, "height": 10},
            mask={"width": 4, "height": 4, "data": "AAAA"},
        )
        snapshot, mask = load_snapshot(path)
        assert snapshot.mask is not None
        assert mask is None


class TestMain:
    """Tests for the CLI entry point."""

    def test_validate_clean(self, clean_layout: Path, capsys: pytest.CaptureFixture) -> None:
        """Test a clean layout exits 0."""
        assert main(["validate", str(clean_layout)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output == {"is_valid": True, "violations": []}

    def test_validate_overlap(self, stacked_layout: Path, capsys: pytest.CaptureFixture) -> None:
        """Test overlapping lines exit 1 and are listed."""
        assert main(["validate", str(stacked_layout)]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["violations"][0]["rule"] == "overlap"
        assert output["violations"][0]["item_ids"] == ["a", "b"]

    def test_enforce(self, stacked_layout: Path, capsys: pytest.CaptureFixture) -> None:
        """Test enforce prints the corrected positions."""
        assert main(["enforce", str(stacked_layout)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output[0] == {"id": "a", "moved": False, "new_top_left": None, "still_invalid": False}
        assert output[1]["new_top_left"] == {"x": 10, "y": 42}

    def test_enforce_still_invalid(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test an unplaceable line exits 1."""
        path = tmp_path / "tiny.json"
        path.write_text(
            json.dumps({
                "allowed_rect": {"x": 0, "y": 0, "width": 40, "height": 40},
                "items": [_text("a", 0, 0)],
            }),
            encoding="utf-8",
        )
        assert main(["enforce", str(path)]) == 1
        assert json.loads(capsys.readouterr().out)[0]["still_invalid"] is True

    def test_overlay(self, stacked_layout: Path, tmp_path: Path) -> None:
        """Test overlay writes a PNG of the requested size."""
        output = tmp_path / "overlay.png"
        assert main(["overlay", str(stacked_layout), str(output), "--size", "200x100"]) == 0
        with Image.open(output) as image:
            assert image.size == (200, 100)

    def test_missing_layout_exit_code(self, tmp_path: Path) -> None:
        """Test input errors exit 2."""
        assert main(["validate", str(tmp_path / "missing.json")]) == 2
