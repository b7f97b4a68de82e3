"""Silhouette mask storage and decoding.

A mask is one byte per pixel, row-major, where 0 means walkable and any
non-zero value means the background subject is opaque there. Masks arrive
either as a base64 payload from the mask producer or as the alpha channel of
a cut-out image.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Mask:
    """Read-only opacity bitmap.

    Attributes:
        width: Mask width in mask pixels.
        height: Mask height in mask pixels.
        pixels: ``uint8`` array of shape ``(height, width)``.
    """

    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> Optional["Mask"]:
        """Build a mask from raw bytes.

        Args:
            width: Declared mask width.
            height: Declared mask height.
            data: Row-major mask bytes.

        Returns:
            The mask, or None when the dimensions do not match the buffer.
        """
        if width <= 0 or height <= 0:
            logger.warning(f"Ignoring mask with non-positive size {width}x{height}")
            return None
        if len(data) != width * height:
            logger.warning(
                f"Ignoring malformed mask: {len(data)} bytes for declared size {width}x{height}"
            )
            return None

        pixels = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width).copy()
        pixels.setflags(write=False)
        return cls(width=width, height=height, pixels=pixels)

    @classmethod
    def from_base64(cls, width: int, height: int, data: str) -> Optional["Mask"]:
        """Decode a base64 mask payload; None when it cannot be decoded."""
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Ignoring mask with invalid base64 data: {e}")
            return None
        return cls.from_bytes(width, height, raw)

    @classmethod
    def from_array(cls, array: np.ndarray) -> Optional["Mask"]:
        """Wrap a 2D array; any non-zero value is treated as solid."""
        if array.ndim != 2:
            logger.warning(f"Ignoring mask array with {array.ndim} dimensions")
            return None
        height, width = array.shape
        solid = (np.asarray(array) != 0).astype(np.uint8)
        return cls.from_bytes(width, height, solid.tobytes())

    @classmethod
    def from_image(cls, image: Image.Image, alpha_threshold: int = 0) -> Optional["Mask"]:
        """Build a mask from a cut-out image's alpha channel.

        Args:
            image: Pillow image; RGBA/LA images use their alpha band, other
                modes are converted to grayscale.
            alpha_threshold: Alpha values above this count as solid.

        Returns:
            The mask, or None for an empty image.
        """
        if image.width == 0 or image.height == 0:
            return None

        if image.mode in ("RGBA", "LA"):
            band = image.getchannel("A")
        elif image.mode == "P" and "transparency" in image.info:
            band = image.convert("RGBA").getchannel("A")
        else:
            band = image.convert("L")

        alpha = np.array(band, dtype=np.uint8)
        return cls.from_array(alpha > alpha_threshold)

    @property
    def solid_fraction(self) -> float:
        """Share of solid pixels, for diagnostics."""
        return float(np.count_nonzero(self.pixels)) / float(self.width * self.height)

    def to_base64(self) -> str:
        """Encode as the producer's base64 payload format."""
        return base64.b64encode(self.pixels.tobytes()).decode("ascii")
