"""Buffer interpretation and color-plane normalization.

The pixel layout of a raw buffer is inferred from its length alone:

- ``w*h``     -> grayscale, copied as-is
- ``w*h*3``   -> interleaved RGB
- ``w*h*4``   -> interleaved RGBA (alpha ignored)

Color buffers are reduced to one channel with the ITU-R BT.601 luma weights
in :data:`LUMA_WEIGHTS`, as applied by ``cv2.cvtColor`` (14-bit fixed point,
rounded to nearest).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path

import cv2
import numpy as np

from ._errors import InvalidArgumentError, InvalidBufferSizeError

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


class PixelLayout(Enum):
    """Buffer layouts accepted by :func:`resolve_color_plane`."""

    GRAY = 1
    RGB = 3
    RGBA = 4

    @property
    def channels(self) -> int:
        return self.value


_TO_GRAY = {
    PixelLayout.RGB: cv2.COLOR_RGB2GRAY,
    PixelLayout.RGBA: cv2.COLOR_RGBA2GRAY,
}


@dataclass(frozen=True, slots=True)
class ImagePlane:
    """Single-channel 8-bit image, row-major with a top-left origin."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidArgumentError("image plane dimensions must be positive")
        if len(self.data) != self.width * self.height:
            raise InvalidBufferSizeError(len(self.data), self.width, self.height)

    def as_array(self) -> np.ndarray:
        """Read-only ``(height, width)`` uint8 view of :attr:`data`."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width)


def classify_layout(length: int, width: int, height: int) -> PixelLayout:
    """Map a buffer length to its layout, or raise :class:`InvalidBufferSizeError`."""
    pixels = width * height
    for layout in PixelLayout:
        if length == pixels * layout.channels:
            return layout
    raise InvalidBufferSizeError(length, width, height)


def resolve_color_plane(buffer: memoryview, width: int, height: int) -> ImagePlane:
    """Produce a fresh grayscale :class:`ImagePlane` from a raw byte view.

    The input is never written to; color conversion reads from a private copy.
    """
    if width <= 0 or height <= 0:
        raise InvalidArgumentError(f"width and height must be positive, got {width}x{height}")

    layout = classify_layout(buffer.nbytes, width, height)
    logger.debug("resolved %dx%d buffer of %d bytes as %s", width, height, buffer.nbytes, layout.name)

    if layout is PixelLayout.GRAY:
        return ImagePlane(width=width, height=height, data=bytes(buffer))

    pixels = np.frombuffer(buffer, dtype=np.uint8).reshape(height, width, layout.channels).copy()
    gray = cv2.cvtColor(pixels, _TO_GRAY[layout])
    return ImagePlane(width=width, height=height, data=gray.tobytes())


@dataclass(frozen=True, slots=True)
class DecodedImage:
    """Packed pixel buffer decoded from an image file, ready for ``detect``."""

    buffer: bytes
    width: int
    height: int
    channels: int

    def as_array(self) -> np.ndarray:
        shape = (self.height, self.width) if self.channels == 1 else (self.height, self.width, self.channels)
        return np.frombuffer(self.buffer, dtype=np.uint8).reshape(shape)


def load_image(path: str | Path, *, grayscale: bool = False) -> DecodedImage:
    """Decode an image file into packed grayscale or RGB bytes."""
    path = Path(path)
    flag = cv2.IMREAD_GRAYSCALE if grayscale else cv2.IMREAD_COLOR
    pixels = cv2.imread(str(path), flag)
    if pixels is None:
        raise OSError(f"could not read image: {path}")

    if pixels.ndim == 3:
        pixels = cv2.cvtColor(pixels, cv2.COLOR_BGR2RGB)
    height, width = int(pixels.shape[0]), int(pixels.shape[1])
    channels = 1 if pixels.ndim == 2 else int(pixels.shape[2])
    return DecodedImage(
        buffer=np.ascontiguousarray(pixels).tobytes(),
        width=width,
        height=height,
        channels=channels,
    )
