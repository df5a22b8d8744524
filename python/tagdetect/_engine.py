"""Tag detection engine seam and the OpenCV-backed implementation.

The detector core only needs one capability from an engine: turn a grayscale
:class:`ImagePlane` into raw detections. Anything with ``extract`` and
``close`` fits; tests substitute fakes through an ``engine_factory``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Protocol, Sequence

import cv2
import numpy as np

from ._config import DetectorConfig
from ._errors import DetectorClosedError, InvalidConfigError
from ._families import TagFamily, opencv_dictionary_id, pack_bits
from ._image import ImagePlane

logger = logging.getLogger(__name__)

# Tag-local coordinates of corners 0..3; the homography maps these to pixels.
TAG_CORNERS_LOCAL = ((-1.0, -1.0), (1.0, -1.0), (1.0, 1.0), (-1.0, 1.0))

# Detections within this many bit errors of their code are flagged good.
GOOD_MAX_HAMMING = 1

_SAMPLE_CELL_PX = 8


@dataclass(slots=True)
class RawDetection:
    """Engine-native detection record, before marshalling."""

    id: int
    hamming_distance: int
    good: bool
    center: Sequence[float]
    corners: Sequence[Sequence[float]]
    homography: Any


class TagDetectionEngine(Protocol):
    def extract(self, plane: ImagePlane, config: DetectorConfig) -> list[RawDetection]:
        """Detect tags in ``plane``. Must not mutate it and must be deterministic."""
        ...

    def close(self) -> None:
        """Release engine resources. Called exactly once by the owning detector."""
        ...


EngineFactory = Callable[[DetectorConfig], TagDetectionEngine]


def homography_from_corners(corners: np.ndarray) -> np.ndarray:
    """3x3 projective map from :data:`TAG_CORNERS_LOCAL` to ``corners`` (4x2 pixels)."""
    src = np.asarray(TAG_CORNERS_LOCAL, dtype=np.float32)
    dst = np.asarray(corners, dtype=np.float32).reshape(4, 2)
    return cv2.getPerspectiveTransform(src, dst)


def project(homography: np.ndarray, x: float, y: float) -> tuple[float, float]:
    u, v, w = homography @ np.array([x, y, 1.0])
    return float(u / w), float(v / w)


def sample_bits(gray: np.ndarray, corners: np.ndarray, size: int, black_border: int) -> np.ndarray:
    """Read the ``size x size`` data cells inside a quad as 0 (dark) / 1 (light)."""
    cells = size + 2 * black_border
    side = cells * _SAMPLE_CELL_PX
    dst = np.array([[0, 0], [side, 0], [side, side], [0, side]], dtype=np.float32)
    warp = cv2.getPerspectiveTransform(np.asarray(corners, dtype=np.float32).reshape(4, 2), dst)
    tile = cv2.warpPerspective(gray, warp, (side, side), flags=cv2.INTER_LINEAR)
    _, binary = cv2.threshold(tile, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)

    inset = _SAMPLE_CELL_PX // 4
    bits = np.zeros((size, size), dtype=np.uint8)
    for row in range(size):
        y0 = (black_border + row) * _SAMPLE_CELL_PX + inset
        for col in range(size):
            x0 = (black_border + col) * _SAMPLE_CELL_PX + inset
            cell = binary[y0 : y0 + _SAMPLE_CELL_PX - 2 * inset, x0 : x0 + _SAMPLE_CELL_PX - 2 * inset]
            bits[row, col] = 1 if cell.mean() > 127 else 0
    return bits


def hamming_to_code(bits: np.ndarray, code: int) -> int:
    """Smallest bit distance between ``bits`` (any rotation) and ``code``."""
    return min(bin(pack_bits(np.rot90(bits, k)) ^ code).count("1") for k in range(4))


class OpenCVTagEngine:
    """AprilTag engine backed by ``cv2.aruco.ArucoDetector``.

    The black-border width maps onto ``markerBorderBits``; corners are refined
    to sub-pixel accuracy.
    """

    def __init__(self, config: DetectorConfig) -> None:
        dict_id = opencv_dictionary_id(config.family.name)
        if dict_id is None:
            raise InvalidConfigError(f"OpenCV has no dictionary for tag family {config.family.name}")

        params = cv2.aruco.DetectorParameters()
        params.markerBorderBits = int(config.black_border)
        params.cornerRefinementMethod = cv2.aruco.CORNER_REFINE_SUBPIX

        # ids index into this family's table; it is fixed with the dictionary
        self._family: TagFamily = config.family
        self._black_border = int(config.black_border)
        dictionary = cv2.aruco.getPredefinedDictionary(dict_id)
        self._detector: cv2.aruco.ArucoDetector | None = cv2.aruco.ArucoDetector(dictionary, params)
        logger.debug(
            "allocated OpenCV engine for %s (blackBorder=%d)",
            config.family.name,
            config.black_border,
        )

    def extract(self, plane: ImagePlane, config: DetectorConfig) -> list[RawDetection]:
        if self._detector is None:
            raise DetectorClosedError("engine has been closed")

        gray = plane.as_array().copy()
        corners, ids, _rejected = self._detector.detectMarkers(gray)
        if ids is None or len(ids) == 0:
            return []

        family = self._family
        out: list[RawDetection] = []
        for quad, tag_id in zip(corners, np.asarray(ids).reshape(-1)):
            pts = np.asarray(quad, dtype=np.float64).reshape(4, 2)
            homography = homography_from_corners(pts)
            bits = sample_bits(gray, pts, family.size, self._black_border)
            hamming = hamming_to_code(bits, family.codes[int(tag_id)])
            out.append(
                RawDetection(
                    id=int(tag_id),
                    hamming_distance=hamming,
                    good=hamming <= GOOD_MAX_HAMMING,
                    center=project(homography, 0.0, 0.0),
                    corners=[(float(x), float(y)) for x, y in pts],
                    homography=homography,
                )
            )
        return out

    @property
    def family(self) -> TagFamily:
        return self._family

    def close(self) -> None:
        if self._detector is not None:
            logger.debug("released OpenCV engine")
        self._detector = None


def default_engine_factory(config: DetectorConfig) -> TagDetectionEngine:
    return OpenCVTagEngine(config)
