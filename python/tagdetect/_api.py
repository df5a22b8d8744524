"""Public Python API for the tagdetect AprilTag detector.

Typical flow:
1. Create a detector once: ``create_detector("36h11", {"blackBorder": 1})``.
2. Call :meth:`Detector.detect` with a raw buffer and its dimensions, as many
   times as needed.
3. Consume the returned :class:`TagDetection` list, or serialize it with
   :func:`detections_to_json`.

A detector owns one engine handle. Building it is the expensive part, so
reuse it across images. Detectors hold no per-call state and add no locking;
use one detector per thread unless the engine tolerates concurrent calls.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
import logging
import numbers
from typing import Any, Mapping
import weakref

import numpy as np

from ._config import DetectorConfig, DetectorOptions
from ._engine import EngineFactory, TagDetectionEngine, default_engine_factory
from ._errors import DetectorClosedError, InvalidArgumentError
from ._families import DEFAULT_FAMILY, TagFamily, TagFamilyName, TagFamilyRegistry
from ._image import resolve_color_plane
from ._marshal import TagDetection, marshal_detections

logger = logging.getLogger(__name__)


def _release_engine(engine: TagDetectionEngine) -> None:
    engine.close()


def _as_byte_view(buffer: Any) -> memoryview:
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise InvalidArgumentError("image buffer ndarray must have dtype=uint8")
        return memoryview(np.ascontiguousarray(buffer).reshape(-1))

    if isinstance(buffer, (bytes, bytearray)):
        return memoryview(buffer)

    if isinstance(buffer, memoryview):
        if not buffer.c_contiguous:
            raise InvalidArgumentError("image buffer memoryview must be C-contiguous")
        if buffer.format != "B" or buffer.ndim != 1:
            return buffer.cast("B")
        return buffer

    raise InvalidArgumentError(
        f"image buffer must be bytes, bytearray, memoryview or uint8 ndarray, got {type(buffer).__name__}"
    )


def _require_dimension(value: Any, *, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be positive, got {value}")
    return int(value)


class Detector:
    """AprilTag detector for one tag family and border width.

    Parameters
    ----------
    family:
        Tag family identifier, e.g. ``"36h11"`` (see :data:`TAG_FAMILIES`).
    options:
        :class:`DetectorOptions` or a mapping with ``blackBorder``.
    engine_factory:
        Builds the engine from the validated config. Defaults to the OpenCV
        backed engine.
    registry:
        Family registry to resolve against. Defaults to the process registry.
    """

    def __init__(
        self,
        family: str | TagFamilyName = DEFAULT_FAMILY,
        options: DetectorOptions | Mapping[str, Any] | None = None,
        *,
        engine_factory: EngineFactory | None = None,
        registry: TagFamilyRegistry | None = None,
    ) -> None:
        # Validation first: a rejected config never allocates an engine.
        self._config = DetectorConfig.create(family, options, registry=registry)
        factory = default_engine_factory if engine_factory is None else engine_factory
        self._engine = factory(self._config)
        self._finalizer = weakref.finalize(self, _release_engine, self._engine)

    def __enter__(self) -> "Detector":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Detector(family={self.family.name!r}, black_border={self._config.black_border}, {state})"

    @property
    def config(self) -> DetectorConfig:
        return self._config

    @property
    def family(self) -> TagFamily:
        return self._config.family

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        """Release the engine handle. Safe to call more than once."""
        self._finalizer()

    def detect(self, buffer: Any, width: int, height: int) -> list[TagDetection]:
        """Detect tags in a packed grayscale, RGB or RGBA buffer.

        The layout is inferred from ``len(buffer)`` relative to
        ``width * height``. The buffer is never modified.
        """
        if self.closed:
            raise DetectorClosedError("detector has been closed")

        view = _as_byte_view(buffer)
        width = _require_dimension(width, name="width")
        height = _require_dimension(height, name="height")

        plane = resolve_color_plane(view, width, height)
        raw = self._engine.extract(plane, self._config)
        detections = marshal_detections(raw)
        logger.debug("detected %d tags in %dx%d image", len(detections), width, height)
        return detections

    def detect_array(self, image: np.ndarray) -> list[TagDetection]:
        """Run detection on a NumPy image.

        Accepted array inputs:
        - grayscale: `(H, W)`, `dtype=uint8`
        - RGB/RGBA: `(H, W, 3|4)`, `dtype=uint8`
        """
        _validate_image_array(image)
        height, width = int(image.shape[0]), int(image.shape[1])
        return self.detect(image, width, height)


def _validate_image_array(image: Any) -> None:
    if not isinstance(image, np.ndarray):
        raise InvalidArgumentError("image must be a numpy ndarray")

    if image.dtype != np.uint8:
        raise InvalidArgumentError("image ndarray must have dtype=uint8")

    if image.ndim == 2:
        return

    if image.ndim == 3 and image.shape[2] in (3, 4):
        return

    raise InvalidArgumentError("image ndarray must have shape (H, W) or (H, W, 3|4)")


def create_detector(
    family: str | TagFamilyName = DEFAULT_FAMILY,
    options: DetectorOptions | Mapping[str, Any] | None = None,
    *,
    engine_factory: EngineFactory | None = None,
) -> Detector:
    """Create a :class:`Detector` for ``family`` (default ``"36h11"``)."""
    return Detector(family, options, engine_factory=engine_factory)


def detect(detector: Detector, buffer: Any, width: int, height: int) -> list[TagDetection]:
    """Detect tags with ``detector``; equivalent to ``detector.detect(...)``."""
    if not isinstance(detector, Detector):
        raise InvalidArgumentError("detector must be a Detector")
    return detector.detect(buffer, width, height)


def _package_version() -> str:
    try:
        return version("tagdetect")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _package_version()
