"""tagdetect Python bindings.

Typed API for AprilTag detection over raw grayscale, RGB and RGBA buffers,
backed by OpenCV's ArUco AprilTag dictionaries.
"""

import logging

from ._api import Detector, __version__, create_detector, detect
from ._config import DetectorConfig, DetectorOptions
from ._engine import OpenCVTagEngine, RawDetection, TagDetectionEngine
from ._errors import (
    DetectorClosedError,
    EngineContractError,
    InvalidArgumentError,
    InvalidBufferSizeError,
    InvalidConfigError,
    TagDetectError,
    UnknownFamilyError,
)
from ._families import (
    TAG_FAMILIES,
    TagFamily,
    TagFamilyName,
    TagFamilyRegistry,
    available_families,
)
from ._image import LUMA_WEIGHTS, DecodedImage, ImagePlane, PixelLayout, load_image
from ._marshal import TagDetection, detections_from_json, detections_to_json

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Detector",
    "create_detector",
    "detect",
    "DetectorConfig",
    "DetectorOptions",
    "TagDetection",
    "RawDetection",
    "TagDetectionEngine",
    "OpenCVTagEngine",
    "TagFamily",
    "TagFamilyName",
    "TagFamilyRegistry",
    "TAG_FAMILIES",
    "available_families",
    "ImagePlane",
    "PixelLayout",
    "LUMA_WEIGHTS",
    "DecodedImage",
    "load_image",
    "detections_to_json",
    "detections_from_json",
    "TagDetectError",
    "InvalidConfigError",
    "UnknownFamilyError",
    "InvalidArgumentError",
    "InvalidBufferSizeError",
    "DetectorClosedError",
    "EngineContractError",
    "__version__",
]
