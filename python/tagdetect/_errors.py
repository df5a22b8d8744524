"""Exception taxonomy for tagdetect.

Configuration failures surface when a :class:`~tagdetect.Detector` is built;
argument and buffer failures surface per call and leave the detector usable.
"""

from __future__ import annotations


class TagDetectError(Exception):
    """Base class for recoverable tagdetect failures."""


class InvalidConfigError(TagDetectError, ValueError):
    """Detector configuration is invalid (e.g. ``blackBorder`` outside {1, 2})."""


class UnknownFamilyError(InvalidConfigError):
    """Tag family identifier is unknown or not enabled in this installation."""

    def __init__(self, identifier: object, available: tuple[str, ...] = ()) -> None:
        self.identifier = identifier
        self.available = available
        enabled = ", ".join(available) if available else "none"
        super().__init__(f"unknown tag family {identifier!r} (enabled: {enabled})")


class InvalidArgumentError(TagDetectError, TypeError):
    """A ``detect`` argument has the wrong type or a non-positive dimension."""


class InvalidBufferSizeError(TagDetectError, ValueError):
    """Buffer length matches none of the grayscale/RGB/RGBA layouts."""

    def __init__(self, actual: int, width: int, height: int) -> None:
        pixels = width * height
        self.actual = actual
        self.expected = (pixels, pixels * 3, pixels * 4)
        super().__init__(
            f"buffer of {actual} bytes does not fit a {width}x{height} image; "
            f"expected {pixels} (grayscale), {pixels * 3} (RGB) or {pixels * 4} (RGBA)"
        )


class DetectorClosedError(TagDetectError, RuntimeError):
    """Detection was requested on a detector whose engine has been released."""


class EngineContractError(RuntimeError):
    """The detection engine returned a malformed raw detection.

    This is a defect in the engine, not an input problem, and is intentionally
    outside the :class:`TagDetectError` hierarchy.
    """


__all__ = [
    "TagDetectError",
    "InvalidConfigError",
    "UnknownFamilyError",
    "InvalidArgumentError",
    "InvalidBufferSizeError",
    "DetectorClosedError",
    "EngineContractError",
]
