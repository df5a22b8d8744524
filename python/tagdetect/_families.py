"""Tag family registry.

The set of families is closed. A family is *enabled* only when its code table
is available from the installed OpenCV build, and the ``TAGDETECT_FAMILIES``
environment variable may narrow that set further. Identifiers that are known
but not enabled fail exactly like unknown ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import functools
import logging
import math
import os
from types import MappingProxyType
from typing import Iterable, Mapping

import cv2
import numpy as np

from ._errors import InvalidConfigError, UnknownFamilyError

logger = logging.getLogger(__name__)

ENV_FAMILIES = "TAGDETECT_FAMILIES"
DEFAULT_FAMILY = "36h11"


class TagFamilyName(str, Enum):
    """Identifiers of the supported AprilTag families."""

    TAG_36H11 = "36h11"
    TAG_36H9 = "36h9"
    TAG_25H9 = "25h9"
    TAG_25H7 = "25h7"
    TAG_16H5 = "16h5"


TAG_FAMILIES: Mapping[str, str] = MappingProxyType({m.name: m.value for m in TagFamilyName})

# identifier -> (payload bits, minimum hamming distance, OpenCV dictionary constant)
_KNOWN_FAMILIES: Mapping[str, tuple[int, int, str]] = MappingProxyType(
    {
        "36h11": (36, 11, "DICT_APRILTAG_36h11"),
        "36h9": (36, 9, "DICT_APRILTAG_36h9"),
        "25h9": (25, 9, "DICT_APRILTAG_25h9"),
        "25h7": (25, 7, "DICT_APRILTAG_25h7"),
        "16h5": (16, 5, "DICT_APRILTAG_16h5"),
    }
)


@dataclass(frozen=True, slots=True)
class TagFamily:
    """Immutable code table of one tag family.

    ``codes[i]`` is the payload of tag ``i`` packed row-major, most significant
    bit first, with white cells as 1.
    """

    name: str
    bits: int
    min_hamming: int
    codes: tuple[int, ...]

    @property
    def size(self) -> int:
        """Side length of the data grid in cells."""
        return math.isqrt(self.bits)

    def __repr__(self) -> str:
        return f"TagFamily(name={self.name!r}, bits={self.bits}, min_hamming={self.min_hamming}, codes=<{len(self.codes)}>)"


class TagFamilyRegistry:
    """Read-only mapping from family identifier to :class:`TagFamily`."""

    __slots__ = ("_families",)

    def __init__(self, families: Iterable[TagFamily]) -> None:
        self._families = MappingProxyType({f.name: f for f in families})

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(self._families)

    def __contains__(self, identifier: object) -> bool:
        return _normalize(identifier) in self._families

    def __len__(self) -> int:
        return len(self._families)

    def resolve(self, identifier: str | TagFamilyName) -> TagFamily:
        """Return the family for ``identifier`` or raise :class:`UnknownFamilyError`."""
        family = self._families.get(_normalize(identifier))
        if family is None:
            raise UnknownFamilyError(identifier, self.identifiers)
        return family


def _normalize(identifier: object) -> object:
    if isinstance(identifier, TagFamilyName):
        return identifier.value
    return identifier


def opencv_dictionary_id(name: str) -> int | None:
    """OpenCV predefined-dictionary id for a family, or ``None`` if not built in."""
    known = _KNOWN_FAMILIES.get(name)
    if known is None:
        return None
    return getattr(cv2.aruco, known[2], None)


def pack_bits(bits: np.ndarray) -> int:
    """Pack a bit matrix row-major, most significant bit first."""
    value = 0
    for b in np.asarray(bits).reshape(-1):
        value = (value << 1) | (1 if b else 0)
    return value


def load_family(name: str) -> TagFamily | None:
    """Build the code table of ``name`` from OpenCV, or ``None`` if unavailable."""
    dict_id = opencv_dictionary_id(name)
    if dict_id is None:
        return None
    bits, min_hamming, _ = _KNOWN_FAMILIES[name]
    size = math.isqrt(bits)
    dictionary = cv2.aruco.getPredefinedDictionary(dict_id)
    byte_list = dictionary.bytesList
    # rotation 0 of every code, decoded by OpenCV itself
    codes = tuple(
        pack_bits(dictionary.getBitsFromByteList(byte_list[i : i + 1], size))
        for i in range(len(byte_list))
    )
    logger.debug("loaded tag family %s with %d codes", name, len(codes))
    return TagFamily(name=name, bits=bits, min_hamming=min_hamming, codes=codes)


def build_registry(enabled: Iterable[str] | None = None) -> TagFamilyRegistry:
    """Build a registry of the families in ``enabled`` whose tables are available.

    ``enabled=None`` requests every known family. Names outside the closed set
    raise :class:`UnknownFamilyError`. The default family is always enabled.
    """
    if enabled is None:
        requested = list(_KNOWN_FAMILIES)
    else:
        requested = [_normalize(name) for name in enabled]
        for name in requested:
            if name not in _KNOWN_FAMILIES:
                raise UnknownFamilyError(name, tuple(_KNOWN_FAMILIES))
        if DEFAULT_FAMILY not in requested:
            requested.insert(0, DEFAULT_FAMILY)

    families: list[TagFamily] = []
    for name in requested:
        family = load_family(name)
        if family is None:
            logger.debug("tag family %s has no code table in this OpenCV build", name)
            continue
        families.append(family)

    if not any(f.name == DEFAULT_FAMILY for f in families):
        raise InvalidConfigError(f"installed OpenCV lacks the default {DEFAULT_FAMILY} code table")
    return TagFamilyRegistry(families)


def registry_from_env(environ: Mapping[str, str]) -> TagFamilyRegistry:
    """Build a registry honoring ``TAGDETECT_FAMILIES`` (comma-separated identifiers)."""
    raw = environ.get(ENV_FAMILIES, "").strip()
    if not raw:
        return build_registry()
    names = [part.strip() for part in raw.split(",") if part.strip()]
    return build_registry(names)


@functools.lru_cache(maxsize=None)
def default_registry() -> TagFamilyRegistry:
    """Process-wide registry, built once on first use."""
    registry = registry_from_env(os.environ)
    logger.debug("enabled tag families: %s", ", ".join(registry.identifiers))
    return registry


def available_families() -> tuple[str, ...]:
    """Identifiers enabled in the default registry."""
    return default_registry().identifiers
