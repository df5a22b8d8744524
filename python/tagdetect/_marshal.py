"""Public detection record and the raw -> public marshaller."""

from __future__ import annotations

from dataclasses import dataclass
import json
import numbers
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from ._config import _json_loads_path_or_text
from ._engine import RawDetection
from ._errors import EngineContractError


@dataclass(frozen=True, slots=True)
class TagDetection:
    """One detected tag.

    ``corners`` keeps the engine's order; ``homography`` is the 3x3 matrix
    flattened row-major.
    """

    id: int
    hamming_distance: int
    good: bool
    center: list[float]
    corners: list[list[float]]
    homography: list[float]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TagDetection":
        return cls(
            id=int(data["id"]),
            hamming_distance=int(data["hammingDistance"]),
            good=bool(data["good"]),
            center=[float(data["center"][0]), float(data["center"][1])],
            corners=[[float(p[0]), float(p[1])] for p in data["corners"]],
            homography=[float(v) for v in data["homography"]],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": int(self.id),
            "hammingDistance": int(self.hamming_distance),
            "good": bool(self.good),
            "center": [float(self.center[0]), float(self.center[1])],
            "corners": [[float(p[0]), float(p[1])] for p in self.corners],
            "homography": [float(v) for v in self.homography],
        }

    def homography_matrix(self) -> np.ndarray:
        return np.asarray(self.homography, dtype=np.float64).reshape(3, 3)


def _index(value: Any, *, name: str) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral) or value < 0:
        raise EngineContractError(f"raw detection {name} must be a non-negative integer, got {value!r}")
    return int(value)


def _point(value: Any, *, name: str) -> list[float]:
    if len(value) != 2:
        raise EngineContractError(f"raw detection {name} must have 2 coordinates, got {len(value)}")
    return [float(value[0]), float(value[1])]


def _marshal_one(raw: RawDetection) -> TagDetection:
    if len(raw.corners) != 4:
        raise EngineContractError(f"raw detection must have 4 corners, got {len(raw.corners)}")

    h = np.asarray(raw.homography, dtype=np.float64)
    if h.shape != (3, 3):
        raise EngineContractError(f"raw detection homography must be 3x3, got shape {h.shape}")

    return TagDetection(
        id=_index(raw.id, name="id"),
        hamming_distance=_index(raw.hamming_distance, name="hamming distance"),
        good=bool(raw.good),
        center=_point(raw.center, name="center"),
        corners=[_point(p, name=f"corner {i}") for i, p in enumerate(raw.corners)],
        homography=[float(v) for v in h.reshape(-1, order="C")],
    )


def marshal_detections(raw: Sequence[RawDetection]) -> list[TagDetection]:
    """Copy raw detections into public records, one for one, in order."""
    return [_marshal_one(r) for r in raw]


def detections_to_json(detections: Iterable[TagDetection], path: str | Path | None = None) -> str | None:
    """Serialize detections to pretty JSON text or write JSON to `path`."""
    text = json.dumps([d.to_dict() for d in detections], indent=2)
    if path is None:
        return text
    Path(path).write_text(text, encoding="utf-8")
    return None


def detections_from_json(path_or_json: str | Path) -> list[TagDetection]:
    """Load detections from JSON text or a JSON file path."""
    data = _json_loads_path_or_text(path_or_json)
    if not isinstance(data, list):
        raise ValueError("detections JSON must be a list")
    return [TagDetection.from_dict(d) for d in data]
