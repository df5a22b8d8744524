from __future__ import annotations

import numpy as np
import pytest

from tagdetect import DetectorConfig, ImagePlane, RawDetection
from tagdetect.sheets import render_tag_sheet


class FakeEngine:
    """Engine double that records every plane it is handed."""

    def __init__(self, config: DetectorConfig, raw: list[RawDetection] | None = None) -> None:
        self.config = config
        self.raw = list(raw or [])
        self.planes: list[ImagePlane] = []
        self.close_calls = 0

    def extract(self, plane: ImagePlane, config: DetectorConfig) -> list[RawDetection]:
        self.planes.append(plane)
        return list(self.raw)

    def close(self) -> None:
        self.close_calls += 1


class FakeEngineFactory:
    def __init__(self, raw: list[RawDetection] | None = None) -> None:
        self.raw = raw
        self.engines: list[FakeEngine] = []

    def __call__(self, config: DetectorConfig) -> FakeEngine:
        engine = FakeEngine(config, self.raw)
        self.engines.append(engine)
        return engine


def make_raw(tag_id: int, offset: float = 0.0, hamming: int = 0) -> RawDetection:
    corners = [
        (10.0 + offset, 10.0 + offset),
        (30.5 + offset, 10.25 + offset),
        (30.0 + offset, 30.75 + offset),
        (10.125 + offset, 30.0 + offset),
    ]
    return RawDetection(
        id=tag_id,
        hamming_distance=hamming,
        good=hamming <= 1,
        center=(20.0 + offset, 20.0 + offset),
        corners=corners,
        homography=np.arange(9, dtype=np.float64).reshape(3, 3) + offset,
    )


@pytest.fixture
def fake_factory() -> FakeEngineFactory:
    return FakeEngineFactory()


@pytest.fixture(scope="session")
def standard_sheet() -> np.ndarray:
    # 24 tags, single-bit borders
    return render_tag_sheet("36h11", rows=4, cols=6, black_border=1)


@pytest.fixture(scope="session")
def aprilgrid_sheet() -> np.ndarray:
    # 6x6 grid-calibration layout, double-width borders
    return render_tag_sheet("36h11", rows=6, cols=6, black_border=2)
