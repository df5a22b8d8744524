"""Reference tag sheets rendered with OpenCV.

Sheets place tags ``first_id, first_id + 1, ...`` row by row on a white
background, separated by quiet-zone gaps. ``black_border=2`` reproduces the
double-width borders of grid-calibration targets.
"""

from __future__ import annotations

import cv2
import numpy as np

from ._config import _validate_black_border
from ._families import DEFAULT_FAMILY, TagFamilyRegistry, default_registry, opencv_dictionary_id


def render_tag_sheet(
    family: str = DEFAULT_FAMILY,
    rows: int = 4,
    cols: int = 6,
    *,
    black_border: int = 1,
    cell_px: int = 12,
    gap_cells: int = 2,
    first_id: int = 0,
    registry: TagFamilyRegistry | None = None,
) -> np.ndarray:
    """Render a ``rows x cols`` grid of tags as an ``(H, W)`` uint8 image."""
    registry = default_registry() if registry is None else registry
    tag_family = registry.resolve(family)
    black_border = _validate_black_border(black_border)
    if rows <= 0 or cols <= 0 or cell_px <= 0 or gap_cells < 0:
        raise ValueError("rows, cols and cell_px must be positive and gap_cells non-negative")
    if first_id < 0 or first_id + rows * cols > len(tag_family.codes):
        raise ValueError(f"ids {first_id}..{first_id + rows * cols - 1} exceed family {tag_family.name}")

    dictionary = cv2.aruco.getPredefinedDictionary(opencv_dictionary_id(tag_family.name))
    tag_px = (tag_family.size + 2 * black_border) * cell_px
    gap_px = gap_cells * cell_px
    pitch = tag_px + gap_px

    sheet = np.full((rows * pitch + gap_px, cols * pitch + gap_px), 255, dtype=np.uint8)
    for index in range(rows * cols):
        row, col = divmod(index, cols)
        tag = cv2.aruco.generateImageMarker(dictionary, first_id + index, tag_px, borderBits=black_border)
        y0 = gap_px + row * pitch
        x0 = gap_px + col * pitch
        sheet[y0 : y0 + tag_px, x0 : x0 + tag_px] = tag
    return sheet
