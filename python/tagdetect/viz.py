"""Visualization helpers for tag detections.

It requires `matplotlib` (install with `tagdetect[viz]`).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np

from ._image import DecodedImage, load_image
from ._marshal import TagDetection, detections_from_json


def _load_matplotlib(out: str | Path | None):
    import matplotlib

    if out is not None:
        matplotlib.use("Agg")

    import matplotlib.pyplot as plt

    return plt


def _compute_zoom_window(
    center_xy: list[float], img_w: int, img_h: int, zoom: float
) -> tuple[float, float, float, float]:
    span = min(img_w, img_h) / max(zoom, 1e-6)
    half = span / 2.0
    cx, cy = center_xy
    x0 = max(0.0, cx - half)
    x1 = min(float(img_w), cx + half)
    y0 = max(0.0, cy - half)
    y1 = min(float(img_h), cy + half)
    return x0, x1, y0, y1


def _to_detection_dicts(detections: Any) -> list[dict[str, Any]]:
    if isinstance(detections, (str, Path)):
        return [d.to_dict() for d in detections_from_json(detections)]

    out: list[dict[str, Any]] = []
    for det in detections:
        if isinstance(det, TagDetection):
            out.append(det.to_dict())
        elif isinstance(det, Mapping):
            out.append(dict(det))
        else:
            raise TypeError("detections must be TagDetection records, mappings, JSON text, or a JSON path")
    return out


def _to_image_array(image: np.ndarray | DecodedImage | str | Path) -> np.ndarray:
    if isinstance(image, np.ndarray):
        return image
    if isinstance(image, DecodedImage):
        return image.as_array()
    return load_image(image).as_array()


def plot_detections(
    *,
    image: np.ndarray | DecodedImage | str | Path,
    detections: Iterable[TagDetection] | str | Path,
    out: str | Path | None = None,
    tag_id: int | None = None,
    zoom: float | None = None,
    show_corners: bool = True,
    alpha: float = 0.8,
) -> None:
    """Render tag outlines and ids over an image.

    Parameters
    ----------
    image:
        Image array, decoded image, or path to an image file.
    detections:
        `TagDetection` records, dictionaries, JSON text, or JSON file path.
    out:
        Optional output file path. If omitted, opens an interactive window.
    tag_id:
        Optional tag id filter.
    zoom:
        Optional zoom factor (used when `tag_id` is set).
    show_corners:
        Mark corner 0 of each tag so the corner order is visible.
    alpha:
        Overlay alpha for outlines and points.
    """

    plt = _load_matplotlib(out)
    image_arr = _to_image_array(image)
    tags = _to_detection_dicts(detections)
    img_h, img_w = int(image_arr.shape[0]), int(image_arr.shape[1])

    if tag_id is not None and zoom is None:
        zoom = 4.0

    render_dpi = 100
    fig = plt.figure(
        figsize=(img_w / render_dpi, img_h / render_dpi),
        dpi=render_dpi,
        frameon=False,
    )
    ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
    if image_arr.ndim == 2:
        ax.imshow(image_arr, cmap="gray")
    else:
        ax.imshow(image_arr)
    ax.set_axis_off()

    import matplotlib.patheffects as pe

    focus = None
    for tag in tags:
        tid = tag.get("id")
        if tag_id is not None and tid != tag_id:
            continue

        corners = tag["corners"]
        cx, cy = float(tag["center"][0]), float(tag["center"][1])
        color = "lime" if tag.get("good") else "red"
        if tid == tag_id:
            focus = [cx, cy]

        xs = [float(p[0]) for p in corners] + [float(corners[0][0])]
        ys = [float(p[1]) for p in corners] + [float(corners[0][1])]
        ax.plot(xs, ys, "-", color=color, linewidth=1.5, alpha=alpha)
        if show_corners:
            ax.plot(xs[0], ys[0], "s", color="magenta", markersize=4, alpha=alpha)

        label = str(tid)
        if tag.get("hammingDistance"):
            label = f"{tid} (h={tag['hammingDistance']})"
        ax.text(
            cx,
            cy,
            label,
            fontsize=7,
            color="white",
            ha="center",
            va="center",
            path_effects=[pe.Stroke(linewidth=2.5, foreground="black"), pe.Normal()],
        )

    ax.set_xlim(0, img_w)
    ax.set_ylim(img_h, 0)
    ax.set_aspect("equal")

    if focus is not None and zoom is not None:
        x0, x1, y0, y1 = _compute_zoom_window(focus, img_w, img_h, float(zoom))
        ax.set_xlim(x0, x1)
        ax.set_ylim(y1, y0)

    if out is None:
        plt.show()
        return

    out_path = Path(out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=render_dpi, pad_inches=0)
    plt.close(fig)
