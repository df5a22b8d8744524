#!/usr/bin/env python3
"""Run detection and render an overlay image.

Requires plotting extras:
  pip install -e .[viz]

Example:
  python examples/plot_detection.py \
    --image data/aprilgrid.png \
    --black-border 2 \
    --out data/aprilgrid_overlay.png
"""

from __future__ import annotations

import argparse
from pathlib import Path

import tagdetect
from tagdetect import viz


def main() -> None:
    parser = argparse.ArgumentParser(description="Detect and plot AprilTags")
    parser.add_argument("--image", required=True, type=Path, help="Input image path")
    parser.add_argument("--out", required=True, type=Path, help="Output overlay PNG path")
    parser.add_argument("--family", default="36h11", help="Tag family identifier")
    parser.add_argument("--black-border", type=int, default=1, choices=(1, 2))
    args = parser.parse_args()

    image = tagdetect.load_image(args.image)
    detector = tagdetect.create_detector(args.family, {"blackBorder": args.black_border})
    detections = detector.detect(image.buffer, image.width, image.height)

    viz.plot_detections(image=image, detections=detections, out=args.out)
    print(f"Wrote {args.out} ({len(detections)} tags)")


if __name__ == "__main__":
    main()
