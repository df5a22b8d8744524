#!/usr/bin/env python3
"""Minimal detection example.

Run from repository root after:
  pip install -e .

Example:
  python examples/basic_detect.py --image data/tag36h11.png
  python examples/basic_detect.py --image data/aprilgrid.png --black-border 2
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import tagdetect


def main() -> None:
    parser = argparse.ArgumentParser(description="Run AprilTag detection on one image")
    parser.add_argument("--image", required=True, type=Path, help="Input image path")
    parser.add_argument("--family", default="36h11", help="Tag family identifier")
    parser.add_argument(
        "--black-border",
        type=int,
        default=1,
        choices=(1, 2),
        help="Border width in bits (2 for AprilGrid targets)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Optional output detections JSON path",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    image = tagdetect.load_image(args.image)
    print(f"Image dimensions: {image.width}x{image.height}")

    with tagdetect.create_detector(args.family, {"blackBorder": args.black_border}) as detector:
        detections = detector.detect(image.buffer, image.width, image.height)

    print(f"Detected {len(detections)} tags:")
    for i, tag in enumerate(detections, start=1):
        print(
            f"  Tag {i}: ID={tag.id}, Center=[{tag.center[0]:.1f}, {tag.center[1]:.1f}], "
            f"Hamming={tag.hamming_distance}"
        )

    if args.out is not None:
        tagdetect.detections_to_json(detections, args.out)
        print(f"Wrote {args.out}")


if __name__ == "__main__":
    main()
