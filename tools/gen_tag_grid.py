#!/usr/bin/env python3
"""Render reference AprilTag sheets.

Usage:
    python tools/gen_tag_grid.py --out data/tag36h11.png --rows 4 --cols 6
    # Grid-calibration sheet with double-width borders:
    python tools/gen_tag_grid.py --out data/aprilgrid.png --rows 6 --cols 6 --black-border 2

Dependencies: opencv-python, numpy (via tagdetect).
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

import cv2

from tagdetect.sheets import render_tag_sheet


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--out", required=True, type=Path, help="Output PNG path")
    parser.add_argument("--family", default="36h11")
    parser.add_argument("--rows", type=int, default=4)
    parser.add_argument("--cols", type=int, default=6)
    parser.add_argument("--black-border", type=int, default=1, choices=(1, 2))
    parser.add_argument("--cell-px", type=int, default=12, help="Pixels per tag cell")
    parser.add_argument("--gap-cells", type=int, default=2, help="White gap between tags, in cells")
    parser.add_argument("--first-id", type=int, default=0)
    args = parser.parse_args()

    sheet = render_tag_sheet(
        args.family,
        args.rows,
        args.cols,
        black_border=args.black_border,
        cell_px=args.cell_px,
        gap_cells=args.gap_cells,
        first_id=args.first_id,
    )

    args.out.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(args.out), sheet):
        print(f"failed to write {args.out}", file=sys.stderr)
        return 1

    meta = {
        "family": args.family,
        "blackBorder": args.black_border,
        "ids": list(range(args.first_id, args.first_id + args.rows * args.cols)),
        "image_size": [int(sheet.shape[1]), int(sheet.shape[0])],
    }
    meta_path = args.out.with_suffix(".json")
    meta_path.write_text(json.dumps(meta, indent=2), encoding="utf-8")
    print(f"wrote {args.out} and {meta_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
