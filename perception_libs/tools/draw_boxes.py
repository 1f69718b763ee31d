"""
Draw labeled boxes on an image file and optionally save one crop per box.

Boxes are read from a YAML list:

    - label: cup
      color: [255, 0, 0]
      box: [10, 20, 50, 40]
"""

import argparse
import logging
import sys
from pathlib import Path

import cv2
import yaml

from perception_libs.bounding_box_2d import BoundingBox2D
from perception_libs.config import load_config
from perception_libs.errors import InvalidArgument
from perception_libs.image_utils import crop_image, draw_labeled_boxes

log = logging.getLogger(__name__)


def load_boxes(path):
    """Read a YAML list of boxes into BoundingBox2D objects."""
    with open(path, "r") as f:
        entries = yaml.safe_load(f) or []
    if not isinstance(entries, list):
        raise InvalidArgument(f"boxes file must contain a list, got {type(entries).__name__}: {path}")
    return [BoundingBox2D.from_dict(entry) for entry in entries]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Draw labeled bounding boxes on an image')
    parser.add_argument('image', type=Path, help='Input image file')
    parser.add_argument('boxes', type=Path, help='YAML file with a list of boxes')
    parser.add_argument('--output', type=Path, default=None,
                        help='Where to write the annotated image (default: <image>_boxes.png)')
    parser.add_argument('--crop-dir', type=Path, default=None,
                        help='Directory to save one crop per box')
    parser.add_argument('--offset', type=int, default=None,
                        help='Pixels added around each box when cropping (default: from config)')
    parser.add_argument('--config', type=Path, default=None,
                        help='YAML config overriding drawing/crop defaults')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    cfg = load_config(args.config)
    offset = cfg.crop.offset if args.offset is None else args.offset

    image = cv2.imread(str(args.image))
    if image is None:
        log.error("Image not found or unreadable: %s", args.image)
        return 1

    try:
        boxes = load_boxes(args.boxes)
    except (InvalidArgument, KeyError) as e:
        log.error("Invalid boxes file %s: %s", args.boxes, e)
        return 1
    log.info("Loaded %d boxes from %s", len(boxes), args.boxes)

    annotated = draw_labeled_boxes(image, boxes, cfg.drawing.thickness, cfg.drawing.font_scale)
    output = args.output or args.image.with_name(f"{args.image.stem}_boxes.png")
    cv2.imwrite(str(output), annotated)
    log.info("Saved annotated image to %s", output)

    if args.crop_dir is not None:
        args.crop_dir.mkdir(parents=True, exist_ok=True)
        for i, box in enumerate(boxes):
            try:
                crop = crop_image(image, box, offset)
            except InvalidArgument as e:
                log.warning("Skipping box %d (%s): %s", i, box.label, e)
                continue
            crop_path = args.crop_dir / f"{i:03d}_{box.label or 'box'}.png"
            cv2.imwrite(str(crop_path), crop)
        log.info("Saved crops to %s", args.crop_dir)

    return 0


if __name__ == '__main__':
    sys.exit(main())
