"""
Image cropping and box drawing with OpenCV.

Images are numpy arrays in OpenCV layout: (H, W) or (H, W, C), BGR channel
order for color images. None of the functions here modify their input.
"""

import logging
from typing import Iterable, Optional

import numpy as np
import cv2

from .bounding_box_2d import BoundingBox2D, fit_box_to_image
from .config import get_default_config
from .converters import as_image_array
from .errors import InvalidArgument

log = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX
LABEL_MARGIN = 5


def image_size(image: np.ndarray):
    """(width, height) of an image array."""
    if image.ndim not in (2, 3):
        raise InvalidArgument(f"image must have 2 or 3 dimensions, got shape {image.shape}")
    return image.shape[1], image.shape[0]


def crop_image(image, box, offset: int = 0, return_box: bool = False):
    """
    Crop an image to a box, after fitting the box to the image.

    Args:
        image: (H, W) or (H, W, C) numpy array, or an ImageRecord.
        box: BoundingBox2D, Rect or (x, y, width, height).
        offset: Pixels added on each side of the box before clamping.
        return_box: If True, also return the fitted box.

    Returns:
        The cropped copy, or (cropped, fitted_box) if return_box is set.

    Raises:
        InvalidArgument: If the fitted box has zero area.
    """
    image = as_image_array(image)
    fitted = fit_box_to_image(image_size(image), box, offset)
    rect = fitted.to_rect() if isinstance(fitted, BoundingBox2D) else fitted
    cropped = image[rect.y:rect.y2, rect.x:rect.x2].copy()
    log.debug("Cropped %s region %s -> %s", image.shape, tuple(rect), cropped.shape)
    if return_box:
        return cropped, fitted
    return cropped


def _bgr(color):
    r, g, b = color
    return (int(b), int(g), int(r))


def _label_origin(box: BoundingBox2D, text_height: int, baseline: int):
    """Put the label above the box when it fits, otherwise just inside the top edge."""
    if box.y - LABEL_MARGIN - text_height >= 0:
        return box.x, box.y - LABEL_MARGIN
    return box.x + LABEL_MARGIN, box.y + text_height + baseline + LABEL_MARGIN


def draw_labeled_boxes(
    image,
    boxes: Iterable[BoundingBox2D],
    thickness: Optional[int] = None,
    font_scale: Optional[float] = None,
) -> np.ndarray:
    """
    Draw box outlines and labels on a copy of an image.

    Boxes are drawn in list order, each in its own color. Grayscale images are
    converted to BGR first so the colors stay visible.

    Args:
        image: (H, W) or (H, W, 3) uint8 array, or an ImageRecord.
        boxes: BoundingBox2D objects.
        thickness: Line thickness in pixels. Defaults to config drawing.thickness.
        font_scale: OpenCV font scale. Defaults to config drawing.font_scale.

    Returns:
        New (H, W, 3) image with the boxes drawn.
    """
    cfg = get_default_config()
    thickness = cfg.drawing.thickness if thickness is None else int(thickness)
    font_scale = cfg.drawing.font_scale if font_scale is None else float(font_scale)
    if thickness <= 0:
        raise InvalidArgument(f"thickness must be positive, got {thickness}")
    if font_scale <= 0:
        raise InvalidArgument(f"font scale must be positive, got {font_scale}")

    image = as_image_array(image)
    if image.ndim == 2:
        canvas = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif image.ndim == 3 and image.shape[2] == 3:
        canvas = image.copy()
    else:
        raise InvalidArgument(f"can only draw on grayscale or 3-channel images, got shape {image.shape}")

    for box in boxes:
        if not isinstance(box, BoundingBox2D):
            raise InvalidArgument(f"expected BoundingBox2D, got {type(box).__name__}")
        color = _bgr(box.color)
        cv2.rectangle(canvas, (box.x, box.y), (box.x + box.width - 1, box.y + box.height - 1), color, thickness)
        if not box.label:
            continue
        (_, text_height), baseline = cv2.getTextSize(box.label, FONT, font_scale, thickness)
        cv2.putText(canvas, box.label, _label_origin(box, text_height, baseline), FONT,
                    font_scale, color, thickness, cv2.LINE_AA)

    return canvas
