"""
Image crops of projected bounding boxes.

Projects 3D boxes (or plain 2D pixel boxes) into a camera image, computes the
enclosing pixel region of each one and crops the image to it.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .bounding_box_2d import BoundingBox2D, Rect, fit_box_to_image
from .bounding_box_3d import BoundingBox3D
from .camera import CameraInfo, project_points
from .converters import as_image_array
from .errors import InvalidArgument
from .image_utils import image_size

log = logging.getLogger(__name__)

EMPTY_RECT = Rect(0, 0, 0, 0)


def _enclosing_region(vertices_2d: np.ndarray, width: int, height: int) -> Rect:
    """Pixel rectangle enclosing the vertices, intersected with the image."""
    x1 = max(int(np.floor(vertices_2d[:, 0].min())), 0)
    y1 = max(int(np.floor(vertices_2d[:, 1].min())), 0)
    x2 = min(int(np.ceil(vertices_2d[:, 0].max())), width)
    y2 = min(int(np.ceil(vertices_2d[:, 1].max())), height)
    if x2 <= x1 or y2 <= y1:
        return EMPTY_RECT
    return Rect(x1, y1, x2 - x1, y2 - y1)


def project_box(box, camera_info: CameraInfo) -> Tuple[Rect, np.ndarray]:
    """
    Project a box into the image plane of a camera.

    Args:
        box: BoundingBox3D, an (8, 3) vertex array in the camera optical
            frame, or a BoundingBox2D already in pixel coordinates.
        camera_info: Calibration of the target image.

    Returns:
        region: Enclosing pixel Rect clipped to the image. Empty (zero size)
            when the box is entirely outside the image or reaches behind the
            camera.
        vertices_2d: (8, 2) float32 projected vertices for 3D boxes, (4, 2)
            corners for 2D boxes. Not clipped.
    """
    width, height = camera_info.image_size

    if isinstance(box, BoundingBox2D):
        vertices_2d = np.asarray(box.to_rect().corners(), dtype=np.float32)
        try:
            region = fit_box_to_image((width, height), box.to_rect())
        except InvalidArgument:
            region = EMPTY_RECT
        return region, vertices_2d

    vertices = box.vertices if isinstance(box, BoundingBox3D) else np.asarray(box, dtype=np.float64)
    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise InvalidArgument(f"box vertices must have shape (N, 3), got {vertices.shape}")

    uv, in_front = project_points(vertices, camera_info)
    vertices_2d = uv.astype(np.float32)
    if not in_front.all():
        log.warning("Box reaches behind the camera plane, returning an empty region")
        return EMPTY_RECT, vertices_2d
    return _enclosing_region(uv, width, height), vertices_2d


def extract_crops_and_boxes(image, camera_info: CameraInfo, boxes: Sequence) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Crop an image to the projection of each box.

    Args:
        image: (H, W[, C]) array or ImageRecord matching ``camera_info``.
        camera_info: Calibration of the image.
        boxes: BoundingBox3D objects, (8, 3) vertex arrays or BoundingBox2D objects.

    Returns:
        crops: One image per box, in input order. Boxes that fall outside the
            image give an empty (0, 0[, C]) crop; callers filter those.
        vertices: One array of projected 2D vertices per box.
    """
    image = as_image_array(image)
    if image_size(image) != camera_info.image_size:
        raise InvalidArgument(
            f"image size {image_size(image)} does not match camera info size {camera_info.image_size}"
        )

    crops = []
    box_vertices = []
    for i, box in enumerate(boxes):
        region, vertices_2d = project_box(box, camera_info)
        crop = image[region.y:region.y2, region.x:region.x2].copy()
        if region.is_empty:
            log.debug("Box %d projects outside the image", i)
            crop = np.zeros((0, 0) + image.shape[2:], dtype=image.dtype)
        crops.append(crop)
        box_vertices.append(vertices_2d)

    return crops, box_vertices
