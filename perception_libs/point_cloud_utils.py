"""
Organized Point Cloud Utilities

Cropping organized clouds with pixel boxes and rendering them as images.
Because an organized cloud has one point per camera pixel, the same
BoundingBox2D that crops the image also crops the cloud.
"""

import logging

import numpy as np
import cv2

from .bounding_box_2d import BoundingBox2D, Rect, fit_box_to_image
from .converters import ImageRecord, array_to_image_record
from .errors import InvalidArgument
from .point_cloud import PointCloud

log = logging.getLogger(__name__)


def _check_organized(cloud: PointCloud):
    if not isinstance(cloud, PointCloud):
        raise InvalidArgument(f"expected a PointCloud, got {type(cloud).__name__}")
    if not cloud.is_organized:
        raise InvalidArgument(f"Input point cloud is not organized! (height={cloud.height})")


def _fit_to_cloud(cloud: PointCloud, box) -> Rect:
    fitted = fit_box_to_image((cloud.width, cloud.height), box, 0)
    return fitted.to_rect() if isinstance(fitted, BoundingBox2D) else fitted


def crop_organized_cloud(cloud: PointCloud, box) -> PointCloud:
    """
    Crop an organized cloud to the points under a pixel box.

    Args:
        cloud: Organized PointCloud (height > 1).
        box: BoundingBox2D, Rect or (x, y, width, height); clamped to the cloud grid.

    Returns:
        New organized PointCloud of shape (box.height, box.width) with the
        same header. Row/column order and NaN points are preserved.

    Raises:
        InvalidArgument: If the cloud is not organized or the box misses the grid.
    """
    _check_organized(cloud)
    rect = _fit_to_cloud(cloud, box)
    rows = slice(rect.y, rect.y2)
    cols = slice(rect.x, rect.x2)
    log.debug("Cropping cloud %dx%d to %s", cloud.width, cloud.height, tuple(rect))
    return PointCloud(
        points=cloud.points[rows, cols].copy(),
        colors=None if cloud.colors is None else cloud.colors[rows, cols].copy(),
        intensity=None if cloud.intensity is None else cloud.intensity[rows, cols].copy(),
        header=cloud.header,
    )


def crop_cloud_to_xyz(cloud: PointCloud, box) -> np.ndarray:
    """
    Crop an organized cloud and return the coordinates only.

    Returns:
        (box.width * box.height, 3) float32 array in row-major scan order,
        NaN points included.
    """
    cropped = crop_organized_cloud(cloud, box)
    return cropped.xyz().copy()


def _normalize_to_uint8(values: np.ndarray, valid: np.ndarray) -> np.ndarray:
    """Scale valid values to [0, 255]; invalid pixels become 0."""
    image = np.zeros(values.shape, dtype=np.uint8)
    if not valid.any():
        return image
    v = values[valid].astype(np.float64)
    v_min, v_max = v.min(), v.max()
    if v_max > v_min:
        scaled = (v - v_min) / (v_max - v_min) * 255.0
    else:
        scaled = np.full(v.shape, 255.0)
    image[valid] = np.round(scaled).astype(np.uint8)
    return image


def cloud_to_image(cloud: PointCloud) -> np.ndarray:
    """
    Render an organized cloud as an image with the same rows and columns.

    The cloud colors are used when present and returned as a BGR (H, W, 3)
    image. Otherwise a grayscale (H, W) image is computed from intensity, or
    from the range of each point when there is no finite intensity either.

    Raises:
        InvalidArgument: If the cloud is not organized or has nothing to render.
    """
    _check_organized(cloud)

    if cloud.colors is not None:
        return cv2.cvtColor(np.ascontiguousarray(cloud.colors), cv2.COLOR_RGB2BGR)

    if cloud.intensity is not None:
        valid = np.isfinite(cloud.intensity)
        if valid.any():
            return _normalize_to_uint8(np.nan_to_num(cloud.intensity), valid)
        log.debug("Intensity has no finite values, rendering range instead")

    valid = cloud.valid_mask()
    if not valid.any():
        raise InvalidArgument("point cloud has no color, intensity or valid points to render")
    ranges = np.linalg.norm(np.nan_to_num(cloud.points), axis=-1)
    return _normalize_to_uint8(ranges, valid)


def cloud_to_image_record(cloud: PointCloud) -> ImageRecord:
    """
    Extract the color channel of an organized cloud as a bgr8 ImageRecord.

    The record carries the frame and stamp of the cloud header.

    Raises:
        InvalidArgument: If the cloud is not organized or carries no colors.
    """
    _check_organized(cloud)
    if cloud.colors is None:
        raise InvalidArgument("point cloud has no rgb field to extract an image from")
    image = cloud_to_image(cloud)
    return array_to_image_record(image, "bgr8", frame_id=cloud.header.frame_id, stamp=cloud.header.stamp)
