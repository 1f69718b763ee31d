import numpy as np
import pytest

from perception_libs.camera import CameraInfo
from perception_libs.point_cloud import CloudHeader, PointCloud


@pytest.fixture
def image():
    """100x100 BGR image with distinct pixel values."""
    return (np.arange(100 * 100 * 3) % 251).astype(np.uint8).reshape(100, 100, 3)


@pytest.fixture
def organized_cloud():
    """6x8 organized cloud where point (r, c) is (c, r, r * 8 + c), with one NaN point."""
    height, width = 6, 8
    rows, cols = np.mgrid[0:height, 0:width]
    points = np.stack([cols, rows, rows * width + cols], axis=-1).astype(np.float32)
    points[2, 3] = np.nan
    return PointCloud(points=points, header=CloudHeader(frame_id="camera_optical", stamp=12.5))


@pytest.fixture
def camera_info():
    return CameraInfo(
        width=100,
        height=100,
        K=[100.0, 0.0, 50.0, 0.0, 100.0, 50.0, 0.0, 0.0, 1.0],
        frame_id="camera_optical",
    )
