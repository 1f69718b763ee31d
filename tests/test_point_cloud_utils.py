import numpy as np
import pytest

from perception_libs.bounding_box_2d import BoundingBox2D
from perception_libs.errors import InvalidArgument
from perception_libs.point_cloud import CloudHeader, PointCloud
from perception_libs.point_cloud_utils import (
    cloud_to_image,
    cloud_to_image_record,
    crop_cloud_to_xyz,
    crop_organized_cloud,
)


def test_crop_unorganized_cloud_fails():
    cloud = PointCloud.from_unorganized(np.zeros((10, 3)))
    with pytest.raises(InvalidArgument, match="not organized"):
        crop_organized_cloud(cloud, (0, 0, 2, 2))
    with pytest.raises(InvalidArgument, match="not organized"):
        crop_cloud_to_xyz(cloud, (0, 0, 2, 2))


def test_crop_organized_cloud(organized_cloud):
    box = BoundingBox2D(2, 1, 4, 3)
    cropped = crop_organized_cloud(organized_cloud, box)

    assert (cropped.height, cropped.width) == (3, 4)
    assert cropped.header == organized_cloud.header
    np.testing.assert_array_equal(cropped.points, organized_cloud.points[1:4, 2:6])
    # point (row 2, col 3) of the input is NaN
    assert np.isnan(cropped.points[1, 1]).all()
    np.testing.assert_array_equal(cropped.points[0, 0], [2, 1, 10])


def test_crop_organized_cloud_clamps_box(organized_cloud):
    cropped = crop_organized_cloud(organized_cloud, (6, 4, 10, 10))
    assert (cropped.height, cropped.width) == (2, 2)
    np.testing.assert_array_equal(cropped.points[-1, -1], [7, 5, 47])


def test_crop_outside_cloud_fails(organized_cloud):
    with pytest.raises(InvalidArgument):
        crop_organized_cloud(organized_cloud, (8, 0, 2, 2))


def test_crop_does_not_share_memory(organized_cloud):
    cropped = crop_organized_cloud(organized_cloud, (0, 0, 2, 2))
    assert not np.shares_memory(cropped.points, organized_cloud.points)


def test_crop_carries_colors_and_intensity(organized_cloud):
    colors = np.zeros(organized_cloud.points.shape, dtype=np.uint8)
    colors[1, 2] = (1, 2, 3)
    intensity = np.arange(48, dtype=np.float32).reshape(6, 8)
    cloud = PointCloud(points=organized_cloud.points, colors=colors, intensity=intensity)

    cropped = crop_organized_cloud(cloud, (2, 1, 2, 2))
    np.testing.assert_array_equal(cropped.colors[0, 0], [1, 2, 3])
    np.testing.assert_array_equal(cropped.intensity, [[10, 11], [18, 19]])


def test_crop_to_xyz_matches_cropped_cloud(organized_cloud):
    box = BoundingBox2D(1, 1, 5, 4)
    xyz = crop_cloud_to_xyz(organized_cloud, box)
    cropped = crop_organized_cloud(organized_cloud, box)

    assert xyz.shape == (box.width * box.height, 3)
    assert xyz.dtype == np.float32
    np.testing.assert_array_equal(xyz, cropped.points.reshape(-1, 3))
    # row-major scan order
    np.testing.assert_array_equal(xyz[5], [1, 2, 17])


def test_cloud_to_image_uses_colors(organized_cloud):
    colors = np.zeros(organized_cloud.points.shape, dtype=np.uint8)
    colors[..., 0] = 255
    cloud = PointCloud(points=organized_cloud.points, colors=colors)

    image = cloud_to_image(cloud)
    assert image.shape == (6, 8, 3)
    assert image.dtype == np.uint8
    assert (image[..., 2] == 255).all()
    assert (image[..., 0] == 0).all()


def test_cloud_to_image_from_intensity(organized_cloud):
    intensity = np.arange(48, dtype=np.float32).reshape(6, 8)
    cloud = PointCloud(points=organized_cloud.points, intensity=intensity)

    image = cloud_to_image(cloud)
    assert image.shape == (6, 8)
    assert image[0, 0] == 0
    assert image[-1, -1] == 255


def test_cloud_to_image_from_range(organized_cloud):
    image = cloud_to_image(organized_cloud)

    assert image.shape == (6, 8)
    assert image[0, 0] == 0
    assert image[-1, -1] == 255
    # invalid points are black
    assert image[2, 3] == 0


def test_cloud_to_image_without_renderable_channel_fails():
    cloud = PointCloud(points=np.full((3, 4, 3), np.nan, dtype=np.float32))
    with pytest.raises(InvalidArgument):
        cloud_to_image(cloud)


def test_cloud_to_image_nan_intensity_falls_back_to_range(organized_cloud):
    intensity = np.full((6, 8), np.nan, dtype=np.float32)
    cloud = PointCloud(points=organized_cloud.points, intensity=intensity)

    image = cloud_to_image(cloud)
    np.testing.assert_array_equal(image, cloud_to_image(organized_cloud))
    assert image.any()


def test_cloud_to_image_nan_intensity_and_points_fails():
    cloud = PointCloud(
        points=np.full((3, 4, 3), np.nan, dtype=np.float32),
        intensity=np.full((3, 4), np.nan, dtype=np.float32),
    )
    with pytest.raises(InvalidArgument):
        cloud_to_image(cloud)


def test_cloud_to_image_unorganized_fails():
    with pytest.raises(InvalidArgument, match="not organized"):
        cloud_to_image(PointCloud.from_unorganized(np.ones((5, 3))))


def test_cloud_to_image_record(organized_cloud):
    colors = np.zeros(organized_cloud.points.shape, dtype=np.uint8)
    colors[..., 1] = 128
    cloud = PointCloud(points=organized_cloud.points, colors=colors, header=CloudHeader("cam", 3.0))

    record = cloud_to_image_record(cloud)
    assert (record.height, record.width, record.encoding) == (6, 8, "bgr8")
    assert (record.frame_id, record.stamp) == ("cam", 3.0)
    assert len(record.data) == 6 * 8 * 3


def test_cloud_to_image_record_requires_colors(organized_cloud):
    with pytest.raises(InvalidArgument, match="rgb"):
        cloud_to_image_record(organized_cloud)
