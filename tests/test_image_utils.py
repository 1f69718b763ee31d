import numpy as np
import pytest

from perception_libs.bounding_box_2d import BoundingBox2D, Rect
from perception_libs.converters import array_to_image_record
from perception_libs.errors import InvalidArgument
from perception_libs.image_utils import crop_image, draw_labeled_boxes


def test_crop_matches_slice(image):
    box = BoundingBox2D(12, 30, 25, 17)
    cropped = crop_image(image, box)

    assert cropped.shape == (17, 25, 3)
    np.testing.assert_array_equal(cropped, image[30:47, 12:37])


def test_crop_clamped_box(image):
    box = BoundingBox2D.from_tuple("obj", (0, 255, 0), (90, 90, 20, 20))
    cropped, fitted = crop_image(image, box, 0, return_box=True)

    assert cropped.shape == (10, 10, 3)
    assert fitted.to_rect() == Rect(90, 90, 10, 10)
    np.testing.assert_array_equal(cropped, image[90:, 90:])


def test_crop_with_offset(image):
    cropped = crop_image(image, (10, 10, 5, 5), offset=2)
    np.testing.assert_array_equal(cropped, image[8:17, 8:17])


def test_crop_returns_copy(image):
    original = image.copy()
    cropped = crop_image(image, (0, 0, 10, 10))
    cropped[:] = 0
    np.testing.assert_array_equal(image, original)


def test_crop_grayscale(image):
    gray = image[..., 0]
    assert crop_image(gray, (5, 5, 3, 4)).shape == (4, 3)


def test_crop_without_area_fails(image):
    with pytest.raises(InvalidArgument):
        crop_image(image, (200, 200, 10, 10))
    with pytest.raises(InvalidArgument):
        crop_image(image, (10, 10, 2, 2), offset=-1)


def test_crop_image_record_is_converted_to_bgr():
    rgb = np.zeros((4, 6, 3), dtype=np.uint8)
    rgb[..., 0] = 200
    record = array_to_image_record(rgb, "rgb8")

    cropped = crop_image(record, (1, 1, 2, 2))
    assert cropped.shape == (2, 2, 3)
    assert (cropped[..., 2] == 200).all()
    assert (cropped[..., 0] == 0).all()


def test_draw_does_not_modify_input():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    box = BoundingBox2D(20, 50, 40, 30, label="cup", color=(255, 0, 0))

    drawn = draw_labeled_boxes(image, [box], thickness=1, font_scale=0.5)

    assert drawn.shape == image.shape
    assert not image.any()
    assert drawn.any()


def test_draw_rectangle_in_box_color():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    box = BoundingBox2D(20, 50, 40, 30, color=(255, 0, 0))

    drawn = draw_labeled_boxes(image, [box], thickness=1, font_scale=0.5)

    # RGB red in BGR order
    np.testing.assert_array_equal(drawn[50, 20], [0, 0, 255])
    np.testing.assert_array_equal(drawn[79, 59], [0, 0, 255])
    np.testing.assert_array_equal(drawn[65, 40], [0, 0, 0])


def test_draw_label_above_box():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    unlabeled = draw_labeled_boxes(image, [BoundingBox2D(20, 50, 40, 30)], thickness=1, font_scale=0.5)
    labeled = draw_labeled_boxes(image, [BoundingBox2D(20, 50, 40, 30, label="cup")], thickness=1, font_scale=0.5)

    assert not unlabeled[:49].any()
    assert labeled[:49].any()


def test_draw_later_boxes_on_top():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    first = BoundingBox2D(10, 10, 20, 20, color=(255, 0, 0))
    second = BoundingBox2D(10, 10, 20, 20, color=(0, 255, 0))

    drawn = draw_labeled_boxes(image, [first, second], thickness=1)
    np.testing.assert_array_equal(drawn[10, 10], [0, 255, 0])


def test_draw_on_grayscale_returns_color_image():
    image = np.zeros((50, 50), dtype=np.uint8)
    drawn = draw_labeled_boxes(image, [BoundingBox2D(5, 5, 10, 10, color=(0, 0, 255))], thickness=1)

    assert drawn.shape == (50, 50, 3)
    np.testing.assert_array_equal(drawn[5, 5], [255, 0, 0])


def test_draw_rejects_bad_arguments():
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    with pytest.raises(InvalidArgument):
        draw_labeled_boxes(image, [(0, 0, 5, 5)])
    with pytest.raises(InvalidArgument):
        draw_labeled_boxes(image, [], thickness=0)
    with pytest.raises(InvalidArgument):
        draw_labeled_boxes(np.zeros((10, 10, 4), dtype=np.uint8), [])
