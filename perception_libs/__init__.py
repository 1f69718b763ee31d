"""
Perception Libs

Bounding box cropping, organized point cloud and projection utilities for
robot perception.
"""

from .errors import InvalidArgument, ConversionError
from .bounding_box_2d import BoundingBox2D, Rect, fit_box_to_image
from .bounding_box_3d import BoundingBox3D
from .camera import CameraInfo, project_points
from .converters import ImageRecord, image_record_to_array, array_to_image_record
from .image_utils import crop_image, draw_labeled_boxes
from .point_cloud import PointCloud, CloudHeader
from .point_cloud_utils import (
    crop_organized_cloud,
    crop_cloud_to_xyz,
    cloud_to_image,
    cloud_to_image_record,
)
from .transforms import transform_cloud, transform_points
from .image_bounding_box import project_box, extract_crops_and_boxes
from .config import load_config

__version__ = "0.1.0"
__all__ = [
    'InvalidArgument',
    'ConversionError',
    'BoundingBox2D',
    'Rect',
    'fit_box_to_image',
    'BoundingBox3D',
    'CameraInfo',
    'project_points',
    'ImageRecord',
    'image_record_to_array',
    'array_to_image_record',
    'crop_image',
    'draw_labeled_boxes',
    'PointCloud',
    'CloudHeader',
    'crop_organized_cloud',
    'crop_cloud_to_xyz',
    'cloud_to_image',
    'cloud_to_image_record',
    'transform_cloud',
    'transform_points',
    'project_box',
    'extract_crops_and_boxes',
    'load_config',
]
