"""
Rigid transformations of points and clouds.

Poses are (x, y, z, qx, qy, qz, qw) arrays; quaternions are scalar-last
unless ``order='wxyz'`` is given.
"""

import logging
from typing import Optional

from scipy.spatial.transform import Rotation as R
import numpy as np

from .errors import InvalidArgument
from .point_cloud import PointCloud

log = logging.getLogger(__name__)

_QUAT_ORDERS = {'xyzw': [0, 1, 2, 3], 'wxyz': [1, 2, 3, 0]}


def _rotation_from_quaternion(quaternion, order):
    if order not in _QUAT_ORDERS:
        raise InvalidArgument(f"Invalid quaternion order: {order}")
    quaternion = np.asarray(quaternion, dtype=np.float64)
    try:
        return R.from_quat(quaternion[..., _QUAT_ORDERS[order]])
    except ValueError as e:
        raise InvalidArgument(f"invalid quaternion {quaternion.tolist()}: {e}") from e


def quaternion_to_matrix(quaternion, order='xyzw'):
    """(..., 4) quaternion to (..., 3, 3) rotation matrix."""
    return _rotation_from_quaternion(quaternion, order).as_matrix()


def matrix_to_quaternion(matrix, order='xyzw'):
    """(..., 3, 3) rotation matrix to (..., 4) quaternion."""
    if order not in _QUAT_ORDERS:
        raise InvalidArgument(f"Invalid quaternion order: {order}")
    xyzw = R.from_matrix(matrix).as_quat()
    if order == 'wxyz':
        return xyzw[..., [3, 0, 1, 2]]
    return xyzw


def pose_to_transformation(pose, order='xyzw') -> np.ndarray:
    """
    Build homogeneous matrices from poses.

    Args:
        pose: (7,) or (N, 7) position + quaternion.

    Returns:
        (4, 4) or (N, 4, 4) float64 matrices.
    """
    pose = np.asarray(pose, dtype=np.float64)
    if pose.ndim not in (1, 2) or pose.shape[-1] != 7:
        raise InvalidArgument(f"pose must have shape (7,) or (N, 7), got {pose.shape}")

    matrix = np.zeros(pose.shape[:-1] + (4, 4))
    matrix[..., :3, :3] = quaternion_to_matrix(pose[..., 3:], order=order)
    matrix[..., :3, 3] = pose[..., :3]
    matrix[..., 3, 3] = 1.0
    return matrix


def transformation_to_pose(transformation, order='xyzw') -> np.ndarray:
    """Inverse of ``pose_to_transformation``: (4, 4) or (N, 4, 4) to (7,) or (N, 7)."""
    transformation = np.asarray(transformation, dtype=np.float64)
    if transformation.shape[-2:] != (4, 4) or transformation.ndim not in (2, 3):
        raise InvalidArgument(f"expected (4, 4) or (N, 4, 4) matrices, got {transformation.shape}")
    quat = matrix_to_quaternion(transformation[..., :3, :3], order=order)
    return np.concatenate([transformation[..., :3, 3], quat], axis=-1)


def invert_transformation(transformation) -> np.ndarray:
    """Inverse of a rigid (4, 4) transformation, using R^T instead of a full inverse."""
    transformation = check_transformation(transformation)
    rot_t = transformation[:3, :3].T
    inverse = np.eye(4)
    inverse[:3, :3] = rot_t
    inverse[:3, 3] = -rot_t @ transformation[:3, 3]
    return inverse


def check_transformation(transform) -> np.ndarray:
    """
    Return ``transform`` as a float64 (4, 4) array, or raise InvalidArgument.

    A (7,) pose is accepted as well and converted with ``pose_to_transformation``.
    """
    transform = np.asarray(transform)
    if not np.issubdtype(transform.dtype, np.number):
        raise InvalidArgument(f"transformation must be numeric, got dtype {transform.dtype}")
    if transform.shape == (7,):
        return pose_to_transformation(transform)
    if transform.shape != (4, 4):
        raise InvalidArgument(f"transformation is not a 4x4 matrix (got shape {transform.shape})")
    return transform.astype(np.float64)


def transform_points(points, transform):
    """Transforms an Nx3 array of points by a 4x4 transformation matrix.

    Non-finite points are returned unchanged.

    Args:
    -----
        points: Nx3 point array
        transform: 4x4 transformation matrix or (7,) pose

    Returns:
    --------
        Nx3 transformed points, same dtype as the input
    """
    transform = check_transformation(transform)
    points = np.asarray(points)
    if points.ndim != 2 or points.shape[1] != 3:
        raise InvalidArgument(f"points must have shape (N, 3), got {points.shape}")
    if not np.issubdtype(points.dtype, np.floating):
        points = points.astype(np.float64)

    out = points.copy()
    valid = np.isfinite(points).all(axis=1)
    homogeneous = np.concatenate((points[valid], np.ones((valid.sum(), 1))), axis=1)
    out[valid] = np.matmul(transform, homogeneous.T)[:-1, :].T
    return out


def transform_cloud(cloud: PointCloud, transform, frame_id: Optional[str] = None) -> PointCloud:
    """Transforms every valid point of a cloud by a 4x4 transformation matrix.

    The result keeps the grid dimensions, colors and intensity of the input.
    NaN points pass through unchanged.

    The header is copied from the input as-is: the points are now expressed in
    another frame, so the caller must set the new frame, either by passing
    ``frame_id`` here or with ``PointCloud.with_header`` afterwards.

    Args:
        cloud: Input PointCloud (organized or not).
        transform: (4, 4) transformation matrix or (7,) pose.
        frame_id: Optional frame id for the header of the result.

    Returns:
        New PointCloud.

    Raises:
        InvalidArgument: If ``transform`` is neither a 4x4 matrix nor a pose.
    """
    if not isinstance(cloud, PointCloud):
        raise InvalidArgument(f"expected a PointCloud, got {type(cloud).__name__}")
    transform = check_transformation(transform)

    points = transform_points(cloud.xyz(), transform).reshape(cloud.points.shape)
    result = PointCloud(
        points=points,
        colors=None if cloud.colors is None else cloud.colors.copy(),
        intensity=None if cloud.intensity is None else cloud.intensity.copy(),
        header=cloud.header,
    )
    if frame_id is not None:
        log.debug("Transformed cloud from frame '%s' to '%s'", cloud.header.frame_id, frame_id)
        result = result.with_header(frame_id=frame_id)
    return result
