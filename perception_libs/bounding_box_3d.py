"""
3D Bounding Boxes

Oriented boxes fitted to a set of points around a given up direction (for
objects resting on a plane, the plane normal). The footprint is the minimum
area rectangle of the points projected onto the plane, and the box spans the
full range of the points along the normal.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import cv2

from .errors import InvalidArgument
from .transforms import check_transformation, invert_transformation, transform_points, transformation_to_pose

log = logging.getLogger(__name__)


def _plane_basis(normal):
    """Two unit vectors spanning the plane orthogonal to ``normal``."""
    helper = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(helper, normal)) > 0.9:
        helper = np.array([0.0, 1.0, 0.0])
    u = helper - np.dot(helper, normal) * normal
    u /= np.linalg.norm(u)
    v = np.cross(normal, u)
    return u, v


@dataclass(frozen=True, eq=False)
class BoundingBox3D:
    """
    Attributes:
        center: (3,) box center.
        dimensions: (3,) extent along the columns of ``rotation``.
        rotation: (3, 3) rotation matrix, third column is the fitting normal.
        vertices: (8, 3) corners, the 4 bottom ones then the 4 top ones.
        frame_id: Frame of the points the box was fitted to.
    """
    center: np.ndarray
    dimensions: np.ndarray
    rotation: np.ndarray
    vertices: np.ndarray
    frame_id: str = ""

    @classmethod
    def from_points(cls, points, normal=(0.0, 0.0, 1.0), frame_id: str = "") -> "BoundingBox3D":
        """
        Fit a box to a point set.

        Args:
            points: (N, 3) array, non-finite rows are ignored.
            normal: Up direction of the box.
            frame_id: Frame of the points.

        Raises:
            InvalidArgument: Fewer than 3 valid points or a zero normal.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise InvalidArgument(f"points must have shape (N, 3), got {points.shape}")
        points = points[np.isfinite(points).all(axis=1)]
        if len(points) < 3:
            raise InvalidArgument(f"need at least 3 valid points to fit a box, got {len(points)}")

        normal = np.asarray(normal, dtype=np.float64).reshape(-1)
        if normal.shape != (3,) or np.linalg.norm(normal) == 0:
            raise InvalidArgument(f"normal must be a non-zero 3-vector, got {normal}")
        normal = normal / np.linalg.norm(normal)

        u, v = _plane_basis(normal)
        planar = np.stack([points @ u, points @ v], axis=1).astype(np.float32)
        heights = points @ normal

        rect = cv2.minAreaRect(planar)
        corners = cv2.boxPoints(rect).astype(np.float64)
        h_min, h_max = heights.min(), heights.max()

        base = corners[:, :1] * u + corners[:, 1:2] * v
        vertices = np.concatenate([base + h_min * normal, base + h_max * normal], axis=0)
        center = vertices.mean(axis=0)

        angle = np.deg2rad(rect[2])
        x_axis = np.cos(angle) * u + np.sin(angle) * v
        y_axis = np.cross(normal, x_axis)
        rotation = np.stack([x_axis, y_axis, normal], axis=1)

        local = (vertices - center) @ rotation
        dimensions = local.max(axis=0) - local.min(axis=0)

        log.debug("Fitted box to %d points: center %s, dimensions %s", len(points), center, dimensions)
        return cls(center=center, dimensions=dimensions, rotation=rotation, vertices=vertices, frame_id=frame_id)

    def get_pose(self):
        """Return (position (3,), quaternion xyzw (4,))."""
        pose = transformation_to_pose(self.to_transformation())
        return pose[:3], pose[3:]

    def to_transformation(self) -> np.ndarray:
        """(4, 4) box-to-frame transformation: box axes as rotation, center as translation."""
        transformation = np.eye(4)
        transformation[:3, :3] = self.rotation
        transformation[:3, 3] = self.center
        return transformation

    def transformed(self, transform, frame_id: Optional[str] = None) -> "BoundingBox3D":
        """
        Move the box rigidly into another frame.

        Args:
            transform: (4, 4) matrix or (7,) pose from the box frame to the new one.
            frame_id: Frame of the result; defaults to the current frame_id.
        """
        transform = check_transformation(transform)
        moved = transform @ self.to_transformation()
        return BoundingBox3D(
            center=moved[:3, 3],
            dimensions=self.dimensions.copy(),
            rotation=moved[:3, :3],
            vertices=transform_points(self.vertices, transform),
            frame_id=self.frame_id if frame_id is None else frame_id,
        )

    def contains(self, points, tolerance: float = 1e-6) -> np.ndarray:
        """
        Boolean mask of the (N, 3) points lying inside the box. NaN points are outside.
        """
        points = np.asarray(points, dtype=np.float64)
        local = transform_points(points, invert_transformation(self.to_transformation()))
        half = self.dimensions / 2.0 + tolerance
        with np.errstate(invalid="ignore"):
            return (np.abs(local) <= half).all(axis=1)

    def to_dict(self) -> dict:
        position, quaternion = self.get_pose()
        return {
            "frame_id": self.frame_id,
            "center": position.tolist(),
            "orientation": quaternion.tolist(),
            "dimensions": self.dimensions.tolist(),
            "vertices": self.vertices.tolist(),
        }
