"""
Pinhole camera calibration and projection.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .errors import InvalidArgument


@dataclass(frozen=True, eq=False)
class CameraInfo:
    """
    Calibration of a camera.

    Attributes:
        width, height: Image size in pixels.
        K: (3, 3) intrinsic matrix.
        D: Distortion coefficients. Projection assumes a rectified image and
            does not apply them.
        P: Optional (3, 4) projection matrix of the rectified image. When it
            is not given, [K | 0] is used.
        frame_id: Optical frame of the camera.
    """
    width: int
    height: int
    K: np.ndarray
    D: np.ndarray = field(default_factory=lambda: np.zeros(5))
    P: Optional[np.ndarray] = None
    frame_id: str = ""

    def __post_init__(self):
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise InvalidArgument(f"camera image size must be positive, got {self.width}x{self.height}")
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))

        K = np.asarray(self.K, dtype=np.float64)
        if K.size != 9:
            raise InvalidArgument(f"K must have 9 elements, got {K.size}")
        object.__setattr__(self, "K", K.reshape(3, 3))
        object.__setattr__(self, "D", np.asarray(self.D, dtype=np.float64).reshape(-1))

        if self.P is not None:
            P = np.asarray(self.P, dtype=np.float64)
            if P.size != 12:
                raise InvalidArgument(f"P must have 12 elements, got {P.size}")
            object.__setattr__(self, "P", P.reshape(3, 4))

    @classmethod
    def from_dict(cls, d: dict) -> "CameraInfo":
        """Build from a dict with keys width, height, K and optionally D, P, frame_id (flat lists allowed)."""
        try:
            return cls(
                width=d["width"],
                height=d["height"],
                K=d["K"],
                D=d.get("D", np.zeros(5)),
                P=d.get("P"),
                frame_id=d.get("frame_id", ""),
            )
        except KeyError as e:
            raise InvalidArgument(f"camera info is missing key {e}") from e

    @property
    def projection_matrix(self) -> np.ndarray:
        if self.P is not None:
            return self.P
        P = np.zeros((3, 4))
        P[:, :3] = self.K
        return P

    @property
    def image_size(self):
        return self.width, self.height


def project_points(points, camera_info: CameraInfo):
    """
    Project 3D points in the camera optical frame to pixel coordinates.

    Args:
        points: (N, 3) array.
        camera_info: CameraInfo of the target image.

    Returns:
        uv: (N, 2) float array of pixel coordinates (NaN where the point is
            at or behind the camera plane).
        in_front: (N,) boolean mask of points with positive depth.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise InvalidArgument(f"points must have shape (N, 3), got {points.shape}")

    homogeneous = np.concatenate((points, np.ones((points.shape[0], 1))), axis=1)
    uvw = homogeneous @ camera_info.projection_matrix.T
    in_front = points[:, 2] > 0

    uv = np.full((points.shape[0], 2), np.nan)
    uv[in_front] = uvw[in_front, :2] / uvw[in_front, 2:3]
    return uv, in_front
