"""
Point cloud value type.

A cloud is stored as a grid of points with shape (H, W, 3). Organized clouds
(H > 1) map 1:1 onto the pixels of the camera image they were captured with;
unorganized clouds are stored with H == 1. Invalid points are NaN.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np
import open3d as o3d

from .errors import InvalidArgument


@dataclass(frozen=True)
class CloudHeader:
    frame_id: str = ""
    stamp: float = 0.0


def _to_uint8_colors(colors: np.ndarray) -> np.ndarray:
    """
    Float colors are taken to be in [0, 1] (as Open3D uses them) and scaled to
    [0, 255]; integer colors must already be in [0, 255].
    """
    if colors.dtype == np.uint8:
        return colors
    if np.issubdtype(colors.dtype, np.floating):
        if not np.isfinite(colors).all() or colors.min(initial=0.0) < 0.0 or colors.max(initial=0.0) > 1.0:
            raise InvalidArgument("float colors must be finite and in [0, 1]")
        return np.round(colors * 255.0).astype(np.uint8)
    if np.issubdtype(colors.dtype, np.integer) or colors.dtype == np.bool_:
        if colors.min(initial=0) < 0 or colors.max(initial=0) > 255:
            raise InvalidArgument(
                f"integer colors must be in [0, 255], got range [{colors.min()}, {colors.max()}]"
            )
        return colors.astype(np.uint8)
    raise InvalidArgument(f"colors must be numeric, got dtype {colors.dtype}")


@dataclass(frozen=True, eq=False)
class PointCloud:
    """
    Attributes:
        points: (H, W, 3) float32 xyz coordinates, NaN for invalid points.
        colors: Optional (H, W, 3) uint8 RGB colors. Float input is read as
            [0, 1] and scaled.
        intensity: Optional (H, W) float32 intensity.
        header: Frame and timestamp of the points.
    """
    points: np.ndarray
    colors: Optional[np.ndarray] = None
    intensity: Optional[np.ndarray] = None
    header: CloudHeader = field(default_factory=CloudHeader)

    def __post_init__(self):
        points = np.asarray(self.points, dtype=np.float32)
        if points.ndim != 3 or points.shape[2] != 3:
            raise InvalidArgument(f"points must have shape (H, W, 3), got {points.shape}")
        object.__setattr__(self, "points", points)

        if self.colors is not None:
            colors = np.asarray(self.colors)
            if colors.shape != points.shape:
                raise InvalidArgument(f"colors shape {colors.shape} does not match points shape {points.shape}")
            object.__setattr__(self, "colors", _to_uint8_colors(colors))

        if self.intensity is not None:
            intensity = np.asarray(self.intensity, dtype=np.float32)
            if intensity.shape != points.shape[:2]:
                raise InvalidArgument(
                    f"intensity shape {intensity.shape} does not match grid shape {points.shape[:2]}"
                )
            object.__setattr__(self, "intensity", intensity)

    @property
    def height(self) -> int:
        return self.points.shape[0]

    @property
    def width(self) -> int:
        return self.points.shape[1]

    @property
    def is_organized(self) -> bool:
        return self.height > 1

    @property
    def size(self) -> int:
        return self.height * self.width

    def valid_mask(self) -> np.ndarray:
        """(H, W) boolean mask of points with finite coordinates."""
        return np.isfinite(self.points).all(axis=-1)

    def xyz(self) -> np.ndarray:
        """All points as an (N, 3) array in row-major order, NaNs included."""
        return self.points.reshape(-1, 3)

    def with_header(self, frame_id: Optional[str] = None, stamp: Optional[float] = None) -> "PointCloud":
        header = CloudHeader(
            frame_id=self.header.frame_id if frame_id is None else frame_id,
            stamp=self.header.stamp if stamp is None else stamp,
        )
        return replace(self, header=header)

    @classmethod
    def from_unorganized(cls, points, colors=None, intensity=None, header: Optional[CloudHeader] = None):
        """Wrap an (N, 3) array as a cloud of height 1."""
        points = np.asarray(points, dtype=np.float32)
        if points.ndim != 2 or points.shape[1] != 3:
            raise InvalidArgument(f"points must have shape (N, 3), got {points.shape}")
        return cls(
            points=points[np.newaxis],
            colors=None if colors is None else np.asarray(colors)[np.newaxis],
            intensity=None if intensity is None else np.asarray(intensity)[np.newaxis],
            header=header or CloudHeader(),
        )

    @classmethod
    def from_structured_array(cls, array: np.ndarray, header: Optional[CloudHeader] = None):
        """
        Build a cloud from a numpy structured array with fields x, y, z and
        optionally rgb (packed float32, 0x00RRGGBB) and intensity.

        Args:
            array: (H, W) or (N,) structured array.
            header: Optional header for the cloud.
        """
        names = array.dtype.names or ()
        for name in ("x", "y", "z"):
            if name not in names:
                raise InvalidArgument(f"structured cloud has no '{name}' field (fields: {names})")
        if array.ndim == 1:
            array = array[np.newaxis]
        elif array.ndim != 2:
            raise InvalidArgument(f"structured cloud must be 1D or 2D, got shape {array.shape}")

        points = np.stack([array["x"], array["y"], array["z"]], axis=-1).astype(np.float32)
        colors = unpack_rgb(array["rgb"]) if "rgb" in names else None
        intensity = array["intensity"] if "intensity" in names else None
        return cls(points=points, colors=colors, intensity=intensity, header=header or CloudHeader())

    def to_open3d(self) -> o3d.geometry.PointCloud:
        """Convert valid points (and colors) to an Open3D point cloud for visualization."""
        mask = self.valid_mask().reshape(-1)
        pcd_o3d = o3d.geometry.PointCloud()
        pcd_o3d.points = o3d.utility.Vector3dVector(self.xyz()[mask].astype(np.float64))
        if self.colors is not None:
            colors = self.colors.reshape(-1, 3)[mask] / 255.0
            pcd_o3d.colors = o3d.utility.Vector3dVector(colors)
        return pcd_o3d


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """Unpack float32 packed 0x00RRGGBB colors to (..., 3) uint8 RGB."""
    bits = np.ascontiguousarray(packed, dtype=np.float32).view(np.uint32)
    r = (bits >> 16) & 0xFF
    g = (bits >> 8) & 0xFF
    b = bits & 0xFF
    return np.stack([r, g, b], axis=-1).astype(np.uint8)


def pack_rgb(colors: np.ndarray) -> np.ndarray:
    """Pack (..., 3) uint8 RGB colors into float32 0x00RRGGBB values."""
    colors = np.asarray(colors, dtype=np.uint32)
    bits = (colors[..., 0] << 16) | (colors[..., 1] << 8) | colors[..., 2]
    return np.ascontiguousarray(bits, dtype=np.uint32).view(np.float32)
