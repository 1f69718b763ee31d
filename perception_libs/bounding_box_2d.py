"""
2D Bounding Boxes

Axis-aligned pixel boxes with a label and a display color. The same box is
used to index images and organized point clouds, so fitting a box to the
bounds of its target grid lives here.
"""

import logging
import numbers
from dataclasses import dataclass, replace
from typing import NamedTuple, Sequence, Tuple, Union

from .errors import InvalidArgument

log = logging.getLogger(__name__)

DEFAULT_COLOR = (0, 0, 255)


class Rect(NamedTuple):
    """Pixel rectangle: top-left corner plus size."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    def corners(self):
        """Corners in (x, y) order: top-left, top-right, bottom-right, bottom-left."""
        return [
            (self.x, self.y),
            (self.x2, self.y),
            (self.x2, self.y2),
            (self.x, self.y2),
        ]


def _to_int(value, name):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidArgument(f"{name} must be numeric, got {value!r}")
    return int(value)


def _parse_color(color) -> Tuple[int, int, int]:
    if isinstance(color, (str, bytes)) or not hasattr(color, "__len__") or len(color) != 3:
        raise InvalidArgument("color is not a 3-tuple containing integers")
    channels = tuple(_to_int(c, "color channel") for c in color)
    for c in channels:
        if not 0 <= c <= 255:
            raise InvalidArgument(f"color channel {c} is outside [0, 255]")
    return channels


def _parse_geometry(box) -> Rect:
    if isinstance(box, (str, bytes)) or not hasattr(box, "__len__"):
        raise InvalidArgument("box geometry is not a tuple containing 4 numerics")
    if len(box) != 4:
        raise InvalidArgument("box geometry is not a tuple containing 4 numerics")
    return Rect(*(_to_int(v, "box geometry value") for v in box))


@dataclass(frozen=True)
class BoundingBox2D:
    """
    Labeled pixel box.

    Instances are immutable: ``fit_to_image`` and ``with_geometry`` return new
    boxes so the same box can be shared between crop and draw calls.

    Attributes:
        x, y: Top-left corner in pixels.
        width, height: Size in pixels.
        label: Text drawn next to the box.
        color: (r, g, b) channel values in [0, 255].
    """
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    label: str = ""
    color: Tuple[int, int, int] = DEFAULT_COLOR

    def __post_init__(self):
        if not isinstance(self.label, str):
            raise InvalidArgument(f"label must be a string, got {type(self.label).__name__}")
        geometry = _parse_geometry((self.x, self.y, self.width, self.height))
        object.__setattr__(self, "x", geometry.x)
        object.__setattr__(self, "y", geometry.y)
        object.__setattr__(self, "width", geometry.width)
        object.__setattr__(self, "height", geometry.height)
        object.__setattr__(self, "color", _parse_color(self.color))

    @classmethod
    def from_tuple(cls, label: str, color, box) -> "BoundingBox2D":
        """
        Build a box from a label, an (r, g, b) color and an (x, y, width, height) geometry.

        Numeric values are truncated to integers.

        Raises:
            InvalidArgument: On a non-string label or wrong color/geometry arity.
        """
        if not isinstance(label, str):
            raise InvalidArgument(f"label must be a string, got {type(label).__name__}")
        rect = _parse_geometry(box)
        return cls(*rect, label=label, color=_parse_color(color))

    @classmethod
    def from_rect(cls, rect, label: str = "", color=DEFAULT_COLOR) -> "BoundingBox2D":
        return cls(*_parse_geometry(rect), label=label, color=color)

    def to_rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def with_geometry(self, rect) -> "BoundingBox2D":
        """Return a copy with new geometry, keeping label and color."""
        rect = _parse_geometry(rect)
        return replace(self, x=rect.x, y=rect.y, width=rect.width, height=rect.height)

    def fit_to_image(self, image_size, offset: int = 0) -> "BoundingBox2D":
        return self.with_geometry(fit_box_to_image(image_size, self.to_rect(), offset))

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "color": list(self.color),
            "box": list(self.to_rect()),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "BoundingBox2D":
        return cls.from_tuple(d.get("label", ""), d.get("color", DEFAULT_COLOR), d["box"])


BoxLike = Union[BoundingBox2D, Rect, Sequence[int]]


def _parse_image_size(image_size) -> Tuple[int, int]:
    if isinstance(image_size, (str, bytes)) or not hasattr(image_size, "__len__") or len(image_size) != 2:
        raise InvalidArgument("image size is not a tuple containing 2 numerics")
    width, height = (_to_int(v, "image size value") for v in image_size)
    return width, height


def fit_box_to_image(image_size, box: BoxLike, offset: int = 0):
    """
    Clamp a box to the bounds of an image, after growing it by ``offset`` pixels per side.

    A negative offset shrinks the box. The result is the intersection of the
    grown box with [0, width) x [0, height).

    Args:
        image_size: (width, height) of the target image or organized cloud.
        box: BoundingBox2D, Rect or (x, y, width, height).
        offset: Margin in pixels added on each side before clamping.

    Returns:
        Same type family as the input: a new BoundingBox2D for a BoundingBox2D,
        otherwise a Rect.

    Raises:
        InvalidArgument: If the fitted width or height would be <= 0.
    """
    width, height = _parse_image_size(image_size)
    offset = _to_int(offset, "offset")
    rect = box.to_rect() if isinstance(box, BoundingBox2D) else _parse_geometry(box)

    x1 = max(rect.x - offset, 0)
    y1 = max(rect.y - offset, 0)
    x2 = min(rect.x + rect.width + offset, width)
    y2 = min(rect.y + rect.height + offset, height)

    fitted = Rect(x1, y1, x2 - x1, y2 - y1)
    if fitted.is_empty:
        raise InvalidArgument(
            f"box {tuple(rect)} with offset {offset} does not overlap image of size "
            f"{width}x{height} (fitted size {fitted.width}x{fitted.height})"
        )

    if fitted != rect:
        log.debug("Fitted box %s to %s for image %dx%d", tuple(rect), tuple(fitted), width, height)

    if isinstance(box, BoundingBox2D):
        return box.with_geometry(fitted)
    return fitted
