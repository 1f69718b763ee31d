"""
Image buffer interchange.

Everything that turns a serialized-style image record (raw bytes + encoding)
into a numpy pixel grid, or back, goes through this module. The geometry code
only ever sees numpy arrays.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import cv2

from .errors import ConversionError, InvalidArgument

# encoding -> (dtype, channels)
ENCODINGS = {
    "mono8": (np.uint8, 1),
    "mono16": (np.uint16, 1),
    "bgr8": (np.uint8, 3),
    "rgb8": (np.uint8, 3),
    "bgra8": (np.uint8, 4),
    "rgba8": (np.uint8, 4),
    "32FC1": (np.float32, 1),
}


@dataclass(frozen=True)
class ImageRecord:
    """
    Raw image as exchanged with external collaborators.

    ``step`` is the row length in bytes. ``is_bigendian`` gives the byte order
    of multi-byte samples (mono16, 32FC1).
    """
    height: int
    width: int
    encoding: str
    step: int
    data: bytes
    frame_id: str = ""
    stamp: float = 0.0
    is_bigendian: bool = False


def _encoding_info(encoding):
    if encoding not in ENCODINGS:
        raise InvalidArgument(f"Unsupported image encoding: {encoding!r} (expected one of {sorted(ENCODINGS)})")
    dtype, channels = ENCODINGS[encoding]
    return np.dtype(dtype), channels


def image_record_to_array(record: ImageRecord, desired_encoding: Optional[str] = None) -> np.ndarray:
    """
    Convert an ImageRecord to a numpy array.

    Args:
        record: Input image record.
        desired_encoding: Optional target encoding, e.g. "bgr8" to get an
            OpenCV-ordered image from an "rgb8" record.

    Returns:
        (H, W) array for single channel encodings, (H, W, C) otherwise.
        The array owns its memory.

    Raises:
        InvalidArgument: Unknown encoding.
        ConversionError: Buffer size does not match height/step.
    """
    dtype, channels = _encoding_info(record.encoding)
    row_bytes = record.width * channels * dtype.itemsize
    if record.step < row_bytes:
        raise ConversionError(f"step {record.step} is smaller than a row of {row_bytes} bytes")
    if len(record.data) < record.step * record.height:
        raise ConversionError(
            f"buffer of {len(record.data)} bytes is too small for {record.height} rows of step {record.step}"
        )

    raw = np.frombuffer(record.data, dtype=np.uint8, count=record.step * record.height)
    rows = raw.reshape(record.height, record.step)[:, :row_bytes]
    # multi-byte samples follow the byte order declared by the record
    array = np.ascontiguousarray(rows).view(dtype.newbyteorder(">" if record.is_bigendian else "<"))
    array = array.astype(dtype)
    if channels == 1:
        array = array.reshape(record.height, record.width)
    else:
        array = array.reshape(record.height, record.width, channels)

    if desired_encoding is not None and desired_encoding != record.encoding:
        array = convert_encoding(array, record.encoding, desired_encoding)
    return array.copy()


_CONVERSIONS = {
    ("rgb8", "bgr8"): cv2.COLOR_RGB2BGR,
    ("bgr8", "rgb8"): cv2.COLOR_BGR2RGB,
    ("rgba8", "bgr8"): cv2.COLOR_RGBA2BGR,
    ("bgra8", "bgr8"): cv2.COLOR_BGRA2BGR,
    ("rgba8", "rgb8"): cv2.COLOR_RGBA2RGB,
    ("bgra8", "rgb8"): cv2.COLOR_BGRA2RGB,
    ("mono8", "bgr8"): cv2.COLOR_GRAY2BGR,
    ("mono8", "rgb8"): cv2.COLOR_GRAY2RGB,
    ("bgr8", "mono8"): cv2.COLOR_BGR2GRAY,
    ("rgb8", "mono8"): cv2.COLOR_RGB2GRAY,
}


def convert_encoding(array: np.ndarray, source: str, target: str) -> np.ndarray:
    """Convert pixel channel layout between two 8-bit encodings with OpenCV."""
    _encoding_info(source)
    _encoding_info(target)
    if source == target:
        return array.copy()
    if (source, target) not in _CONVERSIONS:
        raise InvalidArgument(f"Cannot convert image encoding {source} to {target}")
    try:
        return cv2.cvtColor(array, _CONVERSIONS[(source, target)])
    except cv2.error as e:
        raise ConversionError(f"OpenCV failed to convert {source} to {target}: {e}") from e


def array_to_image_record(array: np.ndarray, encoding: str, frame_id: str = "", stamp: float = 0.0) -> ImageRecord:
    """
    Pack a numpy image into an ImageRecord.

    Raises:
        InvalidArgument: Unknown encoding, or array shape/dtype inconsistent with it.
    """
    dtype, channels = _encoding_info(encoding)
    array = np.asarray(array)
    expected_ndim = 2 if channels == 1 else 3
    if array.ndim != expected_ndim or (channels > 1 and array.shape[2] != channels):
        raise InvalidArgument(f"array of shape {array.shape} does not match encoding {encoding}")
    if array.dtype.newbyteorder("=") != dtype:
        raise InvalidArgument(f"array dtype {array.dtype} does not match encoding {encoding} ({dtype})")

    # records are always written little-endian
    array = np.ascontiguousarray(array, dtype=dtype.newbyteorder("<"))
    height, width = array.shape[:2]
    return ImageRecord(
        height=height,
        width=width,
        encoding=encoding,
        step=width * channels * dtype.itemsize,
        data=array.tobytes(),
        frame_id=frame_id,
        stamp=stamp,
        is_bigendian=False,
    )


def as_image_array(image) -> np.ndarray:
    """Accept either an ndarray or an ImageRecord and return an ndarray (BGR for color records)."""
    if isinstance(image, ImageRecord):
        if image.encoding in ("rgb8", "rgba8", "bgra8"):
            return image_record_to_array(image, desired_encoding="bgr8")
        return image_record_to_array(image)
    if not isinstance(image, np.ndarray):
        raise InvalidArgument(f"expected a numpy array or ImageRecord, got {type(image).__name__}")
    return image
