"""
Exceptions raised by perception_libs operations.
"""


class InvalidArgument(ValueError):
    """Raised when an operation receives malformed input.

    Covers wrong tuple arity, invalid box geometry, non 4x4 transforms,
    unorganized clouds where an organized one is required, and clouds without
    a renderable channel.
    """


class ConversionError(RuntimeError):
    """Raised when a buffer cannot be converted between representations."""
