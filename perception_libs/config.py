"""
YAML configuration for drawing and cropping defaults.

Values are returned as an EasyDict so they can be accessed as attributes,
e.g. ``cfg.drawing.thickness``.
"""

import copy
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from easydict import EasyDict

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "drawing": {
        "thickness": 2,
        "font_scale": 0.6,
    },
    "crop": {
        "offset": 0,
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> EasyDict:
    """
    Load configuration from a YAML file, filling missing keys from DEFAULT_CONFIG.

    Args:
        path: Path to a YAML file. If None, the defaults are returned.

    Returns:
        EasyDict with the merged configuration.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file does not contain a YAML mapping.
    """
    if path is None:
        return EasyDict(copy.deepcopy(DEFAULT_CONFIG))

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        content = yaml.safe_load(f) or {}

    if not isinstance(content, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(content).__name__}: {path}")

    log.debug("Loaded config from %s", path)
    return EasyDict(_merge(DEFAULT_CONFIG, content))


def get_default_config() -> EasyDict:
    """Fresh copy of DEFAULT_CONFIG as an EasyDict; no file is read."""
    return load_config()
