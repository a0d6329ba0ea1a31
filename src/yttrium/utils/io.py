"""
File helpers for camera calibration and recorded datasets.

Intrinsics files and dataset frame indexes are YAML documents; a missing
file is reported as ResourceNotFound so that assembly and dataset loading
surface one error kind.
"""

from pathlib import Path
from typing import Any

import yaml

from yttrium.errors import ResourceNotFound


def ensure_dir(path: Path) -> Path:
    """Create a dataset directory (and parents) if needed and return it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Read a calibration or frame-index YAML document.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed mapping; an empty document yields an empty dict.

    Raises:
        ResourceNotFound: If the file does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceNotFound(f"YAML file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def save_yaml(data: dict[str, Any], path: Path) -> None:
    """Write a frame index (or any mapping) as block-style YAML, keeping key order."""
    path = Path(path)
    ensure_dir(path.parent)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
