"""
Path Utilities
==============

Input file checks and directory helpers used before a workflow run.
"""

import os
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from imgflow.core.logger import get_logger

logger = get_logger(__name__)

# File kind -> accepted extensions (compared case-insensitively)
INPUT_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    "pdf": (".pdf",),
    "excel": (".xlsx", ".xls"),
    "image": (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".webp"),
}

_KIND_LABELS = {
    "pdf": "a PDF",
    "excel": "an Excel file",
    "image": "a supported image format",
}


def validate_input_file(path: Union[str, Path], kind: str = "any") -> Optional[str]:
    """
    Check that an input file exists, is readable and has the expected type.

    Args:
        path: File to check
        kind: One of "any", "pdf", "excel", "image"

    Returns:
        None if valid, error message if invalid
    """
    p = Path(path)
    if not p.is_file():
        return f"File does not exist: {path}"
    if not os.access(p, os.R_OK):
        return f"Cannot read file: {path}"

    if kind == "any":
        return None
    if kind not in INPUT_EXTENSIONS:
        raise ValueError(f"Unknown input kind: {kind!r}")

    if p.suffix.lower() not in INPUT_EXTENSIONS[kind]:
        return f"File is not {_KIND_LABELS[kind]}: {path}"
    return None


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory

    Returns:
        The path to the directory as a Path object
    """
    path = Path(path)
    if not path.is_dir():
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created directory: {path}")
    return path
