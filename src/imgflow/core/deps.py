# core/deps.py
"""
External tool dependency checks.

imgflow never runs the image-processing binaries itself; the execution
coordinator does. Validation only needs to know whether each tool is on
PATH, and for OCR steps which tesseract languages are installed.
"""

import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from imgflow.core.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Tool Data Structures
# =============================================================================


@dataclass
class ToolStatus:
    """Presence of one external tool."""

    name: str
    description: str
    installed: bool
    path: Optional[str] = None
    install_hint: Optional[str] = None


# Tool name -> (description, install hint)
KNOWN_TOOLS: Dict[str, Tuple[str, str]] = {
    "convert": ("ImageMagick image conversion", "apt install imagemagick / brew install imagemagick"),
    "identify": ("ImageMagick image inspection", "apt install imagemagick / brew install imagemagick"),
    "composite": ("ImageMagick image compositing", "apt install imagemagick / brew install imagemagick"),
    "pdfimages": ("PDF image extraction (poppler)", "apt install poppler-utils / brew install poppler"),
    "unzip": ("Archive extraction", "apt install unzip"),
    "tesseract": ("OCR engine", "apt install tesseract-ocr / brew install tesseract"),
    "curl": ("HTTP client for webhooks", "apt install curl / brew install curl"),
}

# Step type -> [(tool, required)]. Optional tools only cause a skip at run time.
STEP_TOOLS: Dict[str, List[Tuple[str, bool]]] = {
    "pdf_extract": [("pdfimages", True)],
    "excel_extract": [("unzip", True)],
    "convert": [("convert", True)],
    "resize": [("convert", True)],
    "watermark": [("composite", True)],
    "ocr": [("tesseract", True)],
    "webhook": [("curl", False)],
    "custom": [],
}


# =============================================================================
# Individual Checks
# =============================================================================


def is_tool_available(name: str) -> bool:
    """Return True if ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None


def check_tool(name: str) -> ToolStatus:
    """Check a single tool and describe it."""
    path = shutil.which(name)
    description, hint = KNOWN_TOOLS.get(name, (name, None))
    return ToolStatus(
        name=name,
        description=description,
        installed=path is not None,
        path=path,
        install_hint=None if path else hint,
    )


def check_tools(names: Iterable[str]) -> List[ToolStatus]:
    """Check several tools, preserving order and dropping duplicates."""
    seen = set()
    statuses = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        statuses.append(check_tool(name))
    return statuses


def list_tesseract_languages() -> List[str]:
    """
    List the language packs tesseract reports as installed.

    Returns:
        Language codes (e.g. ["eng", "osd"]); empty if tesseract is missing
        or the listing fails.
    """
    if not is_tool_available("tesseract"):
        return []

    try:
        result = subprocess.run(
            ["tesseract", "--list-langs"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Could not list tesseract languages: {e}")
        return []

    # Some tesseract builds print the listing on stderr
    output = result.stdout or result.stderr
    languages = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.lower().startswith("list of available languages"):
            continue
        languages.append(line)
    return languages
