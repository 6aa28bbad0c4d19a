"""
imgflow - Declarative Image Processing Workflows
================================================

Load, validate and prepare YAML image-processing workflows whose steps are
carried out by external tools (ImageMagick, poppler, tesseract).

Version: 0.3.0
"""

__version__ = "0.3.0"

from imgflow.core.exceptions import (
    ConfigError,
    ImgflowError,
    WorkflowLoadError,
    WorkflowNotFoundError,
    WorkflowParseError,
)

__all__ = [
    "__version__",
    # Exceptions
    "ImgflowError",
    "WorkflowLoadError",
    "WorkflowNotFoundError",
    "WorkflowParseError",
    "ConfigError",
]
