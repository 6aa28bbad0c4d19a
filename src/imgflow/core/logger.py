"""
Logging Configuration
=====================

Centralized logging for the imgflow package.

Everything logs under the ``imgflow`` logger, which writes to stderr and
still propagates so host applications (and pytest's caplog) see records.
The level comes from ``[logging].level`` in the config cascade when the
global config is first loaded, and can be changed with set_level().

Messages about one step of one workflow go through get_step_logger(), which
prefixes them with ``[workflow/step]`` so interleaved output stays readable.

Usage:
    from imgflow.core.logger import get_logger, get_step_logger

    logger = get_logger(__name__)
    logger.info("Workflow loaded")

    step_logger = get_step_logger(__name__, "pdf-to-web", "resize")
    step_logger.debug("Checking parameters")   # "[pdf-to-web/resize] Checking parameters"
"""

import logging
import sys
from typing import Any, MutableMapping, Tuple, Union

PACKAGE_NAME = "imgflow"
LOG_FORMAT = "%(levelname)s - %(name)s - %(message)s"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the specified module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured Logger instance
    """
    _ensure_configured()
    return logging.getLogger(name)


class StepLogAdapter(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with the workflow and step name."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        workflow = self.extra.get("workflow") or "?"
        step = self.extra.get("step") or "?"
        return f"[{workflow}/{step}] {msg}", kwargs


def get_step_logger(name: str, workflow_name: str, step_name: str) -> StepLogAdapter:
    """
    Get a logger whose messages name one workflow step.

    Unnamed workflows and steps show as ``?``.
    """
    return StepLogAdapter(get_logger(name), {"workflow": workflow_name, "step": step_name})


def _ensure_configured() -> None:
    """Configure the package logger if not already done."""
    global _configured
    if _configured:
        return

    logger = logging.getLogger(PACKAGE_NAME)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    _configured = True


def set_level(level: Union[int, str]) -> None:
    """
    Set the logging level for the imgflow package.

    Args:
        level: Logging level (e.g., logging.DEBUG) or its name ("warning").
            Unknown names log a warning and leave the level at INFO.
    """
    _ensure_configured()
    package_logger = logging.getLogger(PACKAGE_NAME)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            package_logger.setLevel(logging.INFO)
            package_logger.warning(f"Unknown log level '{level}', using INFO")
            return
        level = resolved
    package_logger.setLevel(level)
