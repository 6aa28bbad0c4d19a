"""
Custom Exception Classes for Workflow Handling

This module defines the exception classes raised while locating, reading and
configuring workflows. Validation problems are never raised: they are
collected into a ValidationReport (see imgflow.core.workflow.validator).

The exceptions follow Python's standard exception hierarchy and include
meaningful default messages while allowing customization when needed.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union


class ImgflowError(Exception):
    """
    Base class for all imgflow errors.

    Attributes:
        message (str): Explanation of the error
    """

    def __init__(self, message: str = "An imgflow error occurred.") -> None:
        super().__init__(message)
        self.message = message


class WorkflowLoadError(ImgflowError):
    """
    Exception raised when a workflow document cannot be loaded.

    This covers unreadable files as well as the more specific
    not-found and parse failures below.
    """

    def __init__(self, message: str = "Failed to load workflow.") -> None:
        super().__init__(message)


class WorkflowNotFoundError(WorkflowLoadError):
    """
    Exception raised when a workflow reference resolves to no document.

    Attributes:
        reference (str): The reference that was looked up
        searched (List[Path]): Every location that was tried, in order
    """

    def __init__(self, reference: str, searched: Sequence[Union[str, Path]]) -> None:
        self.reference = reference
        self.searched: List[Path] = [Path(p) for p in searched]
        locations = "\n".join(f"  - {p}" for p in self.searched)
        super().__init__(f"Workflow not found: {reference}\nSearched locations:\n{locations}")


class WorkflowParseError(WorkflowLoadError):
    """
    Exception raised when a workflow document is syntactically malformed.

    Missing fields are not parse errors; they default at parse time and are
    reported by validation.

    Attributes:
        path (Optional[Path]): Document that failed to parse, if read from disk
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)


class ConfigError(ImgflowError):
    """Exception raised for unreadable or malformed configuration files."""

    def __init__(self, message: str = "Invalid configuration.") -> None:
        super().__init__(message)
