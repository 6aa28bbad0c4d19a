"""
Controllers
===========

Operation-level entry points that return ControllerResult objects instead
of raising.
"""

from .base import BaseController, ControllerResult, ToDictMixin
from .workflow import (
    CatalogSummary,
    RunContext,
    ValidationSummary,
    WorkflowController,
    WorkflowSummary,
)

__all__ = [
    "BaseController",
    "ControllerResult",
    "ToDictMixin",
    "WorkflowController",
    "WorkflowSummary",
    "ValidationSummary",
    "CatalogSummary",
    "RunContext",
]
