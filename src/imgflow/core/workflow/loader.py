# core/workflow/loader.py
"""
Workflow Loader
===============

Resolves a workflow reference to a document and parses it.

A reference is tried, in order, as:
1. a path to an existing file
2. a name in the built-in catalog (<builtin_dir>/<name>.yaml)
3. a name in the user catalog (<user_dir>/<name>.yaml)

Example:
    from imgflow.core.workflow.loader import load_workflow, list_workflows

    workflow = load_workflow("pdf-to-web")
    for entry in list_workflows():
        print(entry.name, entry.origin)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from imgflow.core.config import Config, get_config
from imgflow.core.exceptions import WorkflowLoadError, WorkflowNotFoundError
from imgflow.core.logger import get_logger

from .parser import Workflow, parse_workflow

logger = get_logger(__name__)

__all__ = [
    "CATALOG_SUFFIX",
    "CatalogEntry",
    "load_workflow",
    "list_workflows",
    "describe_workflow",
]

CATALOG_SUFFIX = ".yaml"


@dataclass
class CatalogEntry:
    """A workflow available by name from a catalog directory."""

    name: str
    origin: str  # "builtin" or "user"
    path: Path


def _catalog_dirs(
    builtin_dir: Optional[Union[str, Path]],
    user_dir: Optional[Union[str, Path]],
    config: Optional[Config],
) -> Tuple[Path, Path]:
    if builtin_dir is None or user_dir is None:
        config = config or get_config()
    builtin = Path(builtin_dir) if builtin_dir is not None else config.builtin_catalog_dir
    user = Path(user_dir).expanduser() if user_dir is not None else config.user_catalog_dir
    return builtin, user


def load_workflow(
    reference: Union[str, Path],
    scope_id: str = "workflow",
    builtin_dir: Optional[Union[str, Path]] = None,
    user_dir: Optional[Union[str, Path]] = None,
    config: Optional[Config] = None,
) -> Workflow:
    """
    Resolve and parse a workflow.

    Args:
        reference: File path or catalog name
        scope_id: Id of the variable scopes the workflow will run under
        builtin_dir: Built-in catalog directory (defaults from config)
        user_dir: User catalog directory (defaults from config)
        config: Configuration to read catalog directories from

    Returns:
        Parsed Workflow

    Raises:
        WorkflowNotFoundError: If no location holds the workflow
        WorkflowLoadError: If the file exists but can't be read
        WorkflowParseError: If the document is malformed
    """
    direct = Path(reference).expanduser()
    if direct.is_file():
        if not os.access(direct, os.R_OK):
            raise WorkflowLoadError(f"Cannot read workflow file: {direct}")
        logger.debug(f"Loading workflow from file: {direct}")
        return parse_workflow(direct, scope_id)

    builtin, user = _catalog_dirs(builtin_dir, user_dir, config)
    name = str(reference)

    builtin_file = builtin / f"{name}{CATALOG_SUFFIX}"
    if builtin_file.is_file():
        logger.debug(f"Loading built-in workflow: {name}")
        return parse_workflow(builtin_file, scope_id)

    user_file = user / f"{name}{CATALOG_SUFFIX}"
    if user_file.is_file():
        logger.debug(f"Loading user workflow: {name}")
        return parse_workflow(user_file, scope_id)

    raise WorkflowNotFoundError(name, [direct, builtin_file, user_file])


def list_workflows(
    builtin_dir: Optional[Union[str, Path]] = None,
    user_dir: Optional[Union[str, Path]] = None,
    config: Optional[Config] = None,
) -> List[CatalogEntry]:
    """
    List catalog workflows, built-in first, each group sorted by name.

    A user workflow sharing a built-in's name is still listed, but
    load_workflow() resolves that name to the built-in.
    """
    builtin, user = _catalog_dirs(builtin_dir, user_dir, config)

    entries: List[CatalogEntry] = []
    for origin, directory in (("builtin", builtin), ("user", user)):
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob(f"*{CATALOG_SUFFIX}")):
            if path.is_file():
                entries.append(CatalogEntry(name=path.stem, origin=origin, path=path))
    return entries


def describe_workflow(workflow: Workflow) -> str:
    """Render a human-readable dump of a workflow's contents."""
    lines = [
        f"=== Workflow ({workflow.scope_id}) ===",
        f"Name: {workflow.name}",
        f"Description: {workflow.description}",
        f"Version: {workflow.version}",
        f"Steps: {workflow.step_count}",
    ]

    for step in workflow.steps:
        lines.append(f"  Step {step.index}:")
        lines.append(f"    Name: {step.name}")
        lines.append(f"    Type: {step.type_name}")
        lines.append(f"    Description: {step.description}")
        lines.append(f"    Condition: {step.condition or ''}")
        if step.params:
            lines.append("    Parameters:")
            for key, value in step.params.items():
                lines.append(f"      {key}: {value}")

    lines.append("Settings:")
    for key, value in workflow.settings.items():
        lines.append(f"  {key}: {value}")

    lines.append("Hooks:")
    for point, commands in workflow.hooks.items():
        lines.append(f"  {point.value}: {' | '.join(commands)}")

    return "\n".join(lines)
