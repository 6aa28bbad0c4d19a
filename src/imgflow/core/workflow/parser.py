# core/workflow/parser.py
"""
Workflow Parser
===============

Workflow document model and parser.

Workflows are written in YAML (or TOML) with the following structure:

```yaml
name: pdf-to-web
description: "Extract images from a PDF and prepare them for the web"
version: "1.0"

settings:
  output_dir: ./web-images

steps:
  - name: extract
    type: pdf_extract
    params:
      input: "{workflow_input}"
      output_dir: "{temp_dir}/extracted"
      format: png

  - name: resize
    type: resize
    condition: "extracted_count > 0"
    params:
      max_width: 1200
      quality: 85

hooks:
  on_success:
    - "echo done"
```

Parsing only shapes data: absent fields default to empty values and are
reported later by validation. Only syntactically broken documents raise.

This module provides:
- Workflow: Immutable parsed workflow
- WorkflowStep: One step of a workflow
- StepType / HookPoint: Known step types and hook points
- ParamMap: Read-only, case-insensitive parameter mapping
- parse_workflow: Parse a workflow file
- parse_workflow_string: Parse workflow text
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from imgflow.core.exceptions import WorkflowLoadError, WorkflowParseError
from imgflow.core.logger import get_logger

from .values import to_text

logger = get_logger(__name__)

# Use tomli for Python < 3.11, tomllib for Python >= 3.11
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

__all__ = [
    "StepType",
    "HookPoint",
    "ParamMap",
    "WorkflowStep",
    "Workflow",
    "parse_workflow",
    "parse_workflow_string",
    "read_document",
]

YAML_SUFFIXES = (".yaml", ".yml")
TOML_SUFFIXES = (".toml",)


class StepType(Enum):
    """Kinds of steps the execution coordinator knows how to run."""

    PDF_EXTRACT = "pdf_extract"
    EXCEL_EXTRACT = "excel_extract"
    CONVERT = "convert"
    RESIZE = "resize"
    WATERMARK = "watermark"
    OCR = "ocr"
    WEBHOOK = "webhook"
    CUSTOM = "custom"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["StepType"]:
        """Look up a step type by its document name; None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


class HookPoint(Enum):
    """Points in a run where hook commands are executed."""

    PRE_WORKFLOW = "pre_workflow"
    POST_STEP = "post_step"
    ON_SUCCESS = "on_success"
    ON_FAILURE = "on_failure"


class ParamMap(Mapping[str, str]):
    """Read-only mapping whose keys are canonicalized to lower case."""

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (params or {}).items():
            self._data[str(key).strip().lower()] = to_text(value)

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return self._data == dict(other.items())
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._data.items())))

    def __repr__(self) -> str:
        return f"ParamMap({self._data!r})"


@dataclass(frozen=True)
class WorkflowStep:
    """
    A single step in a workflow.

    Attributes:
        index: Zero-based position of the step in its workflow
        name: Step name
        type_name: Step type exactly as written in the document
        description: Human-readable description
        condition: Optional guard expression (see condition.py)
        params: Step parameters, keys lower-cased
        source_path: Document the step was read from
    """

    index: int
    name: str
    type_name: str
    description: str = ""
    condition: Optional[str] = None
    params: ParamMap = field(default_factory=ParamMap)
    source_path: Optional[str] = None

    @property
    def step_type(self) -> Optional[StepType]:
        """The StepType, or None when the document names an unknown type."""
        return StepType.from_name(self.type_name)

    def get_param(self, name: str, default: str = "") -> str:
        """Look up a parameter; absent parameters give ``default``."""
        return self.params.get(name.lower(), default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a document-shaped dictionary."""
        d: Dict[str, Any] = {"name": self.name, "type": self.type_name}
        if self.description:
            d["description"] = self.description
        if self.condition:
            d["condition"] = self.condition
        if self.params:
            d["params"] = dict(self.params)
        return d

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        index: int,
        source_path: Optional[str] = None,
    ) -> "WorkflowStep":
        """Create from a document step entry; absent fields default."""
        params = data.get("params") or {}
        if not isinstance(params, Mapping):
            logger.warning(f"Step {index}: 'params' is not a mapping, ignoring it")
            params = {}

        condition = data.get("condition")
        return cls(
            index=index,
            name=to_text(data.get("name")).strip(),
            type_name=to_text(data.get("type")).strip(),
            description=to_text(data.get("description")),
            condition=to_text(condition) if condition is not None else None,
            params=ParamMap(params),
            source_path=source_path,
        )


@dataclass(frozen=True)
class Workflow:
    """
    A complete, immutable workflow definition.

    Attributes:
        name: Workflow name (its identity)
        description: Workflow description
        version: Workflow version
        steps: Steps in document order; steps[i].index == i
        settings: Workflow-level settings, keys lower-cased
        hooks: Hook commands per hook point; empty hook points are absent
        source_path: Document the workflow was parsed from
        scope_id: Id of the variable scopes this workflow runs under
    """

    name: str
    description: str = ""
    version: str = ""
    steps: Tuple[WorkflowStep, ...] = ()
    settings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    hooks: Mapping[HookPoint, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    source_path: Optional[str] = None
    scope_id: str = "workflow"

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]

    def get_step(self, index: int) -> WorkflowStep:
        """Get step by index."""
        if not 0 <= index < len(self.steps):
            raise IndexError(f"Workflow '{self.name}' has no step {index}")
        return self.steps[index]

    def get_param(self, index: int, name: str, default: str = "") -> str:
        """Get a parameter of the step at ``index``."""
        return self.get_step(index).get_param(name, default)

    def get_setting(self, name: str, default: str = "") -> str:
        return self.settings.get(name.lower(), default)

    def get_hooks(self, point: Union[HookPoint, str]) -> Tuple[str, ...]:
        """Get the hook commands registered for ``point`` (possibly empty)."""
        if isinstance(point, str):
            point = HookPoint(point)
        return self.hooks.get(point, ())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a document-shaped dictionary."""
        d: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "version": self.version,
        }
        if self.settings:
            d["settings"] = dict(self.settings)
        d["steps"] = [step.to_dict() for step in self.steps]
        if self.hooks:
            d["hooks"] = {point.value: list(cmds) for point, cmds in self.hooks.items()}
        return d

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        source_path: Optional[str] = None,
        scope_id: str = "workflow",
    ) -> "Workflow":
        """Create from a parsed document; absent fields default."""
        steps_data = data.get("steps") or []
        if not isinstance(steps_data, list):
            logger.warning("'steps' is not a list, treating the workflow as having no steps")
            steps_data = []

        steps = []
        for idx, step_data in enumerate(steps_data):
            if not isinstance(step_data, Mapping):
                logger.warning(f"Step {idx} is not a mapping, reading it as an empty step")
                step_data = {}
            steps.append(WorkflowStep.from_dict(step_data, idx, source_path))

        settings_data = data.get("settings") or {}
        if not isinstance(settings_data, Mapping):
            logger.warning("'settings' is not a mapping, ignoring it")
            settings_data = {}
        settings = {str(k).strip().lower(): to_text(v) for k, v in settings_data.items()}

        return cls(
            name=to_text(data.get("name")).strip(),
            description=to_text(data.get("description")).strip(),
            version=to_text(data.get("version")).strip(),
            steps=tuple(steps),
            settings=MappingProxyType(settings),
            hooks=MappingProxyType(_parse_hooks(data.get("hooks"))),
            source_path=source_path,
            scope_id=scope_id,
        )


def _parse_hooks(hooks_data: Any) -> Dict[HookPoint, Tuple[str, ...]]:
    """Read hook command lists, dropping unknown and empty hook points."""
    if not hooks_data:
        return {}
    if not isinstance(hooks_data, Mapping):
        logger.warning("'hooks' is not a mapping, ignoring it")
        return {}

    hooks: Dict[HookPoint, Tuple[str, ...]] = {}
    for name, commands in hooks_data.items():
        try:
            point = HookPoint(str(name).strip().lower())
        except ValueError:
            logger.warning(f"Ignoring unknown hook point '{name}'")
            continue

        if isinstance(commands, str):
            commands = [commands]
        elif not isinstance(commands, list):
            commands = []
        cleaned = tuple(to_text(c) for c in commands if c is not None and to_text(c).strip())
        if cleaned:
            hooks[point] = cleaned
    return hooks


# =============================================================================
# Document reading
# =============================================================================


def _format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in TOML_SUFFIXES:
        return "toml"
    return "yaml"


def _load_text(content: str, fmt: str, path: Optional[Path] = None) -> Dict[str, Any]:
    """Decode document text into a mapping."""
    if fmt == "toml":
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise WorkflowParseError(f"Invalid TOML: {e}", path) from e
    elif fmt == "yaml":
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise WorkflowParseError(f"Invalid YAML: {e}", path) from e
    else:
        raise ValueError(f"Unsupported workflow format: {fmt!r}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise WorkflowParseError("Workflow document must be a mapping at the top level", path)
    return data


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a workflow document into a raw mapping.

    Args:
        path: YAML (.yaml/.yml) or TOML (.toml) file

    Returns:
        The decoded top-level mapping

    Raises:
        WorkflowLoadError: If the file can't be read
        WorkflowParseError: If the content is malformed
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise WorkflowParseError(f"Workflow file is not valid UTF-8: {e}", path) from e
    except OSError as e:
        raise WorkflowLoadError(f"Cannot read workflow file: {path} ({e})") from e
    return _load_text(content, _format_for(path), path)


def parse_workflow(
    filepath: Union[str, Path],
    scope_id: str = "workflow",
) -> Workflow:
    """
    Parse a workflow from a YAML or TOML file.

    Args:
        filepath: Path to the workflow document
        scope_id: Id of the variable scopes the workflow will run under

    Returns:
        Parsed Workflow object

    Raises:
        WorkflowLoadError: If the file doesn't exist or can't be read
        WorkflowParseError: If the document is malformed
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        raise WorkflowLoadError(f"Workflow file does not exist: {filepath}")

    data = read_document(filepath)
    workflow = Workflow.from_dict(data, source_path=str(filepath), scope_id=scope_id)
    logger.debug(f"Parsed workflow '{workflow.name}' with {workflow.step_count} steps from {filepath}")
    return workflow


def parse_workflow_string(
    content: str,
    fmt: str = "yaml",
    scope_id: str = "workflow",
) -> Workflow:
    """
    Parse a workflow from document text.

    Args:
        content: Document text
        fmt: "yaml" or "toml"
        scope_id: Id of the variable scopes the workflow will run under

    Returns:
        Parsed Workflow object (without a source path)
    """
    data = _load_text(content, fmt)
    return Workflow.from_dict(data, scope_id=scope_id)
