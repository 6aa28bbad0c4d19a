# controllers/workflow.py
"""
Workflow Controller
===================

Controller for workflow operations.

Sits between front ends (a CLI, a service, a step coordinator) and the core
workflow modules. Loading, validation and run preparation are exposed as
methods that return a ControllerResult instead of raising.

Example:
    from imgflow.controllers.workflow import WorkflowController

    controller = WorkflowController()

    # Validate a catalog workflow
    result = controller.validate("pdf-to-web")

    # Prepare scopes for a run
    result = controller.prepare_run("pdf-to-web", "report.pdf", "./web")
    template = result.metadata["template_scope"]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from imgflow.core.config import Config, get_config
from imgflow.core.exceptions import ImgflowError
from imgflow.core.logger import get_logger
from imgflow.core.paths import ensure_directory
from imgflow.core.workflow.loader import CatalogEntry, describe_workflow, load_workflow
from imgflow.core.workflow.loader import list_workflows as list_catalog
from imgflow.core.workflow.parser import Workflow
from imgflow.core.workflow.scope import ScopeRegistry
from imgflow.core.workflow.template import init_defaults
from imgflow.core.workflow.validator import ValidationReport, WorkflowValidator

from .base import BaseController, ControllerResult, ToDictMixin

logger = get_logger(__name__)

# Context variables every run starts with
CONTEXT_DEFAULTS = {"extracted_count": 0, "processed_count": 0}


@dataclass
class WorkflowSummary(ToDictMixin):
    """Summary of a loaded workflow."""

    name: str
    description: str
    version: str
    num_steps: int
    step_names: List[str]
    step_types: List[str]
    source_path: Optional[str] = None


@dataclass
class ValidationSummary(ToDictMixin):
    """Summary of workflow validation."""

    valid: bool
    num_errors: int
    num_warnings: int
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class CatalogSummary(ToDictMixin):
    """Workflows available by name."""

    entries: List[CatalogEntry] = field(default_factory=list)

    def _to_dict_extra(self) -> Optional[Dict[str, Any]]:
        return {"count": len(self.entries)}


@dataclass
class RunContext(ToDictMixin):
    """Everything a step coordinator needs to start a run."""

    workflow_name: str
    scope_id: str
    input_path: str
    output_dir: str
    template_variables: Dict[str, str] = field(default_factory=dict)
    context_variables: Dict[str, str] = field(default_factory=dict)


def _summarize(workflow: Workflow) -> WorkflowSummary:
    return WorkflowSummary(
        name=workflow.name,
        description=workflow.description,
        version=workflow.version,
        num_steps=workflow.step_count,
        step_names=workflow.step_names,
        step_types=[step.type_name for step in workflow.steps],
        source_path=workflow.source_path,
    )


def _summarize_report(report: ValidationReport) -> ValidationSummary:
    return ValidationSummary(
        valid=report.valid,
        num_errors=len(report.errors),
        num_warnings=len(report.warnings),
        errors=report.error_messages,
        warnings=report.warning_messages,
    )


class WorkflowController(BaseController):
    """
    Controller for workflow operations.

    Provides high-level methods for:
    - Loading workflows by path or catalog name
    - Validating workflow definitions
    - Listing and describing catalog workflows
    - Preparing variable scopes for a run

    Args:
        config: Configuration (defaults to the global config)
        validator: Validator to use (defaults to a WorkflowValidator probing PATH)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        validator: Optional[WorkflowValidator] = None,
    ):
        super().__init__()
        self._config = config
        self._validator = validator or WorkflowValidator()
        self.scopes = ScopeRegistry()

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def _strict(self, strict: Optional[bool]) -> bool:
        if strict is None:
            return bool(self.config.get("validation", "strict", False))
        return strict

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, reference: Union[str, Path]) -> ControllerResult[WorkflowSummary]:
        """
        Load a workflow.

        Args:
            reference: File path or catalog name

        Returns:
            Result with workflow summary; the Workflow is in metadata["workflow"]
        """
        try:
            workflow = load_workflow(reference, config=self.config)
        except ImgflowError as e:
            return ControllerResult.fail(f"Failed to load workflow: {e}")

        return ControllerResult.ok(
            data=_summarize(workflow),
            message=f"Loaded workflow: {workflow.name}",
            workflow=workflow,
        )

    def list_workflows(self) -> ControllerResult[CatalogSummary]:
        """List workflows in the built-in and user catalogs."""
        try:
            entries = list_catalog(config=self.config)
        except OSError as e:
            return ControllerResult.fail(f"Failed to list workflows: {e}")

        return ControllerResult.ok(
            data=CatalogSummary(entries=entries),
            message=f"Found {len(entries)} workflow(s)",
        )

    def describe(self, reference: Union[str, Path]) -> ControllerResult[str]:
        """Load a workflow and render a human-readable description of it."""
        loaded = self.load(reference)
        if not loaded.success:
            return ControllerResult.fail(loaded.error)

        workflow = loaded.metadata["workflow"]
        return ControllerResult.ok(
            data=describe_workflow(workflow),
            message=f"Described workflow: {workflow.name}",
            workflow=workflow,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(
        self,
        reference: Union[str, Path],
        strict: Optional[bool] = None,
    ) -> ControllerResult[ValidationSummary]:
        """
        Load and validate a workflow.

        Args:
            reference: File path or catalog name
            strict: If True, treat warnings as errors (defaults from config)

        Returns:
            Result with validation summary
        """
        loaded = self.load(reference)
        if not loaded.success:
            return ControllerResult.fail(loaded.error)
        return self.validate_workflow(loaded.metadata["workflow"], strict=strict)

    def validate_workflow(
        self,
        workflow: Workflow,
        strict: Optional[bool] = None,
    ) -> ControllerResult[ValidationSummary]:
        """
        Validate a loaded Workflow.

        The result is successful when validation ran; check ``data.valid``
        for the verdict. The full report is in metadata["validation_report"].
        """
        report = self._validator.validate(workflow, strict=self._strict(strict))
        summary = _summarize_report(report)

        if report.valid:
            message = "Workflow is valid"
            if report.warnings:
                message += f" ({len(report.warnings)} warnings)"
        else:
            message = f"Workflow has {len(report.errors)} errors"

        return ControllerResult.ok(
            data=summary,
            message=message,
            warnings=summary.warnings,
            validation_report=report,
        )

    # =========================================================================
    # Run preparation
    # =========================================================================

    def prepare_run(
        self,
        reference: Union[str, Path],
        input_path: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        variables: Optional[Dict[str, Any]] = None,
        strict: Optional[bool] = None,
    ) -> ControllerResult[RunContext]:
        """
        Load, validate and set up scopes for a run.

        Args:
            reference: File path or catalog name
            input_path: Workflow input file
            output_dir: Output directory (defaults to the workflow's
                output_dir setting, then the configured output_dir)
            variables: Extra template variables; these override defaults
            strict: If True, treat warnings as errors

        Returns:
            Result with the run context. metadata holds "workflow",
            "template_scope" and "context_scope".
        """
        error = self._validate_input_path(str(input_path))
        if error:
            return ControllerResult.fail(error)

        loaded = self.load(reference)
        if not loaded.success:
            return ControllerResult.fail(loaded.error)
        workflow: Workflow = loaded.metadata["workflow"]

        validation = self.validate_workflow(workflow, strict=strict)
        if not validation.data.valid:
            return ControllerResult.fail(
                f"Workflow '{workflow.name}' failed validation with "
                f"{validation.data.num_errors} error(s)",
                data=validation.data,
                warnings=validation.warnings,
            )

        output_dir = (
            output_dir
            or workflow.get_setting("output_dir")
            or self.config.get("paths", "output_dir", "./output")
        )
        error = self._validate_output_path(str(output_dir))
        if error:
            return ControllerResult.fail(error)

        try:
            output_path = ensure_directory(output_dir)
        except OSError as e:
            return ControllerResult.fail(f"Cannot create output directory {output_dir}: {e}")

        template = self.scopes.create(f"{workflow.scope_id}.template")
        init_defaults(
            template,
            input_path,
            output_path,
            temp_dir=self.config.temp_dir,
            workflow_name=workflow.name,
        )
        if variables:
            template.update(variables)

        context = self.scopes.create(f"{workflow.scope_id}.context", CONTEXT_DEFAULTS)

        logger.info(f"Prepared run of '{workflow.name}' on {input_path} -> {output_path}")

        run = RunContext(
            workflow_name=workflow.name,
            scope_id=workflow.scope_id,
            input_path=str(input_path),
            output_dir=str(output_path),
            template_variables=template.to_dict(),
            context_variables=context.to_dict(),
        )
        return ControllerResult.ok(
            data=run,
            message=f"Ready to run workflow: {workflow.name}",
            warnings=validation.warnings,
            workflow=workflow,
            template_scope=template,
            context_scope=context,
        )
