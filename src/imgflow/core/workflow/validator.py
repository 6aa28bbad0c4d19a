# core/workflow/validator.py
"""
Workflow Validator
==================

Validation of parsed workflows before they are executed.

Validation runs in three stages, all appending to one ValidationReport:

1. Structure: name, description and at least one step; every step has a
   name and a known type. If anything here fails the report is returned
   immediately and no step-level checks run.
2. Per-step checks by step type: required parameters, value ranges and
   enumerations, and presence of the external tool the step needs.
3. Workflow-wide checks: unknown template variables, processing steps that
   come before any extraction step, and conditions that can't be parsed.

Nothing here raises for an invalid workflow. Errors make the run fail;
warnings never do.

Example:
    from imgflow.core.workflow.loader import load_workflow
    from imgflow.core.workflow.validator import validate_workflow

    report = validate_workflow(load_workflow("pdf-to-web"))
    if not report.success:
        for error in report.errors:
            print(f"Error: {error}")
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from imgflow.core import deps
from imgflow.core.logger import get_logger, get_step_logger

from .condition import ConditionEvaluator
from .loader import load_workflow
from .parser import StepType, Workflow, WorkflowStep
from .scope import VariableScope
from .values import parse_uint

logger = get_logger(__name__)

__all__ = [
    "IssueKind",
    "ValidationIssue",
    "ValidationReport",
    "WorkflowValidator",
    "KNOWN_TEMPLATE_VARIABLES",
    "validate_workflow",
    "validate_workflow_file",
]


class IssueKind(Enum):
    """Category of a validation issue."""

    STRUCTURAL = "structural"
    MISSING_PARAMETER = "missing_parameter"
    MISSING_DIMENSION = "missing_dimension"
    INVALID_PARAMETER_VALUE = "invalid_parameter_value"
    UNSUPPORTED_VALUE = "unsupported_value"
    MISSING_DEPENDENCY = "missing_dependency"
    OPTIONAL_DEPENDENCY = "optional_dependency"
    SUSPICIOUS_SCRIPT = "suspicious_script"
    UNKNOWN_TEMPLATE_VARIABLE = "unknown_template_variable"
    CONDITION_UNPARSABLE = "condition_unparsable"
    STEP_ORDERING = "step_ordering"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error or warning."""

    message: str
    kind: IssueKind
    severity: str = "error"  # "error", "warning"
    step_index: Optional[int] = None
    step_name: Optional[str] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationReport:
    """Errors and warnings accumulated over one validation run."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def valid(self) -> bool:
        return self.success

    def add_error(
        self,
        message: str,
        kind: IssueKind,
        step: Optional[WorkflowStep] = None,
    ) -> None:
        """Add an error."""
        self.errors.append(_issue(message, kind, "error", step))

    def add_warning(
        self,
        message: str,
        kind: IssueKind,
        step: Optional[WorkflowStep] = None,
    ) -> None:
        """Add a warning."""
        self.warnings.append(_issue(message, kind, "warning", step))

    def merge(self, other: "ValidationReport") -> None:
        """Merge another report into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def issues_of(self, kind: IssueKind) -> List[ValidationIssue]:
        """Errors and warnings of one kind, errors first."""
        return [i for i in self.errors + self.warnings if i.kind is kind]

    @property
    def error_messages(self) -> List[str]:
        return [str(e) for e in self.errors]

    @property
    def warning_messages(self) -> List[str]:
        return [str(w) for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "errors": self.error_messages,
            "warnings": self.warning_messages,
        }


def _issue(
    message: str,
    kind: IssueKind,
    severity: str,
    step: Optional[WorkflowStep],
) -> ValidationIssue:
    return ValidationIssue(
        message=message,
        kind=kind,
        severity=severity,
        step_index=step.index if step is not None else None,
        step_name=step.name if step is not None else None,
    )


# Variables workflow authors may reference in parameters. Matching is by
# prefix, which is also what lets "{counter:03d}" through.
KNOWN_TEMPLATE_VARIABLES = (
    "workflow_input",
    "workflow_name",
    "output_dir",
    "temp_dir",
    "timestamp",
    "date",
    "time",
    "counter",
    "pdf_name",
    "excel_name",
    "original_name",
    "format",
    "width",
    "height",
    "quality",
    "extracted_count",
    "processed_count",
    "step_name",
    "failed_step",
)

PDFIMAGES_FORMATS = ("png", "jpg", "jpeg", "ppm", "pbm")
IMAGE_FORMATS = ("jpg", "jpeg", "png", "webp", "tiff", "bmp", "gif")
WATERMARK_POSITIONS = (
    "northwest",
    "north",
    "northeast",
    "west",
    "center",
    "east",
    "southwest",
    "south",
    "southeast",
)
OCR_OUTPUT_FORMATS = ("txt", "pdf", "hocr", "tsv")
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")
RESIZE_DIMENSIONS = ("width", "height", "max_width", "max_height")

EXTRACTION_TYPES = (StepType.PDF_EXTRACT, StepType.EXCEL_EXTRACT)
PROCESSING_TYPES = (StepType.CONVERT, StepType.RESIZE, StepType.WATERMARK)

TOOL_LABELS = {
    "convert": "'convert' (ImageMagick)",
    "composite": "'composite' (ImageMagick)",
}

_TEMPLATE_REF = re.compile(r"\{([^}]+)\}")
_DANGEROUS_SCRIPT = re.compile(r"rm\s+-rf|sudo|su\s|chmod\s+777")
_MIN_SCRIPT_LENGTH = 10


class WorkflowValidator:
    """
    Validator for workflow definitions.

    Args:
        tool_checker: Callable telling whether a tool is on PATH
            (defaults to deps.is_tool_available)
        language_lister: Callable returning installed tesseract languages
            (defaults to deps.list_tesseract_languages)
        extra_variables: Template variable names allowed on top of
            KNOWN_TEMPLATE_VARIABLES
    """

    def __init__(
        self,
        tool_checker: Optional[Callable[[str], bool]] = None,
        language_lister: Optional[Callable[[], List[str]]] = None,
        extra_variables: Optional[Iterable[str]] = None,
    ):
        self._tool_checker = tool_checker or deps.is_tool_available
        self._language_lister = language_lister or deps.list_tesseract_languages
        self._known_variables = tuple(KNOWN_TEMPLATE_VARIABLES) + tuple(
            v.lower() for v in (extra_variables or ())
        )
        self._tool_cache: Dict[str, bool] = {}
        self._languages: Optional[List[str]] = None

        self._step_validators: Dict[StepType, Callable[[WorkflowStep, ValidationReport], None]] = {
            StepType.PDF_EXTRACT: self._validate_pdf_extract,
            StepType.EXCEL_EXTRACT: self._validate_excel_extract,
            StepType.CONVERT: self._validate_convert,
            StepType.RESIZE: self._validate_resize,
            StepType.WATERMARK: self._validate_watermark,
            StepType.OCR: self._validate_ocr,
            StepType.WEBHOOK: self._validate_webhook,
            StepType.CUSTOM: self._validate_custom,
        }

    def validate(self, workflow: Workflow, strict: bool = False) -> ValidationReport:
        """
        Validate a workflow.

        Args:
            workflow: Workflow to validate
            strict: If True, warnings are also reported as errors

        Returns:
            ValidationReport with errors and warnings
        """
        report = ValidationReport()
        self._tool_cache = {}
        self._languages = None

        if not self.validate_structure(workflow, report):
            logger.debug(f"Structure validation of '{workflow.name}' failed, skipping step checks")
            return report

        for step in workflow.steps:
            errors_before = len(report.errors)
            self._step_validators[step.step_type](step, report)
            self._check_dependencies(step, report)
            get_step_logger(__name__, workflow.name, step.name).debug(
                f"Checked {step.type_name} step: {len(report.errors) - errors_before} error(s)"
            )

        self._validate_template_variables(workflow, report)
        self._validate_step_ordering(workflow, report)
        self._validate_conditions(workflow, report)

        if strict:
            for warning in list(report.warnings):
                report.errors.append(
                    ValidationIssue(
                        warning.message,
                        warning.kind,
                        "error",
                        warning.step_index,
                        warning.step_name,
                    )
                )

        return report

    # =========================================================================
    # Structure
    # =========================================================================

    def validate_structure(self, workflow: Workflow, report: ValidationReport) -> bool:
        """
        Check the workflow's shape, adding errors to ``report``.

        Returns:
            True if the workflow is structurally sound
        """
        before = len(report.errors)

        if not workflow.name:
            report.add_error("Missing required field: name", IssueKind.STRUCTURAL)
        if not workflow.description:
            report.add_error("Missing required field: description", IssueKind.STRUCTURAL)
        if not workflow.steps:
            report.add_error("No steps defined in workflow", IssueKind.STRUCTURAL)

        for step in workflow.steps:
            if not step.name:
                report.add_error(f"Step {step.index}: missing name", IssueKind.STRUCTURAL, step)
            if not step.type_name:
                report.add_error(
                    f"Step {step.index} ({step.name}): missing type", IssueKind.STRUCTURAL, step
                )
            elif step.step_type is None:
                report.add_error(
                    f"Step {step.index} ({step.name}): unknown step type '{step.type_name}'",
                    IssueKind.STRUCTURAL,
                    step,
                )

        return len(report.errors) == before

    # =========================================================================
    # Shared checks
    # =========================================================================

    def _tool_available(self, name: str) -> bool:
        if name not in self._tool_cache:
            self._tool_cache[name] = self._tool_checker(name)
        return self._tool_cache[name]

    def _require_param(self, step: WorkflowStep, report: ValidationReport, name: str) -> str:
        value = step.get_param(name)
        if not value:
            report.add_error(
                f"Step '{step.name}': Missing required parameter '{name}'",
                IssueKind.MISSING_PARAMETER,
                step,
            )
        return value

    def _check_choice(
        self,
        step: WorkflowStep,
        report: ValidationReport,
        name: str,
        choices: Iterable[str],
        message: str,
    ) -> None:
        value = step.get_param(name)
        if value and value not in choices:
            report.add_warning(
                f"Step '{step.name}': {message.format(value=value)}",
                IssueKind.UNSUPPORTED_VALUE,
                step,
            )

    def _check_range(
        self,
        step: WorkflowStep,
        report: ValidationReport,
        name: str,
        low: int,
        high: int,
    ) -> None:
        value = step.get_param(name)
        if not value:
            return
        number = parse_uint(value)
        if number is None or not low <= number <= high:
            report.add_error(
                f"Step '{step.name}': {name.capitalize()} must be a number between "
                f"{low} and {high}, got '{value}'",
                IssueKind.INVALID_PARAMETER_VALUE,
                step,
            )

    def _check_dependencies(self, step: WorkflowStep, report: ValidationReport) -> None:
        for tool, required in deps.STEP_TOOLS.get(step.type_name, []):
            if self._tool_available(tool):
                continue
            if required:
                label = TOOL_LABELS.get(tool, f"'{tool}'")
                report.add_error(
                    f"Step '{step.name}': Required dependency {label} not found",
                    IssueKind.MISSING_DEPENDENCY,
                    step,
                )
            else:
                report.add_warning(
                    f"Step '{step.name}': Optional dependency '{tool}' not found, "
                    f"{step.type_name} will be skipped",
                    IssueKind.OPTIONAL_DEPENDENCY,
                    step,
                )

    # =========================================================================
    # Per-step checks
    # =========================================================================

    def _validate_pdf_extract(self, step: WorkflowStep, report: ValidationReport) -> None:
        self._require_param(step, report, "input")
        self._require_param(step, report, "output_dir")
        self._check_choice(
            step, report, "format", PDFIMAGES_FORMATS,
            "Format '{value}' may not be supported by pdfimages",
        )

    def _validate_excel_extract(self, step: WorkflowStep, report: ValidationReport) -> None:
        self._require_param(step, report, "input")
        self._require_param(step, report, "output_dir")

    def _validate_convert(self, step: WorkflowStep, report: ValidationReport) -> None:
        if self._require_param(step, report, "format"):
            self._check_choice(
                step, report, "format", IMAGE_FORMATS,
                "Format '{value}' may not be supported",
            )
        self._check_range(step, report, "quality", 1, 100)

    def _validate_resize(self, step: WorkflowStep, report: ValidationReport) -> None:
        if not any(step.get_param(name) for name in RESIZE_DIMENSIONS):
            report.add_error(
                f"Step '{step.name}': Must specify at least one dimension "
                "(width, height, max_width, or max_height)",
                IssueKind.MISSING_DIMENSION,
                step,
            )

        for name in RESIZE_DIMENSIONS:
            value = step.get_param(name)
            if value and not (parse_uint(value) or 0) >= 1:
                report.add_error(
                    f"Step '{step.name}': Parameter '{name}' must be a positive integer, "
                    f"got '{value}'",
                    IssueKind.INVALID_PARAMETER_VALUE,
                    step,
                )

        self._check_range(step, report, "quality", 1, 100)

    def _validate_watermark(self, step: WorkflowStep, report: ValidationReport) -> None:
        self._require_param(step, report, "watermark")
        self._check_choice(
            step, report, "position", WATERMARK_POSITIONS,
            "Position '{value}' may not be supported",
        )
        self._check_range(step, report, "transparency", 0, 100)

    def _validate_ocr(self, step: WorkflowStep, report: ValidationReport) -> None:
        self._require_param(step, report, "input")
        self._check_choice(
            step, report, "output_format", OCR_OUTPUT_FORMATS,
            "Output format '{value}' may not be supported by Tesseract",
        )

        language = step.get_param("language")
        if language and self._tool_available("tesseract"):
            if self._languages is None:
                self._languages = list(self._language_lister())
            if language not in self._languages:
                report.add_warning(
                    f"Step '{step.name}': Language '{language}' may not be available in Tesseract",
                    IssueKind.UNSUPPORTED_VALUE,
                    step,
                )

    def _validate_webhook(self, step: WorkflowStep, report: ValidationReport) -> None:
        url = self._require_param(step, report, "url")
        if url and not re.match(r"^https?://", url):
            report.add_warning(
                f"Step '{step.name}': URL should start with http:// or https://",
                IssueKind.UNSUPPORTED_VALUE,
                step,
            )

        self._check_choice(
            step, report, "method", HTTP_METHODS,
            "HTTP method '{value}' may not be supported",
        )

    def _validate_custom(self, step: WorkflowStep, report: ValidationReport) -> None:
        script = self._require_param(step, report, "script")
        if not script:
            return

        if len(script) < _MIN_SCRIPT_LENGTH:
            report.add_warning(
                f"Step '{step.name}': Script content seems very short, may be incomplete",
                IssueKind.SUSPICIOUS_SCRIPT,
                step,
            )
        if _DANGEROUS_SCRIPT.search(script):
            report.add_warning(
                f"Step '{step.name}': Script contains potentially dangerous commands",
                IssueKind.SUSPICIOUS_SCRIPT,
                step,
            )

    # =========================================================================
    # Workflow-wide checks
    # =========================================================================

    def _validate_template_variables(self, workflow: Workflow, report: ValidationReport) -> None:
        """Warn about {references} that match no known variable prefix."""
        for step in workflow.steps:
            for value in step.params.values():
                for reference in _TEMPLATE_REF.findall(value):
                    if not reference.startswith(self._known_variables):
                        report.add_warning(
                            f"Step '{step.name}': Unknown template variable '{{{reference}}}'",
                            IssueKind.UNKNOWN_TEMPLATE_VARIABLE,
                            step,
                        )
                    elif reference.split(":", 1)[0] not in self._known_variables:
                        logger.debug(
                            f"Step '{step.name}': template variable '{{{reference}}}' "
                            "accepted by prefix match only"
                        )

    def _validate_step_ordering(self, workflow: Workflow, report: ValidationReport) -> None:
        """Warn about processing steps with no earlier extraction step."""
        has_extraction = False
        for step in workflow.steps:
            if step.step_type in EXTRACTION_TYPES:
                has_extraction = True
            elif step.step_type in PROCESSING_TYPES and not has_extraction and step.index > 0:
                report.add_warning(
                    f"Step '{step.name}': Image processing step found without prior extraction step",
                    IssueKind.STEP_ORDERING,
                    step,
                )

    def _validate_conditions(self, workflow: Workflow, report: ValidationReport) -> None:
        """Warn about conditions that stay unparsable with every known variable bound."""
        probe = VariableScope("validation", {name: "0" for name in self._known_variables})
        for step in workflow.steps:
            if step.condition and not ConditionEvaluator.is_parsable(step.condition, probe):
                report.add_warning(
                    f"Step '{step.name}': Condition '{step.condition}' may not be parsable, "
                    "the step will run regardless",
                    IssueKind.CONDITION_UNPARSABLE,
                    step,
                )


def validate_workflow(
    workflow: Workflow,
    strict: bool = False,
    **validator_kwargs: Any,
) -> ValidationReport:
    """
    Validate a workflow.

    Args:
        workflow: Workflow to validate
        strict: If True, treat warnings as errors
        **validator_kwargs: Passed to WorkflowValidator

    Returns:
        ValidationReport
    """
    return WorkflowValidator(**validator_kwargs).validate(workflow, strict=strict)


def validate_workflow_file(
    reference: Union[str, Path],
    strict: bool = False,
    **validator_kwargs: Any,
) -> ValidationReport:
    """
    Load a workflow by reference, then validate it.

    Raises:
        WorkflowLoadError: If the workflow can't be loaded
    """
    logger.info(f"Validating workflow: {reference}")
    workflow = load_workflow(reference, scope_id="validation")
    return validate_workflow(workflow, strict=strict, **validator_kwargs)
