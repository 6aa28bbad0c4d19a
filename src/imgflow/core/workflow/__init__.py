"""
Workflow Package
================

YAML/TOML workflow definitions, variable scopes, templating, conditions and
validation. Step execution itself belongs to the external coordinator.

This package provides:
- Workflow / WorkflowStep: Parsed workflow documents
- load_workflow / list_workflows: Resolution by path or catalog name
- VariableScope / ScopeRegistry: Per-run variable storage
- substitute / init_defaults: Template substitution
- ConditionEvaluator: Step condition evaluation
- WorkflowValidator / ValidationReport: Validation
- report_validation: Console rendering of validation results
"""

from .condition import (
    ConditionEvaluator,
    ConditionOutcome,
    UnparsableConditionPolicy,
    evaluate_condition,
)
from .loader import CatalogEntry, describe_workflow, list_workflows, load_workflow
from .parser import (
    HookPoint,
    StepType,
    Workflow,
    WorkflowStep,
    parse_workflow,
    parse_workflow_string,
)
from .reporting import format_report, print_workflow_list, report_validation
from .scope import ScopeRegistry, VariableScope
from .template import increment, init_defaults, render_template, substitute, substitute_params
from .validator import (
    IssueKind,
    ValidationIssue,
    ValidationReport,
    WorkflowValidator,
    validate_workflow,
    validate_workflow_file,
)
from .values import Value, ValueKind

__all__ = [
    # Parser
    "Workflow",
    "WorkflowStep",
    "StepType",
    "HookPoint",
    "parse_workflow",
    "parse_workflow_string",
    # Loader
    "CatalogEntry",
    "load_workflow",
    "list_workflows",
    "describe_workflow",
    # Scopes and values
    "VariableScope",
    "ScopeRegistry",
    "Value",
    "ValueKind",
    # Templates
    "substitute",
    "substitute_params",
    "init_defaults",
    "increment",
    "render_template",
    # Conditions
    "ConditionEvaluator",
    "ConditionOutcome",
    "UnparsableConditionPolicy",
    "evaluate_condition",
    # Validation
    "IssueKind",
    "ValidationIssue",
    "ValidationReport",
    "WorkflowValidator",
    "validate_workflow",
    "validate_workflow_file",
    "format_report",
    "report_validation",
    "print_workflow_list",
]
