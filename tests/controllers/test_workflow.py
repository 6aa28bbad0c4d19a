# tests/controllers/test_workflow.py
"""
Tests for WorkflowController.
"""

import pytest

from imgflow.controllers.workflow import (
    CatalogSummary,
    RunContext,
    ValidationSummary,
    WorkflowController,
    WorkflowSummary,
)
from imgflow.core.workflow.scope import VariableScope
from imgflow.core.workflow.validator import WorkflowValidator

INVALID_WORKFLOW = """
name: broken
description: Resize without dimensions
steps:
  - name: extract
    type: pdf_extract
    params: {input: "{workflow_input}", output_dir: out}
  - name: shrink
    type: resize
    params: {quality: 80}
"""


class TestWorkflowController:
    """Tests for WorkflowController."""

    @pytest.fixture
    def controller(self, tools_present):
        return WorkflowController(validator=tools_present)

    @pytest.fixture
    def invalid_workflow_file(self, write_workflow):
        return write_workflow(INVALID_WORKFLOW, "broken.yaml")

    # -------------------------------------------------------------------------
    # load / describe / list
    # -------------------------------------------------------------------------

    def test_load_success(self, controller, sample_workflow_file):
        """Test loading a workflow file."""
        result = controller.load(str(sample_workflow_file))

        assert result.success is True
        assert isinstance(result.data, WorkflowSummary)
        assert result.data.name == "sample"
        assert result.data.num_steps == 2
        assert result.data.step_types == ["pdf_extract", "resize"]
        assert result.metadata["workflow"].step_names == ["extract", "resize"]

    def test_load_not_found(self, controller):
        """Test loading an unknown workflow name."""
        result = controller.load("ghost")

        assert result.success is False
        assert "Workflow not found: ghost" in result.error

    def test_load_malformed(self, controller, write_workflow):
        """Test loading a malformed workflow file."""
        path = write_workflow("steps: [unclosed\n", "bad.yaml")
        result = controller.load(str(path))

        assert result.success is False
        assert "Invalid YAML" in result.error

    def test_load_invalid_utf8(self, controller, tmp_path):
        """Test that a file with invalid UTF-8 gives a failed result."""
        path = tmp_path / "bad.yaml"
        path.write_bytes(b"name: \xff\xfe\n")

        result = controller.load(str(path))

        assert result.success is False
        assert "not valid UTF-8" in result.error

    def test_describe(self, controller, sample_workflow_file):
        """Test describing a workflow."""
        result = controller.describe(str(sample_workflow_file))

        assert result.success is True
        assert "Name: sample" in result.data

    def test_describe_not_found(self, controller):
        """Test describing an unknown workflow."""
        assert controller.describe("ghost").success is False

    def test_list_workflows(self, controller, write_workflow, isolated_config, tmp_path):
        """Test listing catalog workflows."""
        user_dir = tmp_path / "catalog" / "user"
        write_workflow(INVALID_WORKFLOW, "broken.yaml", user_dir)

        result = controller.list_workflows()

        assert result.success is True
        assert isinstance(result.data, CatalogSummary)
        assert [e.name for e in result.data.entries] == ["broken"]
        assert result.data.to_dict()["count"] == 1
        assert result.data.to_dict()["entries"][0]["path"] == str(user_dir / "broken.yaml")

    # -------------------------------------------------------------------------
    # validation
    # -------------------------------------------------------------------------

    def test_validate_valid(self, controller, sample_workflow_file):
        """Test validating a valid workflow."""
        result = controller.validate(str(sample_workflow_file))

        assert result.success is True
        assert isinstance(result.data, ValidationSummary)
        assert result.data.valid is True
        assert result.message == "Workflow is valid"

    def test_validate_invalid(self, controller, invalid_workflow_file):
        """Test validating an invalid workflow."""
        result = controller.validate(str(invalid_workflow_file))

        assert result.success is True
        assert result.data.valid is False
        assert result.data.num_errors == 1
        assert result.message == "Workflow has 1 errors"
        assert result.metadata["validation_report"].errors[0].step_name == "shrink"

    def test_validate_not_found(self, controller):
        """Test validating an unknown workflow."""
        result = controller.validate("ghost")
        assert result.success is False

    def test_strict_defaults_from_config(self, controller, write_workflow, isolated_config):
        """Test that strict mode defaults to the configured value."""
        path = write_workflow(
            """
            name: warn
            description: Only warnings
            steps:
              - name: c
                type: convert
                params: {format: heic}
            """
        )
        assert controller.validate(str(path)).data.valid is True

        isolated_config.set("validation", "strict", True)
        assert controller.validate(str(path)).data.valid is False
        assert controller.validate(str(path), strict=False).data.valid is True

    def test_validate_workflow_object(self, controller, sample_workflow_file):
        """Test validating an already loaded Workflow."""
        workflow = controller.load(str(sample_workflow_file)).metadata["workflow"]
        result = controller.validate_workflow(workflow)

        assert result.data.valid is True
        assert result.to_dict()["data"]["num_errors"] == 0

    def test_default_validator_probes_path(self, sample_workflow_file, mocker):
        """Test that the default validator probes PATH."""
        mocker.patch("imgflow.core.deps.shutil.which", return_value=None)
        result = WorkflowController().validate(str(sample_workflow_file))

        assert result.data.valid is False
        assert "Step 'extract': Required dependency 'pdfimages' not found" in result.data.errors

    # -------------------------------------------------------------------------
    # run preparation
    # -------------------------------------------------------------------------

    def test_prepare_run(self, controller, sample_workflow_file, sample_pdf, tmp_path):
        """Test preparing scopes and output directory for a run."""
        output_dir = tmp_path / "web"
        result = controller.prepare_run(
            str(sample_workflow_file), sample_pdf, output_dir, variables={"Quality": 70}
        )

        assert result.success is True
        assert isinstance(result.data, RunContext)
        assert output_dir.is_dir()

        template = result.metadata["template_scope"]
        assert isinstance(template, VariableScope)
        assert template.get("pdf_name") == "report"
        assert template.get("workflow_name") == "sample"
        assert template.get("counter") == "1"
        assert template.get("quality") == "70"
        assert template.get("output_dir") == str(output_dir)

        context = result.metadata["context_scope"]
        assert context.get("extracted_count") == "0"
        assert controller.scopes.get("workflow.template") is template
        assert result.data.context_variables == {"extracted_count": "0", "processed_count": "0"}

    def test_prepare_run_uses_workflow_output_setting(
        self, controller, sample_workflow_file, sample_pdf, tmp_path, monkeypatch
    ):
        """Test that the workflow output_dir setting is used by default."""
        monkeypatch.chdir(tmp_path)
        result = controller.prepare_run(str(sample_workflow_file), sample_pdf)

        assert result.success is True
        assert (tmp_path / "sample-out").is_dir()

    def test_prepare_run_missing_input(self, controller, sample_workflow_file, tmp_path):
        """Test preparing a run with a missing input file."""
        result = controller.prepare_run(str(sample_workflow_file), tmp_path / "none.pdf", tmp_path)

        assert result.success is False
        assert result.error.startswith("File does not exist")

    def test_prepare_run_invalid_workflow(self, controller, invalid_workflow_file, sample_pdf, tmp_path):
        """Test that an invalid workflow is not prepared."""
        output_dir = tmp_path / "never"
        result = controller.prepare_run(str(invalid_workflow_file), sample_pdf, output_dir)

        assert result.success is False
        assert "failed validation with 1 error(s)" in result.error
        assert isinstance(result.data, ValidationSummary)
        assert not output_dir.exists()

    def test_prepare_run_output_is_file(self, controller, sample_workflow_file, sample_pdf):
        """Test that an output path naming a file is rejected."""
        result = controller.prepare_run(str(sample_workflow_file), sample_pdf, sample_pdf)

        assert result.success is False
        assert "not a directory" in result.error


class TestWorkflowControllerWithMocks:
    """Tests using a mocked validator."""

    def test_validator_receives_strict_flag(self, sample_workflow_file, mocker):
        """Test that the strict flag is passed to the validator."""
        validator = mocker.Mock(spec=WorkflowValidator)
        validator.validate.return_value = mocker.Mock(
            valid=True, errors=[], warnings=[], error_messages=[], warning_messages=[]
        )
        controller = WorkflowController(validator=validator)

        controller.validate(str(sample_workflow_file), strict=True)

        _, kwargs = validator.validate.call_args
        assert kwargs["strict"] is True
