# tests/conftest.py
"""
Global pytest fixtures for imgflow tests.
"""

import textwrap

import pytest

from imgflow.core.config import get_default_config, reset_config, set_config
from imgflow.core.workflow.validator import WorkflowValidator


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Use default configuration with catalogs and temp dir under tmp_path."""
    config = get_default_config()
    config.set("catalog", "builtin_dir", str(tmp_path / "catalog" / "builtin"))
    config.set("catalog", "user_dir", str(tmp_path / "catalog" / "user"))
    config.set("paths", "temp_dir", str(tmp_path / "scratch"))
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Alias for tmp_path."""
    return tmp_path


@pytest.fixture
def write_workflow(tmp_path):
    """Factory writing dedented workflow text to a file and returning its path."""

    def _write(content, filename="workflow.yaml", directory=None):
        target = (directory or tmp_path) / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(content).lstrip())
        return target

    return _write


@pytest.fixture
def tools_present():
    """Validator that finds every tool and the English tesseract language."""
    return WorkflowValidator(tool_checker=lambda name: True, language_lister=lambda: ["eng", "osd"])


@pytest.fixture
def tools_missing():
    """Validator that finds no tools at all."""
    return WorkflowValidator(tool_checker=lambda name: False, language_lister=lambda: [])


SAMPLE_WORKFLOW = """
name: sample
description: Extract and resize
version: "1.0"

settings:
  output_dir: ./sample-out

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
      max_width: 800
      quality: 85

hooks:
  on_success: "echo done"
"""


@pytest.fixture
def sample_workflow_file(write_workflow):
    """A valid two-step workflow file."""
    return write_workflow(SAMPLE_WORKFLOW, "sample.yaml")


@pytest.fixture
def sample_pdf(tmp_path):
    """An (empty) PDF input file."""
    path = tmp_path / "input" / "report.pdf"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF-1.4\n")
    return path
