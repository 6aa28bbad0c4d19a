"""
Unit tests for the deps module (external tool checks).
"""

import subprocess
from unittest.mock import MagicMock, patch

from imgflow.core.deps import (
    STEP_TOOLS,
    ToolStatus,
    check_tool,
    check_tools,
    is_tool_available,
    list_tesseract_languages,
)
from imgflow.core.workflow.parser import StepType


class TestToolChecks:
    """Tests for PATH lookups."""

    @patch("imgflow.core.deps.shutil.which")
    def test_is_tool_available(self, mock_which):
        """Test tool lookup on PATH."""
        mock_which.side_effect = lambda x: "/usr/bin/convert" if x == "convert" else None

        assert is_tool_available("convert") is True
        assert is_tool_available("pdfimages") is False

    @patch("imgflow.core.deps.shutil.which")
    def test_check_tool_installed(self, mock_which):
        """Test status of an installed tool."""
        mock_which.return_value = "/usr/bin/pdfimages"
        status = check_tool("pdfimages")

        assert isinstance(status, ToolStatus)
        assert status.installed is True
        assert status.path == "/usr/bin/pdfimages"
        assert status.install_hint is None
        assert "poppler" in status.description

    @patch("imgflow.core.deps.shutil.which")
    def test_check_tool_missing_has_hint(self, mock_which):
        """Test that a missing tool carries an install hint."""
        mock_which.return_value = None
        status = check_tool("tesseract")

        assert status.installed is False
        assert "tesseract" in status.install_hint

    @patch("imgflow.core.deps.shutil.which")
    def test_check_unknown_tool(self, mock_which):
        """Test checking a tool that is not in KNOWN_TOOLS."""
        mock_which.return_value = None
        status = check_tool("frobnicate")

        assert status.description == "frobnicate"
        assert status.install_hint is None

    @patch("imgflow.core.deps.shutil.which")
    def test_check_tools_dedupes(self, mock_which):
        """Test that check_tools reports each name once."""
        mock_which.return_value = None
        statuses = check_tools(["convert", "unzip", "convert"])

        assert [s.name for s in statuses] == ["convert", "unzip"]


class TestStepTools:
    """Tests for the step type to tool table."""

    def test_every_step_type_listed(self):
        """Test that STEP_TOOLS covers every step type."""
        assert set(STEP_TOOLS) == {t.value for t in StepType}

    def test_only_curl_is_optional(self):
        """Test that curl is the only optional tool."""
        optional = [tool for tools in STEP_TOOLS.values() for tool, required in tools if not required]
        assert optional == ["curl"]


class TestTesseractLanguages:
    """Tests for listing tesseract languages."""

    @patch("imgflow.core.deps.subprocess.run")
    @patch("imgflow.core.deps.shutil.which")
    def test_parses_listing(self, mock_which, mock_run):
        """Test parsing tesseract --list-langs output."""
        mock_which.return_value = "/usr/bin/tesseract"
        mock_run.return_value = MagicMock(
            stdout='List of available languages in "/usr/share/tessdata/" (3):\neng\nosd\ndeu\n',
            stderr="",
        )

        assert list_tesseract_languages() == ["eng", "osd", "deu"]

    @patch("imgflow.core.deps.subprocess.run")
    @patch("imgflow.core.deps.shutil.which")
    def test_listing_on_stderr(self, mock_which, mock_run):
        """Test a language listing printed on stderr."""
        mock_which.return_value = "/usr/bin/tesseract"
        mock_run.return_value = MagicMock(stdout="", stderr="List of available languages (1):\neng\n")

        assert list_tesseract_languages() == ["eng"]

    @patch("imgflow.core.deps.shutil.which")
    def test_missing_tesseract(self, mock_which):
        """Test that no languages are listed without tesseract."""
        mock_which.return_value = None
        assert list_tesseract_languages() == []

    @patch("imgflow.core.deps.subprocess.run")
    @patch("imgflow.core.deps.shutil.which")
    def test_failed_listing(self, mock_which, mock_run):
        """Test that a failing listing gives no languages."""
        mock_which.return_value = "/usr/bin/tesseract"
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="tesseract", timeout=10)

        assert list_tesseract_languages() == []
