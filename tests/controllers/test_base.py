"""
Tests for controller base classes.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List

from imgflow.controllers.base import BaseController, ControllerResult, ToDictMixin


class Color(Enum):
    RED = "red"


@dataclass
class Inner:
    path: Path


@dataclass
class Outer(ToDictMixin):
    name: str
    color: Color
    inner: Inner
    items: List[Path] = field(default_factory=list)

    def _to_dict_extra(self):
        return {"count": len(self.items)}


class TestToDictMixin:
    """Tests for ToDictMixin."""

    def test_nested_values(self):
        """Test serializing enums, paths and nested dataclasses."""
        data = Outer("x", Color.RED, Inner(Path("/a")), [Path("/b")]).to_dict()

        assert data == {
            "name": "x",
            "color": "red",
            "inner": {"path": "/a"},
            "items": ["/b"],
            "count": 1,
        }


class TestControllerResult:
    """Tests for ControllerResult."""

    def test_ok(self):
        """Test creating a successful result."""
        result = ControllerResult.ok(data={"a": 1}, message="done", extra="meta")

        assert result.success is True
        assert result.metadata == {"extra": "meta"}
        assert result.to_dict() == {
            "success": True,
            "message": "done",
            "error": None,
            "warnings": [],
            "data": {"a": 1},
        }

    def test_fail(self):
        """Test creating a failed result."""
        result = ControllerResult.fail("boom", warnings=["w"])

        assert result.success is False
        assert result.error == "boom"
        assert result.warnings == ["w"]
        assert result.to_dict()["data"] is None

    def test_data_with_to_dict(self):
        """Test that data with to_dict is serialized."""
        result = ControllerResult.ok(data=Outer("x", Color.RED, Inner(Path("/a"))))
        assert result.to_dict()["data"]["color"] == "red"


class TestBaseController:
    """Tests for BaseController path helpers."""

    def test_validate_input_path(self, sample_pdf, tmp_path):
        """Test input path checks."""
        controller = BaseController()

        assert controller._validate_input_path(str(sample_pdf)) is None
        assert controller._validate_input_path(str(sample_pdf), "image") is not None
        assert controller._validate_input_path(str(tmp_path / "x")) is not None

    def test_validate_output_path(self, sample_pdf, tmp_path):
        """Test output path checks."""
        controller = BaseController()

        assert controller._validate_output_path(str(tmp_path / "new")) is None
        assert controller._validate_output_path(str(tmp_path), allow_overwrite=False) is not None
        assert "not a directory" in controller._validate_output_path(str(sample_pdf))
