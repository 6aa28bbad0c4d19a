# controllers/base.py
"""
Base Controller
===============

Base class and result types shared by all controllers.
"""

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar

from imgflow.core.logger import get_logger
from imgflow.core.paths import validate_input_file

T = TypeVar("T")

logger = get_logger(__name__)


class ToDictMixin:
    """
    Mixin that adds to_dict() to dataclasses.

    Nested dataclasses, paths, enums and containers are converted to plain
    values. Override _to_dict_extra() to add computed fields.

    Example:
        @dataclass
        class StepInfo(ToDictMixin):
            name: str
            index: int

        StepInfo(name="extract", index=0).to_dict()  # {"name": "extract", "index": 0}
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert dataclass to dictionary, handling nested structures."""
        if not is_dataclass(self):
            raise TypeError(f"{self.__class__.__name__} is not a dataclass")

        result = {f.name: self._serialize_value(getattr(self, f.name)) for f in fields(self)}

        extra = self._to_dict_extra()
        if extra:
            result.update(extra)

        return result

    def _serialize_value(self, value: Any) -> Any:
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        if isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}
        if hasattr(value, "to_dict"):
            return value.to_dict()
        if is_dataclass(value):
            return {f.name: self._serialize_value(getattr(value, f.name)) for f in fields(value)}
        return str(value)

    def _to_dict_extra(self) -> Optional[Dict[str, Any]]:
        """Override to add extra fields to dict output."""
        return None


@dataclass
class ControllerResult(Generic[T]):
    """
    Result object returned by controller operations.

    Gives callers one shape for success and failure; controllers never raise.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T = None,
        message: str = None,
        warnings: List[str] = None,
        **metadata,
    ) -> "ControllerResult[T]":
        """Create a successful result."""
        return cls(
            success=True,
            data=data,
            message=message,
            warnings=warnings or [],
            metadata=metadata,
        )

    @classmethod
    def fail(
        cls,
        error: str,
        data: T = None,
        warnings: List[str] = None,
        **metadata,
    ) -> "ControllerResult[T]":
        """Create a failed result."""
        return cls(
            success=False,
            data=data,
            error=error,
            warnings=warnings or [],
            metadata=metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary (metadata is omitted)."""
        result = {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "warnings": self.warnings,
        }

        if self.data is None:
            result["data"] = None
        elif hasattr(self.data, "to_dict"):
            result["data"] = self.data.to_dict()
        elif is_dataclass(self.data):
            result["data"] = asdict(self.data)
        elif isinstance(self.data, (dict, list, str, int, float, bool)):
            result["data"] = self.data
        else:
            result["data"] = str(self.data)

        return result


class BaseController:
    """
    Base class for all controllers.

    Provides input and output path checks shared by controller operations.
    """

    def _validate_input_path(self, path: str, kind: str = "any") -> Optional[str]:
        """
        Validate an input file.

        Returns:
            None if valid, error message if invalid
        """
        error = validate_input_file(path, kind)
        if error:
            logger.debug(f"Rejected input path: {error}")
        return error

    def _validate_output_path(self, path: str, allow_overwrite: bool = True) -> Optional[str]:
        """
        Validate an output path.

        Returns:
            None if valid, error message if invalid
        """
        p = Path(path)
        if not allow_overwrite and p.exists():
            return f"Output path already exists: {path}"
        if p.exists() and not p.is_dir():
            return f"Output path is not a directory: {path}"
        return None
