# core/workflow/template.py
"""
Template Substitution
=====================

Replaces ``{name}`` and ``{name:format}`` tokens in step parameters.

- ``{name}`` becomes the scope's value for ``name``; unbound names become
  the empty string. Reporting unknown names is validation's job.
- ``{name:NNd}`` formats the binding as an integer (0 when unbound or not
  numeric) with the given width, zero-padded when NN starts with 0, so
  ``{counter:03d}`` with counter=7 gives ``007``.
- Any other format suffix is ignored with a warning and the raw value used.

Substitution is a single scan of the input; replaced text is never scanned
again, so a value containing braces can't trigger further expansion.
Braced text that isn't an identifier (``{"key": 1}``) is left alone.

Example:
    scope = VariableScope("template")
    init_defaults(scope, "report.pdf", "./out")
    substitute("{pdf_name}_{counter:03d}.png", scope)   # "report_001.png"
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from imgflow.core.config import get_config
from imgflow.core.logger import get_logger

from .scope import VariableScope
from .values import parse_int

logger = get_logger(__name__)

__all__ = [
    "TOKEN_PATTERN",
    "substitute",
    "substitute_params",
    "init_defaults",
    "increment",
    "render_template",
]

TOKEN_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)(?::([^{}]*))?\}")
_INT_FORMAT = re.compile(r"^0?[0-9]*d$")

PDF_EXTENSIONS = (".pdf",)
EXCEL_EXTENSIONS = (".xlsx", ".xls")


def _format_token(name: str, fmt: Optional[str], scope: VariableScope) -> str:
    value = scope.get(name)
    if fmt is None:
        return value

    if _INT_FORMAT.match(fmt):
        number = parse_int(value)
        return format(number if number is not None else 0, fmt)

    logger.warning(f"Unsupported format '{fmt}' for template variable '{name}', using raw value")
    return value


def substitute(text: str, scope: VariableScope) -> str:
    """
    Substitute template tokens in ``text`` from ``scope``.

    Args:
        text: Text containing {name} / {name:format} tokens
        scope: Variables to substitute

    Returns:
        Text with every token replaced
    """
    if not text or "{" not in text:
        return text
    return TOKEN_PATTERN.sub(lambda m: _format_token(m.group(1), m.group(2), scope), text)


def substitute_params(params: Mapping[str, str], scope: VariableScope) -> Dict[str, str]:
    """Substitute tokens in every value of a step's parameters."""
    return {key: substitute(value, scope) for key, value in params.items()}


def _clock_variables(now: datetime) -> Dict[str, str]:
    return {
        "timestamp": now.strftime("%Y%m%d_%H%M%S"),
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M:%S"),
    }


def init_defaults(
    scope: VariableScope,
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    temp_dir: Optional[Union[str, Path]] = None,
    workflow_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VariableScope:
    """
    Seed a scope with the standard workflow variables.

    Sets workflow_input, output_dir, temp_dir, timestamp, date, time and
    counter (1). When ``input_path`` is an existing file, also sets
    input_basename, input_name, input_ext and pdf_name or excel_name
    depending on the extension.

    Args:
        scope: Scope to seed (existing bindings are kept unless overwritten)
        input_path: Workflow input file
        output_dir: Output directory
        temp_dir: Scratch directory (defaults to the configured temp_dir)
        workflow_name: Name of the workflow being run
        now: Seed time (defaults to the current time)

    Returns:
        The same scope
    """
    if temp_dir is None:
        temp_dir = get_config().temp_dir

    scope.set("workflow_input", str(input_path))
    scope.set("output_dir", str(output_dir))
    scope.set("temp_dir", str(temp_dir))
    scope.update(_clock_variables(now or datetime.now()))
    scope.set("counter", 1)
    if workflow_name:
        scope.set("workflow_name", workflow_name)

    path = Path(input_path)
    if path.is_file():
        scope.set("input_basename", path.name)
        scope.set("input_name", path.stem)
        scope.set("input_ext", path.suffix.lstrip("."))

        suffix = path.suffix.lower()
        if suffix in PDF_EXTENSIONS:
            scope.set("pdf_name", path.stem)
        elif suffix in EXCEL_EXTENSIONS:
            scope.set("excel_name", path.stem)

    return scope


def increment(scope: VariableScope, name: str, by: int = 1) -> int:
    """Increment an integer variable (0 when unset) and return the new value."""
    return scope.increment(name, by)


def render_template(text: str, **variables: Any) -> str:
    """
    One-shot substitution with ad-hoc variables.

    timestamp, date and time are always available and reflect the moment
    of the call; explicit keyword arguments take precedence.
    """
    scope = VariableScope("render", _clock_variables(datetime.now()))
    scope.update(variables)
    return substitute(text, scope)
