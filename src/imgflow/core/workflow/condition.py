# core/workflow/condition.py
"""
Condition Evaluation
====================

Evaluates a step's ``condition`` against a context scope.

Evaluation order:
1. An empty condition is true.
2. Every variable bound in the context is replaced by its value. Both
   ``{name}`` and bare ``name`` are replaced, case-insensitively, longest
   names first, in one pass: a substituted value is never substituted
   again. Only whole identifiers are replaced, so binding ``count`` leaves
   ``extracted_count`` alone.
3. The result is matched against, in order:
   a. integer comparison:  ``<int> <op> <int>``, op in > >= < <= == = !=
   b. string comparison:   ``<token> <op> <token>``, op in == = !=;
      tokens may be quoted with ' or "
   c. boolean literal:     true/yes/1/on/enabled, false/no/0/off/disabled
4. Anything else is unparsable and handled by the UnparsableConditionPolicy.

The default policy, EXECUTE_ANYWAY, treats an unparsable condition as true
and records a warning. A typo in a condition therefore never silently skips
a step, but a broken condition also never stops one from running.

Example:
    context = VariableScope("context", {"extracted_count": 3})
    evaluate_condition("extracted_count > 0", context)   # True
    evaluate_condition("format == 'png'", context)       # False
"""

import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from imgflow.core.logger import get_logger

from .scope import VariableScope
from .values import parse_bool

logger = get_logger(__name__)

__all__ = [
    "UnparsableConditionPolicy",
    "ConditionOutcome",
    "ConditionEvaluator",
    "evaluate_condition",
    "substitute_context",
]


class UnparsableConditionPolicy(Enum):
    """What to do with a condition none of the grammar forms match."""

    EXECUTE_ANYWAY = "execute_anyway"
    SKIP = "skip"


_NUMERIC = re.compile(r"^\s*(-?\d+)\s*(>=|<=|==|!=|>|<|=)\s*(-?\d+)\s*$")
_TOKEN = r"\"[^\"]*\"|'[^']*'|[^\s=!<>\"']+"
_STRING = re.compile(rf"^\s*({_TOKEN})\s*(==|!=|=)\s*({_TOKEN})\s*$")

_NUMERIC_OPS: Dict[str, Callable[[int, int], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "=": operator.eq,
    "!=": operator.ne,
}


@dataclass(frozen=True)
class ConditionOutcome:
    """
    Detailed result of one evaluation.

    Attributes:
        condition: The condition as written
        expression: The condition after variable substitution
        result: Whether the step should run
        form: "empty", "numeric", "string", "boolean" or "unparsable"
        warning: Warning recorded for unparsable conditions
    """

    condition: str
    expression: str
    result: bool
    form: str
    warning: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.form != "unparsable"


def substitute_context(condition: str, context: VariableScope) -> str:
    """Replace context variables in ``condition`` with their values."""
    names = sorted(context.names(), key=len, reverse=True)
    if not names:
        return condition

    # One pass over the original text; substituted values are never rescanned
    alternation = "|".join(re.escape(name) for name in names)
    pattern = re.compile(
        rf"\{{(?P<braced>{alternation})\}}|(?<![A-Za-z0-9_])(?P<bare>{alternation})(?![A-Za-z0-9_])",
        re.IGNORECASE,
    )

    def _replace(match: "re.Match[str]") -> str:
        return context.get(match.group("braced") or match.group("bare"))

    return pattern.sub(_replace, condition)


def _unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1]
    return token


def _match(expression: str) -> Optional[tuple]:
    """Match ``expression`` against the grammar; returns (form, result) or None."""
    m = _NUMERIC.match(expression)
    if m:
        left, op, right = m.groups()
        return "numeric", _NUMERIC_OPS[op](int(left), int(right))

    m = _STRING.match(expression)
    if m:
        left, op, right = m.groups()
        equal = _unquote(left) == _unquote(right)
        return "string", equal if op != "!=" else not equal

    literal = parse_bool(expression)
    if literal is not None:
        return "boolean", literal

    return None


class ConditionEvaluator:
    """
    Evaluates step conditions and keeps the warnings it produced.

    Args:
        policy: Handling of unparsable conditions
    """

    def __init__(
        self,
        policy: UnparsableConditionPolicy = UnparsableConditionPolicy.EXECUTE_ANYWAY,
    ):
        self.policy = policy
        self.warnings: List[str] = []

    def explain(self, condition: Optional[str], context: VariableScope) -> ConditionOutcome:
        """Evaluate ``condition`` and describe how the result was reached."""
        if condition is None or not condition.strip():
            return ConditionOutcome(condition or "", "", True, "empty")

        expression = substitute_context(condition, context)
        matched = _match(expression)
        if matched is not None:
            form, result = matched
            return ConditionOutcome(condition, expression, result, form)

        run = self.policy is UnparsableConditionPolicy.EXECUTE_ANYWAY
        warning = (
            f"Could not parse condition '{condition}' (evaluated as '{expression}'), "
            f"{'executing step anyway' if run else 'skipping step'}"
        )
        self.warnings.append(warning)
        logger.warning(warning)
        return ConditionOutcome(condition, expression, run, "unparsable", warning)

    def evaluate(self, condition: Optional[str], context: VariableScope) -> bool:
        """Return whether a step guarded by ``condition`` should run."""
        return self.explain(condition, context).result

    def clear_warnings(self) -> None:
        self.warnings.clear()

    @staticmethod
    def is_parsable(condition: Optional[str], context: Optional[VariableScope] = None) -> bool:
        """Check the syntax of a condition without recording warnings."""
        if condition is None or not condition.strip():
            return True
        expression = substitute_context(condition, context) if context else condition
        return _match(expression) is not None


def evaluate_condition(
    condition: Optional[str],
    context: VariableScope,
    policy: UnparsableConditionPolicy = UnparsableConditionPolicy.EXECUTE_ANYWAY,
) -> bool:
    """Evaluate one condition with a throwaway ConditionEvaluator."""
    return ConditionEvaluator(policy).evaluate(condition, context)
