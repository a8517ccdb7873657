"""
Rule Evaluator

Recursive interpreter over the expression tree.

Semantics:
- StringLiteral -> its value
- EqualsExpr -> kind-aware structural equality (mismatched kinds are unequal)
- AndExpr / OrExpr -> BOTH operands are always evaluated, each coerced to
  bool (only a boolean True counts), then combined
- PatternMatch / ExtractParam -> applied to the evaluated text, coerced to
  a string ("" when absent or not a string)
- FunctionCall -> Memory operations, or a capability from the registry;
  arguments are evaluated left to right before dispatch

Results are returned untouched; callers coerce when they need a boolean.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from ..common.memory import Memory
from ..common.pattern_matcher import matches, extract
from ..common.values import values_equal, as_bool, as_text, describe
from ..skills.registry import CapabilityRegistry
from .expressions import (
    Expression,
    StringLiteral,
    FunctionCall,
    EqualsExpr,
    AndExpr,
    OrExpr,
    PatternMatch,
    ExtractParam,
)

logger = logging.getLogger("rulebot.engine.evaluator")

MEMORY_RECEIVER = "Memory"

# Rule-visible Memory operations
MEMORY_OPERATIONS: Dict[str, Callable[..., Any]] = {
    "getStateParam": Memory.get_state_param,
    "setStateParam": Memory.set_state_param,
    "getPreviousStateParam": Memory.get_previous_state_param,
    "clearHistory": Memory.clear_history,
    "reset": Memory.reset,
}


class EvaluationError(RuntimeError):
    """An expression referenced an unknown receiver or operation."""
    pass


@dataclass
class EvaluationContext:
    """What an expression can see while it is evaluated"""
    memory: Memory
    registry: CapabilityRegistry


def _call(expr: FunctionCall, context: EvaluationContext) -> Any:
    if expr.receiver == MEMORY_RECEIVER:
        operation = MEMORY_OPERATIONS.get(expr.method)
        if operation is None:
            raise EvaluationError(f"Method '{expr.method}' not found in receiver 'Memory'")
        args = _evaluate_args(expr, context)
        return operation(context.memory, *args)

    capability = context.registry.get(expr.receiver)
    if capability is None:
        raise EvaluationError(f"Unknown receiver: {expr.receiver}")
    if not capability.has_operation(expr.method):
        raise EvaluationError(f"Method '{expr.method}' not found in receiver '{expr.receiver}'")

    args = _evaluate_args(expr, context)
    return capability.invoke(expr.method, args)


def _evaluate_args(expr: FunctionCall, context: EvaluationContext) -> List[Any]:
    return [evaluate(arg, context) for arg in expr.args]


def evaluate(expr: Expression, context: EvaluationContext) -> Any:
    """
    Evaluate an expression.

    Raises:
        EvaluationError: unknown receiver or operation
        Exception: anything a capability raises is propagated
    """
    if isinstance(expr, StringLiteral):
        return expr.value

    if isinstance(expr, EqualsExpr):
        return values_equal(evaluate(expr.left, context), evaluate(expr.right, context))

    if isinstance(expr, AndExpr):
        left = as_bool(evaluate(expr.left, context))
        right = as_bool(evaluate(expr.right, context))
        return left and right

    if isinstance(expr, OrExpr):
        left = as_bool(evaluate(expr.left, context))
        right = as_bool(evaluate(expr.right, context))
        return left or right

    if isinstance(expr, PatternMatch):
        text = as_text(evaluate(expr.text, context))
        return matches(expr.pattern, text)

    if isinstance(expr, ExtractParam):
        text = as_text(evaluate(expr.text, context))
        return extract(expr.pattern, text, expr.param_index)

    if isinstance(expr, FunctionCall):
        result = _call(expr, context)
        logger.debug("%s.%s -> %s", expr.receiver, expr.method, describe(result))
        return result

    raise EvaluationError(f"Not an expression: {type(expr).__name__}")


def condition_holds(expr: Expression, context: EvaluationContext) -> bool:
    """Evaluate a rule condition; only a boolean True fires the rule"""
    return as_bool(evaluate(expr, context))
