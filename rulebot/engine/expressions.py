"""
Rule Expressions

The closed set of expression nodes produced by the parser, plus Rule.
All nodes are frozen dataclasses, so parsed rule sets compare structurally
and can be shared between threads without copying.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple, Union


@dataclass(frozen=True)
class StringLiteral:
    """Immutable text constant"""
    value: str


@dataclass(frozen=True)
class FunctionCall:
    """Receiver.method(args...) invocation on a named capability"""
    receiver: str
    method: str
    args: Tuple["Expression", ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EqualsExpr:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class AndExpr:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class OrExpr:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class PatternMatch:
    """Boolean predicate: does text match the literal pattern"""
    pattern: str
    text: "Expression"


@dataclass(frozen=True)
class ExtractParam:
    """Captured group param_index of the literal pattern applied to text"""
    pattern: str
    text: "Expression"
    param_index: int = 0


Expression = Union[
    StringLiteral,
    FunctionCall,
    EqualsExpr,
    AndExpr,
    OrExpr,
    PatternMatch,
    ExtractParam,
]


@dataclass(frozen=True)
class Rule:
    """A condition paired with the ordered actions to run when it holds"""
    condition: Expression
    actions: Tuple[Expression, ...] = field(default_factory=tuple)


RuleSet = Tuple[Rule, ...]


def is_call_to(expr: Expression, receiver: str, method: str) -> bool:
    """Check whether an expression is a call to receiver.method"""
    return (
        isinstance(expr, FunctionCall)
        and expr.receiver == receiver
        and expr.method == method
    )


# ============================================================================
# Rendering back to rule text
# ============================================================================

def render_expression(expr: Expression) -> str:
    """Render an expression as rule-language text"""
    if isinstance(expr, StringLiteral):
        return f'"{expr.value}"'
    if isinstance(expr, FunctionCall):
        args = ", ".join(render_expression(arg) for arg in expr.args)
        return f"{expr.receiver}.{expr.method}({args})"
    if isinstance(expr, EqualsExpr):
        return f"{render_expression(expr.left)} == {render_expression(expr.right)}"
    if isinstance(expr, AndExpr):
        return f"{render_expression(expr.left)} && {render_expression(expr.right)}"
    if isinstance(expr, OrExpr):
        return f"{render_expression(expr.left)} || {render_expression(expr.right)}"
    if isinstance(expr, PatternMatch):
        return f'PatternMatch("{expr.pattern}", {render_expression(expr.text)})'
    if isinstance(expr, ExtractParam):
        return (
            f'ExtractParam("{expr.pattern}", {render_expression(expr.text)}, '
            f"{expr.param_index})"
        )
    raise TypeError(f"Not an expression: {type(expr).__name__}")


def render_rule(rule: Rule) -> str:
    actions = "; ".join(render_expression(action) for action in rule.actions)
    return f"[{render_expression(rule.condition)} --> {actions}]"


def render_rules(rules: Iterable[Rule]) -> str:
    """Render a rule set in the bracketed form accepted by parse_rules"""
    lines: List[str] = [f"    {render_rule(rule)}" for rule in rules]
    return "[\n" + "\n".join(lines) + "\n]"
