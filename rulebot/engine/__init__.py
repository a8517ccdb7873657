"""
Rule Engine

Parses rule text into an expression tree and evaluates it against Memory.

Components:
- parser: rule text -> ordered list of Rule
- expressions: the expression tree and its rendering back to rule text
- evaluator: interprets expressions against Memory and the capability registry
- interaction_loop: ticks the active rule set on a background thread
- events: robot callbacks written into Memory
- rule_source: bundled and remote rule text
"""

from .expressions import (
    StringLiteral,
    FunctionCall,
    EqualsExpr,
    AndExpr,
    OrExpr,
    PatternMatch,
    ExtractParam,
    Expression,
    Rule,
    RuleSet,
    render_expression,
    render_rule,
    render_rules,
)
from .parser import RuleParseError, parse_expression, parse_rule, parse_rules
from .evaluator import EvaluationContext, EvaluationError, evaluate, condition_holds
from .interaction_loop import InteractionLoop, InlineExecutor, LoopState
from .events import RobotEvents
from .rule_source import (
    RemoteRuleSource,
    RuleSourceError,
    load_bundled_rules,
    reload_from_remote,
    reload_from_remote_async,
)

__all__ = [
    "StringLiteral",
    "FunctionCall",
    "EqualsExpr",
    "AndExpr",
    "OrExpr",
    "PatternMatch",
    "ExtractParam",
    "Expression",
    "Rule",
    "RuleSet",
    "render_expression",
    "render_rule",
    "render_rules",
    "RuleParseError",
    "parse_expression",
    "parse_rule",
    "parse_rules",
    "EvaluationContext",
    "EvaluationError",
    "evaluate",
    "condition_holds",
    "InteractionLoop",
    "InlineExecutor",
    "LoopState",
    "RobotEvents",
    "RemoteRuleSource",
    "RuleSourceError",
    "load_bundled_rules",
    "reload_from_remote",
    "reload_from_remote_async",
]
