"""
Rule Parser

Parses rule-language text into an ordered list of Rules.

Rule text:
    [
        [Memory.getStateParam("interactionState") == "Active" -->
            TTS.speak("Hello"); Memory.setStateParam("interactionState", "idle")]
        [PatternMatch("go to {place}", Memory.getStateParam("lastAsrResult")) -->
            Move.goToLocation(ExtractParam("go to {place}", Memory.getStateParam("lastAsrResult")))]
    ]

Operator binding, weakest first: OR (|| / OR), AND (&& / AND), ==, then
primaries (string literals, PatternMatch/ExtractParam, Receiver.method(...)).
OR and AND split at their rightmost occurrence, so chains associate to the
left. Operators are only recognised outside quotes and outside parentheses.

A rule block that fails to parse is logged and skipped; the remaining
blocks still parse.
"""

import re
import logging
from typing import List, Optional, Tuple

from .expressions import (
    Expression,
    StringLiteral,
    FunctionCall,
    EqualsExpr,
    AndExpr,
    OrExpr,
    PatternMatch,
    ExtractParam,
    Rule,
)

logger = logging.getLogger("rulebot.engine.parser")

RULE_REGEX = re.compile(r"\[\s*([^\[\]]+?)\s*-->\s*([^\[\]]+?)\s*\]", re.DOTALL)
IDENTIFIER_REGEX = re.compile(r"^[A-Za-z0-9_]+$")

PATTERN_MATCH = "PatternMatch"
EXTRACT_PARAM = "ExtractParam"


class RuleParseError(ValueError):
    """A rule block or expression could not be parsed."""
    pass


# ============================================================================
# Splitting helpers
# ============================================================================

def _split_top_level(text: str, separator: str) -> List[str]:
    """Split on a one-character separator at depth 0, outside quotes"""
    parts = []
    current = []
    depth = 0
    in_quotes = False

    for char in text:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif not in_quotes and char == "(":
            depth += 1
            current.append(char)
        elif not in_quotes and char == ")":
            depth -= 1
            current.append(char)
        elif not in_quotes and char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    parts.append("".join(current).strip())
    return parts


def split_actions(actions_text: str) -> List[str]:
    """Split an action list on top-level ';', dropping empty segments"""
    return [part for part in _split_top_level(actions_text, ";") if part]


def split_arguments(args_text: str) -> List[str]:
    """Split a call's argument text on top-level ','"""
    if not args_text.strip():
        return []
    return _split_top_level(args_text, ",")


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _operator_at(expr: str, i: int, symbol: str, word: str) -> int:
    """Length of the operator starting at i, or 0 if there is none"""
    if expr.startswith(symbol, i):
        return len(symbol)
    end = i + len(word)
    if expr[i:end].upper() == word:
        before_ok = i == 0 or not _is_word_char(expr[i - 1])
        after_ok = end == len(expr) or not _is_word_char(expr[end])
        if before_ok and after_ok:
            return len(word)
    return 0


def find_logical_operator(expr: str, symbol: str, word: str) -> Optional[Tuple[int, int]]:
    """
    Find the rightmost logical operator outside quotes and parentheses.

    Returns:
        (index, length) of the operator, or None
    """
    found = None
    depth = 0
    in_quotes = False
    i = 0

    while i < len(expr):
        char = expr[i]
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif depth == 0:
                length = _operator_at(expr, i, symbol, word)
                if length:
                    found = (i, length)
                    i += length
                    continue
        i += 1

    return found


def _find_equality(expr: str) -> List[int]:
    """Positions of every top-level '==' outside quotes"""
    positions = []
    depth = 0
    in_quotes = False
    i = 0

    while i < len(expr):
        char = expr[i]
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif depth == 0 and expr.startswith("==", i):
                positions.append(i)
                i += 2
                continue
        i += 1

    return positions


def _matching_paren(expr: str, open_index: int) -> int:
    """Index of the ')' closing the '(' at open_index, or -1 if unbalanced"""
    depth = 0
    in_quotes = False
    for i in range(open_index, len(expr)):
        char = expr[i]
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return i
    return -1


def _is_single_literal(expr: str) -> bool:
    return (
        len(expr) >= 2
        and expr.startswith('"')
        and expr.endswith('"')
        and '"' not in expr[1:-1]
    )


def _builtin_body(expr: str, name: str) -> Optional[str]:
    """Argument text if expr is exactly one name(...) call, else None"""
    prefix = name + "("
    if not expr.startswith(prefix) or not expr.endswith(")"):
        return None
    if _matching_paren(expr, len(name)) != len(expr) - 1:
        return None
    return expr[len(prefix):-1]


# ============================================================================
# Expression parsing
# ============================================================================

def _literal_pattern(arg: str, builtin: str) -> str:
    pattern = parse_expression(arg)
    if not isinstance(pattern, StringLiteral):
        raise RuleParseError(f"{builtin} pattern must be a string literal: {arg}")
    return pattern.value


def _parse_pattern_match(body: str) -> PatternMatch:
    parts = split_arguments(body)
    if len(parts) != 2:
        raise RuleParseError("PatternMatch requires exactly 2 arguments: pattern, text")
    return PatternMatch(
        pattern=_literal_pattern(parts[0], PATTERN_MATCH),
        text=parse_expression(parts[1]),
    )


def _parse_extract_param(body: str) -> ExtractParam:
    parts = split_arguments(body)
    if len(parts) < 2 or len(parts) > 3:
        raise RuleParseError("ExtractParam requires 2 or 3 arguments: pattern, text, [paramIndex]")

    param_index = 0
    if len(parts) == 3:
        try:
            param_index = int(parts[2].strip())
        except ValueError:
            param_index = 0

    return ExtractParam(
        pattern=_literal_pattern(parts[0], EXTRACT_PARAM),
        text=parse_expression(parts[1]),
        param_index=param_index,
    )


def _parse_function_call(expr: str) -> FunctionCall:
    dot_index = expr.find(".")
    paren_index = expr.find("(", dot_index + 1)
    if dot_index <= 0 or paren_index < 0:
        raise RuleParseError(f"Invalid function call: {expr}")

    receiver = expr[:dot_index].strip()
    method = expr[dot_index + 1:paren_index].strip()
    if not IDENTIFIER_REGEX.match(receiver) or not IDENTIFIER_REGEX.match(method):
        raise RuleParseError(f"Invalid function call: {expr}")

    end_index = _matching_paren(expr, paren_index)
    if end_index != len(expr) - 1:
        raise RuleParseError(f"Unbalanced parentheses in function call: {expr}")

    args = tuple(parse_expression(arg) for arg in split_arguments(expr[paren_index + 1:end_index]))
    return FunctionCall(receiver=receiver, method=method, args=args)


def parse_expression(text: str) -> Expression:
    """
    Parse a single expression.

    Raises:
        RuleParseError: if the text is not a valid expression
    """
    expr = text.strip()
    if not expr:
        raise RuleParseError("Empty expression")

    if _is_single_literal(expr):
        return StringLiteral(expr[1:-1])

    body = _builtin_body(expr, PATTERN_MATCH)
    if body is not None:
        return _parse_pattern_match(body)

    body = _builtin_body(expr, EXTRACT_PARAM)
    if body is not None:
        return _parse_extract_param(body)

    operator = find_logical_operator(expr, "||", "OR")
    if operator:
        index, length = operator
        return OrExpr(parse_expression(expr[:index]), parse_expression(expr[index + length:]))

    operator = find_logical_operator(expr, "&&", "AND")
    if operator:
        index, length = operator
        return AndExpr(parse_expression(expr[:index]), parse_expression(expr[index + length:]))

    equality = _find_equality(expr)
    if len(equality) > 1:
        raise RuleParseError(f"Chained '==' is not supported: {expr}")
    if equality:
        index = equality[0]
        return EqualsExpr(parse_expression(expr[:index]), parse_expression(expr[index + 2:]))

    if "." in expr and "(" in expr:
        return _parse_function_call(expr)

    raise RuleParseError(f"Unsupported expression: {expr}")


# ============================================================================
# Rule parsing
# ============================================================================

def _strip_outer_brackets(text: str) -> str:
    """Remove the enclosing [ ... ] of a rule set, if it has one"""
    stripped = text.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        inner = stripped[1:-1].strip()
        if inner.startswith("[") or not inner:
            return inner
    return stripped


def parse_rule(condition_text: str, actions_text: str) -> Rule:
    """Parse one rule from its condition and action text"""
    condition = parse_expression(condition_text)
    actions = tuple(parse_expression(action) for action in split_actions(actions_text))
    if not actions:
        raise RuleParseError("Rule has no actions")
    return Rule(condition=condition, actions=actions)


def parse_rules(text: str) -> List[Rule]:
    """
    Parse rule-set text into an ordered list of Rules.

    Malformed rule blocks are logged and skipped.

    Args:
        text: Rule-language source

    Returns:
        Rules in source order
    """
    rules = []
    source = _strip_outer_brackets(text or "")

    for match in RULE_REGEX.finditer(source):
        condition_text, actions_text = match.group(1), match.group(2)
        try:
            logger.debug("Parsing rule condition: %s", condition_text.strip())
            rule = parse_rule(condition_text, actions_text)
        except RuleParseError as e:
            logger.warning("Invalid rule %s: %s", match.group(0), e)
            continue
        except Exception as e:
            logger.warning("Unexpected error parsing rule %s: %s", match.group(0), e)
            continue
        rules.append(rule)

    logger.debug("Parsed %d rules", len(rules))
    return rules
