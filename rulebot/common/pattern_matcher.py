"""
Pattern Matcher

Glob-style patterns used by PatternMatch and ExtractParam in rule text.

Pattern syntax:
- *        any number of characters (including none)
- {name}   one or more characters; the name only documents intent

Examples:
- "go to *" matches "go to kitchen" and "go to the living room"
- "go to {location}" matches "go to Kitchen" and extracts "Kitchen"

Matching is case-insensitive and anchored at both ends. Extraction returns
the captured text in the casing of the original input where it can be found.
"""

import re
import logging
from functools import lru_cache
from typing import Optional

logger = logging.getLogger("rulebot.common.pattern_matcher")

_PLACEHOLDER = re.compile(r"\{[^}]+\}")


def _escape_literal(segment: str) -> str:
    """Escape a literal chunk and turn bare '*' into a wildcard group"""
    return "(.*)".join(re.escape(part) for part in segment.split("*"))


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """
    Compile a rule pattern into an anchored regular expression.

    The pattern is lower-cased and trimmed first; every {placeholder}
    becomes (.+) and every * becomes (.*), everything else is literal.
    """
    normalized = pattern.lower().strip()

    parts = []
    last = 0
    for placeholder in _PLACEHOLDER.finditer(normalized):
        parts.append(_escape_literal(normalized[last:placeholder.start()]))
        parts.append("(.+)")
        last = placeholder.end()
    parts.append(_escape_literal(normalized[last:]))

    regex = "^" + "".join(parts) + "$"
    logger.debug("Pattern '%s' -> regex '%s'", pattern, regex)
    return re.compile(regex, re.DOTALL)


def matches(pattern: str, text: str) -> bool:
    """Check whether the whole text matches the pattern"""
    normalized_text = text.lower().strip()
    result = compile_pattern(pattern).fullmatch(normalized_text) is not None
    logger.debug("PatternMatch '%s' on '%s': %s", pattern, normalized_text, result)
    return result


def extract(pattern: str, text: str, index: int = 0) -> Optional[str]:
    """
    Extract the captured text at a 0-based group position.

    Args:
        pattern: Rule pattern with * and/or {placeholders}
        text: Input text (any casing)
        index: Which captured group to return

    Returns:
        The captured text in its original casing, the lower-cased capture if
        the original casing cannot be located, or None when the pattern does
        not match or the index is out of range.
    """
    normalized_text = text.lower().strip()
    match = compile_pattern(pattern).fullmatch(normalized_text)
    if match is None or index < 0 or index >= len(match.groups()):
        return None

    captured = match.group(index + 1)
    if captured is None:
        return None
    captured = captured.strip()

    original = text.strip()
    # Offsets in text.lower() need not line up with text (e.g. "İ")
    located = re.search(re.escape(captured), original, re.IGNORECASE)
    result = original[located.start():located.end()] if located else captured

    logger.debug("ExtractParam '%s' on '%s' [%d]: '%s'", pattern, original, index, result)
    return result
