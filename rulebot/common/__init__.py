"""
Rulebot Common Module

Shared infrastructure for the rule engine and the skills.
"""

from .config import RulebotConfig, load_config
from .language import detect_language
from .memory import Memory, StateEntry
from .pattern_matcher import matches, extract
from .values import ValueKind, kind_of, values_equal, as_bool, as_text

__all__ = [
    "RulebotConfig",
    "load_config",
    "Memory",
    "StateEntry",
    "detect_language",
    "matches",
    "extract",
    "ValueKind",
    "kind_of",
    "values_equal",
    "as_bool",
    "as_text",
]
