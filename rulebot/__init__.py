"""
Rulebot

Reactive rule engine for a conversational service robot.

Philosophy:
- Behaviour lives in rule text, not in code
- Every rule is re-evaluated every tick against shared Memory
- Capabilities (speech, movement, sensing) are named and injected
- Rule text can be swapped at run time without restarting the loop

Usage:
    from rulebot.common import Memory, load_config
    from rulebot.engine import parse_rules, InteractionLoop
    from rulebot.skills import build_default_registry, SimulatedRobot
"""

__version__ = "0.1.0"
