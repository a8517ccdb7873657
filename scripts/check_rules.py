#!/usr/bin/env python3
"""
Rule Check Script

Parses a rule file (or the remote rules URL) and prints what the engine
would load. Optionally runs a few ticks against the simulated robot, so a
rule change can be tried before pushing it to the robot.

Usage:
    python scripts/check_rules.py [rules.txt] [--remote] [--render]
    python scripts/check_rules.py rules.txt --ticks 3 --asr "go to the kitchen"
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def main():
    parser = argparse.ArgumentParser(description="Parse and dry-run rulebot rule text")
    parser.add_argument("path", nargs="?", default=None, help="Rules file (defaults to the configured rules path)")
    parser.add_argument("--remote", action="store_true", help="Fetch the rules from the configured remote URL instead")
    parser.add_argument("--render", action="store_true", help="Print the parsed rules in normalized rule text")
    parser.add_argument("--ticks", type=int, default=0, help="Number of ticks to run against the simulated robot")
    parser.add_argument("--asr", type=str, default=None, help="Speech input to feed before ticking")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level")
    args = parser.parse_args()

    from dotenv import load_dotenv

    from rulebot.common.config import load_config, configure_logging
    from rulebot.common.memory import Memory
    from rulebot.engine import (
        InteractionLoop,
        InlineExecutor,
        RobotEvents,
        RemoteRuleSource,
        RuleSourceError,
        parse_rules,
        render_rule,
        render_rules,
    )
    from rulebot.engine.interaction_loop import INTERACTION_STATE_PARAM
    from rulebot.skills import SimulatedRobot, build_default_registry

    load_dotenv()
    configure_logging(args.log_level)
    config = load_config()

    if args.remote:
        source = RemoteRuleSource.from_config(config.rules)
        print(f"[Rules] Fetching {source.url}...")
        try:
            text = source.fetch()
        except RuleSourceError as e:
            print(f"[Rules] ERROR: {e}")
            sys.exit(1)
    else:
        path = Path(args.path or config.rules.rules_path)
        print(f"[Rules] Reading {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            print(f"[Rules] ERROR: {e}")
            sys.exit(1)

    rules = parse_rules(text)
    blocks = text.count("-->")
    print(f"[Rules] Parsed {len(rules)} rules ({blocks - len(rules)} skipped)")

    if not rules:
        print("[Rules] ERROR: No valid rules")
        sys.exit(1)

    if args.render:
        print(render_rules(rules))
    else:
        for i, rule in enumerate(rules, 1):
            print(f"  {i}. {render_rule(rule)}")

    if args.ticks <= 0:
        return

    # Dry run: no speech pauses, every action runs inline
    config.robot.speech_delay_scale = 0
    memory = Memory()
    robot = SimulatedRobot(locations=config.robot.locations)
    registry = build_default_registry(robot, memory, config)
    loop = InteractionLoop(memory, registry, text, config=config.loop, foreground=InlineExecutor())

    if config.loop.initial_state:
        memory.set_state_param(INTERACTION_STATE_PARAM, config.loop.initial_state)
    if args.asr:
        RobotEvents(memory, registry, robot).on_asr_result(args.asr, "en-US")

    for tick in range(1, args.ticks + 1):
        before = len(robot.actions)
        loop.tick()
        print(f"[Tick {tick}] interactionState={memory.get_state_param(INTERACTION_STATE_PARAM)!r}")
        for action in robot.actions[before:]:
            print(f"    robot: {' '.join(str(part) for part in action)}")

    registry.cleanup()
    print("[Rules] Final state:")
    for name, value in sorted(memory.get_state().items()):
        print(f"    {name} = {value!r}")


if __name__ == "__main__":
    main()
