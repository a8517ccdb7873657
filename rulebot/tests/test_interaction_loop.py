"""
Tests for Interaction Loop

Tick semantics, action routing, hot reload and lifecycle.
"""

import logging
import threading
import time
from concurrent.futures import Executor
from unittest.mock import Mock

import pytest


CASCADE_RULES = """[
    [Memory.getStateParam("s") == "a" --> Memory.setStateParam("s", "b")]
    [Memory.getStateParam("s") == "b" --> Memory.setStateParam("s", "c")]
]"""


def _loop(rules_text, foreground=None, names=("TTS", "ASR"), **loop_kwargs):
    from rulebot.common.config import RulebotConfig, LoopConfig
    from rulebot.common.memory import Memory
    from rulebot.engine.interaction_loop import InteractionLoop, InlineExecutor
    from rulebot.skills.registry import build_default_registry
    from rulebot.skills.robot import SimulatedRobot

    config = RulebotConfig()
    config.robot.speech_delay_scale = 0
    loop_kwargs.setdefault("initial_state", "")

    memory = Memory()
    robot = SimulatedRobot()
    registry = build_default_registry(robot, memory, config, names=names)
    loop = InteractionLoop(
        memory,
        registry,
        rules_text,
        config=LoopConfig(**loop_kwargs),
        foreground=foreground or InlineExecutor(),
    )
    return loop, memory, robot


class TestTick:
    """Tests for a single evaluation pass"""

    def test_rules_cascade_within_one_tick(self):
        loop, memory, _ = _loop(CASCADE_RULES)
        memory.set_state_param("s", "a")

        loop.tick()

        assert memory.get_state_param("s") == "c"
        assert loop.tick_count == 1

    def test_every_matching_rule_fires(self):
        rules = """[
            ["a" == "a" --> Memory.setStateParam("first", "yes")]
            ["b" == "b" --> Memory.setStateParam("second", "yes")]
            ["a" == "b" --> Memory.setStateParam("third", "yes")]
        ]"""
        loop, memory, _ = _loop(rules)

        loop.tick()

        assert memory.get_state_param("first") == "yes"
        assert memory.get_state_param("second") == "yes"
        assert memory.get_state_param("third") is None

    def test_speech_rules_run_on_loop_thread(self):
        rules = """[
            ["a" == "a" --> TTS.speak("hello"); Memory.setStateParam("spoken", "yes")]
            ["a" == "a" --> Memory.setStateParam("silent", "yes")]
        ]"""
        foreground = Mock(spec=Executor)
        loop, memory, robot = _loop(rules, foreground=foreground)

        loop.tick()

        assert ("speak", "hello") in robot.actions
        assert memory.get_state_param("spoken") == "yes"
        # the silent rule was handed to the foreground executor, not run
        assert memory.get_state_param("silent") is None
        assert foreground.submit.call_count == 1

    def test_foreground_failures_are_logged(self, caplog):
        from rulebot.engine.interaction_loop import InlineExecutor

        loop, _, _ = _loop('[["a" == "a" --> Nobody.call()]]', foreground=InlineExecutor())

        with caplog.at_level(logging.WARNING, logger="rulebot.engine.interaction_loop"):
            loop.tick()

        assert "Foreground action failed" in caplog.text

    def test_error_aborts_rest_of_tick_then_recovers(self, caplog):
        rules = """[
            ["a" == "a" --> Memory.setStateParam("first", "yes")]
            [Nobody.call() == "x" --> Memory.setStateParam("second", "yes")]
            ["a" == "a" --> Memory.setStateParam("third", "yes")]
        ]"""
        loop, memory, _ = _loop(rules)

        with caplog.at_level(logging.WARNING, logger="rulebot.engine.interaction_loop"):
            loop.tick()

        assert memory.get_state_param("first") == "yes"
        assert memory.get_state_param("third") is None
        assert "aborted" in caplog.text

        # The loop survives: the next tick runs, and fixed rules take effect
        loop.replace_rules('[["a" == "a" --> Memory.setStateParam("third", "yes")]]')
        loop.tick()

        assert memory.get_state_param("third") == "yes"
        assert loop.tick_count == 2

    def test_inline_executor_captures_exceptions(self):
        from rulebot.engine.interaction_loop import InlineExecutor

        def boom():
            raise ValueError("bad")

        future = InlineExecutor().submit(boom)
        assert isinstance(future.exception(), ValueError)
        assert InlineExecutor().submit(lambda x: x * 2, 21).result() == 42


class TestReload:
    """Tests for the hot reload protocol"""

    def test_replacement_applies_on_next_tick(self):
        loop, memory, _ = _loop('[["a" == "a" --> Memory.setStateParam("v", "old")]]')
        loop.tick()

        loop.replace_rules('[["a" == "a" --> Memory.setStateParam("v", "new")]]')
        assert loop.reload_pending
        assert memory.get_state_param("v") == "old"

        loop.tick()

        assert not loop.reload_pending
        assert memory.get_state_param("v") == "new"
        assert "new" in loop.rules_text

    def test_request_reload_reparses_held_text(self):
        loop, _, _ = _loop(CASCADE_RULES)
        loop.tick()
        first = loop.rules

        loop.request_reload()
        loop.tick()

        assert loop.rules == first
        assert loop.rules is not first

    def test_concurrent_replacement_is_all_or_nothing(self):
        from rulebot.engine.parser import parse_rules

        two = '[["a" == "b" --> ASR.listen()] ["a" == "b" --> ASR.listen()]]'
        three = '[["x" == "y" --> TTS.speak("1")] ["x" == "y" --> TTS.speak("2")] ["x" == "y" --> TTS.speak("3")]]'
        valid = {tuple(parse_rules(two)), tuple(parse_rules(three))}

        loop, _, _ = _loop(two)
        loop.tick()

        stop = threading.Event()

        def replacer():
            while not stop.is_set():
                loop.replace_rules(two)
                loop.replace_rules(three)

        thread = threading.Thread(target=replacer)
        thread.start()
        try:
            for _ in range(300):
                loop.tick()
                assert loop.rules in valid
        finally:
            stop.set()
            thread.join()


class TestLifecycle:
    """Tests for start/stop"""

    def test_start_ticks_in_background_and_stop_joins(self):
        from rulebot.engine.interaction_loop import LoopState, INTERACTION_STATE_PARAM

        loop, memory, _ = _loop(CASCADE_RULES, tick_interval_ms=10, initial_state="Active")
        memory.set_state_param("s", "a")

        loop.start()
        try:
            assert loop.is_running
            assert memory.get_state_param(INTERACTION_STATE_PARAM) == "Active"

            deadline = time.time() + 5
            while memory.get_state_param("s") != "c" and time.time() < deadline:
                time.sleep(0.01)
        finally:
            loop.stop(timeout=5)

        assert memory.get_state_param("s") == "c"
        assert loop.state == LoopState.STOPPED
        assert loop.tick_count > 0

    def test_start_twice_is_a_no_op(self):
        loop, _, _ = _loop("", tick_interval_ms=10)
        loop.start()
        try:
            loop.start()
            assert loop.is_running
        finally:
            loop.stop(timeout=5)

    def test_cannot_restart_after_stop(self):
        loop, _, _ = _loop("", tick_interval_ms=10)
        loop.start()
        loop.stop(timeout=5)

        with pytest.raises(RuntimeError):
            loop.start()

    def test_start_parses_rules(self):
        loop, _, _ = _loop(CASCADE_RULES, tick_interval_ms=1000)
        loop.start()
        try:
            assert loop.rule_count == 2
            assert not loop.reload_pending
        finally:
            loop.stop(timeout=5)

    def test_tick_interval(self):
        loop, _, _ = _loop("", tick_interval_ms=200)
        assert loop.tick_interval == pytest.approx(0.2)
