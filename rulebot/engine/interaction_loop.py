"""
Interaction Loop

Owns the active rule set and evaluates it against Memory at a fixed cadence
on a background thread.

Each tick:
1. Under the rules lock, reparse the held rule text if a reload is pending
   and swap the rule set wholesale.
2. Evaluate EVERY rule in order. Rules whose condition is True fire; Memory
   written by one rule's actions is visible to the rules after it.
3. A firing rule whose actions include a speech call runs all its actions
   on the loop thread (speech blocks the loop). Any other firing rule's
   actions go to the foreground executor and the loop does not wait.
4. Wait the tick interval, or return early when stop() is called.

The first exception while evaluating rules abandons the rest of that tick;
the loop carries on with the next tick.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Optional, Sequence

from ..common.config import LoopConfig
from ..common.memory import Memory
from ..skills.registry import CapabilityRegistry
from .evaluator import EvaluationContext, evaluate, condition_holds
from .expressions import Expression, Rule, RuleSet, is_call_to
from .parser import parse_rules

logger = logging.getLogger("rulebot.engine.interaction_loop")

INTERACTION_STATE_PARAM = "interactionState"


class LoopState(str, Enum):
    """Lifecycle of the interaction loop"""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class InlineExecutor(Executor):
    """
    Executor that runs submitted work immediately on the calling thread.

    Use as the foreground context when there is no separate UI thread, e.g.
    headless runs and tests that need one tick to be deterministic.
    """

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class InteractionLoop:
    """
    Rule evaluation scheduler with hot reload.

    Usage:
        loop = InteractionLoop(memory, registry, rules_text)
        loop.start()
        loop.replace_rules(new_text)   # picked up on the next tick
        loop.stop()
    """

    def __init__(
        self,
        memory: Memory,
        registry: CapabilityRegistry,
        rules_text: str = "",
        config: Optional[LoopConfig] = None,
        foreground: Optional[Executor] = None,
    ):
        """
        Initialize the loop.

        Args:
            memory: Shared Memory
            registry: Capabilities reachable from rule text
            rules_text: Initial rule-language source
            config: Tick interval and speech receiver settings
            foreground: Executor for non-speech actions (a single-thread
                pool is created when omitted)
        """
        self._config = config or LoopConfig()
        self._context = EvaluationContext(memory=memory, registry=registry)

        # The held text and the reload flag change together under this lock
        self._rules_lock = threading.Lock()
        self._rules_text = rules_text
        self._reload_pending = True  # parsed by start() or the first tick
        self._rules: RuleSet = ()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = LoopState.IDLE
        self._tick_count = 0

        self._owns_foreground = foreground is None
        self._foreground = foreground or ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="rulebot-foreground",
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == LoopState.RUNNING

    @property
    def memory(self) -> Memory:
        return self._context.memory

    @property
    def registry(self) -> CapabilityRegistry:
        return self._context.registry

    @property
    def rules(self) -> RuleSet:
        """The active rule set (an immutable snapshot)"""
        return self._rules

    @property
    def rule_count(self) -> int:
        return len(self._rules)

    @property
    def rules_text(self) -> str:
        with self._rules_lock:
            return self._rules_text

    @property
    def reload_pending(self) -> bool:
        with self._rules_lock:
            return self._reload_pending

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def tick_interval(self) -> float:
        return self._config.tick_interval_ms / 1000.0

    # ------------------------------------------------------------------
    # Hot reload
    # ------------------------------------------------------------------

    def replace_rules(self, rules_text: str) -> None:
        """Hold new rule text; it is parsed and swapped in on the next tick"""
        with self._rules_lock:
            self._rules_text = rules_text
            self._reload_pending = True
        logger.info("New rule text received (%d chars), reload pending", len(rules_text))

    def request_reload(self) -> None:
        """Reparse the currently held text on the next tick"""
        with self._rules_lock:
            self._reload_pending = True

    def _apply_pending_reload(self) -> None:
        with self._rules_lock:
            if not self._reload_pending:
                return
            self._rules = tuple(parse_rules(self._rules_text))
            self._reload_pending = False
        logger.info("Rules reloaded and re-parsed: %d rules", len(self._rules))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Parse the held rule text and start ticking on a background thread"""
        if self._state == LoopState.RUNNING:
            logger.debug("Interaction loop already running")
            return
        if self._state == LoopState.STOPPED:
            raise RuntimeError("Interaction loop cannot be restarted after stop()")

        if self._config.initial_state:
            self.memory.set_state_param(INTERACTION_STATE_PARAM, self._config.initial_state)

        with self._rules_lock:
            self._rules = tuple(parse_rules(self._rules_text))
            self._reload_pending = False
        logger.info("Parsed rules count: %d", len(self._rules))

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="rulebot-interaction-loop",
            daemon=True,
        )
        self._state = LoopState.RUNNING
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Signal the loop to stop and wait for the in-flight tick to finish.

        Args:
            timeout: Seconds to wait for the loop thread (None waits forever)
        """
        if self._state != LoopState.RUNNING:
            self._state = LoopState.STOPPED
            return

        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        if self._owns_foreground:
            self._foreground.shutdown(wait=False)
        self._state = LoopState.STOPPED
        logger.info("Interaction loop stopped after %d ticks", self._tick_count)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.tick_interval)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Run one pass: reload check, evaluate every rule, dispatch actions"""
        self._apply_pending_reload()

        try:
            for rule in self._rules:
                if condition_holds(rule.condition, self._context):
                    self._dispatch(rule)
        except Exception as e:
            logger.exception("Rule evaluation aborted for this tick: %s", e)

        self._tick_count += 1

    def _speaks(self, action: Expression) -> bool:
        return is_call_to(action, self._config.speech_receiver, self._config.speech_method)

    def _dispatch(self, rule: Rule) -> None:
        if any(self._speaks(action) for action in rule.actions):
            self._run_actions(rule.actions)
        else:
            self._foreground.submit(self._run_foreground_actions, rule.actions)

    def _run_actions(self, actions: Sequence[Expression]) -> None:
        for action in actions:
            evaluate(action, self._context)

    def _run_foreground_actions(self, actions: Sequence[Expression]) -> None:
        try:
            self._run_actions(actions)
        except Exception as e:
            logger.warning("Foreground action failed: %s", e, exc_info=True)
