"""
Base Capability

Abstract base class for named capabilities that rules call as
Receiver.method(args...).

Each capability publishes an explicit table of operations; the evaluator
only ever goes through has_operation() and invoke().
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence

from ..common.config import RulebotConfig
from ..common.memory import Memory
from .robot import Robot

logger = logging.getLogger("rulebot.skills")


@dataclass
class SkillContext:
    """Everything a capability may need when it is built"""
    robot: Robot
    memory: Memory
    config: RulebotConfig = field(default_factory=RulebotConfig)


class Capability(ABC):
    """
    Abstract base class for capabilities.

    Each capability must implement:
    - name: receiver name used in rule text (e.g. "TTS")
    - operations: mapping of operation name to callable
    """

    name: str = ""

    def __init__(self, context: SkillContext):
        """
        Initialize capability.

        Args:
            context: Robot, Memory and config shared by all capabilities
        """
        self.robot = context.robot
        self.memory = context.memory
        self.config = context.config
        self._operations: Optional[Dict[str, Callable[..., Any]]] = None

    @abstractmethod
    def operations(self) -> Dict[str, Callable[..., Any]]:
        """
        Operations callable from rule text.

        Returns:
            Mapping of operation name (as written in rules) to callable
        """
        pass

    def _table(self) -> Dict[str, Callable[..., Any]]:
        if self._operations is None:
            self._operations = self.operations()
        return self._operations

    def has_operation(self, operation: str) -> bool:
        return operation in self._table()

    def operation_names(self):
        return sorted(self._table())

    def invoke(self, operation: str, args: Sequence[Any]) -> Any:
        """
        Invoke a named operation with already-evaluated arguments.

        Raises:
            KeyError: unknown operation
            TypeError: wrong number of arguments
        """
        handler = self._table().get(operation)
        if handler is None:
            raise KeyError(f"{self.name} has no operation '{operation}'")
        return handler(*args)

    def initialize(self) -> None:
        """Called once when the capability is registered"""
        logger.debug("%s skill initialized", self.name)

    def cleanup(self) -> None:
        """Called when the registry shuts down"""
        logger.debug("%s skill cleaned up", self.name)
