"""
Capability Registry

Maps receiver names used in rule text to capability instances.
Capabilities are registered explicitly from a static factory table;
nothing is discovered at run time.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..common.config import RulebotConfig
from ..common.memory import Memory
from .base import Capability, SkillContext
from .robot import Robot
from .speech import TTS, ASR
from .motion import TiltHead, Move
from .places import Locations, System
from .assistant import Assistant

logger = logging.getLogger("rulebot.skills.registry")

CapabilityFactory = Callable[[SkillContext], Capability]

# Receiver name -> factory
DEFAULT_CAPABILITIES: Dict[str, CapabilityFactory] = {
    "TTS": TTS,
    "ASR": ASR,
    "TiltHead": TiltHead,
    "Move": Move,
    "Locations": Locations,
    "System": System,
    "Assistant": Assistant,
}


class CapabilityRegistry:
    """Registry of named capabilities"""

    def __init__(self):
        self._capabilities: Dict[str, Capability] = {}

    def register(self, capability: Capability, name: Optional[str] = None) -> None:
        """
        Register a capability and initialize it.

        Args:
            capability: Capability instance
            name: Receiver name (defaults to capability.name)
        """
        receiver = name or capability.name
        if not receiver:
            raise ValueError("Capability has no receiver name")
        if receiver in self._capabilities:
            logger.warning("Replacing capability: %s", receiver)
            self._capabilities[receiver].cleanup()

        capability.initialize()
        self._capabilities[receiver] = capability

    def get(self, name: str) -> Optional[Capability]:
        return self._capabilities.get(name)

    def names(self) -> List[str]:
        return sorted(self._capabilities)

    def __contains__(self, name: str) -> bool:
        return name in self._capabilities

    def __len__(self) -> int:
        return len(self._capabilities)

    def describe(self) -> Dict[str, List[str]]:
        """Receiver name -> operation names, for the control server"""
        return {
            name: capability.operation_names()
            for name, capability in sorted(self._capabilities.items())
        }

    def cleanup(self) -> None:
        for name, capability in self._capabilities.items():
            try:
                capability.cleanup()
            except Exception as e:
                logger.warning("Cleanup failed for %s: %s", name, e)


def build_default_registry(
    robot: Robot,
    memory: Memory,
    config: Optional[RulebotConfig] = None,
    names: Optional[Iterable[str]] = None,
) -> CapabilityRegistry:
    """
    Build a registry from DEFAULT_CAPABILITIES.

    Args:
        robot: Robot port the skills drive
        memory: Shared Memory
        config: Rulebot config (defaults when omitted)
        names: Subset of receiver names to register (all when omitted)

    Raises:
        KeyError: a requested name has no factory
    """
    context = SkillContext(robot=robot, memory=memory, config=config or RulebotConfig())
    registry = CapabilityRegistry()

    for name in (names if names is not None else DEFAULT_CAPABILITIES):
        factory = DEFAULT_CAPABILITIES[name]
        registry.register(factory(context), name)

    logger.info("Registered capabilities: %s", ", ".join(registry.names()))
    return registry
