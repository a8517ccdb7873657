"""
Skills

Named capabilities that rules call as Receiver.method(args...).
Each capability drives the robot through the Robot port.

Available Capabilities:
- TTS: speak text (blocking)
- ASR: open the microphone
- TiltHead: head up / down
- Move: navigate, go home, follow
- Locations: list, save and delete saved locations
- System: open system pages and apps
- Assistant: answer questions with a chat model
"""

from .base import Capability, SkillContext
from .robot import Robot, SimulatedRobot
from .registry import CapabilityRegistry, DEFAULT_CAPABILITIES, build_default_registry

__all__ = [
    "Capability",
    "SkillContext",
    "Robot",
    "SimulatedRobot",
    "CapabilityRegistry",
    "DEFAULT_CAPABILITIES",
    "build_default_registry",
]
