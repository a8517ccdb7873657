"""
Speech Skills

TTS: make the robot speak (blocking until the utterance is estimated done).
ASR: open the microphone; results arrive through robot events, not here.
"""

import time
import logging
from typing import Any, Callable, Dict

from .base import Capability, SkillContext

logger = logging.getLogger("rulebot.skills.speech")


def estimated_speech_ms(text: str) -> int:
    """Rough speaking time: 100 ms per character plus 300 ms lead-out"""
    return len(text) * 100 + 300


class TTS(Capability):
    """Text to speech"""

    name = "TTS"

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {"speak": self.speak}

    def _pause(self, milliseconds: int) -> None:
        scale = self.config.robot.speech_delay_scale
        if scale > 0:
            time.sleep(milliseconds * scale / 1000.0)

    def speak(self, text: Any) -> None:
        """
        Speak text and block until it is estimated to be finished.

        Blank or non-string text is ignored.
        """
        if not isinstance(text, str) or not text.strip():
            logger.debug("Ignoring empty speech request")
            return

        logger.info("Speaking: '%s' (length: %d)", text, len(text))
        self.robot.show_message("assistant", text)
        self.memory.add_to_conversation_history("assistant", text)

        # The robot must not be mid-conversation when it starts speaking
        self.robot.finish_conversation()
        self._pause(100)

        self.robot.speak(text)
        self._pause(estimated_speech_ms(text))


class ASR(Capability):
    """Automatic speech recognition"""

    name = "ASR"

    def __init__(self, context: SkillContext):
        super().__init__(context)
        self._listening = False

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {
            "listen": self.listen,
            "stopListening": self.stop_listening,
            "isListening": self.is_listening,
            "setListeningState": self.set_listening_state,
        }

    def listen(self) -> None:
        """Start listening for speech input"""
        logger.info("Starting ASR listening")
        self.set_listening_state(True)
        self.robot.finish_conversation()
        self.robot.ask_question(" ")

    def stop_listening(self) -> None:
        logger.info("Stopping ASR listening")
        self.set_listening_state(False)
        self.robot.finish_conversation()

    def is_listening(self) -> bool:
        return self._listening

    def set_listening_state(self, listening: Any) -> None:
        self._listening = listening is True
        self.robot.set_listening(self._listening)
