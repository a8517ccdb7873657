"""
Robot Events

Callbacks the robot SDK fires on its own threads. They only write to
Memory; rules pick the changes up on the next tick.

State written:
- interactionState: "Active" on wake word, "asrReceived" on speech input
- lastAsrResult: the latest recognised utterance
- asrLanguage: as reported by the recognizer, else detected from the text
- conversationHistory: a "user" turn per recognised utterance
"""

import logging
from typing import Optional

from ..common.language import detect_language
from ..common.memory import Memory
from ..skills.registry import CapabilityRegistry
from ..skills.robot import Robot
from .interaction_loop import INTERACTION_STATE_PARAM

logger = logging.getLogger("rulebot.engine.events")

LAST_ASR_RESULT_PARAM = "lastAsrResult"
ASR_LANGUAGE_PARAM = "asrLanguage"

STATE_ACTIVE = "Active"
STATE_ASR_RECEIVED = "asrReceived"


class RobotEvents:
    """Translates robot callbacks into Memory updates"""

    def __init__(self, memory: Memory, registry: CapabilityRegistry, robot: Robot):
        self._memory = memory
        self._registry = registry
        self._robot = robot

    def _asr_listening(self) -> bool:
        asr = self._registry.get("ASR")
        if asr is None or not asr.has_operation("isListening"):
            return False
        return asr.invoke("isListening", []) is True

    def on_wakeup_word(self, wakeup_word: str = "", direction: int = 0) -> bool:
        """
        Wake word detected.

        Ignored while ASR is listening, since the wake word can fire
        during a conversation.

        Returns:
            True if interactionState was set
        """
        if self._asr_listening():
            logger.debug("Wake word '%s' ignored while listening", wakeup_word)
            return False

        logger.info("Wake word detected: '%s' (direction: %d)", wakeup_word, direction)
        self._memory.set_state_param(INTERACTION_STATE_PARAM, STATE_ACTIVE)
        return True

    def on_asr_result(self, text: str, language: Optional[str] = None) -> None:
        """Speech recognition result received"""
        logger.info("ASR result received: '%s' (language: %s)", text, language)

        asr = self._registry.get("ASR")
        if asr is not None and asr.has_operation("setListeningState"):
            asr.invoke("setListeningState", [False])

        if text:
            self._robot.show_message("user", text)
            self._memory.add_to_conversation_history("user", text)
            self._memory.set_state_param(LAST_ASR_RESULT_PARAM, text)
            self._memory.set_state_param(ASR_LANGUAGE_PARAM, language or detect_language(text))
            self._memory.set_state_param(INTERACTION_STATE_PARAM, STATE_ASR_RECEIVED)

        self._robot.finish_conversation()
