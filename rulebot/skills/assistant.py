"""
Assistant Skill

Answers free-form questions with a chat completion model, sending the
conversation history kept in Memory for context.
"""

import logging
from typing import Any, Callable, Dict, Optional

from ..common.chat_client import ChatClient, ChatClientError
from .base import Capability, SkillContext

logger = logging.getLogger("rulebot.skills.assistant")

UNAVAILABLE_REPLY = "Sorry, the AI service is currently unavailable."
EMPTY_PROMPT_REPLY = "Sorry, I didn't catch a question."


class Assistant(Capability):
    """Conversational assistant"""

    name = "Assistant"

    def __init__(self, context: SkillContext, client: Optional[ChatClient] = None):
        super().__init__(context)
        assistant_config = context.config.assistant
        self._client = client or ChatClient(
            api_url=assistant_config.api_url,
            api_token=assistant_config.api_token,
            model=assistant_config.model,
            timeout=assistant_config.timeout,
        )

    @property
    def is_available(self) -> bool:
        return self._client.is_available

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {"ask": self.ask}

    def ask(self, prompt: Any) -> str:
        """
        Ask the model and return its reply as speakable text.

        The most recent conversation turn is dropped from the history when it
        is the prompt itself (ASR results are recorded before rules run).
        """
        if not isinstance(prompt, str) or not prompt.strip():
            logger.error("Prompt cannot be empty")
            return EMPTY_PROMPT_REPLY

        history = self.memory.get_conversation_history()
        if history and history[-1] == ("user", prompt):
            history = history[:-1]

        try:
            reply = self._client.complete(prompt, history)
        except ChatClientError as e:
            logger.warning("Failed to get response from chat service: %s", e)
            return UNAVAILABLE_REPLY

        logger.info("Assistant reply: %s", reply)
        return reply
