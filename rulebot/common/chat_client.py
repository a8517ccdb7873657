"""
Chat completion client for the Assistant skill.

Talks to an OpenAI-compatible /chat/completions endpoint (the Hugging Face
router by default) over httpx, sending the conversation history kept in
Memory along with the new prompt.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import httpx

logger = logging.getLogger("rulebot.common.chat_client")

DEFAULT_SYSTEM_PROMPT = (
    "You are Temi, a helpful robot assistant. The user's current question is "
    "the most recent message. Previous messages provide context from our "
    "conversation history. Keep your answers short, don't use formatting or "
    "try to list things, keep a natural flow of conversation"
)


class ChatClientError(Exception):
    """Error talking to the chat completion service."""
    pass


class ChatClient:
    """Minimal chat completion client."""

    def __init__(
        self,
        api_url: str,
        api_token: str = "",
        model: str = "",
        timeout: float = 30.0,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.system_prompt = system_prompt
        self._api_token = api_token
        self._transport = transport

        if not api_token:
            logger.info("Chat API token not provided, assistant unavailable")

    @property
    def is_available(self) -> bool:
        return bool(self._api_token and self.api_url)

    def build_messages(
        self,
        prompt: str,
        history: Sequence[Tuple[str, str]] = (),
    ) -> List[dict]:
        messages = [{"role": "system", "content": self.system_prompt}]
        for role, content in history:
            messages.append({"role": role, "content": content})
        messages.append({"role": "user", "content": prompt})
        return messages

    def complete(
        self,
        prompt: str,
        history: Sequence[Tuple[str, str]] = (),
    ) -> str:
        """
        Send the prompt with history and return the first choice's content.

        Raises:
            ChatClientError: on transport failure, non-200 status, or a
                response without choices
        """
        if not self.is_available:
            raise ChatClientError("Chat client is not available")

        payload = {
            "model": self.model,
            "stream": False,
            "messages": self.build_messages(prompt, history),
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_token}",
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ChatClientError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise ChatClientError(f"HTTP error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ChatClientError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise ChatClientError(f"Unexpected response body: {type(data).__name__}")

        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ChatClientError("No choices in API response")

        content = (choices[0].get("message") or {}).get("content") or ""
        return content.strip()
