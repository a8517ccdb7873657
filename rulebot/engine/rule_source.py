"""
Rule Sources

Where rule text comes from:
- the bundled default rules file (with an inline fallback rule set)
- a remote URL, fetched on request for hot reload

The interaction loop only ever receives finished text through
InteractionLoop.replace_rules(); it never does I/O itself.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx

from ..common.config import RulesConfig

logger = logging.getLogger("rulebot.engine.rule_source")

FALLBACK_RULES = """[
    [Memory.getStateParam("interactionState") == "active" -->
    TTS.speak("this is a test"); Memory.setStateParam("interactionState", "idle")]
    [Memory.getStateParam("interactionState") == "idle" -->
    TTS.speak("Interaction is idle"); Memory.setStateParam("interactionState", "active")]
]"""


class RuleSourceError(Exception):
    """Rule text could not be fetched."""
    pass


def load_bundled_rules(path: Optional[str] = None) -> str:
    """
    Load the bundled rule text.

    Args:
        path: Rules file (defaults to RulesConfig().rules_path)

    Returns:
        The file contents, or FALLBACK_RULES when the file cannot be read
    """
    rules_path = Path(path or RulesConfig().rules_path)
    try:
        return rules_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Failed to load rules from %s: %s", rules_path, e)
        return FALLBACK_RULES


class RemoteRuleSource:
    """
    Fetches rule text over HTTP.

    Usage:
        source = RemoteRuleSource(url)
        loop.replace_rules(source.fetch())
    """

    def __init__(
        self,
        url: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize remote source.

        Args:
            url: Address of the rules text
            connect_timeout: Seconds to wait for a connection
            read_timeout: Seconds to wait for the body
            transport: Optional httpx transport (tests)
        """
        self.url = url
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._transport = transport

    @classmethod
    def from_config(cls, config: RulesConfig, transport: Optional[httpx.BaseTransport] = None) -> "RemoteRuleSource":
        return cls(
            url=config.remote_url,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            transport=transport,
        )

    def fetch(self) -> str:
        """
        Fetch the rule text.

        Raises:
            RuleSourceError: on transport failure or a non-200 response
        """
        if not self.url:
            raise RuleSourceError("No remote rules URL configured")

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self.url)
        except httpx.HTTPError as e:
            raise RuleSourceError(f"Failed to reload rules: {e}") from e

        if response.status_code != 200:
            raise RuleSourceError(f"Failed to reload rules: HTTP {response.status_code}")

        return response.text

    async def fetch_async(self) -> str:
        """
        Fetch the rule text without blocking the event loop.

        Raises:
            RuleSourceError: on transport failure or a non-200 response
        """
        if not self.url:
            raise RuleSourceError("No remote rules URL configured")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            raise RuleSourceError(f"Failed to reload rules: {e}") from e

        if response.status_code != 200:
            raise RuleSourceError(f"Failed to reload rules: HTTP {response.status_code}")

        return response.text


def reload_from_remote(loop, source: RemoteRuleSource) -> bool:
    """
    Fetch rule text and hand it to the loop.

    On failure the error is logged and the current rules stay in force.

    Returns:
        True if new text was handed over
    """
    try:
        text = source.fetch()
    except RuleSourceError as e:
        logger.error("%s", e)
        return False

    loop.replace_rules(text)
    logger.info("Rules reloaded successfully from %s", source.url)
    return True


async def reload_from_remote_async(loop, source: RemoteRuleSource) -> bool:
    """Async variant of reload_from_remote() for use inside the server"""
    try:
        text = await source.fetch_async()
    except RuleSourceError as e:
        logger.error("%s", e)
        return False

    loop.replace_rules(text)
    logger.info("Rules reloaded successfully from %s", source.url)
    return True
