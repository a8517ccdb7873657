"""
Tests for Rule Sources

Bundled rule text and remote fetch over httpx.
"""

import asyncio
import logging

import httpx
import pytest


NEW_RULES = '[["a" == "a" --> Memory.setStateParam("reloaded", "yes")]]'


def _source(handler, url="https://rules.example.com/rules.txt"):
    from rulebot.engine.rule_source import RemoteRuleSource
    return RemoteRuleSource(url, transport=httpx.MockTransport(handler))


def _loop():
    from rulebot.common.config import LoopConfig
    from rulebot.common.memory import Memory
    from rulebot.engine.interaction_loop import InteractionLoop, InlineExecutor
    from rulebot.skills.registry import CapabilityRegistry

    return InteractionLoop(
        Memory(),
        CapabilityRegistry(),
        '[["a" == "a" --> Memory.setStateParam("reloaded", "no")]]',
        config=LoopConfig(initial_state=""),
        foreground=InlineExecutor(),
    )


class TestBundledRules:
    def test_load_from_file(self, tmp_path):
        from rulebot.engine.rule_source import load_bundled_rules
        rules_file = tmp_path / "rules.txt"
        rules_file.write_text(NEW_RULES)

        assert load_bundled_rules(str(rules_file)) == NEW_RULES

    def test_missing_file_falls_back(self, tmp_path, caplog):
        from rulebot.engine.rule_source import load_bundled_rules, FALLBACK_RULES
        from rulebot.engine.parser import parse_rules

        with caplog.at_level(logging.ERROR, logger="rulebot.engine.rule_source"):
            text = load_bundled_rules(str(tmp_path / "missing.txt"))

        assert text == FALLBACK_RULES
        assert len(parse_rules(text)) == 2
        assert "Failed to load rules" in caplog.text

    def test_default_path_is_packaged_file(self):
        from rulebot.engine.rule_source import load_bundled_rules, FALLBACK_RULES
        assert load_bundled_rules() != FALLBACK_RULES


class TestRemoteRuleSource:
    def test_fetch_returns_body(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, text=NEW_RULES)

        assert _source(handler).fetch() == NEW_RULES
        assert seen["url"] == "https://rules.example.com/rules.txt"

    def test_non_200_raises(self):
        from rulebot.engine.rule_source import RuleSourceError

        source = _source(lambda request: httpx.Response(404, text="missing"))
        with pytest.raises(RuleSourceError, match="404"):
            source.fetch()

    def test_transport_error_raises(self):
        from rulebot.engine.rule_source import RuleSourceError

        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(RuleSourceError, match="timed out"):
            _source(handler).fetch()

    def test_missing_url_raises(self):
        from rulebot.engine.rule_source import RuleSourceError
        with pytest.raises(RuleSourceError, match="No remote rules URL"):
            _source(lambda request: httpx.Response(200), url="").fetch()

    def test_from_config_uses_timeouts(self):
        from rulebot.common.config import RulesConfig
        from rulebot.engine.rule_source import RemoteRuleSource

        source = RemoteRuleSource.from_config(RulesConfig(remote_url="https://x", connect_timeout=1.5, read_timeout=3.0))
        assert source.url == "https://x"
        assert source._timeout.connect == 1.5
        assert source._timeout.read == 3.0


class TestReloadFromRemote:
    def test_success_hands_text_to_loop(self):
        from rulebot.engine.rule_source import reload_from_remote

        loop = _loop()
        loop.tick()

        assert reload_from_remote(loop, _source(lambda request: httpx.Response(200, text=NEW_RULES)))
        loop.tick()

        assert loop.memory.get_state_param("reloaded") == "yes"

    def test_failure_keeps_current_rules(self, caplog):
        from rulebot.engine.rule_source import reload_from_remote

        loop = _loop()
        loop.tick()
        before = loop.rules

        with caplog.at_level(logging.ERROR, logger="rulebot.engine.rule_source"):
            ok = reload_from_remote(loop, _source(lambda request: httpx.Response(500)))

        assert not ok
        assert not loop.reload_pending
        loop.tick()
        assert loop.rules == before
        assert loop.memory.get_state_param("reloaded") == "no"
        assert "Failed to reload rules" in caplog.text


class TestAsyncFetch:
    def test_fetch_async_returns_body(self):
        source = _source(lambda request: httpx.Response(200, text=NEW_RULES))
        assert asyncio.run(source.fetch_async()) == NEW_RULES

    def test_fetch_async_non_200_raises(self):
        from rulebot.engine.rule_source import RuleSourceError

        source = _source(lambda request: httpx.Response(503))
        with pytest.raises(RuleSourceError, match="503"):
            asyncio.run(source.fetch_async())

    def test_reload_async_hands_text_to_loop(self):
        from rulebot.engine.rule_source import reload_from_remote_async

        loop = _loop()
        loop.tick()

        assert asyncio.run(reload_from_remote_async(loop, _source(lambda request: httpx.Response(200, text=NEW_RULES))))
        loop.tick()

        assert loop.memory.get_state_param("reloaded") == "yes"

    def test_reload_async_failure_keeps_current_rules(self, caplog):
        from rulebot.engine.rule_source import reload_from_remote_async

        loop = _loop()
        loop.tick()

        with caplog.at_level(logging.ERROR, logger="rulebot.engine.rule_source"):
            ok = asyncio.run(reload_from_remote_async(loop, _source(lambda request: httpx.Response(500))))

        assert not ok
        assert not loop.reload_pending
        assert "Failed to reload rules" in caplog.text
