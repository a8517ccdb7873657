"""Tests for config loading, env overrides and saving."""

import json
import os
import stat
from unittest.mock import patch


class TestDefaults:
    def test_defaults(self):
        from rulebot.common.config import RulebotConfig, DEFAULT_RULES_PATH
        cfg = RulebotConfig()
        assert cfg.loop.tick_interval_ms == 200
        assert cfg.loop.speech_receiver == "TTS"
        assert cfg.rules.rules_path == str(DEFAULT_RULES_PATH)
        assert cfg.rules.connect_timeout == 5.0
        assert cfg.rules.read_timeout == 10.0
        assert cfg.assistant.api_token == ""
        assert cfg.server.port == 8090

    def test_missing_file_gives_defaults(self, tmp_path):
        from rulebot.common.config import load_config
        with patch("rulebot.common.config.CONFIG_PATH", tmp_path / "absent.json"), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()
        assert cfg.loop.tick_interval_ms == 200


class TestLoadConfig:
    def test_load_from_file(self, tmp_path):
        from rulebot.common.config import load_config
        config_data = {
            "loop": {"tick_interval_ms": 50, "initial_state": ""},
            "rules": {"remote_url": "https://rules.example.com/r.txt"},
            "robot": {"speech_delay_scale": 0.5, "locations": ["lobby"]},
            "server": {"port": 9000},
        }
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(config_data))

        with patch("rulebot.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()

        assert cfg.loop.tick_interval_ms == 50
        assert cfg.loop.initial_state == ""
        assert cfg.rules.remote_url == "https://rules.example.com/r.txt"
        assert cfg.rules.read_timeout == 10.0
        assert cfg.robot.locations == ["lobby"]
        assert cfg.server.port == 9000

    def test_malformed_file_keeps_defaults(self, tmp_path, capsys):
        from rulebot.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        with patch("rulebot.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()

        assert cfg.loop.tick_interval_ms == 200
        assert "Failed to load config file" in capsys.readouterr().out

    def test_env_overrides_file(self, tmp_path):
        from rulebot.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"loop": {"tick_interval_ms": 50}, "server": {"port": 9000}}))

        env = {
            "RULEBOT_TICK_INTERVAL_MS": "75",
            "RULEBOT_PORT": "9100",
            "RULEBOT_RULES_URL": "https://env.example.com/r.txt",
            "HF_API_TOKEN": "hf_env",
            "RULEBOT_ASSISTANT_MODEL": "env-model",
        }
        with patch("rulebot.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.loop.tick_interval_ms == 75
        assert cfg.server.port == 9100
        assert cfg.rules.remote_url == "https://env.example.com/r.txt"
        assert cfg.assistant.api_token == "hf_env"
        assert cfg.assistant.model == "env-model"
        assert cfg._env_sourced_keys == {"api_token", "model"}


class TestSaveConfig:
    def test_save_omits_env_sourced_token(self, tmp_path):
        from rulebot.common.config import load_config, save_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{}")

        with patch("rulebot.common.config.CONFIG_PATH", config_file), \
             patch("rulebot.common.config.CONFIG_DIR", tmp_path), \
             patch.dict(os.environ, {"HF_API_TOKEN": "hf_secret"}, clear=True):
            cfg = load_config()
            save_config(cfg)

        saved = json.loads(config_file.read_text())
        assert saved["assistant"]["api_token"] == ""
        assert stat.S_IMODE(config_file.stat().st_mode) == 0o600

    def test_save_keeps_file_sourced_token(self, tmp_path):
        from rulebot.common.config import RulebotConfig, save_config, load_config
        config_file = tmp_path / "config.json"

        cfg = RulebotConfig()
        cfg.assistant.api_token = "hf_file"
        cfg.loop.tick_interval_ms = 120

        with patch("rulebot.common.config.CONFIG_PATH", config_file), \
             patch("rulebot.common.config.CONFIG_DIR", tmp_path), \
             patch.dict(os.environ, {}, clear=True):
            save_config(cfg)
            reloaded = load_config()

        assert reloaded.assistant.api_token == "hf_file"
        assert reloaded.loop.tick_interval_ms == 120
