"""
Configuration Management for Rulebot

Loads configuration from ~/.rulebot/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

# Default config paths
CONFIG_DIR = Path.home() / ".rulebot"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"

# Package paths (relative to this file)
PACKAGE_ROOT = Path(__file__).parent.parent  # rulebot/
RULES_DIR = PACKAGE_ROOT / "rules"
DEFAULT_RULES_PATH = RULES_DIR / "default_rules.txt"

DEFAULT_RULES_URL = "https://raw.githubusercontent.com/JoelCoster/temirules/refs/heads/main/rules.txt"
DEFAULT_ASSISTANT_URL = "https://router.huggingface.co/v1/chat/completions"
DEFAULT_ASSISTANT_MODEL = "openai/gpt-oss-20b:together"


@dataclass
class LoopConfig:
    """Interaction loop configuration"""
    tick_interval_ms: int = 200
    speech_receiver: str = "TTS"
    speech_method: str = "speak"
    initial_state: str = "Active"  # seeded into interactionState on start, "" to skip


@dataclass
class RulesConfig:
    """Rule text origins"""
    rules_path: str = str(DEFAULT_RULES_PATH)
    remote_url: str = DEFAULT_RULES_URL
    connect_timeout: float = 5.0
    read_timeout: float = 10.0


@dataclass
class RobotConfig:
    """Robot adapter configuration"""
    speech_delay_scale: float = 1.0  # 0 disables the estimated-duration wait in TTS.speak
    locations: list = field(default_factory=lambda: ["home base"])


@dataclass
class AssistantConfig:
    """Conversational assistant (chat completion) configuration"""
    api_url: str = DEFAULT_ASSISTANT_URL
    api_token: str = ""
    model: str = DEFAULT_ASSISTANT_MODEL
    timeout: float = 30.0


@dataclass
class ServerConfig:
    """Control server configuration"""
    host: str = "0.0.0.0"
    port: int = 8090
    log_level: str = "INFO"


@dataclass
class RulebotConfig:
    """Main Rulebot configuration"""
    loop: LoopConfig = field(default_factory=LoopConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    robot: RobotConfig = field(default_factory=RobotConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_loop_config(data: dict) -> LoopConfig:
    """Parse loop section from config dict"""
    loop_data = data.get("loop", {})
    return LoopConfig(
        tick_interval_ms=loop_data.get("tick_interval_ms", 200),
        speech_receiver=loop_data.get("speech_receiver", "TTS"),
        speech_method=loop_data.get("speech_method", "speak"),
        initial_state=loop_data.get("initial_state", "Active"),
    )


def _parse_rules_config(data: dict) -> RulesConfig:
    """Parse rules section from config dict"""
    rules_data = data.get("rules", {})
    return RulesConfig(
        rules_path=rules_data.get("rules_path", str(DEFAULT_RULES_PATH)),
        remote_url=rules_data.get("remote_url", DEFAULT_RULES_URL),
        connect_timeout=rules_data.get("connect_timeout", 5.0),
        read_timeout=rules_data.get("read_timeout", 10.0),
    )


def _parse_robot_config(data: dict) -> RobotConfig:
    """Parse robot section from config dict"""
    robot_data = data.get("robot", {})
    return RobotConfig(
        speech_delay_scale=robot_data.get("speech_delay_scale", 1.0),
        locations=list(robot_data.get("locations", ["home base"])),
    )


def _parse_assistant_config(data: dict) -> AssistantConfig:
    """Parse assistant section from config dict"""
    assistant_data = data.get("assistant", {})
    return AssistantConfig(
        api_url=assistant_data.get("api_url", DEFAULT_ASSISTANT_URL),
        api_token=assistant_data.get("api_token", ""),
        model=assistant_data.get("model", DEFAULT_ASSISTANT_MODEL),
        timeout=assistant_data.get("timeout", 30.0),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=server_data.get("port", 8090),
        log_level=server_data.get("log_level", "INFO"),
    )


def load_config() -> RulebotConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.rulebot/config.json)
    3. Default values
    """
    config = RulebotConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.loop = _parse_loop_config(data)
            config.rules = _parse_rules_config(data)
            config.robot = _parse_robot_config(data)
            config.assistant = _parse_assistant_config(data)
            config.server = _parse_server_config(data)
        except (json.JSONDecodeError, IOError, AttributeError) as e:
            print(f"[Config] Warning: Failed to load config file: {e}")

    # Environment variable overrides
    if os.getenv("RULEBOT_TICK_INTERVAL_MS"):
        config.loop.tick_interval_ms = int(os.getenv("RULEBOT_TICK_INTERVAL_MS"))
    if os.getenv("RULEBOT_SPEECH_DELAY_SCALE"):
        config.robot.speech_delay_scale = float(os.getenv("RULEBOT_SPEECH_DELAY_SCALE"))

    if os.getenv("RULEBOT_RULES_PATH"):
        config.rules.rules_path = os.getenv("RULEBOT_RULES_PATH")
    if os.getenv("RULEBOT_RULES_URL"):
        config.rules.remote_url = os.getenv("RULEBOT_RULES_URL")

    if os.getenv("RULEBOT_HOST"):
        config.server.host = os.getenv("RULEBOT_HOST")
    if os.getenv("RULEBOT_PORT"):
        config.server.port = int(os.getenv("RULEBOT_PORT"))
    if os.getenv("RULEBOT_LOG_LEVEL"):
        config.server.log_level = os.getenv("RULEBOT_LOG_LEVEL")

    # Assistant env var overrides (track env-sourced keys)
    _env_assistant_map = {
        "HF_API_TOKEN": "api_token",
        "RULEBOT_ASSISTANT_TOKEN": "api_token",
        "RULEBOT_ASSISTANT_URL": "api_url",
        "RULEBOT_ASSISTANT_MODEL": "model",
    }
    for env_var, attr in _env_assistant_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.assistant, attr, val)
            config._env_sourced_keys.add(attr)

    return config


def save_config(config: RulebotConfig) -> None:
    """Save configuration to file.

    The assistant token is written as an empty string when it was sourced
    from an environment variable so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    data = {
        "loop": {
            "tick_interval_ms": config.loop.tick_interval_ms,
            "speech_receiver": config.loop.speech_receiver,
            "speech_method": config.loop.speech_method,
            "initial_state": config.loop.initial_state,
        },
        "rules": {
            "rules_path": config.rules.rules_path,
            "remote_url": config.rules.remote_url,
            "connect_timeout": config.rules.connect_timeout,
            "read_timeout": config.rules.read_timeout,
        },
        "robot": {
            "speech_delay_scale": config.robot.speech_delay_scale,
            "locations": list(config.robot.locations),
        },
        "assistant": {
            "api_url": config.assistant.api_url,
            "api_token": "" if "api_token" in env_sourced else config.assistant.api_token,
            "model": config.assistant.model,
            "timeout": config.assistant.timeout,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "log_level": config.server.log_level,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging for the server and scripts"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
