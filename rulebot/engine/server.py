"""
Rulebot Control Server

FastAPI server for driving and inspecting a running interaction loop.

Endpoints:
- GET /health: Health check
- GET /state: Current Memory values
- GET /state/{name}/history: Timestamped history of one parameter
- POST /state/{name}: Set a Memory parameter
- GET /rules: Active rules and held rule text
- PUT /rules: Replace rule text (applied on the next tick)
- POST /rules/reload: Fetch rule text from the remote URL
- GET /capabilities: Registered receivers and their operations
- POST /events/asr: Simulated speech recognition result
- POST /events/wakeup: Simulated wake word

Startup:
1. Load config
2. Build Memory, the robot adapter and the capability registry
3. Load the bundled rules and start the interaction loop
"""

from typing import Any, Optional, Union
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, BackgroundTasks
from pydantic import BaseModel

from ..common.config import load_config, RulebotConfig, ensure_directories, configure_logging
from ..common.memory import Memory, StateEntry
from ..common.values import ValueKind, kind_of
from ..skills.registry import CapabilityRegistry, build_default_registry
from ..skills.robot import SimulatedRobot
from .events import RobotEvents
from .expressions import render_rule
from .interaction_loop import InteractionLoop
from .parser import parse_rules
from .rule_source import RemoteRuleSource, load_bundled_rules, reload_from_remote_async


# Global state
config: Optional[RulebotConfig] = None
memory: Optional[Memory] = None
robot: Optional[SimulatedRobot] = None
registry: Optional[CapabilityRegistry] = None
loop: Optional[InteractionLoop] = None
events: Optional[RobotEvents] = None
rule_source: Optional[RemoteRuleSource] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global config, memory, robot, registry, loop, events, rule_source

    print("[Rulebot] Starting up...")

    ensure_directories()

    config = load_config()
    configure_logging(config.server.log_level)
    print(f"[Rulebot] Loaded config (tick interval: {config.loop.tick_interval_ms} ms)")

    memory = Memory()
    robot = SimulatedRobot(locations=config.robot.locations)
    registry = build_default_registry(robot, memory, config)
    print(f"[Rulebot] Capabilities: {', '.join(registry.names())}")

    assistant = registry.get("Assistant")
    if assistant is not None and assistant.is_available:
        print(f"[Rulebot] Assistant ready ({config.assistant.model})")
    else:
        print("[Rulebot] Assistant not available (no API token)")

    rules_text = load_bundled_rules(config.rules.rules_path)
    loop = InteractionLoop(memory, registry, rules_text, config=config.loop)
    events = RobotEvents(memory, registry, robot)
    rule_source = RemoteRuleSource.from_config(config.rules)

    loop.start()
    print(f"[Rulebot] Interaction loop running ({loop.rule_count} rules)")

    yield

    # Cleanup
    print("[Rulebot] Shutting down...")
    loop.stop(timeout=5.0)
    registry.cleanup()


app = FastAPI(
    title="Rulebot",
    description="Reactive rule engine control surface",
    version="0.1.0",
    lifespan=lifespan
)


# =============================================================================
# Request/Response Models
# =============================================================================

class StateUpdate(BaseModel):
    """Set a Memory parameter"""
    value: Union[bool, int, float, str, None] = None


class RulesUpdate(BaseModel):
    """Replacement rule text"""
    text: str


class AsrEvent(BaseModel):
    """Speech recognition result"""
    text: str
    language: Optional[str] = None


class WakeupEvent(BaseModel):
    """Wake word detection"""
    wakeup_word: str = ""
    direction: int = 0


def _jsonable(value: Any) -> Any:
    """Memory values as JSON; opaque capability results become strings"""
    if kind_of(value) != ValueKind.OTHER:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    return str(value)


def _entry_dict(entry: StateEntry) -> dict:
    return {"value": _jsonable(entry.value), "timestamp": entry.timestamp}


def _require_loop() -> InteractionLoop:
    if loop is None:
        raise HTTPException(status_code=503, detail="Interaction loop not initialized")
    return loop


def _require_memory() -> Memory:
    if memory is None:
        raise HTTPException(status_code=503, detail="Memory not initialized")
    return memory


def _require_events() -> RobotEvents:
    if events is None:
        raise HTTPException(status_code=503, detail="Robot events not initialized")
    return events


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "rulebot",
        "initialized": loop is not None,
        "loop_state": loop.state.value if loop else None,
        "rule_count": loop.rule_count if loop else 0,
        "tick_count": loop.tick_count if loop else 0,
        "capabilities": registry.names() if registry else [],
    }


@app.get("/state")
async def get_state():
    """Current value of every Memory parameter"""
    state = _require_memory().get_state()
    return {"state": {name: _jsonable(value) for name, value in state.items()}}


@app.get("/state/{name}/history")
async def get_state_history(name: str, start: Optional[int] = None, end: Optional[int] = None):
    """History of one parameter, optionally windowed by timestamp (ms)"""
    current = _require_memory()

    if not current.has_history(name):
        raise HTTPException(status_code=404, detail=f"No history for parameter: {name}")

    history = current.get_state_param_history(name, start, end)
    return {
        "name": name,
        "history": [_entry_dict(entry) for entry in history],
    }


@app.post("/state/{name}")
async def set_state(name: str, update: StateUpdate):
    """Set a Memory parameter; rules see it on the next tick"""
    current = _require_memory()
    current.set_state_param(name, update.value)

    latest = current.get_state_param_history(name)[-1]
    return {"name": name, **_entry_dict(latest)}


@app.get("/rules")
async def get_rules():
    """Active rule set and the held rule text"""
    active = _require_loop()
    return {
        "rule_count": active.rule_count,
        "rules": [render_rule(rule) for rule in active.rules],
        "reload_pending": active.reload_pending,
        "text": active.rules_text,
    }


@app.put("/rules")
async def replace_rules(update: RulesUpdate):
    """Hold new rule text; the loop parses and swaps it in on its next tick"""
    active = _require_loop()
    preview = parse_rules(update.text)
    active.replace_rules(update.text)
    return {
        "status": "pending",
        "parsed_rules": len(preview),
    }


@app.post("/rules/reload")
async def reload_rules(background_tasks: BackgroundTasks, wait: bool = False):
    """
    Fetch rule text from the configured remote URL.

    With wait=true the fetch happens inside the request and a failure is
    reported as 502; otherwise it runs as a background task.
    """
    active = _require_loop()
    if rule_source is None:
        raise HTTPException(status_code=503, detail="Rule source not initialized")

    if not wait:
        background_tasks.add_task(reload_from_remote_async, active, rule_source)
        return {"status": "scheduled", "url": rule_source.url}

    if not await reload_from_remote_async(active, rule_source):
        raise HTTPException(status_code=502, detail=f"Failed to reload rules from {rule_source.url}")

    return {"status": "pending", "url": rule_source.url}


@app.get("/capabilities")
async def get_capabilities():
    """Receiver names usable in rule text, with their operations"""
    if registry is None:
        raise HTTPException(status_code=503, detail="Registry not initialized")
    return {"capabilities": registry.describe()}


@app.post("/events/asr")
async def asr_event(event: AsrEvent):
    """Feed a speech recognition result as if the robot heard it"""
    _require_events().on_asr_result(event.text, event.language)
    return {"status": "received", "text": event.text}


@app.post("/events/wakeup")
async def wakeup_event(event: WakeupEvent):
    """Feed a wake word detection"""
    accepted = _require_events().on_wakeup_word(event.wakeup_word, event.direction)
    return {"status": "accepted" if accepted else "ignored"}


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Rulebot control server"""
    import uvicorn
    from dotenv import load_dotenv

    # Pick up HF_API_TOKEN etc. from a local .env
    load_dotenv()
    config = load_config()

    print(f"[Rulebot] Starting server on {config.server.host}:{config.server.port}")
    uvicorn.run(
        "rulebot.engine.server:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
