"""
Robot Port

The hardware-facing surface the skills drive. A real deployment wraps the
robot SDK behind this interface; SimulatedRobot records every call and
keeps saved locations in memory so rules can run without hardware.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

logger = logging.getLogger("rulebot.skills.robot")

HOME_BASE = "home base"


class Robot(ABC):
    """Operations the skills need from the robot"""

    @abstractmethod
    def speak(self, text: str) -> None:
        pass

    @abstractmethod
    def finish_conversation(self) -> None:
        pass

    @abstractmethod
    def ask_question(self, text: str) -> None:
        """Prompt the user and open the microphone for a reply"""
        pass

    @abstractmethod
    def tilt_angle(self, degrees: int) -> None:
        pass

    @abstractmethod
    def go_to(self, location: str, backwards: bool = False, speed_level: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def be_with_me(self, speed_level: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def stop_movement(self) -> None:
        pass

    @property
    @abstractmethod
    def locations(self) -> List[str]:
        pass

    @abstractmethod
    def save_location(self, name: str) -> bool:
        pass

    @abstractmethod
    def delete_location(self, name: str) -> bool:
        pass

    @abstractmethod
    def start_page(self, page: str) -> None:
        pass

    @abstractmethod
    def launch_app(self, app: str) -> bool:
        pass

    def show_message(self, role: str, text: str) -> None:
        """Display a conversation line on the robot's screen, if it has one"""
        pass

    def set_listening(self, listening: bool) -> None:
        """Update the listening indicator, if the robot has one"""
        pass


class SimulatedRobot(Robot):
    """
    In-process robot used for development and tests.

    Every call is appended to `actions` as (name, args...) tuples.
    """

    def __init__(self, locations: Optional[List[str]] = None, installed_apps: Optional[List[str]] = None):
        self._lock = threading.Lock()
        self._locations: List[str] = list(locations if locations is not None else [HOME_BASE])
        self._installed_apps = set(installed_apps or [])
        self.actions: List[Tuple[Any, ...]] = []
        self.messages: List[Tuple[str, str]] = []
        self.listening = False
        self.head_angle = 0

    def _record(self, *action: Any) -> None:
        with self._lock:
            self.actions.append(action)
        logger.info("robot %s", " ".join(str(part) for part in action))

    def speak(self, text: str) -> None:
        self._record("speak", text)

    def finish_conversation(self) -> None:
        self._record("finish_conversation")

    def ask_question(self, text: str) -> None:
        self._record("ask_question", text)

    def tilt_angle(self, degrees: int) -> None:
        self.head_angle = degrees
        self._record("tilt_angle", degrees)

    def go_to(self, location: str, backwards: bool = False, speed_level: Optional[str] = None) -> None:
        self._record("go_to", location, backwards, speed_level)

    def be_with_me(self, speed_level: Optional[str] = None) -> None:
        self._record("be_with_me", speed_level)

    def stop_movement(self) -> None:
        self._record("stop_movement")

    @property
    def locations(self) -> List[str]:
        with self._lock:
            return list(self._locations)

    def save_location(self, name: str) -> bool:
        with self._lock:
            if name.lower() not in (loc.lower() for loc in self._locations):
                self._locations.append(name)
        self._record("save_location", name)
        return True

    def delete_location(self, name: str) -> bool:
        with self._lock:
            remaining = [loc for loc in self._locations if loc.lower() != name.lower()]
            deleted = len(remaining) != len(self._locations)
            self._locations = remaining
        self._record("delete_location", name)
        return deleted

    def start_page(self, page: str) -> None:
        self._record("start_page", page)

    def launch_app(self, app: str) -> bool:
        self._record("launch_app", app)
        return app in self._installed_apps

    def show_message(self, role: str, text: str) -> None:
        with self._lock:
            self.messages.append((role, text))

    def set_listening(self, listening: bool) -> None:
        self.listening = listening
