"""
Motion Skills

TiltHead: move the head between the raised and default positions.
Move: navigate to saved locations, go home, follow the user, stop.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .base import Capability, SkillContext
from .robot import HOME_BASE

logger = logging.getLogger("rulebot.skills.motion")

HEAD_UP_DEGREES = 45
HEAD_DEFAULT_DEGREES = 0

SPEED_LEVELS = ("HIGH", "MEDIUM", "SLOW")


def _speed_level(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().upper() in SPEED_LEVELS:
        return value.strip().upper()
    return None


class TiltHead(Capability):
    """Head tilt"""

    name = "TiltHead"

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {"up": self.up, "down": self.down}

    def up(self) -> None:
        self.robot.tilt_angle(HEAD_UP_DEGREES)

    def down(self) -> None:
        self.robot.tilt_angle(HEAD_DEFAULT_DEGREES)


class Move(Capability):
    """
    Robot movement and navigation.

    Tracks whether the robot is navigating or following so rules can
    branch on Move.getMovementState().
    """

    name = "Move"

    def __init__(self, context: SkillContext):
        super().__init__(context)
        self._moving = False
        self._following = False

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {
            "goToLocation": self.go_to_location,
            "goHome": self.go_home,
            "follow": self.follow,
            "stopFollowing": self.stop_following,
            "stopMovement": self.stop_movement,
            "getSavedLocations": self.get_saved_locations,
            "isMoving": self.is_moving,
            "isFollowing": self.is_following,
            "getMovementState": self.get_movement_state,
        }

    def go_to_location(self, location_name: Any, speed_level: Any = None, backwards: Any = False) -> None:
        """
        Navigate to a previously saved location.

        Args:
            location_name: Saved location name
            speed_level: Optional "HIGH", "MEDIUM" or "SLOW"
            backwards: Drive backwards to the destination ("true" or True)
        """
        if not isinstance(location_name, str) or not location_name.strip():
            logger.error("Location name cannot be empty")
            return

        normalized = location_name.strip().lower()
        saved = self.robot.locations
        if not any(loc.lower() == normalized for loc in saved):
            logger.warning("Location '%s' not found in saved locations: %s", location_name, saved)

        self._moving = True
        self._following = False
        self.robot.go_to(
            location_name,
            backwards=backwards is True or str(backwards).lower() == "true",
            speed_level=_speed_level(speed_level),
        )
        logger.info("Initiated navigation to %s", location_name)

    def go_home(self, speed_level: Any = None) -> None:
        self._moving = True
        self._following = False
        self.robot.go_to(HOME_BASE, speed_level=_speed_level(speed_level))
        logger.info("Initiated navigation to home base")

    def follow(self, speed_level: Any = "MEDIUM") -> None:
        self._following = True
        self._moving = False
        self.robot.be_with_me(_speed_level(speed_level))
        logger.info("Started following user")

    def stop_following(self) -> None:
        self._following = False
        self._moving = False
        self.robot.stop_movement()

    def stop_movement(self) -> None:
        self._moving = False
        self._following = False
        self.robot.stop_movement()

    def get_saved_locations(self) -> List[str]:
        return self.robot.locations

    def is_moving(self) -> bool:
        return self._moving

    def is_following(self) -> bool:
        return self._following

    def get_movement_state(self) -> str:
        if self._following:
            return "following"
        if self._moving:
            return "navigating"
        return "stationary"

    def cleanup(self) -> None:
        # Never leave the robot driving when the registry shuts down
        self._moving = False
        self._following = False
        self.robot.stop_movement()
        super().cleanup()
