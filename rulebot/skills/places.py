"""
Place Skills

Locations: list, save and delete the robot's saved locations.
System: open system pages or other apps.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .base import Capability

logger = logging.getLogger("rulebot.skills.places")

NO_LOCATIONS = "No locations saved"

# Friendly names -> system page identifiers
SYSTEM_PAGES = {
    "settings": "SETTINGS",
    "map": "MAP_EDITOR",
    "map editor": "MAP_EDITOR",
    "contacts": "CONTACTS",
    "locations": "LOCATIONS",
    "apps": "ALL_APPS",
    "all apps": "ALL_APPS",
    "app list": "ALL_APPS",
    "home": "HOME",
    "tours": "TOURS",
}

# Friendly names -> candidate package names, first installed one wins
COMMON_APPS = {
    "calculator": ["com.android.calculator2", "com.google.android.calculator"],
    "browser": ["com.android.chrome", "com.android.browser"],
    "chrome": ["com.android.chrome", "com.android.browser"],
    "youtube": ["com.google.android.youtube"],
}


def _clean_name(name: Any) -> Optional[str]:
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()


class Locations(Capability):
    """Saved location management"""

    name = "Locations"

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {
            "listLocations": self.list_locations,
            "saveCurrentLocation": self.save_current_location,
            "deleteLocation": self.delete_location,
            "getLocationCount": self.get_location_count,
            "locationExists": self.location_exists,
        }

    def list_locations(self) -> str:
        """Comma-separated saved location names, suitable for TTS.speak"""
        locations = self.robot.locations
        if not locations:
            return NO_LOCATIONS
        return ", ".join(locations)

    def save_current_location(self, name: Any) -> bool:
        cleaned = _clean_name(name)
        if cleaned is None:
            logger.error("Location name cannot be empty")
            return False

        result = self.robot.save_location(cleaned)
        if result:
            logger.info("Saved location: %s", cleaned)
        else:
            logger.warning("Failed to save location: %s", cleaned)
        return result

    def delete_location(self, name: Any) -> bool:
        cleaned = _clean_name(name)
        if cleaned is None:
            logger.error("Location name cannot be empty")
            return False

        if not self.location_exists(cleaned):
            logger.warning("Location '%s' not found in saved locations", cleaned)
            return False

        result = self.robot.delete_location(cleaned)
        if result:
            logger.info("Deleted location: %s", cleaned)
        else:
            logger.warning("Failed to delete location: %s", cleaned)
        return result

    def get_location_count(self) -> int:
        return len(self.robot.locations)

    def location_exists(self, name: Any) -> bool:
        cleaned = _clean_name(name)
        if cleaned is None:
            return False
        normalized = cleaned.lower()
        return any(loc.lower() == normalized for loc in self.robot.locations)


class System(Capability):
    """System control: system pages and app launching"""

    name = "System"

    def operations(self) -> Dict[str, Callable[..., Any]]:
        return {"openApp": self.open_app}

    def open_app(self, app_name: Any) -> bool:
        """
        Open a system page ("Settings", "Map", "Contacts", "Locations",
        "Apps", "Home", "Tours") or an app by friendly or package name.

        Returns:
            True if a page or app was opened
        """
        cleaned = _clean_name(app_name)
        if cleaned is None:
            logger.error("App name cannot be empty")
            return False

        key = cleaned.lower()
        page = SYSTEM_PAGES.get(key)
        if page is not None:
            self.robot.start_page(page)
            logger.info("Opened system page: %s", cleaned)
            return True

        candidates = [cleaned] if "." in cleaned else []
        candidates.extend(COMMON_APPS.get(key, []))

        for candidate in candidates:
            if self.robot.launch_app(candidate):
                logger.info("Opened app: %s", candidate)
                return True

        logger.warning("Could not find app to open: %s", cleaned)
        return False
