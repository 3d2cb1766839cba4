"""Calendar display settings.

Settings are an explicit ``CalendarSettings`` value; loading and saving go
through the narrow ``SettingsStore`` interface so callers never touch storage
directly.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from charterdesk.domain.entities import BoatColor, CalendarSettings, EXTERNAL_RESOURCE
from charterdesk.domain.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BOAT_COLORS = (
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#84CC16",
    "#F97316",
    "#6366F1",
)
DEFAULT_EXTERNAL_COLOR = "#64748B"

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class SettingsStore(ABC):
    """Where calendar settings live."""

    @abstractmethod
    def get_settings(self) -> CalendarSettings:
        """Load settings, returning defaults when nothing is stored."""
        pass

    @abstractmethod
    def set_settings(self, settings: CalendarSettings) -> None:
        """Replace the stored settings."""
        pass


class InMemorySettingsStore(SettingsStore):
    """Settings kept in process memory."""

    def __init__(self, settings: Optional[CalendarSettings] = None):
        self._settings = settings or CalendarSettings()

    def get_settings(self) -> CalendarSettings:
        return self._settings

    def set_settings(self, settings: CalendarSettings) -> None:
        self._settings = settings


def get_boat_color(settings: CalendarSettings, resource_id: str | int) -> str:
    """Display color for a boat or the external resource.

    Configured colors win. External bookings fall back to slate; other
    resources get a palette color derived from their id, so the same boat
    always gets the same color.
    """
    resource_id = str(resource_id)
    for boat_color in settings.boat_colors:
        if boat_color.resource_id == resource_id:
            return boat_color.color

    if resource_id == EXTERNAL_RESOURCE:
        return DEFAULT_EXTERNAL_COLOR

    index = sum(ord(ch) for ch in resource_id) % len(DEFAULT_BOAT_COLORS)
    return DEFAULT_BOAT_COLORS[index]


def normalize_color(color: str) -> str:
    """Validate a ``#RRGGBB`` color and uppercase it."""
    value = color.strip()
    if not value.startswith("#"):
        value = f"#{value}"
    if not _HEX_COLOR.match(value):
        raise ValidationError(f"Invalid color '{color}'. Expected a hex color like #3B82F6")
    return value.upper()


def settings_to_dict(settings: CalendarSettings) -> dict:
    return {
        "boat_colors": [
            {"id": bc.resource_id, "name": bc.name, "color": bc.color}
            for bc in settings.boat_colors
        ],
        "banner_image_url": settings.banner_image_url,
    }


def settings_from_dict(data: Optional[dict]) -> CalendarSettings:
    """Build settings from a stored document.

    Missing keys fall back to defaults; entries without an id or with a color
    that is not ``#RRGGBB`` are skipped.
    """
    if not data:
        return CalendarSettings()
    colors = []
    for entry in data.get("boat_colors") or []:
        try:
            colors.append(
                BoatColor(
                    resource_id=str(entry["id"]),
                    name=entry.get("name", ""),
                    color=normalize_color(entry["color"]),
                )
            )
        except (KeyError, TypeError, AttributeError, ValueError):
            logger.warning("Skipping malformed boat color entry: %r", entry)
    return CalendarSettings(
        boat_colors=tuple(colors), banner_image_url=data.get("banner_image_url")
    )


class CalendarSettingsService:
    """Service for changing calendar settings."""

    def __init__(self, store: SettingsStore):
        self.store = store

    def get_settings(self) -> CalendarSettings:
        return self.store.get_settings()

    def get_color(self, resource_id: str | int) -> str:
        return get_boat_color(self.store.get_settings(), resource_id)

    def set_boat_color(self, resource_id: str | int, name: str, color: str) -> CalendarSettings:
        """Set or replace the color for a resource.

        Raises:
            ValidationError: If the color is not a hex color
        """
        resource_id = str(resource_id)
        new_color = BoatColor(resource_id=resource_id, name=name, color=normalize_color(color))
        settings = self.store.get_settings()

        colors = list(settings.boat_colors)
        for index, existing in enumerate(colors):
            if existing.resource_id == resource_id:
                colors[index] = new_color
                break
        else:
            colors.append(new_color)

        updated = replace(settings, boat_colors=tuple(colors))
        self.store.set_settings(updated)
        logger.info("Set calendar color for %s to %s", resource_id, new_color.color)
        return updated

    def reset_colors(self) -> CalendarSettings:
        """Drop all configured colors. The banner is kept."""
        updated = replace(self.store.get_settings(), boat_colors=())
        self.store.set_settings(updated)
        logger.info("Reset calendar colors to defaults")
        return updated

    def set_banner_image_url(self, url: Optional[str]) -> CalendarSettings:
        updated = replace(self.store.get_settings(), banner_image_url=url or None)
        self.store.set_settings(updated)
        return updated
