"""Settings store backed by the database settings table."""

from charterdesk.database.base import Database
from charterdesk.domain.entities import CalendarSettings
from charterdesk.domain.settings import SettingsStore, settings_from_dict, settings_to_dict

CALENDAR_SETTINGS_KEY = "calendar"


class DatabaseSettingsStore(SettingsStore):
    """Keeps calendar settings as a JSON document under one key."""

    def __init__(self, db: Database, key: str = CALENDAR_SETTINGS_KEY):
        self.db = db
        self.key = key

    def get_settings(self) -> CalendarSettings:
        return settings_from_dict(self.db.get_setting(self.key))

    def set_settings(self, settings: CalendarSettings) -> None:
        self.db.set_setting(self.key, settings_to_dict(settings))
