"""Anzeige- und Locale-Einstellungen eines Profils."""

from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .models import Preferences
from .utils import to_start_of_week

logger = logging.getLogger(__name__)


class DateFormat(str, Enum):
    """Datumsformate, wie Toggl sie kennt (Wert = Toggl-Schreibweise)."""

    DMY_HYPHEN = "DD-MM-YYYY"
    DMY_SLASH = "DD/MM/YYYY"
    DMY_DOT = "DD.MM.YYYY"
    MDY_HYPHEN = "MM-DD-YYYY"
    MDY_SLASH = "MM/DD/YYYY"
    YMD_HYPHEN = "YYYY-MM-DD"

    @property
    def pattern(self) -> str:
        return _DATE_PATTERNS[self]

    @classmethod
    def from_toggl(cls, value: str) -> "DateFormat":
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unbekanntes Datumsformat: %s", value)
            return cls.DMY_HYPHEN


_DATE_PATTERNS = {
    DateFormat.DMY_HYPHEN: "%d-%m-%Y",
    DateFormat.DMY_SLASH: "%d/%m/%Y",
    DateFormat.DMY_DOT: "%d.%m.%Y",
    DateFormat.MDY_HYPHEN: "%m-%d-%Y",
    DateFormat.MDY_SLASH: "%m/%d/%Y",
    DateFormat.YMD_HYPHEN: "%Y-%m-%d",
}


class TimeFormat(str, Enum):
    H24 = "H:mm"
    H12 = "h:mm A"

    @property
    def pattern(self) -> str:
        return "%H:%M" if self is TimeFormat.H24 else "%I:%M %p"

    @classmethod
    def from_toggl(cls, value: str) -> "TimeFormat":
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unbekanntes Zeitformat: %s", value)
            return cls.H24


def weekday_from_toggl(value: int) -> int:
    """Toggl zählt Sonntag als 0, Python Montag als 0."""

    if not 0 <= value <= 6:
        logger.warning("Ungültiger Wochenbeginn: %s", value)
        return 0
    return (value - 1) % 7


def weekday_to_toggl(value: int) -> int:
    return (value + 1) % 7


class Customization(BaseModel):
    """Darstellungseinstellungen; ``dark_mode`` existiert nur lokal."""

    date_format: DateFormat = DateFormat.DMY_HYPHEN
    time_format: TimeFormat = TimeFormat.H24
    week_start_day: int = Field(default=0, ge=0, le=6)
    dark_mode: bool = False

    @field_validator("date_format", mode="before")
    @classmethod
    def _coerce_date_format(cls, value):
        if isinstance(value, str) and not isinstance(value, DateFormat):
            return DateFormat.from_toggl(value)
        return value

    @field_validator("time_format", mode="before")
    @classmethod
    def _coerce_time_format(cls, value):
        if isinstance(value, str) and not isinstance(value, TimeFormat):
            return TimeFormat.from_toggl(value)
        return value

    def update_from_preferences(self, preferences: Preferences) -> "Customization":
        return self.model_copy(
            update={
                "date_format": DateFormat.from_toggl(preferences.date_format),
                "time_format": TimeFormat.from_toggl(preferences.time_format),
                "week_start_day": weekday_from_toggl(preferences.beginning_of_week),
            }
        )

    def to_preferences(self) -> Preferences:
        return Preferences(
            date_format=self.date_format.value,
            time_format=self.time_format.value,
            beginning_of_week=weekday_to_toggl(self.week_start_day),
        )

    @property
    def use_24h(self) -> bool:
        return self.time_format is TimeFormat.H24

    def to_start_of_week(self, value: dt.datetime) -> dt.datetime:
        return to_start_of_week(value, self.week_start_day)

    def _datetime_pattern(self) -> str:
        return f"{self.date_format.pattern} {self.time_format.pattern}"

    def format_date(self, value: dt.date) -> str:
        return value.strftime(self.date_format.pattern)

    def format_datetime(self, value: Optional[dt.datetime]) -> str:
        if value is None:
            return ""
        return value.strftime(self._datetime_pattern())

    def parse_datetime(self, text: str) -> Optional[dt.datetime]:
        """Liest eine Eingabe im eingestellten Format als lokale Zeit.

        Leerer Text ergibt ``None``; ungültiger Text löst ``ValueError`` aus.
        """

        text = text.strip()
        if not text:
            return None
        naive = dt.datetime.strptime(text, self._datetime_pattern())
        return naive.astimezone()


__all__ = [
    "Customization",
    "DateFormat",
    "TimeFormat",
    "weekday_from_toggl",
    "weekday_to_toggl",
]
