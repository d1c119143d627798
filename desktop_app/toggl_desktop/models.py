"""Datenmodelle für den lokalen Toggl-Cache."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from typing_extensions import Annotated

from .utils import duration_to_hms

RUNNING_DURATION = -1


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


StrList = Annotated[List[str], BeforeValidator(_none_to_list)]
IntList = Annotated[List[int], BeforeValidator(_none_to_list)]


class Workspace(BaseModel):
    """Arbeitsbereich eines Kontos."""

    id: int
    name: str = ""


class Project(BaseModel):
    """Projekt innerhalb eines Arbeitsbereichs."""

    id: int
    name: str = ""
    active: bool = True
    color: str = "#000000"
    workspace_id: Optional[int] = None

    def __str__(self) -> str:
        return self.name


class Tag(BaseModel):
    id: int
    name: str
    workspace_id: Optional[int] = None


class TimeEntry(BaseModel):
    """Einzelner Zeiteintrag.

    ``stop is None`` bedeutet, dass der Eintrag läuft; dann ist ``duration``
    immer ``-1``. Gestoppte Einträge tragen ``stop - start`` in Sekunden.
    """

    id: int = 0
    start: dt.datetime
    stop: Optional[dt.datetime] = None
    duration: int = RUNNING_DURATION
    workspace_id: int = 0
    project_id: Optional[int] = None
    tags: StrList = Field(default_factory=list)
    description: Optional[str] = None
    billable: bool = False
    at: Optional[str] = None
    tag_ids: IntList = Field(default_factory=list)
    task_id: Optional[int] = None
    user_id: int = 0
    server_deleted_at: Optional[dt.datetime] = None
    permissions: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check_duration(self) -> "TimeEntry":
        if self.stop is None:
            if self.duration >= 0:
                raise ValueError("running entry must not carry a duration")
            # Toggl liefert für laufende Einträge beliebige negative Werte
            self.duration = RUNNING_DURATION
        else:
            if self.stop < self.start:
                raise ValueError("stop must not precede start")
            if self.duration < 0:
                self.duration = int((self.stop - self.start).total_seconds())
        return self

    @property
    def is_running(self) -> bool:
        return self.stop is None

    def get_duration(self, now: Optional[dt.datetime] = None) -> dt.timedelta:
        """Dauer des Eintrags; für laufende Einträge die bisher verstrichene Zeit."""

        if self.stop is None:
            current = now or dt.datetime.now(dt.timezone.utc)
            return current - self.start
        return dt.timedelta(seconds=self.duration)

    def duration_string(self, now: Optional[dt.datetime] = None) -> str:
        return duration_to_hms(self.get_duration(now))

    @staticmethod
    def split_running(entries: Iterable["TimeEntry"]) -> Tuple[Optional["TimeEntry"], List["TimeEntry"]]:
        """Trennt den laufenden Eintrag (falls vorhanden) von den gestoppten."""

        running: Optional[TimeEntry] = None
        stopped: List[TimeEntry] = []
        for entry in entries:
            if entry.stop is None and running is None:
                running = entry
            elif entry.stop is not None:
                stopped.append(entry)
        return running, stopped


class CreateTimeEntry(BaseModel):
    """Anfrage zum Starten eines neuen Eintrags."""

    created_with: str = "toggl-desktop"
    description: Optional[str] = None
    duration: int = RUNNING_DURATION
    start: dt.datetime = Field(default_factory=lambda: dt.datetime.now().astimezone())
    stop: Optional[dt.datetime] = None
    workspace_id: int
    project_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: TimeEntry) -> "CreateTimeEntry":
        """Startet einen neuen Eintrag mit den Angaben eines bestehenden."""

        return cls(
            description=entry.description,
            workspace_id=entry.workspace_id,
            project_id=entry.project_id,
            tags=list(entry.tags),
        )


class Preferences(BaseModel):
    """Serverseitige Anzeigeeinstellungen (Toggl zählt Sonntag als 0)."""

    model_config = ConfigDict(populate_by_name=True)

    date_format: str = "DD-MM-YYYY"
    time_format: str = Field(default="H:mm", alias="timeofday_format")
    beginning_of_week: int = Field(default=1, alias="beginningOfWeek")

    def with_beginning_of_week(self, day: int) -> "Preferences":
        return self.model_copy(update={"beginning_of_week": day})


class ExtendedMe(BaseModel):
    """Vollständiger Abzug eines Kontos inklusive aller Bezugsobjekte."""

    api_token: str = ""
    projects: Annotated[List[Project], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    workspaces: Annotated[List[Workspace], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    tags: Annotated[List[Tag], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    time_entries: Annotated[List[TimeEntry], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    beginning_of_week: int = 1
    default_workspace_id: Optional[int] = None
    preferences: Preferences = Field(default_factory=Preferences)


class EntryEditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntryEditInfo(BaseModel):
    """Ergebnis einer Bearbeitung, das optimistisch in den Cache übernommen wird."""

    entry: TimeEntry
    action: EntryEditAction


__all__ = [
    "RUNNING_DURATION",
    "Workspace",
    "Project",
    "Tag",
    "TimeEntry",
    "CreateTimeEntry",
    "Preferences",
    "ExtendedMe",
    "EntryEditAction",
    "EntryEditInfo",
]
