"""Lokaler Cache eines Kontos und optimistischer Abgleich von Bearbeitungen."""

from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from pydantic import BaseModel, Field

from .customization import Customization
from .models import EntryEditAction, EntryEditInfo, ExtendedMe, Project, Tag, TimeEntry, Workspace

if TYPE_CHECKING:
    from .api_client import TogglClient

logger = logging.getLogger(__name__)


class StateError(RuntimeError):
    """Basisklasse für Fehler des lokalen Caches."""


class ResyncRequired(StateError):
    """Die Bearbeitung lässt sich nicht eindeutig anwenden; der Cache muss neu geladen werden."""

    def __init__(self, message: str, *, entry_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


def _local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


class Profile(BaseModel):
    """Arbeitsstand eines Kontos.

    ``time_entries`` enthält nur gestoppte Einträge des Standard-Arbeitsbereichs,
    absteigend nach ``start`` sortiert. Der laufende Eintrag wird getrennt in
    ``running_entry`` gehalten.
    """

    api_token: str = ""
    time_entries: List[TimeEntry] = Field(default_factory=list)
    running_entry: Optional[TimeEntry] = None
    has_more_entries: bool = False
    # Kann aus einem anderen Arbeitsbereich stammen und daher fehlen
    earliest_entry_time: Optional[dt.datetime] = None
    projects: List[Project] = Field(default_factory=list)
    workspaces: List[Workspace] = Field(default_factory=list)
    tags: List[Tag] = Field(default_factory=list)
    default_workspace: Optional[int] = None
    default_project: Optional[int] = None
    customization: Customization = Field(default_factory=Customization)

    # ------------------------------------------------------------------
    # Abgleich mit dem Server
    # ------------------------------------------------------------------
    def update_from_context(self, me: ExtendedMe) -> "Profile":
        """Übernimmt einen vollständigen Serverabzug als neue Wahrheit."""

        workspace_ids = [workspace.id for workspace in me.workspaces]
        if me.default_workspace_id is not None and me.default_workspace_id in workspace_ids:
            ws_id: Optional[int] = me.default_workspace_id
        else:
            ws_id = workspace_ids[0] if workspace_ids else None

        project_ids = {project.id for project in me.projects}
        project_id = self.default_project if self.default_project in project_ids else None

        earliest = min((entry.start for entry in me.time_entries), default=None)
        running, stopped = TimeEntry.split_running(me.time_entries)
        if ws_id is not None:
            stopped = [entry for entry in stopped if entry.workspace_id == ws_id]

        self.running_entry = running
        self.time_entries = stopped
        # Ohne Einträge gibt es auch nichts Älteres nachzuladen
        self.has_more_entries = earliest is not None
        self.earliest_entry_time = earliest
        self.projects = list(me.projects)
        self.workspaces = list(me.workspaces)
        self.tags = list(me.tags)
        self.default_workspace = ws_id
        self.default_project = project_id
        self.customization = self.customization.update_from_preferences(
            me.preferences.with_beginning_of_week(me.beginning_of_week)
        )
        self._sort_entries()
        return self

    def add_entries(self, entries: Iterable[TimeEntry]) -> None:
        """Hängt eine ältere Seite der Historie an.

        Der früheste Startzeitpunkt wird über die ganze Seite ermittelt, auch
        über Einträge fremder Arbeitsbereiche: er beantwortet, ob es auf dem
        Server überhaupt noch ältere Einträge gibt. Bereits bekannte Einträge
        zählen dafür mit, werden aber nicht erneut angehängt.
        """

        earliest: Optional[dt.datetime] = None
        for entry in entries:
            if earliest is None or entry.start < earliest:
                earliest = entry.start
            if entry.stop is None or self._is_cached(entry.id):
                continue
            if self.default_workspace is None or entry.workspace_id == self.default_workspace:
                self.time_entries.append(entry)
        self.has_more_entries = earliest is not None
        if earliest is not None:
            self.earliest_entry_time = earliest
        self._sort_entries()

    def apply_change(self, change: EntryEditInfo) -> None:
        """Wendet eine optimistische Bearbeitung an.

        Löst ``ResyncRequired`` aus, wenn sich die Änderung nicht eindeutig
        einordnen lässt; der Cache bleibt dann unverändert.
        """

        if change.action is EntryEditAction.CREATE:
            self._apply_create(change.entry)
        elif change.action is EntryEditAction.DELETE:
            self._apply_delete(change.entry)
        elif change.action is EntryEditAction.UPDATE:
            self._apply_update(change.entry)
        else:  # pragma: no cover - Enum ist abgeschlossen
            raise ValueError(f"unknown edit action: {change.action!r}")

    def _apply_create(self, entry: TimeEntry) -> None:
        if self._is_cached(entry.id):
            raise ResyncRequired(f"entry {entry.id} already exists", entry_id=entry.id)
        if entry.stop is None:
            if self.running_entry is not None:
                # Neuer laufender Eintrag, ohne dass der alte gestoppt wurde
                raise ResyncRequired("another entry is already running", entry_id=entry.id)
            self.running_entry = entry
            return
        self._check_workspace(entry)
        self.time_entries.insert(0, entry)
        self._sort_entries()

    def _apply_delete(self, entry: TimeEntry) -> None:
        if self.running_entry is not None and self.running_entry.id == entry.id:
            self.running_entry = None
        self.time_entries = [e for e in self.time_entries if e.id != entry.id]

    def _apply_update(self, entry: TimeEntry) -> None:
        running = self.running_entry
        if entry.stop is None:
            if running is None:
                # Gestoppter Eintrag wurde wieder laufend gemacht
                self.running_entry = entry
                self.time_entries = [e for e in self.time_entries if e.id != entry.id]
                return
            if running.id == entry.id:
                self.running_entry = entry
                return
            # Der bisher laufende Eintrag wurde serverseitig gestoppt, die
            # genaue Stoppzeit ist lokal aber unbekannt
            raise ResyncRequired("entry became running while another one runs", entry_id=entry.id)

        if running is not None and running.id == entry.id:
            self._check_workspace(entry)
            self.running_entry = None
            self.time_entries.insert(0, entry)
            self._sort_entries()
            return

        for index, existing in enumerate(self.time_entries):
            if existing.id == entry.id:
                self._check_workspace(entry)
                self.time_entries[index] = entry
                self._sort_entries()
                return

        logger.error("Eintrag %s kann nicht aktualisiert werden, lade neu", entry.id)
        raise ResyncRequired(f"unknown entry {entry.id}", entry_id=entry.id)

    def _is_cached(self, entry_id: int) -> bool:
        if self.running_entry is not None and self.running_entry.id == entry_id:
            return True
        return any(e.id == entry_id for e in self.time_entries)

    def _check_workspace(self, entry: TimeEntry) -> None:
        if self.default_workspace is not None and entry.workspace_id != self.default_workspace:
            raise ResyncRequired(
                f"entry {entry.id} belongs to workspace {entry.workspace_id}", entry_id=entry.id
            )

    def _sort_entries(self) -> None:
        self.time_entries.sort(key=lambda entry: entry.start, reverse=True)

    # ------------------------------------------------------------------
    # Abgeleitete Werte
    # ------------------------------------------------------------------
    def week_total(self, now: Optional[dt.datetime] = None) -> dt.timedelta:
        now = now or _local_now()
        week_start = self.customization.to_start_of_week(now)
        total = sum(
            (entry.get_duration() for entry in self.time_entries if entry.start >= week_start),
            dt.timedelta(),
        )
        if self.running_entry is not None:
            total += self.running_entry.get_duration(now)
        return total

    def has_whole_last_week(self, now: Optional[dt.datetime] = None) -> bool:
        if not self.has_more_entries or self.earliest_entry_time is None:
            return True
        now = now or _local_now()
        return self.earliest_entry_time < self.customization.to_start_of_week(now)

    def save_customization(self, client: "TogglClient", workspace_id: Optional[int] = None) -> None:
        """Überträgt die Darstellung und den Standard-Arbeitsbereich an den Server.

        Ein abweichendes ``workspace_id`` wird nur gesendet; lokal übernimmt es
        erst der nächste Abgleich.
        """

        if workspace_id is None:
            workspace_id = self.default_workspace
        client.save_preferences(self.customization.to_preferences(), workspace_id=workspace_id)


__all__ = ["Profile", "StateError", "ResyncRequired"]
