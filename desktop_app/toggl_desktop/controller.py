"""Ablaufsteuerung zwischen API, Profil-Cache und Zustandsdatei.

Alle Methoden laufen im besitzenden Thread der Oberfläche und werden
nacheinander ausgeführt; der Cache selbst braucht daher keine Sperren.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Callable, Optional

from .api_client import TogglClient
from .models import CreateTimeEntry, EntryEditInfo, TimeEntry
from .state import Profile, ResyncRequired
from .store import ProfileStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], TogglClient]
LoginFactory = Callable[[str, str], TogglClient]


class TrackerController:
    """Verbindet Benutzeraktionen mit dem optimistischen Abgleich."""

    def __init__(self, store: ProfileStore, state_path: Path, *,
                 client_factory: ClientFactory = TogglClient.from_api_token,
                 login_factory: LoginFactory = TogglClient,
                 max_pages: int = 10) -> None:
        self.store = store
        self.state_path = state_path
        self.client_factory = client_factory
        self.login_factory = login_factory
        self.max_pages = max_pages

    @property
    def profile(self) -> Profile:
        return self.store.current_profile()

    def _client(self) -> TogglClient:
        return self.client_factory(self.store.api_token())

    def save(self) -> None:
        self.store.save(self.state_path)

    # ------------------------------------------------------------------
    # Anmeldung und Profile
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Profile:
        name, api_token = self.login_factory(email, password).login()
        logger.info("Erfolgreich angemeldet.")
        self.store.ensure_profile(name, api_token)
        self.store.select_profile(name)
        self.save()
        return self.refresh()

    def select_profile(self, name: str) -> Profile:
        profile = self.store.select_profile(name)
        self.save()
        return profile

    def logout(self, name: str) -> Optional[str]:
        """Entfernt ein Profil; beim letzten Profil wird die Zustandsdatei gelöscht."""

        logger.info("Melde Profil %s ab...", name)
        remaining = self.store.remove_profile(name)
        if remaining is None:
            self.store.delete_file(self.state_path)
        else:
            self.save()
        return remaining

    def select_workspace(self, workspace_id: int) -> Profile:
        # Erst der Abgleich setzt den neuen Arbeitsbereich samt passender Einträge
        self.profile.save_customization(self._client(), workspace_id=workspace_id)
        return self.refresh()

    def select_project(self, project_id: Optional[int]) -> None:
        self.profile.default_project = project_id
        self.save()

    # ------------------------------------------------------------------
    # Laden
    # ------------------------------------------------------------------
    def refresh(self) -> Profile:
        """Lädt den vollständigen Serverstand und bei Bedarf ältere Seiten."""

        logger.debug("Synchronisiere mit dem Server...")
        client = self._client()
        me = client.fetch_snapshot()
        profile = self.profile.update_from_context(me)
        logger.info("Ausgangsdaten geladen.")
        self.save()
        pages = 0
        while not profile.has_whole_last_week() and pages < self.max_pages:
            self._load_page(client)
            pages += 1
        return profile

    def load_more(self) -> Profile:
        self._load_page(self._client())
        return self.profile

    def _load_page(self, client: TogglClient) -> None:
        profile = self.profile
        logger.info("Lade ältere Einträge...")
        entries = client.load_entries(profile.earliest_entry_time)
        if not entries:
            logger.info("Keine älteren Einträge gefunden.")
        profile.add_entries(entries)
        self.save()

    # ------------------------------------------------------------------
    # Bearbeitungen
    # ------------------------------------------------------------------
    def apply_edit(self, change: EntryEditInfo) -> Profile:
        """Übernimmt ein bestätigtes Bearbeitungsergebnis.

        Widersprüche lösen still einen vollständigen Abgleich aus.
        """

        try:
            self.profile.apply_change(change)
        except ResyncRequired as exc:
            logger.info("Optimistische Änderung verworfen (%s), lade neu", exc)
            return self.refresh()
        self.save()
        return self.profile

    def start_entry(self, description: Optional[str] = None, *,
                    start: Optional[dt.datetime] = None) -> Profile:
        profile = self.profile
        if profile.default_workspace is None:
            raise ValueError("no workspace selected")
        request = CreateTimeEntry(
            description=description,
            workspace_id=profile.default_workspace,
            project_id=profile.default_project,
        )
        if start is not None:
            request.start = start
        return self.apply_edit(self._client().create_entry(request))

    def stop_running(self) -> Profile:
        running = self.profile.running_entry
        if running is None:
            return self.profile
        return self.apply_edit(self._client().stop_entry(running))

    def update_entry(self, entry: TimeEntry) -> Profile:
        return self.apply_edit(self._client().save_entry(entry))

    def delete_entry(self, entry: TimeEntry) -> Profile:
        return self.apply_edit(self._client().delete_entry(entry))

    def duplicate_entry(self, entry: TimeEntry) -> Profile:
        return self.apply_edit(self._client().duplicate_entry(entry))


__all__ = ["TrackerController"]
