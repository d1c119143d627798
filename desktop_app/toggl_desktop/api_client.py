"""HTTP-Client für die Toggl Track API."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import urljoin

import requests
from pydantic import ValidationError

from .config import DEFAULT_API_BASE_URL, DEFAULT_REQUEST_TIMEOUT
from .models import (CreateTimeEntry, EntryEditAction, EntryEditInfo, ExtendedMe,
                     Preferences, TimeEntry)

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Fehler beim Zugriff auf die API."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response


def _to_utc(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(dt.timezone.utc).isoformat()


class TogglClient:
    """Kapselt HTTP-Aufrufe zur Toggl API (Basic Auth)."""

    def __init__(self, username: str, password: str, *, base_url: str = DEFAULT_API_BASE_URL,
                 timeout: int = DEFAULT_REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.auth = (username, password)
        self.timeout = timeout

    @classmethod
    def from_api_token(cls, api_token: str, **kwargs: Any) -> "TogglClient":
        return cls(api_token, "api_token", **kwargs)

    # ------------------------------------------------------------------
    # Hilfsfunktionen
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs):
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update({"Accept": "application/json", "Content-Type": "application/json"})
        logger.debug("%s %s", method, url)
        try:
            response = requests.request(method, url, auth=self.auth, **kwargs)
        except requests.RequestException as exc:  # pragma: no cover - Netzwerkfehler
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            logger.error("API Fehler %s: %s", response.status_code, response.text)
            raise ApiError(f"API Fehler {response.status_code}: {response.text}", response=response)

        if response.headers.get("Content-Type", "").startswith("application/json"):
            return response.json()
        return response.content

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ApiError(f"Unerwartete Antwort: {exc}") from exc

    # ------------------------------------------------------------------
    # Konto
    # ------------------------------------------------------------------
    def login(self) -> Tuple[str, str]:
        """Prüft die Zugangsdaten und liefert ``(email, api_token)``."""

        data = self._request("GET", "/api/v9/me") or {}
        api_token = data.get("api_token")
        if not api_token:
            raise ApiError("Anmeldung fehlgeschlagen: kein API Token erhalten")
        return data.get("email", self.auth[0]), api_token

    def fetch_snapshot(self) -> ExtendedMe:
        logger.debug("Lade Profil mit Bezugsobjekten...")
        data = self._request("GET", "/api/v9/me", params={"with_related_data": "true"}) or {}
        me = self._parse(ExtendedMe, data)
        me.preferences = self.load_preferences()
        return me

    def load_preferences(self) -> Preferences:
        data = self._request("GET", "/api/v9/me/preferences") or {}
        return self._parse(Preferences, data)

    def save_preferences(self, preferences: Preferences, *, workspace_id: Optional[int] = None) -> None:
        payload = preferences.model_dump(by_alias=True)
        self._request("POST", "/api/v9/me/preferences", json=payload)
        if workspace_id is not None:
            self._request(
                "PUT",
                "/api/v9/me",
                json={"default_workspace_id": workspace_id, "beginning_of_week": preferences.beginning_of_week},
            )

    # ------------------------------------------------------------------
    # Zeiteinträge
    # ------------------------------------------------------------------
    def load_entries(self, before: Optional[dt.datetime] = None) -> List[TimeEntry]:
        params = {"before": _to_utc(before)} if before is not None else None
        data = self._request("GET", "/api/v9/me/time_entries", params=params) or []
        entries = [self._parse(TimeEntry, item) for item in data]
        if before is not None:
            # Die API wertet ``before`` inklusiv aus
            return entries[1:]
        return entries

    def create_entry(self, request: CreateTimeEntry) -> EntryEditInfo:
        logger.debug("Lege Zeiteintrag an...")
        payload = request.model_dump(mode="json")
        data = self._request("POST", f"/api/v9/workspaces/{request.workspace_id}/time_entries", json=payload)
        return EntryEditInfo(entry=self._parse(TimeEntry, data), action=EntryEditAction.CREATE)

    def duplicate_entry(self, entry: TimeEntry) -> EntryEditInfo:
        return self.create_entry(CreateTimeEntry.from_entry(entry))

    def save_entry(self, entry: TimeEntry) -> EntryEditInfo:
        logger.debug("Aktualisiere Zeiteintrag %s...", entry.id)
        payload = entry.model_dump(mode="json")
        data = self._request(
            "PUT", f"/api/v9/workspaces/{entry.workspace_id}/time_entries/{entry.id}", json=payload
        )
        return EntryEditInfo(entry=self._parse(TimeEntry, data), action=EntryEditAction.UPDATE)

    def stop_entry(self, entry: TimeEntry) -> EntryEditInfo:
        logger.debug("Stoppe Zeiteintrag %s...", entry.id)
        if entry.stop is not None:
            raise ValueError(f"entry {entry.id} is not running")
        data = self._request("PATCH", f"/api/v9/workspaces/{entry.workspace_id}/time_entries/{entry.id}/stop")
        return EntryEditInfo(entry=self._parse(TimeEntry, data), action=EntryEditAction.UPDATE)

    def delete_entry(self, entry: TimeEntry) -> EntryEditInfo:
        logger.debug("Lösche Zeiteintrag %s...", entry.id)
        self._request("DELETE", f"/api/v9/workspaces/{entry.workspace_id}/time_entries/{entry.id}")
        return EntryEditInfo(entry=entry, action=EntryEditAction.DELETE)


__all__ = ["TogglClient", "ApiError"]
