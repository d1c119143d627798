"""Einstiegspunkt: Konfiguration, Logging und gespeicherten Zustand zusammensetzen."""

from __future__ import annotations

import logging
import sys
from functools import partial
from typing import Optional

from .api_client import ApiError, TogglClient
from .config import Settings, load_config
from .controller import TrackerController
from .logging_setup import configure_logging
from .store import ProfileStore, StatePersistenceError
from .utils import duration_to_hms

logger = logging.getLogger(__name__)


def load_store(settings: Settings) -> ProfileStore:
    """Liest die Zustandsdatei; fehlt sie oder ist sie unbrauchbar, beginnt ein leerer Zustand."""

    try:
        return ProfileStore.load(settings.state_path)
    except StatePersistenceError as exc:
        logger.info("Kein gespeicherter Zustand verwendbar (%s), starte leer", exc.kind)
        return ProfileStore()


def build_controller(settings: Optional[Settings] = None) -> TrackerController:
    settings = settings or load_config()
    configure_logging(settings)
    client_options = {"base_url": settings.api_base_url, "timeout": settings.request_timeout}
    return TrackerController(
        load_store(settings),
        settings.state_path,
        client_factory=partial(TogglClient.from_api_token, **client_options),
        login_factory=partial(TogglClient, **client_options),
    )


def main() -> int:
    """Gleicht das aktive Profil ab und gibt die Wochensumme aus."""

    controller = build_controller()
    if not controller.store.api_token():
        print("Nicht angemeldet.", file=sys.stderr)
        return 1
    try:
        profile = controller.refresh()
    except ApiError as exc:
        print(f"API Fehler: {exc}", file=sys.stderr)
        return 2

    running = profile.running_entry
    if running is not None:
        print(f"Läuft: {running.description or '(ohne Beschreibung)'} {running.duration_string()}")
    print(f"Diese Woche: {duration_to_hms(profile.week_total())}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())


__all__ = ["build_controller", "load_store", "main"]
