"""Sammlung der Profile samt aktivem Profil und Dateipersistenz."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .state import Profile, StateError

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class ProfileNotFoundError(StateError):
    """Das angeforderte Profil existiert nicht."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Profil '{name}' nicht gefunden")
        self.name = name


class StatePersistenceError(RuntimeError):
    """Fehler beim Lesen oder Schreiben der Zustandsdatei."""

    FILESYSTEM = "filesystem"
    FORMAT = "format"

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


def _default_profiles() -> Dict[str, Profile]:
    return {DEFAULT_PROFILE: Profile()}


class ProfileStore(BaseModel):
    """Alle bekannten Profile, über ihren Namen adressiert."""

    active_profile: str = DEFAULT_PROFILE
    profiles: Dict[str, Profile] = Field(default_factory=_default_profiles)

    # ------------------------------------------------------------------
    # Auswahl
    # ------------------------------------------------------------------
    def get_profile(self, name: str) -> Optional[Profile]:
        return self.profiles.get(name)

    def current_profile(self) -> Profile:
        profile = self.profiles.get(self.active_profile)
        if profile is None:
            raise ProfileNotFoundError(self.active_profile)
        return profile

    def profile_names(self) -> List[str]:
        return sorted(self.profiles)

    def api_token(self) -> str:
        return self.current_profile().api_token

    def ensure_profile(self, name: str, api_token: str) -> Profile:
        """Legt ein Profil an oder erneuert das Token eines bestehenden."""

        profile = self.profiles.get(name)
        if profile is None:
            profile = Profile(api_token=api_token)
            self.profiles[name] = profile
        else:
            profile.api_token = api_token
        # Das leere Ausgangsprofil hat keine Anmeldung und wird ersetzt
        placeholder = self.profiles.get(DEFAULT_PROFILE)
        if name != DEFAULT_PROFILE and placeholder is not None and not placeholder.api_token:
            del self.profiles[DEFAULT_PROFILE]
        return profile

    def select_profile(self, name: str) -> Profile:
        profile = self.profiles.get(name)
        if profile is None:
            raise ProfileNotFoundError(name)
        self.active_profile = name
        return profile

    def remove_profile(self, name: str) -> Optional[str]:
        """Entfernt ein Profil.

        Gibt den Namen des danach aktiven Profils zurück oder ``None``, wenn
        kein Profil mehr übrig ist.
        """

        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        del self.profiles[name]
        if not self.profiles:
            self.profiles = _default_profiles()
            self.active_profile = DEFAULT_PROFILE
            return None
        if self.active_profile == name:
            self.active_profile = self.profile_names()[0]
        return self.active_profile

    # ------------------------------------------------------------------
    # Persistenz
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Path) -> "ProfileStore":
        try:
            contents = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Zustandsdatei %s kann nicht gelesen werden: %s", path, exc)
            raise StatePersistenceError(StatePersistenceError.FILESYSTEM, str(exc)) from exc

        try:
            store = cls.model_validate_json(contents)
        except ValidationError as exc:
            logger.error("Zustandsdatei %s ist ungültig: %s", path, exc)
            raise StatePersistenceError(StatePersistenceError.FORMAT, str(exc)) from exc

        store.profiles = {name: profile for name, profile in store.profiles.items() if profile.api_token}
        if not store.profiles:
            logger.error("Zustandsdatei %s enthält kein gültiges Profil", path)
            raise StatePersistenceError(StatePersistenceError.FORMAT, "no valid profile")
        if store.active_profile not in store.profiles:
            store.active_profile = store.profile_names()[0]
        return store

    def save(self, path: Path) -> None:
        payload = self.model_dump_json(indent=2)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("Zustand kann nicht nach %s geschrieben werden: %s", path, exc)
            raise StatePersistenceError(StatePersistenceError.FILESYSTEM, str(exc)) from exc

    @staticmethod
    def delete_file(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Zustandsdatei %s kann nicht gelöscht werden: %s", path, exc)
            raise StatePersistenceError(StatePersistenceError.FILESYSTEM, str(exc)) from exc


__all__ = [
    "DEFAULT_PROFILE",
    "ProfileStore",
    "ProfileNotFoundError",
    "StatePersistenceError",
]
