from __future__ import annotations

import logging

import pytest

from toggl_desktop import app
from toggl_desktop.config import DEFAULT_API_BASE_URL, Settings
from toggl_desktop.logging_setup import LOGGER_NAME, configure_logging
from toggl_desktop.store import ProfileStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(state_path=tmp_path / "state" / "toggl.json", log_dir=tmp_path / "logs")


@pytest.fixture(autouse=True)
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    before = list(logger.handlers)
    yield
    for handler in logger.handlers[:]:
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()


def test_settings_read_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TOGGL_REQUEST_TIMEOUT", "3")
    monkeypatch.setenv("TOGGL_STATE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("TOGGL_LOG_TO_CONSOLE", "true")

    settings = Settings()

    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.request_timeout == 3
    assert settings.state_path == tmp_path / "s.json"
    assert settings.log_to_console is True


def test_configure_logging_is_idempotent(settings):
    settings.log_to_console = True

    logger = configure_logging(settings)
    configure_logging(settings)

    names = [handler.get_name() for handler in logger.handlers]
    assert names.count(f"{LOGGER_NAME}:file") == 1
    assert names.count(f"{LOGGER_NAME}:console") == 1
    assert logger.level == logging.INFO
    assert (settings.log_dir / f"{LOGGER_NAME}.log").exists()


def test_load_store_starts_empty_without_file(settings):
    store = app.load_store(settings)
    assert store == ProfileStore()


def test_build_controller_uses_saved_state(settings):
    saved = ProfileStore()
    saved.ensure_profile("me@example.com", "tok")
    saved.select_profile("me@example.com")
    saved.save(settings.state_path)

    controller = app.build_controller(settings)

    assert controller.store == saved
    assert controller.state_path == settings.state_path
    client = controller.client_factory("tok")
    assert client.auth == ("tok", "api_token")
    assert client.timeout == settings.request_timeout


def test_main_without_login(monkeypatch, settings, capsys):
    monkeypatch.setattr(app, "load_config", lambda: settings)

    assert app.main() == 1
    assert "Nicht angemeldet" in capsys.readouterr().err
