from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

import pytest

from toggl_desktop.customization import weekday_to_toggl
from toggl_desktop.models import TimeEntry


def local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def make_entry(
    now: dt.datetime,
    start_minutes: int,
    duration_minutes: Optional[int],
    entry_id: int,
    *,
    workspace_id: int = 0,
) -> TimeEntry:
    """Eintrag, der ``start_minutes`` vor ``now`` beginnt; ``None`` als Dauer heißt laufend."""
    start = now - dt.timedelta(minutes=start_minutes)
    if duration_minutes is None:
        return TimeEntry(id=entry_id, start=start, stop=None, duration=-1, workspace_id=workspace_id)
    return TimeEntry(
        id=entry_id,
        start=start,
        stop=start + dt.timedelta(minutes=duration_minutes),
        duration=duration_minutes * 60,
        workspace_id=workspace_id,
    )


def week_began_days_ago(now: dt.datetime, days: int = 3) -> int:
    """Toggl-Wochenbeginn, der ``days`` Tage vor ``now`` liegt."""
    return weekday_to_toggl((now.weekday() - days) % 7)


@pytest.fixture
def entry() -> Callable[..., TimeEntry]:
    return make_entry


@pytest.fixture
def yesterday() -> dt.datetime:
    return local_now() - dt.timedelta(days=1)
