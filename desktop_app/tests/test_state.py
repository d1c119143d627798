from __future__ import annotations

import datetime as dt

from conftest import local_now, make_entry, week_began_days_ago

from toggl_desktop.customization import Customization
from toggl_desktop.models import ExtendedMe, Preferences, Project, TimeEntry, Workspace
from toggl_desktop.state import Profile


def _snapshot(**kwargs) -> ExtendedMe:
    data = {
        "projects": [],
        "workspaces": [Workspace(id=0)],
        "tags": [],
        "time_entries": [],
        "beginning_of_week": 1,
        "default_workspace_id": None,
        "preferences": Preferences(),
    }
    data.update(kwargs)
    return ExtendedMe(**data)


def test_snapshot_merge_splits_running_and_filters_workspace():
    now = local_now()
    e_running = make_entry(now, 0, None, 3)
    e_stopped = make_entry(now, 11, 10, 2)
    e_foreign = make_entry(now, 22, 10, 1, workspace_id=1)
    me = _snapshot(
        time_entries=[e_running, e_stopped, e_foreign],
        beginning_of_week=week_began_days_ago(now),
        default_workspace_id=1,
    )

    profile = Profile().update_from_context(me)

    assert profile.running_entry == e_running
    assert profile.time_entries == [e_stopped]
    assert profile.default_workspace == 0
    assert profile.default_project is None
    assert profile.earliest_entry_time == e_foreign.start

    running_time = local_now() - now
    total = profile.week_total()
    assert total >= dt.timedelta(minutes=10) + running_time
    assert total < dt.timedelta(minutes=10) + running_time + dt.timedelta(milliseconds=200)

    assert profile.has_more_entries
    assert not profile.has_whole_last_week()
    profile.add_entries([])
    assert not profile.has_more_entries
    assert profile.earliest_entry_time == e_foreign.start
    assert profile.has_whole_last_week()


def test_snapshot_with_old_entries_covers_last_week():
    now = local_now() - dt.timedelta(days=7)
    old = make_entry(now, 11, 10, 1)

    profile = Profile().update_from_context(_snapshot(time_entries=[old], default_workspace_id=1))

    assert profile.running_entry is None
    assert profile.time_entries == [old]
    assert profile.earliest_entry_time == old.start
    assert profile.week_total() == dt.timedelta()
    assert profile.has_more_entries
    assert profile.has_whole_last_week()


def test_empty_snapshot_has_nothing_more_to_load():
    profile = Profile().update_from_context(_snapshot())
    assert not profile.has_more_entries
    assert profile.earliest_entry_time is None
    assert profile.has_whole_last_week()


def test_snapshot_week_start_from_server():
    profile = Profile().update_from_context(_snapshot(workspaces=[], beginning_of_week=2))
    # Toggl: Dienstag = 2, Python: Dienstag = 1
    assert profile.customization.week_start_day == 1
    assert profile.default_workspace is None


def test_snapshot_default_workspace_resolution():
    ws1, ws2 = Workspace(id=10), Workspace(id=11)

    profile = Profile().update_from_context(_snapshot(workspaces=[ws1, ws2], default_workspace_id=11))
    assert profile.default_workspace == 11

    profile = Profile().update_from_context(_snapshot(workspaces=[ws1, ws2], default_workspace_id=None))
    assert profile.default_workspace == 10

    profile = Profile().update_from_context(_snapshot(workspaces=[ws1, ws2], default_workspace_id=0))
    assert profile.default_workspace == 10


def test_snapshot_keeps_default_project_only_if_still_present():
    project = Project(id=5, name="Intern")
    profile = Profile(default_project=5)
    profile.update_from_context(_snapshot(projects=[project]))
    assert profile.default_project == 5

    profile.update_from_context(_snapshot(projects=[Project(id=6)]))
    assert profile.default_project is None


def test_snapshot_preserves_local_settings():
    profile = Profile(api_token="secret", customization=Customization(dark_mode=True))
    me = _snapshot(preferences=Preferences(date_format="YYYY-MM-DD", time_format="h:mm A"))

    profile.update_from_context(me)

    assert profile.api_token == "secret"
    assert profile.customization.dark_mode is True
    assert profile.customization.date_format.value == "YYYY-MM-DD"
    assert not profile.customization.use_24h


def test_snapshot_entries_are_sorted_descending():
    now = local_now()
    older = make_entry(now, 60, 10, 1)
    newer = make_entry(now, 20, 10, 2)

    profile = Profile().update_from_context(_snapshot(time_entries=[older, newer]))

    assert [e.id for e in profile.time_entries] == [2, 1]


def test_add_entries_tracks_earliest_across_workspaces():
    now = local_now()
    profile = Profile().update_from_context(_snapshot(time_entries=[make_entry(now, 10, 5, 1)]))

    own = make_entry(now, 120, 10, 2)
    foreign = make_entry(now, 240, 10, 3, workspace_id=7)
    profile.add_entries([own, foreign])

    assert [e.id for e in profile.time_entries] == [1, 2]
    assert profile.earliest_entry_time == foreign.start
    assert profile.has_more_entries


def test_add_entries_with_only_known_entries_keeps_paging():
    now = local_now()
    known = make_entry(now, 120, 10, 2)
    profile = Profile(default_workspace=0, time_entries=[make_entry(now, 10, 5, 1), known])

    profile.add_entries([known])

    assert [e.id for e in profile.time_entries] == [1, 2]
    assert profile.has_more_entries
    assert profile.earliest_entry_time == known.start


def test_add_entries_resorts_out_of_order_page():
    now = local_now()
    profile = Profile(default_workspace=0, time_entries=[make_entry(now, 10, 5, 1)])

    profile.add_entries([make_entry(now, 300, 10, 3), make_entry(now, 100, 10, 2)])

    assert [e.id for e in profile.time_entries] == [1, 2, 3]


def test_week_total_counts_only_current_week():
    now = dt.datetime(2025, 4, 16, 12, 0).astimezone()  # Mittwoch
    this_week = TimeEntry(id=1, start=now - dt.timedelta(hours=2), stop=now - dt.timedelta(hours=1), duration=3600)
    last_week = TimeEntry(
        id=2, start=now - dt.timedelta(days=6), stop=now - dt.timedelta(days=6) + dt.timedelta(minutes=30), duration=1800
    )
    running = TimeEntry(id=3, start=now - dt.timedelta(minutes=15), duration=-1)
    profile = Profile(time_entries=[this_week, last_week], running_entry=running)

    assert profile.week_total(now) == dt.timedelta(hours=1, minutes=15)


def test_has_whole_last_week_uses_earliest_entry_time():
    now = dt.datetime(2025, 4, 16, 12, 0).astimezone()
    profile = Profile(has_more_entries=True, earliest_entry_time=now - dt.timedelta(days=1))
    assert not profile.has_whole_last_week(now)

    profile.earliest_entry_time = now - dt.timedelta(days=3)
    assert profile.has_whole_last_week(now)

    profile.earliest_entry_time = now - dt.timedelta(days=1)
    profile.has_more_entries = False
    assert profile.has_whole_last_week(now)
