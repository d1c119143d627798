from __future__ import annotations

import datetime as dt


def duration_to_hms(duration: dt.timedelta) -> str:
    total_seconds = max(0, int(duration.total_seconds()))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def duration_to_hm(duration: dt.timedelta) -> str:
    total_minutes = max(0, int(duration.total_seconds())) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}:{minutes:02d}"


def to_start_of_week(value: dt.datetime, begin_day: int) -> dt.datetime:
    """Return midnight of the latest ``begin_day`` (Monday = 0) on or before ``value``.

    Naive values stay naive. Aware values are read in local time and the
    result carries the local UTC offset valid at that midnight, which may
    differ from the offset of ``value`` across a DST change.
    """
    if value.tzinfo is not None:
        value = value.astimezone()
    offset = (value.weekday() - begin_day) % 7
    midnight = dt.datetime.combine(value.date() - dt.timedelta(days=offset), dt.time.min)
    if value.tzinfo is None:
        return midnight
    return midnight.astimezone()
