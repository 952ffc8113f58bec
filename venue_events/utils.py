# utils.py
# Helpers: id batching, start-time offsets, event rows, comparators and sorting

from __future__ import annotations
import re
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Iterable, List, Optional, Sequence, Union

from venue_events.models import EventRow, EventStats, EventVenue, SortMode, VenueRecord
from venue_events.providers import geo

# Graph API accepts at most 50 ids per /?ids= call
ID_LIMIT = 50

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


def chunk(ids: Sequence[str], max_batch_size: int = ID_LIMIT) -> List[List[str]]:
    """Split ids into consecutive batches of max_batch_size (last one may be short)."""
    return [list(ids[i:i + max_batch_size]) for i in range(0, len(ids), max_batch_size)]


def to_millis(start_time: Union[str, datetime, int, float]) -> float:
    """
    Epoch milliseconds for a Graph start_time ("2016-09-29T19:00:00+0200"),
    a datetime, or a number that is already in milliseconds.
    Naive values are taken as UTC.
    """
    if isinstance(start_time, (int, float)):
        return float(start_time)
    if isinstance(start_time, str):
        start_time = datetime.fromisoformat(start_time)
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    return start_time.timestamp() * 1000


def calculate_starttime_difference(current_time: int, start_time: Union[str, datetime, int, float]) -> float:
    """Seconds from current_time (unix seconds) until start_time."""
    return (to_millis(start_time) - current_time * 1000) / 1000


def _time_from_now(current_time: int, start_time: Any) -> Optional[float]:
    # unparseable start times (e.g. "TBA") have no offset and sort last
    if not start_time:
        return None
    try:
        return calculate_starttime_difference(current_time, start_time)
    except (TypeError, ValueError):
        return None


def _cmp(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _cmp_missing_last(a: Any, b: Any) -> int:
    if a is None or b is None:
        return _cmp(a is None, b is None)
    return _cmp(a, b)


def _distance_int(value: Any) -> Optional[int]:
    # "150.9" -> 150, like parseInt
    if value is None:
        return None
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else None


def _popularity(row: EventRow) -> float:
    return row.stats.attending + (row.stats.maybe / 2)


def by_venue_name(a: EventRow, b: EventRow) -> int:
    return _cmp(a.venue.name, b.venue.name)


def by_time_from_now(a: EventRow, b: EventRow) -> int:
    return _cmp_missing_last(a.timeFromNow, b.timeFromNow)


def by_distance(a: EventRow, b: EventRow) -> int:
    """Ascending on whole metres; rows without a distance go last."""
    return _cmp_missing_last(_distance_int(a.distance), _distance_int(b.distance))


def by_popularity(a: EventRow, b: EventRow) -> int:
    """Higher attending + maybe/2 first."""
    return _cmp(_popularity(b), _popularity(a))


COMPARATORS = {
    SortMode.TIME: by_time_from_now,
    SortMode.DISTANCE: by_distance,
    SortMode.VENUE: by_venue_name,
    SortMode.POPULARITY: by_popularity,
}


def _venue_summary(venue: VenueRecord) -> EventVenue:
    picture = ((venue.get("picture") or {}).get("data") or {}).get("url")
    cover = (venue.get("cover") or {}).get("source")
    return EventVenue(
        id=venue.get("id"),
        name=venue.get("name") or "",
        about=venue.get("about"),
        emails=venue.get("emails") or [],
        location=venue.get("location"),
        profilePicture=picture,
        coverPicture=cover,
    )


def _venue_distance(venue: VenueRecord, center: Optional[tuple[float, float]]) -> Optional[str]:
    loc = venue.get("location") or {}
    if center is None or loc.get("latitude") is None or loc.get("longitude") is None:
        return None
    metres = geo.distance(center, (float(loc["latitude"]), float(loc["longitude"]))) * 1000
    return f"{metres:.0f}"


def build_event_rows(venues: Iterable[VenueRecord], center: Optional[tuple[float, float]], current_time: int) -> List[EventRow]:
    """Flatten every venue's events.data into EventRows, venue order then event order."""
    rows: List[EventRow] = []
    for venue in venues:
        events = (venue.get("events") or {}).get("data") or []
        if not events:
            continue
        summary = _venue_summary(venue)
        distance = _venue_distance(venue, center)
        for ev in events:
            # rows are keyed by event id; skip payloads without one
            if not ev.get("id"):
                continue
            start = ev.get("start_time")
            rows.append(EventRow(
                id=ev["id"],
                name=ev.get("name") or "",
                description=ev.get("description"),
                startTime=start,
                endTime=ev.get("end_time"),
                timeFromNow=_time_from_now(current_time, start),
                distance=distance,
                category=ev.get("category"),
                stats=EventStats(
                    attending=ev.get("attending_count") or 0,
                    declined=ev.get("declined_count") or 0,
                    maybe=ev.get("maybe_count") or 0,
                    noreply=ev.get("noreply_count") or 0,
                ),
                venue=summary,
            ))
    return rows


def sort_events(rows: Iterable[EventRow], mode: Optional[SortMode]) -> List[EventRow]:
    """Sorted copy of rows for mode; None keeps the given order."""
    rows = list(rows)
    if mode is None:
        return rows
    return sorted(rows, key=cmp_to_key(COMPARATORS[mode]))
