# models.py
# search config, derived event rows and request/response models

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# raw Graph API place payload (id, name, about, location, fan_count, events, ...)
VenueRecord = Dict[str, Any]


class SortMode(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    VENUE = "venue"
    POPULARITY = "popularity"

    @classmethod
    def parse(cls, value: Any) -> Optional["SortMode"]:
        """Case-insensitive lookup; anything unknown means no sort."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


def _now() -> int:
    return int(time.time())


class SearchConfig(BaseModel):
    """One search invocation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    lat: Optional[float] = None
    lng: Optional[float] = None
    distance: int = 100
    query: str = ""
    sort: Optional[SortMode] = None
    version: str = "v2.7"
    since: int = Field(default_factory=_now)
    until: Optional[int] = None
    access_token: Optional[str] = None

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, v: Any) -> Optional[SortMode]:
        return SortMode.parse(v)

    @field_validator("query", mode="before")
    @classmethod
    def _query_or_empty(cls, v: Any) -> str:
        return v or ""

    @field_validator("access_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, v: Any) -> Optional[str]:
        return v or None

    @property
    def center(self) -> Optional[tuple[float, float]]:
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)


class EventStats(BaseModel):
    attending: int = 0
    declined: int = 0
    maybe: int = 0
    noreply: int = 0


class EventVenue(BaseModel):
    id: Optional[str] = None
    name: str = ""
    about: Optional[str] = None
    emails: List[str] = Field(default_factory=list)
    location: Optional[dict] = None
    profilePicture: Optional[str] = None
    coverPicture: Optional[str] = None


class EventRow(BaseModel):
    """One event flattened out of its venue, in the shape the comparators sort."""

    id: str
    name: str = ""
    description: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    # seconds from the reference time to the event start; negative once started
    timeFromNow: Optional[float] = None
    # metres from the search center, whole number as a string
    distance: Optional[str] = None
    category: Optional[str] = None
    stats: EventStats = Field(default_factory=EventStats)
    venue: EventVenue = Field(default_factory=EventVenue)


class EventsRequest(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    distance: int = 100
    query: Optional[str] = None
    sort: Optional[str] = None
    version: Optional[str] = None
    since: Optional[int] = None
    until: Optional[int] = None
    accessToken: Optional[str] = None

    def to_config(self, default_version: str = "v2.7") -> SearchConfig:
        opts = {
            "lat": self.lat,
            "lng": self.lng,
            "distance": self.distance,
            "query": self.query,
            "sort": self.sort,
            "version": self.version or default_version,
            "until": self.until,
            "access_token": self.accessToken,
        }
        if self.since is not None:
            opts["since"] = self.since
        return SearchConfig(**opts)


class EventsResponse(BaseModel):
    venues: List[VenueRecord]
    events: Optional[List[EventRow]] = None
