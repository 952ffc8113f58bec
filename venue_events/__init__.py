"""Venues and their events near a point, from the Graph API."""

from venue_events.errors import AuthenticationError, ConfigurationError, PipelineError, SearchError
from venue_events.models import SearchConfig, SortMode
from venue_events.search import EventSearch

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "EventSearch",
    "PipelineError",
    "SearchConfig",
    "SearchError",
    "SortMode",
]
