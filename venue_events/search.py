# search.py
# EventSearch: validate, run the Graph pipeline, shape failures as SearchError

import json
import logging
import time
from typing import Callable, List, Optional

import httpx

from venue_events.config import env_token_provider, load_schema
from venue_events.errors import AuthenticationError, ConfigurationError, PipelineError, SearchError
from venue_events.models import EventRow, SearchConfig, VenueRecord
from venue_events.providers.graph import fetch_venues
from venue_events.utils import build_event_rows, sort_events

log = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class EventSearch:
    """
    Venues (with their events) around a point.

    The access token comes from config, else from token_provider.
    The response schema is read once here and handed out by get_schema().
    """

    def __init__(
        self,
        config: SearchConfig,
        token_provider: TokenProvider = env_token_provider,
        schema: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
    ):
        self.config = config
        self.access_token = config.access_token or token_provider()
        self.schema = schema if schema is not None else load_schema()
        self._client = client
        self._timeout = timeout

    def _fail(self, err: SearchError) -> SearchError:
        log.error(json.dumps(err.to_dict()))
        return err

    async def search(self) -> dict:
        cfg = self.config
        if cfg.lat is None or cfg.lng is None:
            raise self._fail(ConfigurationError("Please specify the lat and lng parameters!"))
        if not self.access_token:
            raise self._fail(AuthenticationError(
                "Please specify an Access Token, either as environment variable or as accessToken parameter!"))

        try:
            venues = await fetch_venues(cfg, self.access_token, client=self._client, timeout=self._timeout)
        except Exception as e:
            raise self._fail(PipelineError(str(e) or type(e).__name__, cause=e)) from e
        return {"venues": venues}

    def sorted_events(self, venues: List[VenueRecord], current_time: Optional[int] = None) -> List[EventRow]:
        """Event rows for venues, ordered by the configured sort mode."""
        if current_time is None:
            current_time = int(time.time())
        rows = build_event_rows(venues, self.config.center, current_time)
        return sort_events(rows, self.config.sort)

    def get_schema(self) -> dict:
        return self.schema
