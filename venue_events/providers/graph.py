# providers/graph.py
# Graph API place search + batched ?ids= venue/event lookup

import asyncio
import logging
from typing import List, Optional, Sequence

import httpx

from venue_events.models import SearchConfig, VenueRecord
from venue_events.utils import ID_LIMIT, chunk

log = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com"
PLACE_LIMIT = 1000

HEADERS = {
    "User-Agent": "VenueEvents/0.1",
    "Accept": "application/json",
}

VENUE_FIELDS = [
    "id",
    "name",
    "about",
    "emails",
    "picture.type(large)",
    "location",
    "fan_count",
    "category",
    "phone",
    "website",
    "cover",
]

EVENT_FIELDS = [
    "id",
    "name",
    "description",
    "start_time",
    "end_time",
    "category",
    "attending_count",
    "declined_count",
    "maybe_count",
    "noreply_count",
]


class GraphAPIError(RuntimeError):
    """Raised when the Graph API answers with an error status or an unexpected body."""


def _json_object(r: httpx.Response) -> dict:
    if not r.is_success:
        raise GraphAPIError(f"Graph API status {r.status_code}: {r.text[:400]}")
    js = r.json()
    if not isinstance(js, dict):
        raise GraphAPIError("Graph API returned a non-object JSON body")
    return js


def venue_fields(since: int, until: Optional[int] = None) -> str:
    """Field list for the ids lookup, with the events edge windowed to since/until."""
    events = "events.fields(%s).since(%s)" % (",".join(EVENT_FIELDS), since)
    if until:
        events += ".until(%s)" % until
    return ",".join(VENUE_FIELDS + [events])


async def discover_places(client: httpx.AsyncClient, config: SearchConfig, token: str) -> List[str]:
    params = {
        "type": "place",
        "q": config.query,
        "center": f"{config.lat},{config.lng}",
        "distance": config.distance,
        "limit": PLACE_LIMIT,
        "fields": "id",
        "access_token": token,
    }
    r = await client.get(f"{GRAPH_URL}/{config.version}/search", params=params)
    data = _json_object(r).get("data")
    if not isinstance(data, list):
        raise GraphAPIError("place search response has no data list")
    return [place["id"] for place in data]


async def fetch_batch(client: httpx.AsyncClient, version: str, ids: Sequence[str], fields: str, token: str) -> List[VenueRecord]:
    params = {
        "ids": ",".join(ids),
        "fields": fields,
        "access_token": token,
    }
    r = await client.get(f"{GRAPH_URL}/{version}/", params=params)
    payload = _json_object(r)
    # response is keyed by id; walk it in request order, anything unrequested goes last
    venues = [payload.pop(i) for i in ids if i in payload]
    venues.extend(payload.values())
    return venues


async def fetch_venues(config: SearchConfig, token: str, client: Optional[httpx.AsyncClient] = None,
                       timeout: float = 20.0) -> List[VenueRecord]:
    """
    Place search around config's center, then every place's details + events,
    50 ids per request, all batches in flight at once. Any failure propagates.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout, headers=HEADERS) as own:
            return await fetch_venues(config, token, client=own)

    ids = await discover_places(client, config, token)
    batches = chunk(ids, ID_LIMIT)
    log.info("graph: %d places near %s,%s -> %d batches", len(ids), config.lat, config.lng, len(batches))

    fields = venue_fields(config.since, config.until)
    tasks = [asyncio.ensure_future(fetch_batch(client, config.version, batch, fields, token)) for batch in batches]
    try:
        results = await asyncio.gather(*tasks)
    except Exception:
        # first failure wins; drop whatever is still in flight
        for t in tasks:
            t.cancel()
        raise

    venues = [venue for batch in results for venue in batch]
    log.info("graph: %d venues returned", len(venues))
    return venues
