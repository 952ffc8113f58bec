# main.py
# FastAPI app exposing POST /events (venues + events near a point) and GET /schema

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from venue_events.config import env_token_provider, get_settings, load_schema
from venue_events.errors import SearchError
from venue_events.models import EventsRequest, EventsResponse
from venue_events.search import EventSearch

settings = get_settings()

app = FastAPI(title="Venue Events API", version="0.1.0")
# CORS origins
FRONTEND_LOCAL = "http://localhost:3000"

origins = [FRONTEND_LOCAL]
if settings.frontend_prod:
    origins.append(settings.frontend_prod)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# logging
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("venue-events")

# read once, served verbatim by /schema
SCHEMA = load_schema(settings.schema_path)

# SearchError.code -> HTTP status
STATUS_BY_CODE = {1: 400, 2: 401, -1: 502}


# - SearchError -> { "error": {"message", "code"} }
# - any other exception -> { "error": "Server error" }
@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError):
    log.warning("search failed (%s): %s", exc.code, exc.message)
    return JSONResponse(status_code=STATUS_BY_CODE.get(exc.code, 500), content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled exception")
    return JSONResponse(status_code=500, content={"error": "Server error"})


@app.post("/events", response_model=EventsResponse)
async def search_events(req: EventsRequest):
    """
    Venues around (lat, lng) with their events. When a valid sort mode is
    given, the flattened event rows come back sorted under "events".
    """
    es = EventSearch(
        req.to_config(settings.graph_version),
        token_provider=env_token_provider,
        schema=SCHEMA,
        timeout=settings.request_timeout_s,
    )
    result = await es.search()
    venues = result["venues"]
    events = es.sorted_events(venues) if es.config.sort else None
    return EventsResponse(venues=venues, events=events)


@app.get("/schema")
def schema():
    return SCHEMA


@app.get("/health")
def health():
    return {"ok": True}
