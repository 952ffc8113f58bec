import asyncio
import logging

import httpx
import pytest

from venue_events.config import DEFAULT_SCHEMA_PATH, load_schema
from venue_events.errors import AuthenticationError, ConfigurationError, PipelineError, SearchError
from venue_events.models import SearchConfig, SortMode
from venue_events.providers.graph import GraphAPIError
from venue_events.search import EventSearch


@pytest.mark.parametrize("coords", [{}, {"lat": 40.45}, {"lng": -3.69}])
def test_missing_coordinates_is_code_1(fake_graph, run_search, coords):
    config = SearchConfig(access_token="tok", query="bars", **coords)
    with pytest.raises(ConfigurationError) as exc:
        run_search(fake_graph, config)
    assert exc.value.code == 1
    assert fake_graph.requests == []


def test_zero_coordinates_are_present(fake_graph, run_search):
    result = run_search(fake_graph, SearchConfig(lat=0.0, lng=0.0, access_token="tok"))
    assert result == {"venues": []}


def test_missing_token_is_code_2(fake_graph, run_search):
    with pytest.raises(AuthenticationError) as exc:
        run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0))
    assert exc.value.code == 2
    assert fake_graph.requests == []


def test_coordinates_checked_before_token(fake_graph, run_search):
    with pytest.raises(SearchError) as exc:
        run_search(fake_graph, SearchConfig())
    assert exc.value.code == 1


def test_token_from_provider(fake_graph, run_search):
    run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0), token_provider=lambda: "from-env")
    assert fake_graph.requests[0].url.params["access_token"] == "from-env"


def test_explicit_token_wins(fake_graph, run_search):
    run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0, access_token="explicit"),
               token_provider=lambda: "from-env")
    assert fake_graph.requests[0].url.params["access_token"] == "explicit"


def test_end_to_end(fake_graph, run_search):
    fake_graph.place_ids = ["1", "2"]
    fake_graph.batch_body = b'{"1":{"id":"1","name":"A"},"2":{"id":"2","name":"B"}}'
    result = run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0, access_token="tok"))
    assert result == {"venues": [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]}


def test_discovery_failure_is_code_minus_1(fake_graph, run_search):
    fake_graph.search_error = httpx.ConnectError("connection refused")
    with pytest.raises(PipelineError) as exc:
        run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0, access_token="tok"))
    assert exc.value.code == -1
    assert isinstance(exc.value.cause, httpx.ConnectError)
    assert exc.value.__cause__ is exc.value.cause
    assert fake_graph.batch_requests == []


def test_batch_failure_aborts_everything(fake_graph, run_search):
    fake_graph.place_ids = [str(i) for i in range(60)]
    fake_graph.batch_status = 500
    with pytest.raises(PipelineError) as exc:
        run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0, access_token="tok"))
    assert isinstance(exc.value.cause, GraphAPIError)


def test_errors_are_logged(fake_graph, run_search, caplog):
    caplog.set_level(logging.ERROR, logger="venue_events.search")
    with pytest.raises(ConfigurationError):
        run_search(fake_graph, SearchConfig(access_token="tok"))
    assert '"code": 1' in caplog.text
    assert "lat and lng" in caplog.text


def test_get_schema_defaults_to_packaged_file():
    es = EventSearch(SearchConfig(), token_provider=lambda: None)
    assert es.get_schema() == load_schema(DEFAULT_SCHEMA_PATH)
    assert "venues" in es.get_schema()["properties"]


def test_get_schema_injected():
    schema = {"type": "object"}
    assert EventSearch(SearchConfig(), token_provider=lambda: None, schema=schema).get_schema() is schema


def test_sorted_events_uses_config_sort():
    venues = [
        {"id": "1", "name": "Quiet", "events": {"data": [{"id": "a", "attending_count": 1}]}},
        {"id": "2", "name": "Busy", "events": {"data": [{"id": "b", "attending_count": 50}]}},
    ]
    es = EventSearch(SearchConfig(lat=1.0, lng=2.0, sort="popularity"), token_provider=lambda: None, schema={})
    assert es.config.sort is SortMode.POPULARITY
    assert [r.id for r in es.sorted_events(venues, current_time=0)] == ["b", "a"]


def test_search_owns_client_when_none_given(monkeypatch):
    seen = {}

    async def fake_fetch(config, token, client=None, timeout=20.0):
        seen.update(token=token, client=client, timeout=timeout)
        return [{"id": "1"}]

    monkeypatch.setattr("venue_events.search.fetch_venues", fake_fetch)
    es = EventSearch(SearchConfig(lat=1.0, lng=2.0, access_token="tok"), schema={}, timeout=5.0)
    assert asyncio.run(es.search()) == {"venues": [{"id": "1"}]}
    assert seen == {"token": "tok", "client": None, "timeout": 5.0}


def test_missing_token_is_logged(fake_graph, run_search, caplog):
    caplog.set_level(logging.ERROR, logger="venue_events.search")
    with pytest.raises(AuthenticationError):
        run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0))
    assert '"code": 2' in caplog.text
    assert "Access Token" in caplog.text


def test_pipeline_failure_is_logged(fake_graph, run_search, caplog):
    caplog.set_level(logging.ERROR, logger="venue_events.search")
    fake_graph.search_error = httpx.ConnectError("connection refused")
    with pytest.raises(PipelineError):
        run_search(fake_graph, SearchConfig(lat=1.0, lng=2.0, access_token="tok"))
    assert '"code": -1' in caplog.text
    assert "connection refused" in caplog.text
