"""GammaClient pagination, filters, retries, and event lookup."""

import json

import httpx
import pytest

from polyhistory.ingestion.errors import ApiError, ErrorKind
from polyhistory.ingestion.polymarket.gamma import GammaClient, normalize_slug

BASE = "https://gamma.test"


def _market(i: int) -> dict:
    return {
        "id": str(i),
        "question": f"Bitcoin price on day {i}?",
        "outcomes": '["Yes", "No"]',
        "clobTokenIds": json.dumps([f"Y{i}", f"N{i}"]),
        "closed": True,
    }


def _client(handler, **kwargs) -> tuple[GammaClient, list[float]]:
    sleeps: list[float] = []
    http = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    kwargs.setdefault("page_delay_sec", 0)
    return GammaClient(BASE, client=http, sleep=sleeps.append, **kwargs), sleeps


def test_pagination_stops_on_short_page():
    limit, full_pages = 3, 2
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        calls.append(offset)
        size = limit if len(calls) <= full_pages else 1
        data = [_market(offset + i) for i in range(size)]
        return httpx.Response(200, json={"data": data, "count": size, "next_offset": offset + size})

    gamma, _ = _client(handler, page_size=limit)
    markets = gamma.get_all_markets()
    assert calls == [0, 3, 6]
    assert [m.id for m in markets] == [str(i) for i in range(7)]


def test_pagination_stops_without_next_offset():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params["offset"])
        return httpx.Response(200, json={"data": [_market(0), _market(1)], "count": 2, "next_offset": None})

    gamma, _ = _client(handler, page_size=2)
    assert len(gamma.get_all_markets()) == 2
    assert calls == ["0"]


def test_pagination_accepts_bare_array_pages():
    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        if offset == 0:
            return httpx.Response(200, json=[_market(0), _market(1)])
        if offset == 2:
            return httpx.Response(200, json=[])
        raise AssertionError(f"unexpected offset {offset}")

    gamma, _ = _client(handler, page_size=2)
    assert [m.id for m in gamma.get_all_markets()] == ["0", "1"]


def test_page_query_parameters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        assert request.url.path == "/markets"
        return httpx.Response(200, json={"data": [], "count": 0})

    gamma, _ = _client(
        handler,
        search_pattern="Bitcoin Price On",
        tag="Crypto",
        only_closed=True,
        only_archived=True,
        page_size=50,
    )
    assert gamma.get_all_markets() == []
    assert seen == {
        "offset": "0",
        "limit": "50",
        "tag": "Crypto",
        "closed": "true",
        "archived": "true",
        "_searchType": "slug",
        "slug_starts_with": "bitcoin-price-on",
    }


def test_optional_filters_are_omitted():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={"data": []})

    gamma, _ = _client(handler)
    gamma.get_page(10, 20)
    assert seen == {"offset": "10", "limit": "20"}


def test_transient_errors_retry_same_page():
    responses = [
        httpx.Response(503),
        httpx.Response(429),
        httpx.Response(200, json={"data": [_market(0)], "count": 1, "next_offset": 1}),
    ]
    offsets = []

    def handler(request: httpx.Request) -> httpx.Response:
        offsets.append(request.url.params["offset"])
        return responses.pop(0)

    gamma, sleeps = _client(handler, page_size=10, retry_delay_sec=5.0)
    assert len(gamma.get_all_markets()) == 1
    assert offsets == ["0", "0", "0"]
    assert sleeps == [5.0, 5.0]


def test_transport_error_retries():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"data": [_market(0)], "next_offset": None})

    gamma, sleeps = _client(handler)
    assert len(gamma.get_all_markets()) == 1
    assert len(sleeps) == 1


def test_retry_cap_reraises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    gamma, sleeps = _client(handler, max_page_retries=2)
    with pytest.raises(ApiError) as exc:
        gamma.get_all_markets()
    assert exc.value.kind is ErrorKind.HTTP
    assert len(sleeps) == 2


def test_decode_error_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    gamma, sleeps = _client(handler)
    with pytest.raises(ApiError) as exc:
        gamma.get_all_markets()
    assert exc.value.kind is ErrorKind.DECODE
    assert sleeps == []


def test_malformed_listing_shape_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"question": "q", "outcomes": "[broken"}]})

    gamma, _ = _client(handler)
    with pytest.raises(ApiError) as exc:
        gamma.get_all_markets()
    assert exc.value.kind is ErrorKind.DECODE


def test_get_event_by_slug():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/events"
        assert request.url.params["slug"] == "bitcoin-price-on-january-21"
        return httpx.Response(
            200,
            json=[{"id": 7, "title": "Bitcoin price on January 21?", "markets": [_market(1), _market(2)]}],
        )

    gamma, _ = _client(handler)
    event = gamma.get_event("Bitcoin Price On January 21")
    assert event is not None
    assert event.id == "7"
    assert [m.question for m in event.markets] == ["Bitcoin price on day 1?", "Bitcoin price on day 2?"]


def test_get_event_numeric_key_is_sent_as_slug():
    def handler(request: httpx.Request) -> httpx.Response:
        assert dict(request.url.params) == {"slug": "12345"}
        return httpx.Response(200, json=[{"id": "12345", "title": "t", "markets": None}])

    gamma, _ = _client(handler)
    event = gamma.get_event("12345")
    assert event is not None
    assert event.markets == []


@pytest.mark.parametrize("response", [httpx.Response(404), httpx.Response(200, json=[])])
def test_get_event_not_found(response):
    gamma, _ = _client(lambda request: response)
    assert gamma.get_event("missing") is None


def test_get_event_other_errors_propagate():
    gamma, _ = _client(lambda request: httpx.Response(500))
    with pytest.raises(ApiError) as exc:
        gamma.get_event("slug")
    assert exc.value.status_code == 500


def test_get_event_rejects_empty_key():
    gamma, _ = _client(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(ValueError):
        gamma.get_event("   ")


def test_normalize_slug():
    assert normalize_slug("  Bitcoin price on ") == "bitcoin-price-on"
