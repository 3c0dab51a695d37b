"""Shared pytest fixtures for the Groupie Tracker test suite."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests

from groupie_tracker.spotify.models import Artist

AUTH_URL = "https://accounts.spotify.com/api/token"
API_URL = "https://api.spotify.com/v1"


def make_response(status: int = 200, body: Any = None, text: Optional[str] = None,
                  headers: Optional[Dict[str, str]] = None, url: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = (text or "").encode("utf-8")
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    response.url = url
    return response


def token_response(value: str = "token-1", expires_in: Optional[int] = 3600) -> requests.Response:
    body: Dict[str, Any] = {"access_token": value, "token_type": "Bearer"}
    if expires_in is not None:
        body["expires_in"] = expires_in
    return make_response(200, body)


def artist_item(external_id: str, name: str, **extra: Any) -> Dict[str, Any]:
    item = {"id": external_id, "name": name, "images": [], "genres": []}
    item.update(extra)
    return item


def search_response(*items: Dict[str, Any]) -> requests.Response:
    return make_response(200, {"artists": {"items": list(items), "total": len(items)}})


class FakeSession(requests.Session):
    """Session that records calls and answers from queued responses.

    A route matches on method plus URL path suffix, and optionally on a
    predicate over the request kwargs. Each route serves its queue in order
    and keeps repeating the last item. Exceptions in a queue are raised.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[Dict[str, Any]] = []
        self._routes: List[Dict[str, Any]] = []

    def add(self, method: str, path: str, *responses: Any,
            match: Optional[Callable[[Dict[str, Any]], bool]] = None) -> None:
        self._routes.append({"method": method.upper(), "path": path, "queue": list(responses), "match": match})

    def add_token(self, *responses: Any) -> None:
        self.add("POST", AUTH_URL, *(responses or (token_response(),)))

    def add_search(self, query: str, *responses: Any) -> None:
        self.add("GET", "/search", *responses,
                 match=lambda kwargs: (kwargs.get("params") or {}).get("q") == query)

    def calls_to(self, path: str, method: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            c for c in self.calls
            if c["url"].endswith(path) and (method is None or c["method"] == method.upper())
        ]

    @property
    def token_calls(self) -> List[Dict[str, Any]]:
        return self.calls_to(AUTH_URL, "POST")

    def request(self, method, url, **kwargs):  # type: ignore[override]
        self.calls.append({"method": method.upper(), "url": url, **kwargs})
        for route in self._routes:
            if route["method"] != method.upper() or not url.endswith(route["path"]):
                continue
            if route["match"] is not None and not route["match"](kwargs):
                continue
            queue = route["queue"]
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, BaseException):
                raise item
            item.url = url
            return item
        raise AssertionError(f"Unexpected request: {method} {url} {kwargs.get('params')}")


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("groupie_tracker.tests")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spotify_config() -> Dict[str, Any]:
    return {
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
        "market": "FR",
        "request_timeout": 10,
        "token_safety_margin": 60,
        "max_retries": 2,
        "max_retry_wait": 5,
    }


@pytest.fixture
def sample_artists() -> List[Artist]:
    return [
        Artist(local_id=1, external_id="a1", name="Daft Punk", genres=("french house", "electronic"),
               first_album_name="Homework", first_album_date="1997-01-20", first_album_year=1997),
        Artist(local_id=2, external_id="a2", name="The Beatles", genres=("british invasion", "rock"),
               first_album_name="Please Please Me", first_album_date="1963-03-22", first_album_year=1963),
        Artist(local_id=3, external_id="a3", name="Stromae", genres=("belgian pop",),
               first_album_name="Cheese", first_album_date="2010", first_album_year=2010),
        Artist(local_id=4, external_id="a4", name="Simon & Garfunkel", genres=("folk rock",)),
        Artist(local_id=5, external_id="a5", name="GIMS", genres=("french hip hop", "pop urbaine"),
               first_album_name="Subliminal", first_album_date="2013-05-20", first_album_year=2013),
    ]
