"""Shared fixtures: a fake `aiohttp.ClientSession` and sample API payloads.

The fake session answers requests from a queue of JSON payloads and records
every request, so tests can assert on the parameters sent without network
I/O.
"""

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Any, NamedTuple

import pytest
from yarl import URL

from pywikiclient.site import WikiSite

__all__ = ()

ENDPOINT = "https://wiki.example.org/w/api.php"


class _Request(NamedTuple):
    method: str
    url: URL
    params: dict[str, str]


class _FakeResp:
    """Minimal async context manager mimicking parts of `aiohttp.ClientResponse`."""

    def __init__(self, *, json_data: Any | None = None) -> None:
        self._json: Any | None = json_data

    def raise_for_status(self) -> None:
        return None

    async def json(self) -> Any | None:
        # mimic aiohttp.ClientResponse.json()
        await asyncio.sleep(0)
        return self._json

    async def __aenter__(self) -> "_FakeResp":
        return self

    async def __aexit__(
        self, exc_type: type | None, exc: BaseException | None, tb: object | None
    ) -> bool:
        return False


class _FakeClientSession:
    """Fake client session answering `get` and `post` from a payload queue.

    A queued exception instance is raised instead of being answered.
    """

    def __init__(self, *args: object, **kwargs: object) -> None:
        self.payloads: deque[Any] = deque()
        self.requests: list[_Request] = []
        self.closed = False

    def queue(self, *payloads: Any) -> None:
        self.payloads.extend(payloads)

    def _respond(self, request: _Request) -> _FakeResp:
        self.requests.append(request)
        payload = self.payloads.popleft()
        if isinstance(payload, BaseException):
            raise payload
        return _FakeResp(json_data=payload)

    def get(self, url: object, *args: object, **kwargs: object) -> _FakeResp:
        url = URL(str(url))
        return self._respond(_Request("GET", url, dict(url.query)))

    def post(
        self, url: object, *args: object, data: dict[str, str] | None = None, **kwargs
    ) -> _FakeResp:
        return self._respond(_Request("POST", URL(str(url)), dict(data or {})))

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "_FakeClientSession":
        return self

    async def __aexit__(
        self, exc_type: type | None, exc: BaseException | None, tb: object | None
    ) -> bool:
        await self.close()
        return False


def _claim_json(id: str | None, property_id: str, target: str) -> dict[str, Any]:
    ret: dict[str, Any] = {
        "type": "statement",
        "rank": "normal",
        "mainsnak": {
            "snaktype": "value",
            "property": property_id,
            "hash": f"hash-{property_id}-{target}",
            "datavalue": {
                "value": {
                    "entity-type": "item",
                    "numeric-id": int(target[1:]),
                    "id": target,
                },
                "type": "wikibase-entityid",
            },
            "datatype": "wikibase-item",
        },
    }
    if id is not None:
        ret["id"] = id
    return ret


def _entity_json(id: str = "Q42", **overrides: Any) -> dict[str, Any]:
    ret: dict[str, Any] = {
        "type": "item",
        "id": id,
        "pageid": 138,
        "ns": 0,
        "title": id,
        "lastrevid": 123,
        "modified": "2024-01-02T03:04:05Z",
        "labels": {"en": {"language": "en", "value": "Douglas Adams"}},
        "descriptions": {"en": {"language": "en", "value": "English writer"}},
        "aliases": {
            "en": [
                {"language": "en", "value": "DNA"},
                {"language": "en", "value": "Douglas Noel Adams"},
            ]
        },
        "sitelinks": {
            "enwiki": {
                "site": "enwiki",
                "title": "Douglas Adams",
                "badges": ["Q17437796"],
            }
        },
        "claims": {
            "P31": [_claim_json(f"{id}$1", "P31", "Q5")],
            "P106": [
                _claim_json(f"{id}$2", "P106", "Q36180"),
                _claim_json(f"{id}$3", "P106", "Q214917"),
            ],
        },
    }
    ret.update(overrides)
    return ret


@pytest.fixture
def fake_session() -> _FakeClientSession:
    return _FakeClientSession()


@pytest.fixture
def site(fake_session: _FakeClientSession) -> WikiSite:
    return WikiSite(ENDPOINT, session=fake_session)  # type: ignore[arg-type]


@pytest.fixture
def make_entity() -> Callable[..., dict[str, Any]]:
    """Return a builder of ``wbgetentities`` entity nodes."""
    return _entity_json


@pytest.fixture
def make_claim() -> Callable[..., dict[str, Any]]:
    return _claim_json
