import json
from typing import Any, Optional

import httpx
import pytest

from storefront_server.cache import CacheStore
from storefront_server.config import Settings

CATALOG_HOST = "catalog.test"
INFERENCE_HOST = "ai.test"

HELLO_STREAM = [b'data: {"response":"Hello"}\n\n', b"data: [DONE]\n\n"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def catalog_data() -> dict[str, Any]:
    return {
        "product": [
            {
                "id": "kaos-polos",
                "title": "Kaos Polos Premium",
                "slug": "kaos-polos",
                "category": "pakaian",
                "url": "/product/kaos-polos/",
                "sku": "KP-01",
                "price": "80.000",
                "discount": "65.000",
                "stok": "Tersedia",
                "description": "Kaos katun combed 30s yang adem",
                "image": "https://img.test/kaos.jpg",
                "styles": [{"name": "putih", "color": "#ffffff", "image_path": "https://img.test/kaos-putih.jpg"}],
            },
            {
                "id": "topi-rajut",
                "title": "Topi Rajut Hangat",
                "slug": "topi-rajut",
                "category": "aksesoris",
                "url": "/product/topi-rajut/",
                "sku": "TR-02",
                "price": 45000,
                "discount": 39000,
                "stok": "Habis",
                "description": "Topi rajut tebal untuk cuaca dingin",
                "image": "https://img.test/topi.jpg",
                "styles": [],
            },
        ]
    }


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        catalog_url=f"https://{CATALOG_HOST}/products.json",
        catalog_ttl=3600,
        cache_file=str(tmp_path / "cache.json"),
        inference_url=f"https://{INFERENCE_HOST}/run",
        api_token="test-token",
    )


@pytest.fixture
def cache(settings, clock) -> CacheStore:
    return CacheStore(settings.cache_file, clock=clock)


class StubUpstream:
    """Plays both the catalog feed and the inference backend."""

    def __init__(self, catalog: Any = None) -> None:
        self.catalog = catalog
        self.catalog_status = 200
        self.catalog_body: Optional[bytes] = None
        self.catalog_error: Optional[Exception] = None
        self.sse_chunks: list[bytes] = list(HELLO_STREAM)
        self.stream_error: Optional[Exception] = None
        self.inference_status = 200
        self.inference_error: Optional[Exception] = None
        self.requests: list[httpx.Request] = []

    def calls_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    @property
    def catalog_calls(self) -> list[httpx.Request]:
        return self.calls_to(CATALOG_HOST)

    @property
    def inference_calls(self) -> list[httpx.Request]:
        return self.calls_to(INFERENCE_HOST)

    def last_inference_payload(self) -> dict[str, Any]:
        return json.loads(self.inference_calls[-1].content)

    async def _stream(self):
        for chunk in self.sse_chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == CATALOG_HOST:
            if self.catalog_error is not None:
                raise self.catalog_error
            if self.catalog_body is not None:
                return httpx.Response(self.catalog_status, content=self.catalog_body)
            return httpx.Response(self.catalog_status, json=self.catalog)
        if request.url.host == INFERENCE_HOST:
            if self.inference_error is not None:
                raise self.inference_error
            if self.inference_status != 200:
                return httpx.Response(self.inference_status, json={"errors": [{"message": "capacity"}]})
            return httpx.Response(
                200, headers={"content-type": "text/event-stream"}, content=self._stream()
            )
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream(catalog_data) -> StubUpstream:
    return StubUpstream(catalog=catalog_data)
