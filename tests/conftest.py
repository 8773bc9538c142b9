"""Shared fakes for the insight cache tests."""

import asyncio
import fnmatch
import hashlib

import pytest
import redis

from insight_cache.entities import ContextSnippet, ContextType
from insight_cache.errors import ProviderError
from insight_cache.protocols import ProviderResponse
from insight_cache.repositories import MemoryCacheTier, RedisCacheTier
from insight_cache.services import EmbeddingService, RevalidationCoordinator


def run_async(coro):
    return asyncio.run(coro)


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """The handful of redis.Redis methods the durable tier uses."""

    def __init__(self) -> None:
        self.store: dict[bytes, bytes] = {}
        self.expiries: dict[bytes, int] = {}
        self.fail_writes = False
        self.fail_ping = False
        self.fail_scans = False

    @staticmethod
    def _key(name) -> bytes:
        return name.encode() if isinstance(name, str) else name

    def get(self, name):
        return self.store.get(self._key(name))

    def set(self, name, value, px=None):
        if self.fail_writes:
            raise redis.exceptions.ResponseError("OOM command not allowed when used memory > 'maxmemory'.")
        key = self._key(name)
        self.store[key] = value.encode() if isinstance(value, str) else value
        if px is not None:
            self.expiries[key] = px
        return True

    def delete(self, *names) -> int:
        count = 0
        for name in names:
            if self.store.pop(self._key(name), None) is not None:
                count += 1
        return count

    def scan_iter(self, match=None):
        if self.fail_scans:
            raise redis.exceptions.ConnectionError("connection refused")
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key.decode(), match):
                yield key

    def ping(self) -> bool:
        if self.fail_ping:
            raise redis.exceptions.ConnectionError("connection refused")
        return True


def vector_for(text: str) -> list[float]:
    digest = hashlib.sha256(text.encode()).digest()
    return [digest[0] / 255 + 0.01, digest[1] / 255 + 0.01, digest[2] / 255 + 0.01]


class FakeEmbeddingProvider:
    """Records every call; vectors come from ``vectors`` or a text hash."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, delay: float = 0.0) -> None:
        self.vectors = vectors or {}
        self.delay = delay
        self.calls: list[list[str]] = []
        self.fail_on_call: int | None = None
        self.tokens_per_text = 5

    @property
    def dimension(self) -> int:
        return 3

    @property
    def model_name(self) -> str:
        return "fake-embedding-3"

    async def embed(self, texts: list[str]) -> ProviderResponse:
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_call is not None and len(self.calls) >= self.fail_on_call:
            raise ProviderError("embedding API unavailable")
        return ProviderResponse(
            vectors=[self.vectors.get(text, vector_for(text)) for text in texts],
            total_tokens=self.tokens_per_text * len(texts),
        )

    async def is_available(self) -> bool:
        return self.fail_on_call is None


class FakeContextSource:
    def __init__(self, snippets: list[ContextSnippet]) -> None:
        self.snippets = snippets
        self.requests: list[tuple[str, list[ContextType] | None]] = []

    async def list_snippets(self, owner_id, types=None):
        self.requests.append((owner_id, types))
        return [s for s in self.snippets if not types or s.type in types]


def snippet(id: str, text: str, type: ContextType = ContextType.GOAL) -> ContextSnippet:
    return ContextSnippet(id=id, type=type, text=text)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def memory_tier(clock):
    return MemoryCacheTier(clock=clock)


@pytest.fixture
def durable_tier(fake_redis, clock):
    return RedisCacheTier(redis_client=fake_redis, namespace="test", clock=clock)


@pytest.fixture
def coordinator(memory_tier, durable_tier):
    return RevalidationCoordinator(memory_tier, durable_tier, max_background=2)


@pytest.fixture
def provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def embedding_service(provider):
    return EmbeddingService(provider, batch_size=100)
