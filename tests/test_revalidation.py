import asyncio
from datetime import datetime

import pytest

from conftest import run_async
from insight_cache.errors import ProviderError
from insight_cache.services import CacheConfig, RevalidationCoordinator


class CountingProducer:
    def __init__(self, *values, delay: float = 0.0, error: Exception | None = None) -> None:
        self.values = list(values)
        self.delay = delay
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.values[min(self.calls, len(self.values)) - 1]


def test_cold_miss_calls_producer_and_fills_both_tiers(coordinator, memory_tier, durable_tier):
    producer = CountingProducer({"sessions": 10})

    value = run_async(coordinator.cached_fetch("metrics:days=7", producer))

    assert value == {"sessions": 10}
    assert producer.calls == 1
    assert memory_tier.get("metrics:days=7") == {"sessions": 10}
    assert durable_tier.get("metrics:days=7") == {"sessions": 10}


def test_memory_hit_skips_producer(coordinator, memory_tier):
    memory_tier.set("k", "cached")
    producer = CountingProducer("fresh")

    assert run_async(coordinator.cached_fetch("k", producer)) == "cached"
    assert producer.calls == 0
    assert coordinator.pending == 0


def test_durable_hit_returns_stale_value_then_revalidates(coordinator, memory_tier, durable_tier):
    durable_tier.set("k", "old")
    producer = CountingProducer("new")

    async def scenario():
        first = await coordinator.cached_fetch("k", producer)
        await coordinator.drain()
        second = await coordinator.cached_fetch("k", producer)
        return first, second

    first, second = run_async(scenario())

    assert first == "old"
    assert second == "new"
    assert producer.calls == 1
    assert durable_tier.get("k") == "new"
    assert memory_tier.get("k") == "new"


def test_durable_hit_without_revalidation(coordinator, memory_tier, durable_tier):
    durable_tier.set("k", "old")
    producer = CountingProducer("new")

    async def scenario():
        value = await coordinator.cached_fetch("k", producer, CacheConfig(stale_while_revalidate=False))
        await coordinator.drain()
        return value

    assert run_async(scenario()) == "old"
    assert producer.calls == 0
    assert memory_tier.get("k") == "old"


def test_failed_revalidation_keeps_served_value(coordinator, memory_tier, durable_tier):
    durable_tier.set("k", "old")
    producer = CountingProducer(error=ProviderError("metrics API down"))

    async def scenario():
        value = await coordinator.cached_fetch("k", producer)
        await coordinator.drain()
        return value

    assert run_async(scenario()) == "old"
    assert producer.calls == 1
    assert memory_tier.get("k") == "old"
    assert durable_tier.get("k") == "old"


def test_cold_miss_error_propagates_and_is_not_cached(coordinator, memory_tier):
    failing = CountingProducer(error=ProviderError("metrics API down"))

    with pytest.raises(ProviderError):
        run_async(coordinator.cached_fetch("k", failing))

    assert memory_tier.get("k") is None
    assert run_async(coordinator.cached_fetch("k", CountingProducer("ok"))) == "ok"


def test_unserializable_value_leaves_both_tiers_untouched(coordinator, memory_tier, durable_tier):
    producer = CountingProducer({"synced_at": datetime(2024, 1, 1), "sessions": 10})

    with pytest.raises(TypeError):
        run_async(coordinator.cached_fetch("metrics:days=7", producer))

    assert memory_tier.get("metrics:days=7") is None
    assert durable_tier.get("metrics:days=7") is None


def test_unserializable_revalidation_keeps_tiers_in_sync(coordinator, memory_tier, durable_tier):
    durable_tier.set("k", "old")
    producer = CountingProducer({"synced_at": datetime(2024, 1, 1)})

    async def scenario():
        value = await coordinator.cached_fetch("k", producer)
        await coordinator.drain()
        return value

    assert run_async(scenario()) == "old"
    assert producer.calls == 1
    assert memory_tier.get("k") == "old"
    assert durable_tier.get("k") == "old"


def test_concurrent_cold_misses_share_one_producer_call(coordinator):
    producer = CountingProducer("value", delay=0.01)

    async def scenario():
        return await asyncio.gather(*(coordinator.cached_fetch("k", producer) for _ in range(5)))

    assert run_async(scenario()) == ["value"] * 5
    assert producer.calls == 1


def test_concurrent_cold_miss_failure_reaches_every_waiter(coordinator):
    producer = CountingProducer(delay=0.01, error=ProviderError("boom"))

    async def scenario():
        return await asyncio.gather(
            coordinator.cached_fetch("k", producer),
            coordinator.cached_fetch("k", producer),
            return_exceptions=True,
        )

    results = run_async(scenario())
    assert all(isinstance(result, ProviderError) for result in results)
    assert producer.calls == 1


def test_background_revalidation_is_bounded(memory_tier, durable_tier):
    coordinator = RevalidationCoordinator(memory_tier, durable_tier, max_background=1)
    running = 0
    peak = 0

    async def producer():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return "new"

    for i in range(3):
        durable_tier.set(f"k{i}", "old")

    async def scenario():
        for i in range(3):
            await coordinator.cached_fetch(f"k{i}", producer)
        assert coordinator.pending == 3
        await coordinator.drain()

    run_async(scenario())

    assert peak == 1
    assert coordinator.pending == 0
    assert [durable_tier.get(f"k{i}") for i in range(3)] == ["new"] * 3


def test_ttl_from_config_is_applied(coordinator, memory_tier, clock):
    run_async(coordinator.cached_fetch("k", CountingProducer("v"), CacheConfig(ttl=10)))
    clock.advance(11)
    assert memory_tier.get("k") is None


def test_invalidation_spans_both_tiers(coordinator, memory_tier, durable_tier):
    for key in ("metrics:a", "metrics:b", "insights:c"):
        memory_tier.set(key, 1)
        durable_tier.set(key, 1)

    assert coordinator.invalidate_prefix("metrics:") == 4
    coordinator.invalidate("insights:c")

    assert memory_tier.get("insights:c") is None
    assert durable_tier.get("insights:c") is None

    memory_tier.set("x", 1)
    durable_tier.set("x", 1)
    coordinator.clear()
    assert memory_tier.get("x") is None
    assert durable_tier.get("x") is None


def test_stats(coordinator):
    stats = coordinator.stats()
    assert stats["memory"]["tier"] == "memory"
    assert stats["durable"]["tier"] == "redis"
    assert stats["max_background"] == 2
