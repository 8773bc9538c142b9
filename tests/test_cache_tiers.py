import json

import pytest

from insight_cache.errors import ValidationError
from insight_cache.repositories import MemoryCacheTier, RedisCacheTier


@pytest.fixture(params=["memory", "redis"])
def tier(request, memory_tier, durable_tier):
    return memory_tier if request.param == "memory" else durable_tier


def test_set_then_get_returns_value(tier):
    tier.set("metrics:days=30", {"sessions": 1200, "bounce": 0.4}, ttl=60)
    assert tier.get("metrics:days=30") == {"sessions": 1200, "bounce": 0.4}


def test_missing_key_is_absent(tier):
    assert tier.get("nope") is None


def test_entry_expires_after_ttl(tier, clock):
    tier.set("k", "v", ttl=60)
    clock.advance(60)
    assert tier.get("k") == "v"

    clock.advance(0.5)
    assert tier.get("k") is None

    tier.set("k", "fresh", ttl=60)
    assert tier.get("k") == "fresh"


def test_default_ttl_is_five_minutes(tier, clock):
    tier.set("k", "v")
    clock.advance(299)
    assert tier.get("k") == "v"
    clock.advance(2)
    assert tier.get("k") is None


def test_invalidate(tier):
    tier.set("k", "v")
    tier.invalidate("k")
    assert tier.get("k") is None


def test_invalidate_prefix_only_touches_matching_keys(tier):
    tier.set("metrics:days=7", 1)
    tier.set("metrics:days=30", 2)
    tier.set("insights:id=1", 3)

    assert tier.invalidate_prefix("metrics:") == 2
    assert tier.get("metrics:days=7") is None
    assert tier.get("insights:id=1") == 3


def test_empty_prefix_is_rejected(tier):
    with pytest.raises(ValidationError):
        tier.invalidate_prefix("")


def test_empty_key_is_rejected(tier):
    with pytest.raises(ValidationError):
        tier.get("")


def test_clear(tier):
    tier.set("a", 1)
    tier.set("b", 2)
    tier.clear()
    assert tier.get("a") is None
    assert tier.get("b") is None


def test_non_positive_ttl_is_rejected(tier):
    with pytest.raises(ValueError):
        tier.set("k", "v", ttl=0)


def test_memory_tier_evicts_expired_entry_on_read(memory_tier, clock):
    memory_tier.set("k", "v", ttl=1)
    clock.advance(2)
    assert "k" in memory_tier
    memory_tier.get("k")
    assert "k" not in memory_tier


def test_memory_tier_stats(memory_tier):
    memory_tier.set("k", "v")
    memory_tier.get("k")
    memory_tier.get("missing")
    assert memory_tier.stats() == {"tier": "memory", "total_entries": 1, "hits": 1, "misses": 1}


def test_redis_tier_stores_namespaced_envelope(durable_tier, fake_redis, clock):
    durable_tier.set("metrics:days=30", [1, 2, 3], ttl=120)

    raw = fake_redis.store[b"test:metrics:days=30"]
    assert json.loads(raw) == {"data": [1, 2, 3], "timestamp": clock.now, "ttl": 120.0}
    assert fake_redis.expiries[b"test:metrics:days=30"] == 120_000


def test_redis_tier_evicts_expired_entry_on_read(durable_tier, fake_redis, clock):
    durable_tier.set("k", "v", ttl=10)
    clock.advance(11)
    assert durable_tier.get("k") is None
    assert b"test:k" not in fake_redis.store


def test_redis_quota_error_is_swallowed(durable_tier, fake_redis):
    fake_redis.fail_writes = True

    durable_tier.set("k", "v")

    assert durable_tier.get("k") is None
    assert durable_tier.stats()["failed_writes"] == 1


def test_redis_corrupt_envelope_is_dropped(durable_tier, fake_redis):
    fake_redis.store[b"test:k"] = b"{not json"
    assert durable_tier.get("k") is None
    assert b"test:k" not in fake_redis.store


def test_redis_clear_keeps_other_namespaces(durable_tier, fake_redis):
    fake_redis.store[b"other:k"] = b"keep"
    durable_tier.set("k", "v")
    durable_tier.clear()
    assert list(fake_redis.store) == [b"other:k"]


def test_redis_entries_survive_a_new_tier_instance(fake_redis, clock):
    RedisCacheTier(redis_client=fake_redis, namespace="test", clock=clock).set("k", {"a": 1})
    restarted = RedisCacheTier(redis_client=fake_redis, namespace="test", clock=clock)
    assert restarted.get("k") == {"a": 1}


def test_redis_health_check(durable_tier, fake_redis):
    assert durable_tier.health_check() is True
    fake_redis.fail_ping = True
    assert durable_tier.health_check() is False


def test_tiers_satisfy_protocol(memory_tier, durable_tier):
    from insight_cache.protocols import CacheTier

    assert isinstance(memory_tier, CacheTier)
    assert isinstance(durable_tier, CacheTier)
    assert isinstance(MemoryCacheTier(), CacheTier)


def test_redis_bulk_operations_survive_an_outage(durable_tier, fake_redis):
    durable_tier.set("metrics:a", 1)
    fake_redis.fail_scans = True

    assert durable_tier.invalidate_prefix("metrics:") == 0
    durable_tier.clear()
    assert durable_tier.stats()["total_entries"] is None
    assert b"test:metrics:a" in fake_redis.store
