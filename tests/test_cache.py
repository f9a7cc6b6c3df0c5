from __future__ import annotations

from portal.core import config
from portal.core.cache import CacheClient


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = CacheClient(default_ttl=60, clock=clock)
    cache.set_json("drive:folder", [{"id": "a"}])

    clock.now += 59
    assert cache.get_json("drive:folder") == [{"id": "a"}]

    clock.now += 1
    assert cache.get_json("drive:folder") is None


def test_non_positive_ttl_never_expires():
    clock = FakeClock()
    cache = CacheClient(default_ttl=60, clock=clock)
    cache.set_json("pinned", {"v": 1}, ttl=0)

    clock.now += 10_000
    assert cache.get_json("pinned") == {"v": 1}


def test_values_are_returned_as_copies():
    cache = CacheClient()
    cache.set_json("key", {"items": [1, 2]})

    value = cache.get_json("key")
    value["items"].append(3)

    assert cache.get_json("key") == {"items": [1, 2]}


def test_delete_and_clear():
    cache = CacheClient()
    cache.set_json("a", 1)
    cache.set_json("b", 2)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get_json("a") is None
    assert cache.get_json("b") == 2

    cache.clear()
    assert cache.get_json("b") is None


def test_rate_limit_window_resets():
    clock = FakeClock()
    cache = CacheClient(clock=clock)

    assert cache.check_rate_limit("ip", limit=2, window_seconds=60)
    assert cache.check_rate_limit("ip", limit=2, window_seconds=60)
    assert not cache.check_rate_limit("ip", limit=2, window_seconds=60)
    assert cache.check_rate_limit("other", limit=2, window_seconds=60)

    clock.now += 61
    assert cache.check_rate_limit("ip", limit=2, window_seconds=60)


def test_rate_limit_disabled_for_non_positive_limit():
    cache = CacheClient()
    assert all(cache.check_rate_limit("ip", limit=0) for _ in range(50))


def test_expired_entries_and_windows_are_pruned_on_write():
    clock = FakeClock()
    cache = CacheClient(clock=clock, prune_interval=60)
    for i in range(1000):
        cache.set_json(f"steam:storesearch:term-{i}", [i], ttl=1)
        cache.check_rate_limit(f"ratelimit:10.0.{i // 256}.{i % 256}", limit=5, window_seconds=1)

    clock.now += 10_000
    cache.set_json("fresh", 1, ttl=60)
    cache.check_rate_limit("ratelimit:10.9.9.9", limit=5, window_seconds=1)

    assert list(cache._entries) == ["fresh"]
    assert list(cache._windows) == ["ratelimit:10.9.9.9"]


def test_prune_keeps_live_entries_and_open_windows():
    clock = FakeClock()
    cache = CacheClient(clock=clock)
    cache.set_json("short", 1, ttl=10)
    cache.set_json("long", 2, ttl=1000)
    cache.set_json("pinned", 3, ttl=0)
    cache.check_rate_limit("ip-a", limit=5, window_seconds=10)
    cache.check_rate_limit("ip-b", limit=5, window_seconds=1000)

    clock.now += 100
    cache.prune()

    assert sorted(cache._entries) == ["long", "pinned"]
    assert list(cache._windows) == ["ip-b"]
    assert cache.get_json("long") == 2


def test_default_ttl_is_independent_of_drive_settings():
    assert CacheClient().default_ttl == config.CACHE_DEFAULT_TTL_SECONDS
